"""Development backend exposing the admin REST API with in-memory storage.

Serves the same routes the console calls so it can run locally and be
integration-tested:

    uvicorn backend.main:app --reload --port 5000
"""
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import pandas as pd
from fastapi import APIRouter, Body, Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .core.config import settings
from .core.logging_setup import setup_logging
from .core.metrics import compute_accuracy_metrics, compute_validation_stats
from .core.repository import ConflictError, InMemoryRepository, NotFoundError, seed_sample_data
from .core.schema import (
    AIAccuracyMetrics,
    Availability,
    BusinessContext,
    BusinessContextCreate,
    BusinessContextUpdate,
    CatalogResponsibles,
    CatalogSystems,
    ClassificationPreview,
    ClassificationPreviewRequest,
    ConflictIssue,
    DuplicateRequest,
    ImportResult,
    MessageResponse,
    Responsible,
    ResponsibleCreate,
    ResponsibleList,
    ResponsibleUpdate,
    System,
    SystemCreate,
    SystemList,
    SystemsValidationStats,
    SystemUpdate,
    ToggleActiveRequest,
    ValidationResult,
)

logger = logging.getLogger(__name__)

BC = "business_contexts"
RESP = "responsibles"
SYS = "systems"

INCIDENT_HINTS = ("error", "fallo", "no funciona", "caído", "caido", "incidencia", "bloqueado")


def get_repo(request: Request) -> InMemoryRepository:
    return request.app.state.repo


def _get_or_404(repo: InMemoryRepository, collection: str, item_id: str) -> Dict[str, Any]:
    try:
        return repo.get(collection, item_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Elemento no encontrado")


def _matches(item: Dict[str, Any], q: Optional[str], fields: List[str]) -> bool:
    if not q:
        return True
    needle = q.lower()
    for field in fields:
        value = item.get(field)
        values = value if isinstance(value, list) else [value]
        if any(needle in str(v).lower() for v in values if v):
            return True
    return False


# ==================== BUSINESS CONTEXT ====================

business_context = APIRouter(prefix="/api/admin/business-context", tags=["business-context"])


@business_context.get("", response_model=List[BusinessContext])
def list_business_contexts(
    q: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    skip: int = Query(0, ge=0),
    sort_by: Optional[str] = None,
    sort_order: int = 1,
    repo: InMemoryRepository = Depends(get_repo),
):
    items = [c for c in repo.list(BC) if _matches(c, q, ["name", "description", "keywords", "alias"])]
    if sort_by:
        items.sort(key=lambda c: str(c.get(sort_by, "")), reverse=sort_order == -1)
    items = items[skip:]
    return items[:limit] if limit else items


@business_context.get("/search", response_model=List[BusinessContext])
def search_business_contexts(q: str, repo: InMemoryRepository = Depends(get_repo)):
    return [c for c in repo.list(BC) if _matches(c, q, ["name", "description", "keywords", "alias"])]


@business_context.get("/export")
def export_business_contexts(repo: InMemoryRepository = Depends(get_repo)):
    body = json.dumps(repo.list(BC), indent=2, ensure_ascii=False)
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": "attachment; filename=business-contexts.json"},
    )


@business_context.post("/import", response_model=ImportResult)
async def import_business_contexts(file: UploadFile = File(...), repo: InMemoryRepository = Depends(get_repo)):
    raw = await file.read()
    try:
        rows = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="El fichero no es un JSON válido")
    if not isinstance(rows, list):
        raise HTTPException(status_code=400, detail="Se esperaba una lista de reglas")
    imported, errors = 0, []
    for i, row in enumerate(rows):
        try:
            data = BusinessContextCreate.model_validate(row)
        except ValueError as e:
            errors.append(f"Regla {i + 1}: {e}")
            continue
        repo.create(BC, data.model_dump(mode="json"))
        imported += 1
    return ImportResult(imported=imported, errors=errors)


@business_context.get("/{context_id}", response_model=BusinessContext)
def get_business_context(context_id: str, repo: InMemoryRepository = Depends(get_repo)):
    return _get_or_404(repo, BC, context_id)


@business_context.post("", response_model=BusinessContext, status_code=201)
def create_business_context(payload: BusinessContextCreate, repo: InMemoryRepository = Depends(get_repo)):
    return repo.create(BC, payload.model_dump(mode="json"))


@business_context.put("/{context_id}", response_model=BusinessContext)
def update_business_context(context_id: str, payload: BusinessContextUpdate, repo: InMemoryRepository = Depends(get_repo)):
    try:
        return repo.update(BC, context_id, payload.model_dump(mode="json", exclude_none=True))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Regla de negocio no encontrada")


@business_context.delete("/{context_id}", response_model=MessageResponse)
def delete_business_context(context_id: str, repo: InMemoryRepository = Depends(get_repo)):
    try:
        repo.delete(BC, context_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Regla de negocio no encontrada")
    return MessageResponse(message="Regla de negocio eliminada")


@business_context.post("/{context_id}/duplicate", response_model=BusinessContext, status_code=201)
def duplicate_business_context(context_id: str, payload: DuplicateRequest, repo: InMemoryRepository = Depends(get_repo)):
    source = _get_or_404(repo, BC, context_id)
    copy = {k: v for k, v in source.items() if k not in ("id", "created_at", "updated_at")}
    copy["name"] = payload.name
    return repo.create(BC, copy)


admin = APIRouter(prefix="/api/admin", tags=["admin"])


@admin.post("/validate-context", response_model=ValidationResult)
def validate_context(
    payload: Dict[str, Any] = Body(...),
    exclude_id: Optional[str] = None,
    repo: InMemoryRepository = Depends(get_repo),
):
    conflicts: List[ConflictIssue] = []
    warnings: List[str] = []
    suggestions: List[str] = []

    keywords = {str(k).strip().lower() for k in payload.get("keywords") or [] if str(k).strip()}
    if not keywords:
        conflicts.append(ConflictIssue(type="missing_field", message="La regla no tiene palabras clave", severity="high"))

    for other in repo.list(BC):
        if other["id"] == exclude_id:
            continue
        overlap = keywords & {str(k).lower() for k in other.get("keywords") or []}
        if overlap:
            conflicts.append(
                ConflictIssue(
                    type="keyword_overlap",
                    message=f"Palabras clave compartidas con '{other.get('name')}': {', '.join(sorted(overlap))}",
                    conflicting_rule_id=other["id"],
                    severity="medium",
                )
            )

    responsible = (payload.get("assignment_rules") or {}).get("responsible_person") or payload.get("project_manager")
    if responsible and repo.is_available(RESP, "email", responsible):
        conflicts.append(
            ConflictIssue(
                type="assignment_conflict",
                message=f"El responsable {responsible} no está en el catálogo",
                severity="low",
            )
        )
    if not responsible:
        warnings.append("La regla no tiene responsable asignado")
    if len(keywords) < 2:
        suggestions.append("Añada más palabras clave para mejorar la detección")

    return ValidationResult(
        valid=not any(c.severity == "high" for c in conflicts),
        conflicts=conflicts,
        warnings=warnings,
        suggestions=suggestions,
    )


@admin.post("/preview-classification", response_model=ClassificationPreview)
def preview_classification(payload: ClassificationPreviewRequest, repo: InMemoryRepository = Depends(get_repo)):
    text = f"{payload.title} {payload.description}".lower()
    ticket_type = "Incidencia" if any(h in text for h in INCIDENT_HINTS) else "Requerimiento"

    best, best_hits = None, []
    for ctx in repo.list(BC):
        terms = [str(t).lower() for t in (ctx.get("keywords") or []) + (ctx.get("alias") or [])]
        hits = [t for t in terms if t and t in text]
        if len(hits) > len(best_hits):
            best, best_hits = ctx, hits

    if best is None:
        return ClassificationPreview(
            ticket_type=ticket_type,
            priority="MEDIUM",
            responsible_person="",
            affected_systems=[],
            confidence_score=0.0,
            reasoning="Ninguna regla de negocio coincide con el texto",
        )

    rules = best.get("assignment_rules") or {}
    terms_total = len(best.get("keywords") or []) + len(best.get("alias") or [])
    return ClassificationPreview(
        ticket_type=ticket_type,
        priority=rules.get("default_priority", "MEDIUM"),
        responsible_person=rules.get("responsible_person") or best.get("project_manager") or "",
        affected_systems=rules.get("affected_systems") or [],
        confidence_score=round(min(1.0, len(best_hits) / max(1, terms_total) * 2), 2),
        reasoning=f"Coincide con la regla '{best.get('name')}' por: {', '.join(best_hits)}",
    )


# ==================== RESPONSIBLES ====================

responsibles = APIRouter(prefix="/api/admin/responsibles", tags=["responsibles"])


def _filter_responsibles(repo: InMemoryRepository, q: Optional[str], active: Optional[bool]) -> List[Dict[str, Any]]:
    items = [r for r in repo.list(RESP) if _matches(r, q, ["name", "email"])]
    if active is not None:
        items = [r for r in items if r.get("is_active", True) == active]
    return items


@responsibles.get("", response_model=ResponsibleList)
def list_responsibles(q: Optional[str] = None, active: Optional[bool] = None, repo: InMemoryRepository = Depends(get_repo)):
    items = _filter_responsibles(repo, q, active)
    return ResponsibleList(responsibles=items, count=len(items))


@responsibles.get("/search", response_model=List[Responsible])
def search_responsibles(q: str, repo: InMemoryRepository = Depends(get_repo)):
    return _filter_responsibles(repo, q, None)


@responsibles.get("/validate-email", response_model=Availability)
def validate_responsible_email(email: str, exclude_id: Optional[str] = None, repo: InMemoryRepository = Depends(get_repo)):
    available = repo.is_available(RESP, "email", email, exclude_id)
    return Availability(available=available, message=None if available else "El email ya está registrado")


@responsibles.get("/export-csv")
def export_responsibles(repo: InMemoryRepository = Depends(get_repo)):
    df = pd.DataFrame(repo.list(RESP), columns=["id", "name", "email", "is_active", "created_at", "updated_at"])
    return Response(content=df.to_csv(index=False), media_type="text/csv")


@responsibles.get("/{responsible_id}", response_model=Responsible)
def get_responsible(responsible_id: str, repo: InMemoryRepository = Depends(get_repo)):
    return _get_or_404(repo, RESP, responsible_id)


@responsibles.post("", response_model=Responsible, status_code=201)
def create_responsible(payload: ResponsibleCreate, repo: InMemoryRepository = Depends(get_repo)):
    try:
        return repo.create(RESP, payload.model_dump())
    except ConflictError:
        raise HTTPException(status_code=409, detail="Ya existe un responsable con ese email")


@responsibles.put("/{responsible_id}", response_model=Responsible)
def update_responsible(responsible_id: str, payload: ResponsibleUpdate, repo: InMemoryRepository = Depends(get_repo)):
    try:
        return repo.update(RESP, responsible_id, payload.model_dump(exclude_none=True))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Responsable no encontrado")
    except ConflictError:
        raise HTTPException(status_code=409, detail="Ya existe un responsable con ese email")


@responsibles.put("/{responsible_id}/toggle-active", response_model=Responsible)
def toggle_responsible(responsible_id: str, payload: ToggleActiveRequest, repo: InMemoryRepository = Depends(get_repo)):
    try:
        return repo.update(RESP, responsible_id, {"is_active": payload.active})
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Responsable no encontrado")


@responsibles.delete("/{responsible_id}", response_model=MessageResponse)
def delete_responsible(responsible_id: str, repo: InMemoryRepository = Depends(get_repo)):
    try:
        repo.delete(RESP, responsible_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Responsable no encontrado")
    return MessageResponse(message="Responsable eliminado")


# ==================== SYSTEMS ====================

systems = APIRouter(prefix="/api/admin/systems", tags=["systems"])


def _filter_systems(repo: InMemoryRepository, q: Optional[str], active: Optional[bool], category: Optional[str]) -> List[Dict[str, Any]]:
    items = [s for s in repo.list(SYS) if _matches(s, q, ["name", "description", "category", "tags"])]
    if active is not None:
        items = [s for s in items if s.get("is_active", True) == active]
    if category:
        items = [s for s in items if s.get("category") == category]
    return items


@systems.get("", response_model=SystemList)
def list_systems(
    q: Optional[str] = None,
    active: Optional[bool] = None,
    category: Optional[str] = None,
    repo: InMemoryRepository = Depends(get_repo),
):
    items = _filter_systems(repo, q, active, category)
    return SystemList(systems=items, count=len(items))


@systems.get("/search", response_model=List[System])
def search_systems(q: str, repo: InMemoryRepository = Depends(get_repo)):
    return _filter_systems(repo, q, None, None)


@systems.get("/validate-name", response_model=Availability)
def validate_system_name(name: str, exclude_id: Optional[str] = None, repo: InMemoryRepository = Depends(get_repo)):
    available = repo.is_available(SYS, "name", name, exclude_id)
    return Availability(available=available, message=None if available else "Ya existe un sistema con ese nombre")


@systems.get("/export-csv")
def export_systems(repo: InMemoryRepository = Depends(get_repo)):
    rows = [{**s, "tags": ";".join(s.get("tags") or [])} for s in repo.list(SYS)]
    df = pd.DataFrame(rows, columns=["id", "name", "category", "environment", "criticality_level", "owner", "tags", "is_active"])
    return Response(content=df.to_csv(index=False), media_type="text/csv")


@systems.get("/{system_id}", response_model=System)
def get_system(system_id: str, repo: InMemoryRepository = Depends(get_repo)):
    return _get_or_404(repo, SYS, system_id)


@systems.post("", response_model=System, status_code=201)
def create_system(payload: SystemCreate, repo: InMemoryRepository = Depends(get_repo)):
    try:
        return repo.create(SYS, payload.model_dump(mode="json"))
    except ConflictError:
        raise HTTPException(status_code=409, detail="Ya existe un sistema con ese nombre")


@systems.put("/{system_id}", response_model=System)
def update_system(system_id: str, payload: SystemUpdate, repo: InMemoryRepository = Depends(get_repo)):
    try:
        return repo.update(SYS, system_id, payload.model_dump(mode="json", exclude_none=True))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Sistema no encontrado")
    except ConflictError:
        raise HTTPException(status_code=409, detail="Ya existe un sistema con ese nombre")


@systems.put("/{system_id}/toggle-active", response_model=System)
def toggle_system(system_id: str, payload: ToggleActiveRequest, repo: InMemoryRepository = Depends(get_repo)):
    try:
        return repo.update(SYS, system_id, {"is_active": payload.active})
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Sistema no encontrado")


@systems.delete("/{system_id}", response_model=MessageResponse)
def delete_system(system_id: str, repo: InMemoryRepository = Depends(get_repo)):
    try:
        repo.delete(SYS, system_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Sistema no encontrado")
    return MessageResponse(message="Sistema eliminado")


# ==================== CATALOG / AI ====================

catalog = APIRouter(prefix="/api/catalog", tags=["catalog"])


@catalog.get("/responsibles", response_model=CatalogResponsibles)
def catalog_responsibles(q: Optional[str] = None, repo: InMemoryRepository = Depends(get_repo)):
    emails = sorted(r["email"] for r in _filter_responsibles(repo, q, True))
    return CatalogResponsibles(responsibles=emails, count=len(emails))


@catalog.get("/systems", response_model=CatalogSystems)
def catalog_systems(q: Optional[str] = None, repo: InMemoryRepository = Depends(get_repo)):
    names = sorted(s["name"] for s in _filter_systems(repo, q, True, None))
    return CatalogSystems(systems=names, count=len(names))


ai = APIRouter(prefix="/api/ai", tags=["ai"])


@ai.get("/accuracy-metrics", response_model=AIAccuracyMetrics)
def accuracy_metrics(days_back: int = Query(7, ge=1, le=90), repo: InMemoryRepository = Depends(get_repo)):
    return compute_accuracy_metrics(repo.classifications, days_back)


@ai.get("/systems-validation-stats", response_model=SystemsValidationStats)
def systems_validation_stats(days_back: int = Query(30, ge=1, le=90), repo: InMemoryRepository = Depends(get_repo)):
    return compute_validation_stats(repo.classifications, days_back)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Configure logging when the server starts rather than on import."""
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    logger.info("Development backend ready with %d business contexts", len(application.state.repo.list("business_contexts")))
    yield


def create_app(repo: Optional[InMemoryRepository] = None, seed: Optional[bool] = None) -> FastAPI:
    """Build the app; tests pass their own repository for isolation."""
    application = FastAPI(title="Business Rules Admin API (development)", lifespan=lifespan)

    # CORS for local Streamlit
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS.split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if seed is None:
        seed = settings.SEED_SAMPLE_DATA
    if repo is None:
        repo = InMemoryRepository()
        if seed:
            seed_sample_data(repo)
    application.state.repo = repo

    @application.get("/")
    def root():
        return {
            "message": "Business Rules Admin API (development)",
            "routes": ["/api/admin/business-context", "/api/admin/responsibles", "/api/admin/systems", "/api/catalog", "/api/ai"],
        }

    for router in (business_context, admin, responsibles, systems, catalog, ai):
        application.include_router(router)
    return application


app = create_app()
