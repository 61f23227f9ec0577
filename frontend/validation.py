"""Form-level checks and payload builders for the three catalog forms.

Each `validate_*` returns a dict of field -> message; an empty dict means the
form can be submitted. Form values are plain dicts as collected from the
Streamlit widgets.
"""
import re
from typing import Dict, List, Optional
from urllib.parse import urlparse

from backend.core.config import settings
from backend.core.schema import (
    CRITICALITY_LEVELS,
    ENVIRONMENTS,
    AssignmentRules,
    BusinessContextCreate,
    BusinessContextUpdate,
    ResponsibleCreate,
    ResponsibleUpdate,
    SystemCreate,
    SystemUpdate,
)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def split_list(text: str | None) -> List[str]:
    """'a, b,,c ' -> ['a', 'b', 'c']"""
    return [part.strip() for part in (text or "").split(",") if part.strip()]


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value or ""))


def is_valid_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def _blank(values: dict, field: str) -> bool:
    return not str(values.get(field) or "").strip()


def validate_business_context(
    values: dict,
    catalog: Optional[List[str]] = None,
    max_systems: Optional[int] = None,
) -> Dict[str, str]:
    """`catalog` is the authorized responsibles list; None skips that check."""
    errors: Dict[str, str] = {}
    if _blank(values, "name"):
        errors["name"] = "El nombre es requerido"
    if _blank(values, "description"):
        errors["description"] = "La descripción es requerida"
    if not split_list(values.get("keywords")):
        errors["keywords"] = "Las palabras clave son requeridas"

    manager = (values.get("project_manager") or "").strip()
    if manager and "@" not in manager:
        errors["project_manager"] = "Debe ser un email válido"
    elif manager and catalog is not None and manager not in catalog:
        errors["project_manager"] = "El responsable debe estar en el catálogo autorizado"

    max_systems = max_systems or settings.MAX_AFFECTED_SYSTEMS
    if len(values.get("affected_systems") or []) > max_systems:
        errors["affected_systems"] = f"Máximo {max_systems} sistemas"
    return errors


def validate_responsible(values: dict) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if _blank(values, "name"):
        errors["name"] = "El nombre es obligatorio"
    email = (values.get("email") or "").strip()
    if not email:
        errors["email"] = "El email es obligatorio"
    elif not is_valid_email(email):
        errors["email"] = "El email no tiene un formato válido"
    return errors


def validate_system(values: dict) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if _blank(values, "name"):
        errors["name"] = "El nombre es requerido"
    if _blank(values, "environment"):
        errors["environment"] = "El entorno es requerido"
    elif values["environment"] not in ENVIRONMENTS:
        errors["environment"] = "Selecciona un entorno válido"
    if values.get("criticality_level") and values["criticality_level"] not in CRITICALITY_LEVELS:
        errors["criticality_level"] = "Selecciona una criticidad válida"
    if values.get("monitoring_url") and not is_valid_url(values["monitoring_url"]):
        errors["monitoring_url"] = "URL de monitoreo no válida"
    if values.get("documentation_url") and not is_valid_url(values["documentation_url"]):
        errors["documentation_url"] = "URL de documentación no válida"
    return errors


# --- Tag / multi-select helpers ---

def add_tag(tags: List[str], tag: str, max_tags: Optional[int] = None) -> List[str]:
    tag = (tag or "").strip()
    if not tag or tag in tags:
        return list(tags)
    if max_tags and len(tags) >= max_tags:
        return list(tags)
    return [*tags, tag]


def filter_options(options: List[str], query: str, selected: List[str]) -> List[str]:
    needle = (query or "").strip().lower()
    return [o for o in options if o not in selected and needle in o.lower()]


# --- Payload builders ---

def build_business_context_payload(values: dict, user_email: str | None = None, editing: bool = False):
    alias = split_list(values.get("alias"))
    manager = (values.get("project_manager") or "").strip() or None
    fields = dict(
        name=values["name"].strip(),
        description=values["description"].strip(),
        keywords=split_list(values.get("keywords")),
        alias=alias,
        project_manager=manager,
        assignment_rules=AssignmentRules(
            responsible_person=manager or "",
            affected_systems=list(values.get("affected_systems") or []),
            default_priority=values.get("default_priority") or "MEDIUM",
        ),
    )
    if editing:
        return BusinessContextUpdate(**fields, updated_by=user_email)
    return BusinessContextCreate(**fields, created_by=user_email)


def build_responsible_payload(values: dict, editing: bool = False):
    fields = dict(name=values["name"].strip(), email=values["email"].strip())
    return ResponsibleUpdate(**fields) if editing else ResponsibleCreate(**fields)


def build_system_payload(values: dict, editing: bool = False):
    fields = dict(
        name=values["name"].strip(),
        description=values.get("description") or None,
        category=values.get("category") or None,
        owner=values.get("owner") or None,
        environment=values.get("environment") or "production",
        criticality_level=values.get("criticality_level") or "medium",
        monitoring_url=values.get("monitoring_url") or None,
        documentation_url=values.get("documentation_url") or None,
        tags=split_list(values.get("tags")),
    )
    return SystemUpdate(**fields) if editing else SystemCreate(**fields)
