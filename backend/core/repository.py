"""In-memory storage for the development backend.

Holds business contexts, responsibles, systems and classification records
behind a lock; FastAPI runs sync handlers in a threadpool.
"""
from typing import Dict, List, Optional, Any
from datetime import datetime, timedelta, timezone
import threading
import uuid
import logging

logger = logging.getLogger(__name__)


class NotFoundError(KeyError):
    """Raised when an entity id does not exist."""


class ConflictError(ValueError):
    """Raised when a uniqueness rule would be broken."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryRepository:
    """Dict-backed collections keyed by generated ids."""

    COLLECTIONS = ("business_contexts", "responsibles", "systems")

    def __init__(self):
        self._lock = threading.Lock()
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {name: {} for name in self.COLLECTIONS}
        self.classifications: List[Dict[str, Any]] = []

    # --- Generic CRUD ---

    def list(self, collection: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(item) for item in self._data[collection].values()]

    def get(self, collection: str, item_id: str) -> Dict[str, Any]:
        with self._lock:
            item = self._data[collection].get(item_id)
            if item is None:
                raise NotFoundError(item_id)
            return dict(item)

    def create(self, collection: str, values: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            self._check_unique(collection, values, exclude_id=None)
            item_id = uuid.uuid4().hex
            stamp = _now()
            item = {**values, "id": item_id, "is_active": values.get("is_active", True), "created_at": stamp, "updated_at": stamp}
            self._data[collection][item_id] = item
            logger.info("Created %s %s", collection, item_id)
            return dict(item)

    def update(self, collection: str, item_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            item = self._data[collection].get(item_id)
            if item is None:
                raise NotFoundError(item_id)
            self._check_unique(collection, values, exclude_id=item_id)
            item.update({k: v for k, v in values.items() if v is not None})
            item["updated_at"] = _now()
            logger.info("Updated %s %s", collection, item_id)
            return dict(item)

    def delete(self, collection: str, item_id: str) -> None:
        with self._lock:
            if self._data[collection].pop(item_id, None) is None:
                raise NotFoundError(item_id)
            logger.info("Deleted %s %s", collection, item_id)

    def is_available(self, collection: str, field: str, value: str, exclude_id: Optional[str] = None) -> bool:
        with self._lock:
            return not any(
                str(item.get(field, "")).lower() == value.lower() and item_id != exclude_id
                for item_id, item in self._data[collection].items()
            )

    def _check_unique(self, collection: str, values: Dict[str, Any], exclude_id: Optional[str]) -> None:
        field = {"responsibles": "email", "systems": "name"}.get(collection)
        if not field or not values.get(field):
            return
        wanted = str(values[field]).lower()
        for item_id, item in self._data[collection].items():
            if item_id != exclude_id and str(item.get(field, "")).lower() == wanted:
                raise ConflictError(f"Ya existe un registro con {field} '{values[field]}'")

    # --- Classification records (AI metrics) ---

    def add_classification(self, predicted_system: str, corrected_system: Optional[str] = None, timestamp: Optional[datetime] = None) -> None:
        with self._lock:
            self.classifications.append(
                {
                    "timestamp": timestamp or datetime.now(timezone.utc),
                    "predicted_system": predicted_system,
                    "corrected_system": corrected_system,
                }
            )


def seed_sample_data(repo: InMemoryRepository, now: Optional[datetime] = None) -> None:
    """Fill a repository with a small, realistic catalog for local work."""
    now = now or datetime.now(timezone.utc)
    for name, email in [
        ("Ana García", "ana.garcia@cttexpress.com"),
        ("Juan Pérez", "juan.perez@cttexpress.com"),
        ("Lucía Martín", "lucia.martin@cttexpress.com"),
    ]:
        repo.create("responsibles", {"name": name, "email": email})

    for name, category, criticality, tags in [
        ("ERP", "Core Business", "critical", ["core", "finance"]),
        ("Portal Clientes", "Core Business", "high", ["web", "clientes"]),
        ("Sistema Facturación", "Core Business", "high", ["billing", "finance"]),
        ("Sorter", "Infrastructure", "medium", ["almacen"]),
    ]:
        repo.create(
            "systems",
            {
                "name": name,
                "category": category,
                "environment": "production",
                "criticality_level": criticality,
                "tags": tags,
            },
        )

    repo.create(
        "business_contexts",
        {
            "name": "Facturación",
            "description": "Incidencias sobre emisión de facturas y cálculo de importes",
            "keywords": ["factura", "facturación", "invoice"],
            "alias": ["cobro", "recibo"],
            "project_manager": "juan.perez@cttexpress.com",
            "assignment_rules": {
                "responsible_person": "juan.perez@cttexpress.com",
                "affected_systems": ["Sistema Facturación", "ERP"],
                "default_priority": "HIGH",
            },
            "created_by": "system",
        },
    )

    # A month of classifications with a handful of corrected systems
    corrections = {3: "ERP", 7: "Portal Clientes", 11: "ERP", 17: "Sistema Facturación", 23: "ERP"}
    predicted = ["ERP", "Portal Clientes", "Sistema Facturación", "Sorter"]
    for i in range(120):
        ts = now - timedelta(hours=6 * i)
        system = predicted[i % len(predicted)]
        corrected = corrections.get(i % 25)
        if corrected == system:
            corrected = None
        repo.add_classification(system, corrected, ts)
