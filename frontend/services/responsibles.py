"""Responsible persons: /api/admin/responsibles and the authorized catalog."""
import logging
from typing import List, Optional

from backend.core.schema import (
    Availability,
    CatalogResponsibles,
    Responsible,
    ResponsibleCreate,
    ResponsibleList,
    ResponsibleUpdate,
    model_payload,
)
from .api import ApiClient, parse

logger = logging.getLogger(__name__)

BASE = "/api/admin/responsibles"


class ResponsibleService:
    def __init__(self, client: ApiClient):
        self.client = client

    def get_all(self, q: Optional[str] = None, active: Optional[bool] = None) -> ResponsibleList:
        data = self.client.get(BASE, params={"q": q, "active": active})
        # Older backends answer with a bare list
        if isinstance(data, list):
            return parse(ResponsibleList, {"responsibles": data, "count": len(data)})
        return parse(ResponsibleList, data or {})

    def get_catalog(self, q: Optional[str] = None) -> CatalogResponsibles:
        return parse(CatalogResponsibles, self.client.get("/api/catalog/responsibles", params={"q": q}) or {})

    def get_by_id(self, responsible_id: str) -> Responsible:
        return parse(Responsible, self.client.get(f"{BASE}/{responsible_id}"))

    def create(self, payload: ResponsibleCreate) -> Responsible:
        data = self.client.post(BASE, model_payload(payload))
        logger.info("Created responsible %s", payload.email)
        return parse(Responsible, data)

    def update(self, responsible_id: str, payload: ResponsibleUpdate) -> Responsible:
        data = self.client.put(f"{BASE}/{responsible_id}", model_payload(payload))
        logger.info("Updated responsible %s", responsible_id)
        return parse(Responsible, data)

    def delete(self, responsible_id: str) -> None:
        self.client.delete(f"{BASE}/{responsible_id}")
        logger.info("Deleted responsible %s", responsible_id)

    def toggle_active(self, responsible_id: str, active: bool) -> Responsible:
        data = self.client.put(f"{BASE}/{responsible_id}/toggle-active", {"active": active})
        return parse(Responsible, data)

    def search(self, q: str) -> List[Responsible]:
        data = self.client.get(f"{BASE}/search", params={"q": q}) or []
        return [parse(Responsible, item) for item in data]

    def validate_email(self, email: str, exclude_id: Optional[str] = None) -> Availability:
        data = self.client.get(f"{BASE}/validate-email", params={"email": email, "exclude_id": exclude_id})
        return parse(Availability, data)

    def export_csv(self) -> bytes:
        return self.client.get_bytes(f"{BASE}/export-csv")
