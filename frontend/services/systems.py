"""Systems catalog: /api/admin/systems."""
import logging
from typing import List, Optional

from backend.core.schema import (
    Availability,
    CatalogSystems,
    System,
    SystemCreate,
    SystemList,
    SystemUpdate,
    model_payload,
)
from .api import ApiClient, parse

logger = logging.getLogger(__name__)

BASE = "/api/admin/systems"


class SystemService:
    def __init__(self, client: ApiClient):
        self.client = client

    def get_all(self, q: Optional[str] = None, active: Optional[bool] = None, category: Optional[str] = None) -> SystemList:
        data = self.client.get(BASE, params={"q": q, "active": active, "category": category})
        if isinstance(data, list):
            return parse(SystemList, {"systems": data, "count": len(data)})
        return parse(SystemList, data or {})

    def get_catalog(self, q: Optional[str] = None) -> CatalogSystems:
        return parse(CatalogSystems, self.client.get("/api/catalog/systems", params={"q": q}) or {})

    def get_by_id(self, system_id: str) -> System:
        return parse(System, self.client.get(f"{BASE}/{system_id}"))

    def create(self, payload: SystemCreate) -> System:
        data = self.client.post(BASE, model_payload(payload))
        logger.info("Created system %s", payload.name)
        return parse(System, data)

    def update(self, system_id: str, payload: SystemUpdate) -> System:
        data = self.client.put(f"{BASE}/{system_id}", model_payload(payload))
        logger.info("Updated system %s", system_id)
        return parse(System, data)

    def delete(self, system_id: str) -> None:
        self.client.delete(f"{BASE}/{system_id}")
        logger.info("Deleted system %s", system_id)

    def toggle_active(self, system_id: str, active: bool) -> System:
        return parse(System, self.client.put(f"{BASE}/{system_id}/toggle-active", {"active": active}))

    def search(self, q: str) -> List[System]:
        data = self.client.get(f"{BASE}/search", params={"q": q}) or []
        return [parse(System, item) for item in data]

    def validate_name(self, name: str, exclude_id: Optional[str] = None) -> Availability:
        data = self.client.get(f"{BASE}/validate-name", params={"name": name, "exclude_id": exclude_id})
        return parse(Availability, data)

    def export_csv(self) -> bytes:
        return self.client.get_bytes(f"{BASE}/export-csv")
