"""Business context rules: /api/admin/business-context."""
import logging
from typing import List, Optional

from backend.core.schema import (
    BusinessContext,
    BusinessContextCreate,
    BusinessContextUpdate,
    ClassificationPreview,
    ImportResult,
    ValidationResult,
    model_payload,
)
from .api import ApiClient, parse

logger = logging.getLogger(__name__)

BASE = "/api/admin/business-context"


class BusinessContextService:
    def __init__(self, client: ApiClient):
        self.client = client

    def get_all(
        self,
        q: Optional[str] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[int] = None,
    ) -> List[BusinessContext]:
        params = {"q": q, "limit": limit, "skip": skip, "sort_by": sort_by, "sort_order": sort_order}
        data = self.client.get(BASE, params=params) or []
        return [parse(BusinessContext, item) for item in data]

    def get_by_id(self, context_id: str) -> BusinessContext:
        return parse(BusinessContext, self.client.get(f"{BASE}/{context_id}"))

    def create(self, payload: BusinessContextCreate) -> BusinessContext:
        data = self.client.post(BASE, model_payload(payload))
        logger.info("Created business context %s", payload.name)
        return parse(BusinessContext, data)

    def update(self, context_id: str, payload: BusinessContextUpdate) -> BusinessContext:
        data = self.client.put(f"{BASE}/{context_id}", model_payload(payload))
        logger.info("Updated business context %s", context_id)
        return parse(BusinessContext, data)

    def delete(self, context_id: str) -> None:
        self.client.delete(f"{BASE}/{context_id}")
        logger.info("Deleted business context %s", context_id)

    def search(self, q: str) -> List[BusinessContext]:
        data = self.client.get(f"{BASE}/search", params={"q": q}) or []
        return [parse(BusinessContext, item) for item in data]

    def duplicate(self, context_id: str, name: str) -> BusinessContext:
        data = self.client.post(f"{BASE}/{context_id}/duplicate", {"name": name})
        return parse(BusinessContext, data)

    def export(self) -> bytes:
        return self.client.get_bytes(f"{BASE}/export")

    def import_file(self, filename: str, content: bytes) -> ImportResult:
        return parse(ImportResult, self.client.post_file(f"{BASE}/import", filename, content))

    def validate(self, payload: BusinessContextCreate | BusinessContextUpdate, exclude_id: Optional[str] = None) -> ValidationResult:
        params = {"exclude_id": exclude_id} if exclude_id else None
        data = self.client.post("/api/admin/validate-context", model_payload(payload), params=params)
        return parse(ValidationResult, data)

    def preview_classification(self, title: str, description: str = "") -> ClassificationPreview:
        data = self.client.post(
            "/api/admin/preview-classification", {"title": title, "description": description}
        )
        return parse(ClassificationPreview, data)
