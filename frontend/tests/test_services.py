"""Each service method hits the expected endpoint with the expected payload."""
import pytest

from backend.core.schema import (
    AssignmentRules,
    BusinessContextCreate,
    BusinessContextUpdate,
    ResponsibleCreate,
    SystemCreate,
    SystemUpdate,
)
from frontend.components.system_form import criticality_label, environment_label
from frontend.services.api import ApiError
from frontend.services.business_context import BusinessContextService
from frontend.services.responsibles import ResponsibleService
from frontend.services.systems import SystemService
from conftest import FakeResponse

RULE_BODY = {
    "_id": "r1",
    "name": "Facturación",
    "description": "Facturas",
    "keywords": ["factura"],
    "alias": None,
    "projectManager": {"name": "Ana", "azure_user": "ana@cttexpress.com"},
    "assignmentRules": {"responsible_person": None, "affected_systems": None, "default_priority": "high"},
}


def test_business_context_get_all_normalises_entities(client, fake_session):
    fake_session.responses = [FakeResponse(200, [RULE_BODY])]
    [ctx] = BusinessContextService(client).get_all(q="fact", limit=10)
    call = fake_session.last
    assert call["method"] == "GET"
    assert call["url"].endswith("/api/admin/business-context")
    assert call["params"] == {"q": "fact", "limit": 10}
    assert ctx.id == "r1"
    assert ctx.alias == []
    assert ctx.project_manager == "ana@cttexpress.com"
    assert ctx.assignment_rules.default_priority == "HIGH"
    assert ctx.assignment_rules.affected_systems == []
    assert ctx.is_active is True


def test_business_context_create_payload(client, fake_session):
    fake_session.responses = [FakeResponse(201, {**RULE_BODY, "id": "r2"})]
    payload = BusinessContextCreate(
        name="Facturación",
        description="Facturas",
        keywords=["factura"],
        assignment_rules=AssignmentRules(responsible_person="ana@cttexpress.com", default_priority="LOW"),
        created_by="admin@cttexpress.com",
    )
    created = BusinessContextService(client).create(payload)
    call = fake_session.last
    assert call["method"] == "POST"
    assert call["json"]["keywords"] == ["factura"]
    assert call["json"]["assignment_rules"]["default_priority"] == "LOW"
    assert call["json"]["created_by"] == "admin@cttexpress.com"
    assert "project_manager" not in call["json"]
    assert created.id == "r2"


def test_business_context_update_and_delete(client, fake_session):
    service = BusinessContextService(client)
    fake_session.responses = [FakeResponse(200, RULE_BODY), FakeResponse(200, {"message": "ok"})]
    service.update("r1", BusinessContextUpdate(description="Nueva"))
    assert fake_session.calls[0]["method"] == "PUT"
    assert fake_session.calls[0]["url"].endswith("/api/admin/business-context/r1")
    assert fake_session.calls[0]["json"] == {"description": "Nueva"}
    service.delete("r1")
    assert fake_session.calls[1]["method"] == "DELETE"
    assert fake_session.calls[1]["url"].endswith("/api/admin/business-context/r1")


def test_business_context_tools(client, fake_session):
    service = BusinessContextService(client)
    fake_session.responses = [
        FakeResponse(201, RULE_BODY),
        FakeResponse(200, {"valid": True, "conflicts": []}),
        FakeResponse(200, {
            "ticket_type": "Incidencia", "priority": "HIGH", "responsible_person": "ana@cttexpress.com",
            "affected_systems": [], "confidence_score": 0.5, "reasoning": "x",
        }),
    ]
    service.duplicate("r1", "Copia")
    assert fake_session.calls[0]["url"].endswith("/r1/duplicate")
    assert fake_session.calls[0]["json"] == {"name": "Copia"}

    result = service.validate(BusinessContextUpdate(keywords=["a"]), exclude_id="r1")
    assert fake_session.calls[1]["url"].endswith("/api/admin/validate-context")
    assert fake_session.calls[1]["params"] == {"exclude_id": "r1"}
    assert result.valid is True

    preview = service.preview_classification("Error factura", "detalle")
    assert fake_session.calls[2]["url"].endswith("/api/admin/preview-classification")
    assert fake_session.calls[2]["json"] == {"title": "Error factura", "description": "detalle"}
    assert preview.confidence_score == 0.5


def test_responsibles_endpoints(client, fake_session):
    service = ResponsibleService(client)
    fake_session.responses = [
        FakeResponse(200, {"responsibles": [{"id": "p1", "name": "Ana", "responsible_email": "ana@x.com", "active": False}], "count": 1}),
        FakeResponse(200, {"responsibles": ["ana@x.com"], "count": 1}),
        FakeResponse(201, {"id": "p2", "name": "Juan", "email": "juan@x.com"}),
        FakeResponse(200, {"id": "p2", "name": "Juan", "email": "juan@x.com", "is_active": False}),
        FakeResponse(200, {"available": False, "message": "El email ya está registrado"}),
    ]
    listing = service.get_all(active=False)
    assert fake_session.calls[0]["params"] == {"active": False}
    assert listing.responsibles[0].email == "ana@x.com"
    assert listing.responsibles[0].is_active is False

    assert service.get_catalog().responsibles == ["ana@x.com"]
    assert fake_session.calls[1]["url"].endswith("/api/catalog/responsibles")

    service.create(ResponsibleCreate(name="Juan", email="juan@x.com"))
    assert fake_session.calls[2]["json"] == {"name": "Juan", "email": "juan@x.com"}

    toggled = service.toggle_active("p2", False)
    assert fake_session.calls[3]["method"] == "PUT"
    assert fake_session.calls[3]["url"].endswith("/api/admin/responsibles/p2/toggle-active")
    assert fake_session.calls[3]["json"] == {"active": False}
    assert toggled.is_active is False

    availability = service.validate_email("juan@x.com")
    assert fake_session.calls[4]["params"] == {"email": "juan@x.com"}
    assert availability.available is False


def test_responsibles_accepts_bare_list(client, fake_session):
    fake_session.responses = [FakeResponse(200, [{"id": "p1", "name": "Ana", "email": "ana@x.com"}])]
    listing = ResponsibleService(client).get_all()
    assert listing.count == 1


def test_systems_endpoints(client, fake_session):
    service = SystemService(client)
    fake_session.responses = [
        FakeResponse(200, {"systems": [{"id": "s1", "system_name": "ERP", "environment": None, "tags": None}], "count": 1}),
        FakeResponse(201, {"id": "s2", "name": "CRM"}),
        FakeResponse(200, {"id": "s2", "name": "CRM", "criticality_level": "high"}),
        FakeResponse(200, {"message": "Sistema eliminado"}),
    ]
    listing = service.get_all(category="Core Business")
    assert fake_session.calls[0]["params"] == {"category": "Core Business"}
    system = listing.systems[0]
    assert system.name == "ERP"
    assert system.environment == "production"
    assert system.criticality_level == "medium"
    assert system.tags == []

    service.create(SystemCreate(name="CRM", tags=["ventas"]))
    body = fake_session.calls[1]["json"]
    assert body["name"] == "CRM"
    assert body["environment"] == "production"
    assert body["tags"] == ["ventas"]
    assert "monitoring_url" not in body

    updated = service.update("s2", SystemUpdate(criticality_level="high"))
    assert fake_session.calls[2]["json"] == {"criticality_level": "high"}
    assert updated.criticality_level == "high"

    service.delete("s2")
    assert fake_session.calls[3]["method"] == "DELETE"
    assert fake_session.calls[3]["url"].endswith("/api/admin/systems/s2")


def test_system_with_unlisted_environment_still_loads(client, fake_session):
    fake_session.responses = [
        FakeResponse(200, {"systems": [{"id": "s1", "name": "ERP", "environment": "qa", "criticality_level": "urgent"}]}),
    ]
    system = SystemService(client).get_all().systems[0]
    assert system.environment == "qa"
    assert system.criticality_level == "urgent"
    assert environment_label("qa") == "qa"
    assert environment_label("production") == "Producción"
    assert criticality_label("urgent") == "urgent"


def test_unreadable_payload_becomes_api_error(client, fake_session):
    fake_session.responses = [
        FakeResponse(200, {"systems": [{"id": "s1", "name": "ERP", "incident_count": "many"}]}),
        FakeResponse(200, [{"id": "r1", "name": "Ana", "email": ["a@x.com"]}]),
        FakeResponse(200, {"valid": True, "conflicts": [{"type": "scope_change", "message": "x", "severity": "info"}]}),
    ]
    with pytest.raises(ApiError) as exc:
        SystemService(client).get_all()
    assert exc.value.message == "Respuesta no válida del servidor"
    with pytest.raises(ApiError):
        ResponsibleService(client).get_all()
    # Unlisted conflict kinds are kept rather than rejected
    result = BusinessContextService(client).validate(BusinessContextCreate(name="n", description="d", keywords=["k"]))
    assert result.conflicts[0].type == "scope_change"
