import pytest

from backend.core.schema import BusinessContextCreate, BusinessContextUpdate, SystemCreate, SystemUpdate
from frontend.validation import (
    add_tag,
    build_business_context_payload,
    build_responsible_payload,
    build_system_payload,
    filter_options,
    is_valid_url,
    split_list,
    validate_business_context,
    validate_responsible,
    validate_system,
)

CATALOG = ["ana@cttexpress.com", "juan@cttexpress.com"]


def _rule(**overrides):
    values = {
        "name": "Facturación",
        "description": "Facturas",
        "keywords": "factura, invoice",
        "alias": "",
        "project_manager": "ana@cttexpress.com",
        "affected_systems": ["ERP"],
        "default_priority": "HIGH",
    }
    values.update(overrides)
    return values


def test_split_list_trims_and_drops_blanks():
    assert split_list(" a, b ,, c ,") == ["a", "b", "c"]
    assert split_list(None) == []


def test_valid_business_context_has_no_errors():
    assert validate_business_context(_rule(), CATALOG) == {}


def test_business_context_required_fields():
    errors = validate_business_context(_rule(name="  ", description="", keywords=" , "), CATALOG)
    assert errors == {
        "name": "El nombre es requerido",
        "description": "La descripción es requerida",
        "keywords": "Las palabras clave son requeridas",
    }


def test_project_manager_must_be_email_then_in_catalog():
    assert validate_business_context(_rule(project_manager="ana"), CATALOG)["project_manager"] == "Debe ser un email válido"
    assert (
        validate_business_context(_rule(project_manager="otro@cttexpress.com"), CATALOG)["project_manager"]
        == "El responsable debe estar en el catálogo autorizado"
    )
    # catalog not loaded: only the format is checked
    assert validate_business_context(_rule(project_manager="otro@cttexpress.com"), None) == {}
    assert validate_business_context(_rule(project_manager=""), CATALOG) == {}


def test_affected_systems_limit():
    errors = validate_business_context(_rule(affected_systems=["A", "B", "C"]), CATALOG, max_systems=2)
    assert errors == {"affected_systems": "Máximo 2 sistemas"}


@pytest.mark.parametrize(
    "values, expected",
    [
        ({"name": "", "email": ""}, {"name": "El nombre es obligatorio", "email": "El email es obligatorio"}),
        ({"name": "Ana", "email": "ana@"}, {"email": "El email no tiene un formato válido"}),
        ({"name": "Ana", "email": "ana @x.com"}, {"email": "El email no tiene un formato válido"}),
        ({"name": "Ana", "email": "ana@x.com"}, {}),
    ],
)
def test_validate_responsible(values, expected):
    assert validate_responsible(values) == expected


def test_validate_system_urls():
    assert validate_system({"name": "ERP", "environment": "production"}) == {}
    errors = validate_system(
        {"name": "", "environment": "", "monitoring_url": "grafana", "documentation_url": "http//docs"}
    )
    assert errors == {
        "name": "El nombre es requerido",
        "environment": "El entorno es requerido",
        "monitoring_url": "URL de monitoreo no válida",
        "documentation_url": "URL de documentación no válida",
    }
    assert is_valid_url("https://grafana.cttexpress.com/d/erp")


def test_add_tag_rules():
    assert add_tag(["a"], " b ") == ["a", "b"]
    assert add_tag(["a"], "a") == ["a"]
    assert add_tag(["a"], "   ") == ["a"]
    assert add_tag(["a", "b"], "c", max_tags=2) == ["a", "b"]


def test_filter_options_is_case_insensitive_and_skips_selected():
    assert filter_options(["ERP", "Portal Clientes", "Sorter"], "or", ["Sorter"]) == ["Portal Clientes"]
    assert filter_options(["ERP", "Sorter"], "", []) == ["ERP", "Sorter"]


def test_business_context_payload_stamps_user():
    created = build_business_context_payload(_rule(alias="cobro, recibo"), "admin@cttexpress.com")
    assert isinstance(created, BusinessContextCreate)
    assert created.keywords == ["factura", "invoice"]
    assert created.alias == ["cobro", "recibo"]
    assert created.created_by == "admin@cttexpress.com"
    assert created.assignment_rules.responsible_person == "ana@cttexpress.com"
    assert created.assignment_rules.default_priority == "HIGH"

    updated = build_business_context_payload(_rule(project_manager=""), "admin@cttexpress.com", editing=True)
    assert isinstance(updated, BusinessContextUpdate)
    assert updated.updated_by == "admin@cttexpress.com"
    assert updated.project_manager is None
    assert updated.assignment_rules.responsible_person == ""


def test_responsible_and_system_payloads():
    assert build_responsible_payload({"name": " Ana ", "email": "ana@x.com "}).model_dump() == {
        "name": "Ana",
        "email": "ana@x.com",
    }
    system = build_system_payload({"name": "ERP", "environment": "staging", "tags": "core, finance", "owner": ""})
    assert isinstance(system, SystemCreate)
    assert system.tags == ["core", "finance"]
    assert system.owner is None
    assert isinstance(build_system_payload({"name": "ERP"}, editing=True), SystemUpdate)


def test_validate_system_rejects_unlisted_choices():
    errors = validate_system({"name": "ERP", "environment": "qa", "criticality_level": "urgent"})
    assert errors == {
        "environment": "Selecciona un entorno válido",
        "criticality_level": "Selecciona una criticidad válida",
    }
