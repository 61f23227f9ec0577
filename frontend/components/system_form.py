"""Streamlit component: create/edit form for a catalog system."""
import streamlit as st

from backend.core.schema import CRITICALITY_LEVELS, ENVIRONMENTS, SYSTEM_CATEGORIES, System
from frontend.validation import build_system_payload, validate_system

ENVIRONMENT_LABELS = {
    "development": "Desarrollo",
    "testing": "Pruebas",
    "staging": "Preproducción",
    "production": "Producción",
}
CRITICALITY_LABELS = {"low": "Baja", "medium": "Media", "high": "Alta", "critical": "Crítica"}


def environment_label(value: str) -> str:
    return ENVIRONMENT_LABELS.get(value, value or "Sin entorno")


def criticality_label(value: str) -> str:
    return CRITICALITY_LABELS.get(value, value or "Sin criticidad")


def render_system_form(system: System | None):
    editing = system is not None
    current = system or System()
    categories = [""] + list(SYSTEM_CATEGORIES)
    if current.category and current.category not in categories:
        categories.append(current.category)
    environments = list(ENVIRONMENTS)
    if current.environment not in environments:
        environments.append(current.environment)
    levels = list(CRITICALITY_LEVELS)
    if current.criticality_level not in levels:
        levels.append(current.criticality_level)

    with st.form(f"system-form-{current.id or 'new'}"):
        st.subheader("Editar sistema" if editing else "Nuevo sistema")
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Nombre *", value=current.name)
            name_err = st.empty()
            category = st.selectbox(
                "Categoría",
                options=categories,
                index=categories.index(current.category or ""),
                format_func=lambda c: c or "— Sin categoría —",
            )
            environment = st.selectbox(
                "Entorno *",
                options=environments,
                index=environments.index(current.environment),
                format_func=environment_label,
            )
            env_err = st.empty()
        with col2:
            owner = st.text_input("Propietario", value=current.owner or "")
            criticality = st.selectbox(
                "Criticidad",
                options=levels,
                index=levels.index(current.criticality_level),
                format_func=criticality_label,
            )
            criticality_err = st.empty()
            tags = st.text_input("Etiquetas", value=", ".join(current.tags), help="Separadas por comas.")
        description = st.text_area("Descripción", value=current.description or "")
        monitoring_url = st.text_input("URL de monitoreo", value=current.monitoring_url or "")
        monitoring_err = st.empty()
        documentation_url = st.text_input("URL de documentación", value=current.documentation_url or "")
        documentation_err = st.empty()

        b1, b2 = st.columns(2)
        submitted = b1.form_submit_button("Guardar", type="primary")
        cancelled = b2.form_submit_button("Cancelar")

    if cancelled:
        return "cancel"
    if not submitted:
        return None

    values = {
        "name": name,
        "description": description,
        "category": category,
        "owner": owner,
        "environment": environment,
        "criticality_level": criticality,
        "monitoring_url": monitoring_url.strip(),
        "documentation_url": documentation_url.strip(),
        "tags": tags,
    }
    errors = validate_system(values)
    for field, slot in (
        ("name", name_err),
        ("environment", env_err),
        ("criticality_level", criticality_err),
        ("monitoring_url", monitoring_err),
        ("documentation_url", documentation_err),
    ):
        if field in errors:
            slot.error(errors[field])
    if errors:
        return None
    return build_system_payload(values, editing=editing)
