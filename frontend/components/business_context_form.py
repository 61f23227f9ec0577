"""Streamlit component: create/edit form for a business context rule.

Returns the request model on a valid submit, "cancel" when the user backs
out, otherwise None. Field errors are shown inline under each input.
"""
import streamlit as st

from backend.core.config import settings
from backend.core.schema import PRIORITIES, BusinessContext
from frontend.validation import build_business_context_payload, validate_business_context

PRIORITY_LABELS = {"LOW": "Baja", "MEDIUM": "Media", "HIGH": "Alta", "CRITICAL": "Crítica"}


def _show(slot, errors: dict, field: str):
    if field in errors:
        slot.error(errors[field])


def render_business_context_form(
    context: BusinessContext | None,
    responsibles_catalog: list[str] | None,
    systems_catalog: list[str],
    user_email: str | None,
):
    editing = context is not None
    ctx = context or BusinessContext()
    rules = ctx.assignment_rules
    form_key = f"bc-form-{ctx.id or 'new'}"

    with st.form(form_key):
        st.subheader("Editar regla" if editing else "Nueva regla de negocio")
        name = st.text_input("Nombre *", value=ctx.name, help="Nombre corto del contexto de negocio.")
        name_err = st.empty()
        description = st.text_area("Descripción *", value=ctx.description)
        description_err = st.empty()
        keywords = st.text_input(
            "Palabras clave *",
            value=", ".join(ctx.keywords),
            help="Separadas por comas. Se buscan en el título y la descripción del ticket.",
        )
        keywords_err = st.empty()
        alias = st.text_input("Alias", value=", ".join(ctx.alias), help="Nombres alternativos, separados por comas.")

        current_manager = ctx.project_manager or rules.responsible_person or ""
        if responsibles_catalog is not None:
            options = [""] + sorted(set(responsibles_catalog) | ({current_manager} - {""}))
            project_manager = st.selectbox(
                "Responsable",
                options=options,
                index=options.index(current_manager),
                format_func=lambda v: v or "— Sin responsable —",
            )
        else:
            project_manager = st.text_input("Responsable (email)", value=current_manager)
        manager_err = st.empty()

        system_options = sorted(set(systems_catalog) | set(rules.affected_systems))
        affected_systems = st.multiselect(
            "Sistemas afectados",
            options=system_options,
            default=rules.affected_systems,
            max_selections=settings.MAX_AFFECTED_SYSTEMS,
        )
        systems_err = st.empty()
        default_priority = st.selectbox(
            "Prioridad por defecto",
            options=list(PRIORITIES),
            index=list(PRIORITIES).index(rules.default_priority),
            format_func=lambda p: PRIORITY_LABELS[p],
        )

        col1, col2 = st.columns(2)
        submitted = col1.form_submit_button("Guardar", type="primary")
        cancelled = col2.form_submit_button("Cancelar")

    if cancelled:
        return "cancel"
    if not submitted:
        return None

    values = {
        "name": name,
        "description": description,
        "keywords": keywords,
        "alias": alias,
        "project_manager": project_manager,
        "affected_systems": affected_systems,
        "default_priority": default_priority,
    }
    errors = validate_business_context(values, responsibles_catalog)
    if errors:
        _show(name_err, errors, "name")
        _show(description_err, errors, "description")
        _show(keywords_err, errors, "keywords")
        _show(manager_err, errors, "project_manager")
        _show(systems_err, errors, "affected_systems")
        return None
    return build_business_context_payload(values, user_email, editing=editing)
