"""Business context rules view: list, form, duplicate, export/import and classification preview."""
import json
import logging

import streamlit as st

from backend.core.config import settings
from backend.core.schema import BusinessContext
from frontend.components.business_context_form import PRIORITY_LABELS, render_business_context_form
from frontend.services.api import ApiError
from frontend.services.business_context import BusinessContextService
from frontend.services.responsibles import ResponsibleService
from frontend.services.systems import SystemService
from frontend.store import AdminStore, Toaster
from frontend.views.common import (
    active_badge,
    load_collection,
    render_delete_confirmation,
    render_error_panel,
    run_mutation,
)

logger = logging.getLogger(__name__)


def _catalogs(responsibles: ResponsibleService, systems: SystemService, toaster: Toaster):
    try:
        responsible_emails = responsibles.get_catalog().responsibles
    except ApiError as e:
        # Without the catalog the form cannot check the responsible
        toaster.warning("No se pudo cargar el catálogo de responsables", e.message)
        responsible_emails = None
    try:
        system_names = systems.get_catalog().systems
    except ApiError as e:
        toaster.warning("No se pudo cargar el catálogo de sistemas", e.message)
        system_names = []
    return responsible_emails, system_names


def _conflicts_allow_save(service: BusinessContextService, payload, exclude_id: str | None, toaster: Toaster) -> bool:
    if not settings.VALIDATE_CONTEXT_CONFLICTS:
        return True
    try:
        result = service.validate(payload, exclude_id=exclude_id)
    except ApiError as e:
        logger.warning("Conflict check unavailable: %s", e.message)
        return True
    blocking = [c for c in result.conflicts if c.severity == "high"]
    for conflict in blocking:
        st.error(conflict.message)
    others = [c.message for c in result.conflicts if c.severity != "high"] + result.warnings
    if others:
        toaster.warning("Revise la regla", "\n".join(others))
    return not blocking


def _render_form(store: AdminStore, service: BusinessContextService, responsibles, systems, user_email, toaster):
    coll = store.business_contexts
    selected: BusinessContext | None = coll.selected
    responsible_emails, system_names = _catalogs(responsibles, systems, toaster)
    result = render_business_context_form(selected, responsible_emails, system_names, user_email)
    if result == "cancel":
        coll.close_form()
        st.rerun()
    if result is None:
        return
    exclude_id = selected.id if selected else None
    if not _conflicts_allow_save(service, result, exclude_id, toaster):
        return
    if selected:
        saved = run_mutation(
            lambda: service.update(selected.id, result), toaster,
            "Regla actualizada", "Error al actualizar la regla", coll,
        )
    else:
        saved = run_mutation(
            lambda: service.create(result), toaster,
            "Regla creada", "Error al crear la regla", coll,
        )
    if saved:
        coll.close_form()
        st.rerun()


def _render_preview(service: BusinessContextService, toaster: Toaster):
    with st.expander("🔎 Probar clasificación"):
        title = st.text_input("Título del ticket", key="preview-title")
        description = st.text_area("Descripción del ticket", key="preview-description")
        if st.button("Clasificar", key="preview-run", disabled=not title.strip()):
            try:
                preview = service.preview_classification(title, description)
            except ApiError as e:
                toaster.error("Error en la vista previa", e.message)
                return
            col1, col2, col3 = st.columns(3)
            col1.metric("Tipo", preview.ticket_type)
            col2.metric("Prioridad", PRIORITY_LABELS.get(preview.priority, preview.priority))
            col3.metric("Confianza", f"{preview.confidence_score:.0%}")
            st.write(f"**Responsable:** {preview.responsible_person or '—'}")
            st.write(f"**Sistemas:** {', '.join(preview.affected_systems) or '—'}")
            st.caption(preview.reasoning)


def _render_toolbar(store: AdminStore, service: BusinessContextService, toaster: Toaster):
    coll = store.business_contexts
    col1, col2, col3 = st.columns([0.5, 0.25, 0.25])
    with col1:
        query = st.text_input("Buscar", key="bc-search", placeholder="Nombre, palabra clave o alias")
    with col2:
        if st.button("➕ Nueva regla", type="primary", use_container_width=True):
            coll.open_form()
            st.rerun()
    with col3:
        if st.button("⬇️ Exportar JSON", use_container_width=True):
            try:
                data = service.export()
            except ApiError as e:
                toaster.error("Error al exportar", e.message)
            else:
                st.download_button(
                    label="Descargar business-contexts.json",
                    data=data,
                    file_name="business-contexts.json",
                    mime="application/json",
                )
    with st.expander("⬆️ Importar reglas"):
        uploaded = st.file_uploader("Fichero JSON", type=["json"], key="bc-import")
        if uploaded is not None and st.button("Importar", key="bc-import-run"):
            try:
                result = service.import_file(uploaded.name, uploaded.getvalue())
            except ApiError as e:
                toaster.error("Error al importar", e.message)
            else:
                toaster.success("Importación completada", f"{result.imported} reglas importadas")
                for err in result.errors:
                    st.warning(err)
                coll.invalidate()
    return query


def _render_item(store: AdminStore, service: BusinessContextService, ctx: BusinessContext, toaster: Toaster):
    coll = store.business_contexts
    rules = ctx.assignment_rules
    with st.container(border=True):
        col1, col2 = st.columns([0.8, 0.2])
        with col1:
            st.markdown(f"### {ctx.name}  \n{active_badge(ctx.is_active)}")
            st.write(ctx.description)
            st.markdown(f"**Palabras clave:** {', '.join(ctx.keywords) or '—'}")
            if ctx.alias:
                st.markdown(f"**Alias:** {', '.join(ctx.alias)}")
            st.markdown(
                f"**Responsable:** {ctx.project_manager or rules.responsible_person or '—'} · "
                f"**Sistemas:** {', '.join(rules.affected_systems) or '—'} · "
                f"**Prioridad:** {PRIORITY_LABELS.get(rules.default_priority, rules.default_priority)}"
            )
        with col2:
            if st.button("✏️", key=f"edit-{ctx.id}", help="Editar"):
                coll.open_form(ctx)
                st.rerun()
            with st.popover("📄", help="Duplicar"):
                new_name = st.text_input("Nombre de la copia", value=f"{ctx.name} (copia)", key=f"dup-name-{ctx.id}")
                if st.button("Duplicar", key=f"dup-{ctx.id}") and new_name.strip():
                    if run_mutation(
                        lambda: service.duplicate(ctx.id, new_name.strip()), toaster,
                        "Regla duplicada", "Error al duplicar la regla", coll,
                    ):
                        st.rerun()
            render_delete_confirmation(
                coll, ctx.id, ctx.name,
                lambda: run_mutation(
                    lambda: service.delete(ctx.id), toaster,
                    "Regla eliminada", "Error al eliminar la regla", coll,
                ),
            )


def render_business_context_view(
    store: AdminStore,
    service: BusinessContextService,
    responsibles: ResponsibleService,
    systems: SystemService,
    user_email: str | None,
):
    toaster = Toaster(store)
    coll = store.business_contexts
    load_collection(coll, service.get_all, toaster, "Error al cargar las reglas")

    query = _render_toolbar(store, service, toaster)
    if coll.form_mode:
        _render_form(store, service, responsibles, systems, user_email, toaster)
    _render_preview(service, toaster)

    if render_error_panel(coll, "business-context"):
        return

    items = coll.items
    if query:
        needle = query.lower()
        items = [
            c for c in items
            if needle in c.name.lower() or any(needle in k.lower() for k in c.keywords + c.alias)
        ]
    if not items:
        st.info("No hay reglas de negocio. Cree la primera con «Nueva regla».")
        return
    st.caption(f"{len(items)} reglas")
    for ctx in items:
        _render_item(store, service, ctx, toaster)

    with st.expander("Datos en bruto"):
        st.code(json.dumps([c.model_dump(mode="json") for c in items], indent=2, ensure_ascii=False), language="json")
