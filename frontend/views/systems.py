"""Systems view: catalog of internal applications referenced by business rules."""
import streamlit as st

from backend.core.schema import SYSTEM_CATEGORIES, System
from frontend.components.system_form import criticality_label, environment_label, render_system_form
from frontend.services.api import ApiError
from frontend.services.systems import SystemService
from frontend.store import AdminStore, Toaster
from frontend.views.common import (
    active_badge,
    load_collection,
    render_delete_confirmation,
    render_error_panel,
    run_mutation,
)

CRITICALITY_ICONS = {"low": "🟢", "medium": "🟡", "high": "🟠", "critical": "🔴"}


def tag_summary(tags: list[str], shown: int = 3) -> str:
    """First tags plus an overflow counter: 'a, b, c +2'."""
    text = ", ".join(tags[:shown])
    if len(tags) > shown:
        text += f" +{len(tags) - shown}"
    return text


def _render_form(store: AdminStore, service: SystemService, toaster: Toaster):
    coll = store.systems
    selected: System | None = coll.selected
    result = render_system_form(selected)
    if result == "cancel":
        coll.close_form()
        st.rerun()
    if result is None:
        return
    try:
        availability = service.validate_name(result.name, exclude_id=selected.id if selected else None)
    except ApiError:
        availability = None
    if availability is not None and not availability.available:
        st.error(availability.message or "Ya existe un sistema con ese nombre")
        return
    if selected:
        saved = run_mutation(
            lambda: service.update(selected.id, result), toaster,
            "Sistema actualizado", "Error al actualizar el sistema", coll,
        )
    else:
        saved = run_mutation(
            lambda: service.create(result), toaster,
            "Sistema creado", "Error al crear el sistema", coll,
        )
    if saved:
        coll.close_form()
        st.rerun()


def _render_item(store: AdminStore, service: SystemService, system: System, toaster: Toaster):
    coll = store.systems
    with st.container(border=True):
        c1, c2 = st.columns([0.8, 0.2])
        with c1:
            st.markdown(
                f"**{system.name}** · {active_badge(system.is_active)}  \n"
                f"{CRITICALITY_ICONS.get(system.criticality_level, '⚪')} {criticality_label(system.criticality_level)} · "
                f"{environment_label(system.environment)}"
                + (f" · {system.category}" if system.category else "")
            )
            if system.description:
                st.caption(system.description)
            details = []
            if system.owner:
                details.append(f"Propietario: {system.owner}")
            if system.tags:
                details.append(f"🏷️ {tag_summary(system.tags)}")
            if system.monitoring_url:
                details.append(f"[Monitoreo]({system.monitoring_url})")
            if system.documentation_url:
                details.append(f"[Documentación]({system.documentation_url})")
            if details:
                st.markdown(" · ".join(details))
        with c2:
            toggle_label = "Desactivar" if system.is_active else "Activar"
            if st.button(toggle_label, key=f"toggle-sys-{system.id}"):
                if run_mutation(
                    lambda: service.toggle_active(system.id, not system.is_active), toaster,
                    f"Sistema {'desactivado' if system.is_active else 'activado'}",
                    "Error al cambiar el estado", coll,
                ):
                    st.rerun()
            if st.button("✏️", key=f"edit-sys-{system.id}", help="Editar"):
                coll.open_form(system)
                st.rerun()
            render_delete_confirmation(
                coll, system.id, system.name,
                lambda: run_mutation(
                    lambda: service.delete(system.id), toaster,
                    "Sistema eliminado", "Error al eliminar el sistema", coll,
                ),
            )


def render_systems_view(store: AdminStore, service: SystemService):
    toaster = Toaster(store)
    coll = store.systems
    load_collection(coll, lambda: service.get_all().systems, toaster, "Error al cargar los sistemas")

    col1, col2, col3, col4 = st.columns([0.35, 0.25, 0.2, 0.2])
    query = col1.text_input("Buscar", key="sys-search", placeholder="Nombre, descripción o etiqueta")
    category = col2.selectbox("Categoría", options=[""] + list(SYSTEM_CATEGORIES), key="sys-category",
                              format_func=lambda c: c or "Todas")
    if col3.button("➕ Nuevo sistema", type="primary", use_container_width=True):
        coll.open_form()
        st.rerun()
    if col4.button("⬇️ Exportar CSV", use_container_width=True):
        try:
            data = service.export_csv()
        except ApiError as e:
            toaster.error("Error al exportar", e.message)
        else:
            col4.download_button("Descargar sistemas.csv", data=data, file_name="sistemas.csv", mime="text/csv")

    if coll.form_mode:
        _render_form(store, service, toaster)

    if render_error_panel(coll, "systems"):
        return

    items = coll.items
    if query:
        needle = query.lower()
        items = [
            s for s in items
            if needle in s.name.lower()
            or needle in (s.description or "").lower()
            or any(needle in t.lower() for t in s.tags)
        ]
    if category:
        items = [s for s in items if s.category == category]
    if not items:
        st.info("No hay sistemas que mostrar.")
        return
    st.caption(f"{len(items)} sistemas")
    for system in items:
        _render_item(store, service, system, toaster)
