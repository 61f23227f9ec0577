"""Responsibles view: authorized people that business rules can assign tickets to."""
import pandas as pd
import streamlit as st

from backend.core.schema import Responsible
from frontend.components.responsible_form import render_responsible_form
from frontend.services.api import ApiError
from frontend.services.responsibles import ResponsibleService
from frontend.store import AdminStore, Toaster
from frontend.views.common import (
    active_badge,
    load_collection,
    render_delete_confirmation,
    render_error_panel,
    run_mutation,
)


def _render_form(store: AdminStore, service: ResponsibleService, toaster: Toaster):
    coll = store.responsibles
    selected: Responsible | None = coll.selected
    result = render_responsible_form(selected)
    if result == "cancel":
        coll.close_form()
        st.rerun()
    if result is None:
        return
    if result.email:
        try:
            availability = service.validate_email(result.email, exclude_id=selected.id if selected else None)
        except ApiError:
            availability = None
        if availability is not None and not availability.available:
            st.error(availability.message or "El email ya está registrado")
            return
    if selected:
        saved = run_mutation(
            lambda: service.update(selected.id, result), toaster,
            "Responsable actualizado", "Error al actualizar el responsable", coll,
        )
    else:
        saved = run_mutation(
            lambda: service.create(result), toaster,
            "Responsable creado", "Error al crear el responsable", coll,
        )
    if saved:
        coll.close_form()
        st.rerun()


def render_responsibles_view(store: AdminStore, service: ResponsibleService):
    toaster = Toaster(store)
    coll = store.responsibles
    load_collection(coll, lambda: service.get_all().responsibles, toaster, "Error al cargar los responsables")

    col1, col2, col3 = st.columns([0.5, 0.25, 0.25])
    query = col1.text_input("Buscar", key="resp-search", placeholder="Nombre o email")
    if col2.button("➕ Nuevo responsable", type="primary", use_container_width=True):
        coll.open_form()
        st.rerun()
    if col3.button("⬇️ Exportar CSV", use_container_width=True):
        try:
            data = service.export_csv()
        except ApiError as e:
            toaster.error("Error al exportar", e.message)
        else:
            col3.download_button("Descargar responsables.csv", data=data, file_name="responsables.csv", mime="text/csv")

    if coll.form_mode:
        _render_form(store, service, toaster)

    if render_error_panel(coll, "responsibles"):
        return

    items = coll.items
    if query:
        needle = query.lower()
        items = [r for r in items if needle in r.name.lower() or needle in r.email.lower()]
    if not items:
        st.info("No hay responsables registrados.")
        return

    active = sum(1 for r in items if r.is_active)
    st.caption(f"{len(items)} responsables · {active} activos")
    for person in items:
        with st.container(border=True):
            c1, c2, c3, c4 = st.columns([0.45, 0.25, 0.15, 0.15])
            c1.markdown(f"**{person.name}**  \n{person.email}")
            c2.write(active_badge(person.is_active))
            toggle_label = "Desactivar" if person.is_active else "Activar"
            if c3.button(toggle_label, key=f"toggle-resp-{person.id}"):
                if run_mutation(
                    lambda: service.toggle_active(person.id, not person.is_active), toaster,
                    f"Responsable {'desactivado' if person.is_active else 'activado'}",
                    "Error al cambiar el estado", coll,
                ):
                    st.rerun()
            with c4:
                if st.button("✏️", key=f"edit-resp-{person.id}", help="Editar"):
                    coll.open_form(person)
                    st.rerun()
                render_delete_confirmation(
                    coll, person.id, person.name,
                    lambda: run_mutation(
                        lambda: service.delete(person.id), toaster,
                        "Responsable eliminado", "Error al eliminar el responsable", coll,
                    ),
                )

    with st.expander("Vista de tabla"):
        st.dataframe(pd.DataFrame([r.model_dump() for r in items]), hide_index=True)
