"""Streamlit component: create/edit form for a responsible person."""
import streamlit as st

from backend.core.schema import Responsible
from frontend.validation import build_responsible_payload, validate_responsible


def render_responsible_form(responsible: Responsible | None):
    editing = responsible is not None
    current = responsible or Responsible()

    with st.form(f"responsible-form-{current.id or 'new'}"):
        st.subheader("Editar responsable" if editing else "Nuevo responsable")
        name = st.text_input("Nombre *", value=current.name)
        name_err = st.empty()
        email = st.text_input("Email *", value=current.email, placeholder="nombre.apellido@cttexpress.com")
        email_err = st.empty()
        col1, col2 = st.columns(2)
        submitted = col1.form_submit_button("Guardar", type="primary")
        cancelled = col2.form_submit_button("Cancelar")

    if cancelled:
        return "cancel"
    if not submitted:
        return None

    values = {"name": name, "email": email}
    errors = validate_responsible(values)
    if errors:
        if "name" in errors:
            name_err.error(errors["name"])
        if "email" in errors:
            email_err.error(errors["email"])
        return None
    return build_responsible_payload(values, editing=editing)
