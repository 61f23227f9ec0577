"""Streamlit component: screens shown by the auth gate instead of the console."""
import streamlit as st

from frontend.auth import AuthState, auth_gate_status, retry


def render_loading_screen():
    st.title("🔐 Administración de Reglas de Negocio")
    with st.spinner("Verificando autenticación..."):
        st.info("Esperando el token de la aplicación principal.")


def render_error_screen(error: str):
    st.title("⚠️ Error de autenticación")
    st.error(error)
    st.caption("Cierre esta ventana y vuelva a abrir el administrador desde la aplicación principal.")
    if st.button("Reintentar", type="primary"):
        retry(st.session_state)
        st.rerun()


def render_unauthenticated_screen():
    st.title("🔒 Sesión no iniciada")
    st.warning("Debe iniciar sesión en la aplicación principal para acceder al administrador.")
    if st.button("Volver a conectar"):
        retry(st.session_state)
        st.rerun()


def render_auth_gate(state: AuthState) -> bool:
    """Render the matching screen and return True only when authenticated."""
    status = auth_gate_status(state)
    if status == "loading":
        render_loading_screen()
    elif status == "error":
        render_error_screen(state.error or "")
    elif status == "unauthenticated":
        render_unauthenticated_screen()
    return status == "authenticated"
