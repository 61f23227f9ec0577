"""Streamlit component: page header with the signed-in user."""
import streamlit as st

from frontend.auth import AuthState
from frontend.store import VIEWS


def render_header(state: AuthState, current_view: str) -> bool:
    """Returns True when the user asked to log out."""
    col1, col2, col3 = st.columns([0.6, 0.3, 0.1])
    with col1:
        st.title(VIEWS.get(current_view, ""))
    with col2:
        st.markdown(f"**{state.user_email or 'Usuario'}**")
        if state.user_role:
            st.caption(state.user_role)
    with col3:
        return st.button("Salir", key="logout")
