"""Streamlit component: navigation sidebar."""
import streamlit as st

from frontend.store import AdminStore, VIEWS

ICONS = {
    "business-context": "📋",
    "responsibles": "👥",
    "systems": "🖥️",
    "ai-metrics": "📈",
}


def render_sidebar(store: AdminStore):
    with st.sidebar:
        compact = store.sidebar_collapsed
        if not compact:
            st.markdown("## ⚙️ Admin Reglas")
        for view, label in VIEWS.items():
            text = ICONS[view] if compact else f"{ICONS[view]} {label}"
            kind = "primary" if store.current_view == view else "secondary"
            if st.button(text, key=f"nav-{view}", type=kind, use_container_width=True, help=label):
                store.set_view(view)
                st.rerun()
        st.divider()
        if st.button("»" if compact else "« Compactar", key="nav-toggle"):
            store.toggle_sidebar()
            st.rerun()
