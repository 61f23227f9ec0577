"""Streamlit component: toast notifications from the store."""
import streamlit as st

from frontend.store import AdminStore

ICONS = {"success": "✅", "error": "❌", "warning": "⚠️", "info": "ℹ️"}


def render_notifications(store: AdminStore):
    store.prune_notifications()
    for note in store.notifications:
        if note.shown:
            continue
        text = f"**{note.title}**" + (f"\n\n{note.message}" if note.message else "")
        st.toast(text, icon=ICONS.get(note.type, "ℹ️"))
        note.shown = True
