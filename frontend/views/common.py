"""Helpers shared by the catalog views: loading, error panel, mutations, delete confirmation."""
import logging
from typing import Any, Callable

import streamlit as st

from frontend.services.api import ApiError
from frontend.store import EntityCollection, Toaster

logger = logging.getLogger(__name__)


def load_collection(collection: EntityCollection, fetch: Callable[[], list], toaster: Toaster, error_title: str):
    """Re-fetch a stale collection; the last fetch wins."""
    if not collection.stale:
        return
    collection.loading = True
    try:
        with st.spinner("Cargando..."):
            collection.set_items(fetch())
    except ApiError as e:
        collection.set_error(e.message)
        toaster.error(error_title, e.message)
    finally:
        collection.loading = False


def render_error_panel(collection: EntityCollection, key: str) -> bool:
    """Shows the view error with a retry button; True when an error was shown."""
    if not collection.error:
        return False
    st.error(f"❌ {collection.error}")
    if st.button("Reintentar", key=f"retry-{key}"):
        collection.error = None
        collection.invalidate()
        st.rerun()
    return True


def run_mutation(action: Callable[[], Any], toaster: Toaster, success: str, failure: str, collection: EntityCollection):
    """Run a create/update/delete call and invalidate the collection on success."""
    try:
        result = action()
    except ApiError as e:
        toaster.error(failure, e.message)
        return None
    toaster.success(success)
    collection.invalidate()
    return result if result is not None else True


def render_delete_confirmation(collection: EntityCollection, item_id: str, label: str, on_confirm: Callable[[], Any]):
    """Two-step delete: the first click arms, the second confirms."""
    if collection.pending_delete != item_id:
        if st.button("🗑️", key=f"del-{item_id}", help="Eliminar"):
            collection.pending_delete = item_id
            st.rerun()
        return
    st.warning(f"¿Eliminar «{label}»? Esta acción no se puede deshacer.")
    col1, col2 = st.columns(2)
    if col1.button("Confirmar", key=f"del-yes-{item_id}", type="primary"):
        collection.pending_delete = None
        if on_confirm():
            st.rerun()
    if col2.button("Cancelar", key=f"del-no-{item_id}"):
        collection.pending_delete = None
        st.rerun()


def active_badge(active: bool) -> str:
    return "🟢 Activo" if active else "⚪ Inactivo"
