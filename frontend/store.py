"""Session-scoped console state.

One AdminStore lives in st.session_state and survives Streamlit reruns. It
holds the fetched collections with their per-view flags, the toast queue and
navigation state. The server stays authoritative: views mark a collection
stale after a mutation and re-fetch it.
"""
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import streamlit as st

from backend.core.config import settings
from backend.core.schema import AIDashboardData, AIMetricsConfig

STORE_KEY = "admin_store"

VIEWS: Dict[str, str] = {
    "business-context": "Reglas de Negocio",
    "responsibles": "Responsables",
    "systems": "Sistemas",
    "ai-metrics": "Métricas de IA",
}
DEFAULT_VIEW = "business-context"

NOTIFICATION_TYPES = ("success", "error", "warning", "info")


def _item_id(item: Any) -> Optional[str]:
    return getattr(item, "id", None)


@dataclass
class EntityCollection:
    items: List[Any] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    selected: Any = None
    stale: bool = True
    form_mode: Optional[str] = None  # "create" | "edit"
    pending_delete: Optional[str] = None

    def set_items(self, items: List[Any]) -> None:
        self.items = list(items)
        self.error = None
        self.stale = False

    def set_error(self, message: str) -> None:
        self.error = message
        self.stale = False

    def add(self, item: Any) -> None:
        self.items.append(item)

    def update(self, item_id: str, updates: Dict[str, Any]) -> None:
        self.items = [
            item.model_copy(update=updates) if _item_id(item) == item_id else item
            for item in self.items
        ]

    def remove(self, item_id: str) -> None:
        self.items = [item for item in self.items if _item_id(item) != item_id]
        if self.selected is not None and _item_id(self.selected) == item_id:
            self.selected = None
        if self.pending_delete == item_id:
            self.pending_delete = None

    def invalidate(self) -> None:
        self.stale = True

    def open_form(self, item: Any = None) -> None:
        self.selected = item
        self.form_mode = "edit" if item is not None else "create"

    def close_form(self) -> None:
        self.selected = None
        self.form_mode = None


@dataclass
class Notification:
    type: str
    title: str
    message: str = ""
    duration_ms: int = 5000
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:9])
    created_at: float = field(default_factory=time.time)
    shown: bool = False

    def expired(self, now: Optional[float] = None) -> bool:
        return ((now or time.time()) - self.created_at) * 1000 >= self.duration_ms


def default_duration(kind: str) -> int:
    if kind == "error":
        return settings.TOAST_ERROR_MS
    if kind == "warning":
        return settings.TOAST_WARNING_MS
    return settings.TOAST_DURATION_MS


@dataclass
class AdminStore:
    business_contexts: EntityCollection = field(default_factory=EntityCollection)
    responsibles: EntityCollection = field(default_factory=EntityCollection)
    systems: EntityCollection = field(default_factory=EntityCollection)
    notifications: List[Notification] = field(default_factory=list)
    sidebar_collapsed: bool = False
    current_view: str = DEFAULT_VIEW

    # AI dashboard
    ai_days_back: int = settings.AI_DEFAULT_DAYS_BACK
    dashboard: Optional[AIDashboardData] = None
    dashboard_loading: bool = False
    dashboard_error: Optional[str] = None
    ai_config: AIMetricsConfig = field(
        default_factory=lambda: AIMetricsConfig(
            days_back=settings.AI_DEFAULT_DAYS_BACK,
            refresh_interval_minutes=settings.AI_REFRESH_INTERVAL_MINUTES,
            accuracy_threshold=settings.AI_ACCURACY_THRESHOLD,
            error_threshold=settings.AI_ERROR_THRESHOLD,
        )
    )
    last_refresh: Optional[datetime] = None

    def set_view(self, view: str) -> None:
        self.current_view = view if view in VIEWS else DEFAULT_VIEW

    def toggle_sidebar(self) -> None:
        self.sidebar_collapsed = not self.sidebar_collapsed

    def add_notification(self, kind: str, title: str, message: str = "", duration_ms: Optional[int] = None) -> str:
        if kind not in NOTIFICATION_TYPES:
            kind = "info"
        note = Notification(type=kind, title=title, message=message, duration_ms=duration_ms or default_duration(kind))
        self.notifications.append(note)
        return note.id

    def remove_notification(self, note_id: str) -> None:
        self.notifications = [n for n in self.notifications if n.id != note_id]

    def clear_notifications(self) -> None:
        self.notifications = []

    def prune_notifications(self, now: Optional[float] = None) -> None:
        self.notifications = [n for n in self.notifications if not n.expired(now)]

    def dashboard_due(self, now: Optional[datetime] = None) -> bool:
        if self.dashboard is None or self.last_refresh is None:
            return True
        elapsed = (now or datetime.now()) - self.last_refresh
        return elapsed.total_seconds() >= self.ai_config.refresh_interval_minutes * 60


class Toaster:
    """Shortcut for pushing notifications from views."""

    def __init__(self, store: AdminStore):
        self.store = store

    def success(self, title: str, message: str = "") -> str:
        return self.store.add_notification("success", title, message)

    def error(self, title: str, message: str = "") -> str:
        return self.store.add_notification("error", title, message)

    def warning(self, title: str, message: str = "") -> str:
        return self.store.add_notification("warning", title, message)

    def info(self, title: str, message: str = "") -> str:
        return self.store.add_notification("info", title, message)


def get_store(state=None) -> AdminStore:
    """Return the session's store, creating it on first use."""
    if state is None:
        state = st.session_state
    if STORE_KEY not in state:
        state[STORE_KEY] = AdminStore()
    return state[STORE_KEY]
