"""Bidirectional Streamlit component relaying the parent window's token messages.

The console runs in a window opened by the main application. The component
asks the opener for a token and reports every TOKEN_INIT, TOKEN_UPDATE and
TOKEN_EXPIRED message back to Python as a dict with a `received_at` stamp.
"""
from pathlib import Path

import streamlit.components.v1 as components

from backend.core.config import settings

_component = components.declare_component("token_bridge", path=str(Path(__file__).parent))


def token_bridge(has_token: bool, refresh_minutes: int | None = None, key: str = "token_bridge") -> dict | None:
    """Render the invisible bridge and return the latest message, if any."""
    return _component(
        has_token=has_token,
        refresh_minutes=refresh_minutes or settings.TOKEN_REFRESH_MINUTES,
        key=key,
        default=None,
    )
