import os
import logging

import streamlit as st

try:
    from backend.core.config import settings
    from backend.core.logging_setup import setup_logging
    from frontend import auth
    from frontend.components.auth_screens import render_auth_gate
    from frontend.components.header import render_header
    from frontend.components.notifications import render_notifications
    from frontend.components.sidebar import render_sidebar
    from frontend.components.token_bridge import token_bridge
    from frontend.services.ai import AIService
    from frontend.services.api import ApiClient
    from frontend.services.business_context import BusinessContextService
    from frontend.services.responsibles import ResponsibleService
    from frontend.services.systems import SystemService
    from frontend.store import get_store
    from frontend.views.ai_metrics import render_ai_metrics_view
    from frontend.views.business_context import render_business_context_view
    from frontend.views.responsibles import render_responsibles_view
    from frontend.views.systems import render_systems_view
except ModuleNotFoundError:
    # `streamlit run frontend/app.py` puts frontend/ on the path, not the repo root
    import sys
    from pathlib import Path
    sys.path.append(str(Path(__file__).resolve().parent.parent))
    from backend.core.config import settings
    from backend.core.logging_setup import setup_logging
    from frontend import auth
    from frontend.components.auth_screens import render_auth_gate
    from frontend.components.header import render_header
    from frontend.components.notifications import render_notifications
    from frontend.components.sidebar import render_sidebar
    from frontend.components.token_bridge import token_bridge
    from frontend.services.ai import AIService
    from frontend.services.api import ApiClient
    from frontend.services.business_context import BusinessContextService
    from frontend.services.responsibles import ResponsibleService
    from frontend.services.systems import SystemService
    from frontend.store import get_store
    from frontend.views.ai_metrics import render_ai_metrics_view
    from frontend.views.business_context import render_business_context_view
    from frontend.views.responsibles import render_responsibles_view
    from frontend.views.systems import render_systems_view


try:
    BACKEND_URL = st.secrets["backend_url"]
except Exception:
    BACKEND_URL = os.environ.get("BACKEND_URL", settings.BACKEND_URL)

logger = logging.getLogger("frontend.app")


@st.cache_resource(show_spinner=False)
def _configure_logging():
    # Once per process; Streamlit reruns this script on every interaction
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    logger.info("Admin console using backend %s", BACKEND_URL)


def _request_host() -> str | None:
    try:
        return st.context.headers.get("host")
    except Exception:
        return None


def resolve_auth() -> auth.AuthState:
    host = _request_host()
    message = None
    if not auth.dev_mode(host) and not st.session_state.get(auth.LOGGED_OUT_KEY):
        message = token_bridge(
            has_token=bool(st.session_state.get(auth.TOKEN_KEY)),
            key=auth.bridge_key(st.session_state),
        )
    return auth.resolve(st.session_state, message, host)


store = get_store()

st.set_page_config(
    page_title="Administración de Reglas de Negocio",
    page_icon="⚙️",
    layout="wide",
    initial_sidebar_state="collapsed" if store.sidebar_collapsed else "expanded",
)
_configure_logging()

state = resolve_auth()
if not render_auth_gate(state):
    st.stop()

# Resolved once per rerun; worker threads of the AI dashboard have no session context
id_token = st.session_state.get(auth.TOKEN_KEY) or state.id_token
client = ApiClient(BACKEND_URL, token_provider=lambda: id_token)
business_contexts = BusinessContextService(client)
responsibles = ResponsibleService(client)
systems = SystemService(client)
ai = AIService(client)

if render_header(state, store.current_view):
    auth.logout(st.session_state)
    st.rerun()
render_sidebar(store)

view = store.current_view
if view == "responsibles":
    render_responsibles_view(store, responsibles)
elif view == "systems":
    render_systems_view(store, systems)
elif view == "ai-metrics":
    render_ai_metrics_view(store, ai)
else:
    render_business_context_view(store, business_contexts, responsibles, systems, state.user_email)

render_notifications(store)
