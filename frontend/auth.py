"""Authentication for the console.

The console is opened by the main application, which hands over its id token
through window messaging (see components/token_bridge). The token signature
is checked by the backend; here we only read its claims to know whether it is
still usable and who the user is.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, MutableMapping, Optional, Tuple

from jose import jwt
from jose.exceptions import JWTError

from backend.core.config import settings

logger = logging.getLogger(__name__)

TOKEN_KEY = "id_token"
STATE_KEY = "auth_state"
LAST_MESSAGE_KEY = "auth_last_message"
LOGGED_OUT_KEY = "auth_logged_out"
BRIDGE_NONCE_KEY = "auth_bridge_nonce"

LOCAL_HOSTS = ("localhost", "127.0.0.1")

INVALID_TOKEN = "Token inválido"
EXPIRED_TOKEN = "Token expirado"
NO_OPENER = "Esta aplicación debe abrirse desde la aplicación principal"


@dataclass
class AuthState:
    is_authenticated: bool = False
    id_token: Optional[str] = None
    loading: bool = True
    error: Optional[str] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None


def decode_claims(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return None


def has_valid_token(token: Optional[str], now: Optional[float] = None) -> bool:
    """Three non-empty segments and an `exp` claim in the future."""
    if not token:
        return False
    parts = token.split(".")
    if len(parts) != 3 or not all(parts):
        return False
    claims = decode_claims(token)
    if not claims:
        return False
    try:
        exp = float(claims.get("exp"))
    except (TypeError, ValueError):
        return False
    return exp > (now if now is not None else time.time())


def _first(value: Any) -> Optional[str]:
    if isinstance(value, (list, tuple)) and value:
        return value[0]
    return None


def user_info_from_token(token: str) -> Tuple[Optional[str], Optional[str]]:
    claims = decode_claims(token) or {}
    email = claims.get("email") or None
    role = claims.get("role") or _first(claims.get("roles")) or _first(claims.get("cognito:groups")) or None
    return email, role


def authenticated_state(token: str) -> AuthState:
    email, role = user_info_from_token(token)
    return AuthState(is_authenticated=True, id_token=token, loading=False, user_email=email, user_role=role)


def error_state(message: str) -> AuthState:
    return AuthState(loading=False, error=message)


def dev_state() -> AuthState:
    return AuthState(
        is_authenticated=True,
        id_token=settings.DEV_TOKEN,
        loading=False,
        user_email=settings.DEV_USER_EMAIL,
        user_role=settings.DEV_USER_ROLE,
    )


def is_local_host(host: Optional[str]) -> bool:
    if not host:
        return False
    hostname = host.split(":")[0].strip("[]").lower()
    return hostname in LOCAL_HOSTS


def dev_mode(host: Optional[str]) -> bool:
    return settings.DEV_AUTH or (settings.LOCALHOST_AUTH_BYPASS and is_local_host(host))


def handle_message(message: Dict[str, Any]) -> Optional[AuthState]:
    """Map a bridge message to a new state; None for messages we ignore."""
    kind = message.get("type")
    if kind in ("TOKEN_INIT", "TOKEN_UPDATE"):
        token = (message.get("payload") or {}).get("idToken")
        if token and has_valid_token(token):
            return authenticated_state(token)
        logger.warning("Rejected token from %s", kind)
        return error_state(INVALID_TOKEN)
    if kind == "TOKEN_EXPIRED":
        return error_state(EXPIRED_TOKEN)
    if kind == "NO_OPENER":
        return error_state(NO_OPENER)
    return None


def resolve(session: MutableMapping, message: Optional[Dict[str, Any]] = None, host: Optional[str] = None) -> AuthState:
    """Current auth state for this rerun.

    `session` is st.session_state (any mutable mapping in tests); `message`
    is the latest value reported by the token bridge, deduplicated on its
    `received_at` stamp since Streamlit returns it again on every rerun.
    """
    if session.get(LOGGED_OUT_KEY):
        return AuthState(loading=False)
    if dev_mode(host):
        return dev_state()

    if message and message.get("received_at") != session.get(LAST_MESSAGE_KEY):
        session[LAST_MESSAGE_KEY] = message.get("received_at")
        state = handle_message(message)
        if state is not None:
            if state.is_authenticated:
                session[TOKEN_KEY] = state.id_token
            else:
                session.pop(TOKEN_KEY, None)
            session[STATE_KEY] = state
            return state

    token = session.get(TOKEN_KEY)
    if token and has_valid_token(token):
        return authenticated_state(token)

    previous = session.get(STATE_KEY)
    if previous is not None and previous.error:
        return previous
    return AuthState()


def logout(session: MutableMapping) -> None:
    for key in (TOKEN_KEY, STATE_KEY, LAST_MESSAGE_KEY):
        session.pop(key, None)
    session[LOGGED_OUT_KEY] = True


def bridge_key(session: MutableMapping) -> str:
    """Widget key of the token bridge; a new key remounts it and restarts the handshake."""
    return f"token_bridge-{session.get(BRIDGE_NONCE_KEY, 0)}"


def retry(session: MutableMapping) -> None:
    """Forget errors and ask the opener for a token again."""
    session.pop(STATE_KEY, None)
    session.pop(LOGGED_OUT_KEY, None)
    session[BRIDGE_NONCE_KEY] = session.get(BRIDGE_NONCE_KEY, 0) + 1


def auth_gate_status(state: AuthState) -> str:
    if state.loading:
        return "loading"
    if state.error:
        return "error"
    if not state.is_authenticated:
        return "unauthenticated"
    return "authenticated"
