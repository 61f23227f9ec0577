import pytest

from backend.core.config import settings
from frontend import auth


@pytest.fixture(autouse=True)
def no_dev_auth(monkeypatch):
    monkeypatch.setattr(settings, "DEV_AUTH", False)
    monkeypatch.setattr(settings, "LOCALHOST_AUTH_BYPASS", True)


def test_initial_state_is_loading():
    state = auth.AuthState()
    assert state.loading is True
    assert auth.auth_gate_status(state) == "loading"


def test_token_validity(make_token):
    assert auth.has_valid_token(make_token())
    assert not auth.has_valid_token(make_token(exp_offset=-10))
    assert not auth.has_valid_token("only.two")
    assert not auth.has_valid_token("a..c")
    assert not auth.has_valid_token("a.b.c")
    assert not auth.has_valid_token(None)


def test_user_info_role_fallbacks(make_token):
    assert auth.user_info_from_token(make_token(email="a@x.com", role="Admin")) == ("a@x.com", "Admin")
    assert auth.user_info_from_token(make_token(email="a@x.com", roles=["Editor"])) == ("a@x.com", "Editor")
    assert auth.user_info_from_token(make_token(**{"cognito:groups": ["Soporte"]})) == (None, "Soporte")


def test_localhost_gets_mock_identity():
    state = auth.resolve({}, None, host="localhost:8501")
    assert state.is_authenticated
    assert state.user_email == settings.DEV_USER_EMAIL
    assert state.user_role == settings.DEV_USER_ROLE
    assert auth.auth_gate_status(state) == "authenticated"


def test_localhost_bypass_can_be_disabled(monkeypatch):
    monkeypatch.setattr(settings, "LOCALHOST_AUTH_BYPASS", False)
    assert auth.resolve({}, None, host="127.0.0.1:8501").loading is True


def test_dev_flag_forces_mock(monkeypatch):
    monkeypatch.setattr(settings, "DEV_AUTH", True)
    assert auth.resolve({}, None, host="admin.cttexpress.com").is_authenticated


def test_waiting_for_bridge_is_loading():
    assert auth.auth_gate_status(auth.resolve({}, None, host="admin.cttexpress.com")) == "loading"


def test_token_init_authenticates_and_persists(make_token):
    token = make_token(email="ana@cttexpress.com", role="Administrador")
    session = {}
    msg = {"type": "TOKEN_INIT", "payload": {"idToken": token}, "received_at": 1}
    state = auth.resolve(session, msg, host="admin.cttexpress.com")
    assert state.is_authenticated
    assert state.user_email == "ana@cttexpress.com"
    assert session[auth.TOKEN_KEY] == token

    # later reruns without a new message keep the stored token
    again = auth.resolve(session, msg, host="admin.cttexpress.com")
    assert again.is_authenticated


def test_invalid_token_message(make_token):
    session = {}
    msg = {"type": "TOKEN_UPDATE", "payload": {"idToken": make_token(exp_offset=-1)}, "received_at": 1}
    state = auth.resolve(session, msg, host="admin.cttexpress.com")
    assert state.error == "Token inválido"
    assert auth.auth_gate_status(state) == "error"
    assert auth.TOKEN_KEY not in session


def test_expired_message_clears_token(make_token):
    session = {auth.TOKEN_KEY: make_token()}
    state = auth.resolve(session, {"type": "TOKEN_EXPIRED", "received_at": 2}, host="admin.cttexpress.com")
    assert state.error == "Token expirado"
    assert auth.TOKEN_KEY not in session
    # the error sticks until retried
    assert auth.resolve(session, None, host="admin.cttexpress.com").error == "Token expirado"
    auth.retry(session)
    assert auth.resolve(session, None, host="admin.cttexpress.com").loading is True


def test_no_opener_message():
    state = auth.resolve({}, {"type": "NO_OPENER", "received_at": 3}, host="admin.cttexpress.com")
    assert state.error == "Esta aplicación debe abrirse desde la aplicación principal"


def test_unknown_message_is_ignored():
    assert auth.handle_message({"type": "SOMETHING"}) is None
    assert auth.resolve({}, {"type": "SOMETHING", "received_at": 4}, host="x.com").loading is True


def test_logout_leaves_unauthenticated(make_token):
    session = {auth.TOKEN_KEY: make_token()}
    auth.logout(session)
    state = auth.resolve(session, None, host="localhost")
    assert auth.auth_gate_status(state) == "unauthenticated"
    assert auth.TOKEN_KEY not in session


def test_retry_remounts_bridge_and_accepts_new_handshake(make_token):
    session = {}
    host = "admin.cttexpress.com"
    bad = {"type": "TOKEN_INIT", "payload": {"idToken": "not-a-jwt"}, "received_at": 10}
    assert auth.resolve(session, bad, host=host).error == "Token inválido"
    first_key = auth.bridge_key(session)

    auth.retry(session)
    assert auth.bridge_key(session) != first_key
    # the old bridge value is not replayed into an error
    assert auth.resolve(session, bad, host=host).loading is True

    good = {"type": "TOKEN_INIT", "payload": {"idToken": make_token(email="ana@x.com")}, "received_at": 11}
    state = auth.resolve(session, good, host=host)
    assert state.is_authenticated is True
    assert state.user_email == "ana@x.com"


def test_reconnect_after_logout_uses_fresh_bridge(make_token):
    session = {auth.TOKEN_KEY: make_token()}
    auth.logout(session)
    key = auth.bridge_key(session)
    auth.retry(session)
    assert auth.LOGGED_OUT_KEY not in session
    assert auth.bridge_key(session) != key
