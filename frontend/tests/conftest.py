import json
import time

import pytest
from jose import jwt

from frontend.services.api import ApiClient


class FakeResponse:
    def __init__(self, status_code=200, body=None, content=None):
        self.status_code = status_code
        self._body = body
        if content is not None:
            self.content = content
        else:
            self.content = b"" if body is None else json.dumps(body).encode()

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class FakeSession:
    """Records every request and answers from a queue (or a default)."""

    def __init__(self, responses=None, default=None):
        self.calls = []
        self.responses = list(responses or [])
        self.default = default if default is not None else FakeResponse(200, {})

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.responses:
            nxt = self.responses.pop(0)
            if isinstance(nxt, Exception):
                raise nxt
            return nxt
        return self.default

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def client(fake_session):
    return ApiClient("http://api.test", token_provider=lambda: "tok", timeout=5, session=fake_session)


@pytest.fixture
def make_token():
    def _make(exp_offset=3600, **claims):
        payload = {"exp": int(time.time()) + exp_offset, **claims}
        return jwt.encode(payload, "secret", algorithm="HS256")
    return _make
