"""HTTP client shared by every service.

Sends JSON with the bearer token of the authenticated session and turns any
failure into an ApiError carrying the backend's message.
"""
import logging
from typing import Any, Callable, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from backend.core.config import settings

logger = logging.getLogger(__name__)

Model = TypeVar("Model", bound=BaseModel)


class ApiError(Exception):
    """Raised for transport failures and non-2xx responses."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def parse(model: Type[Model], data: Any) -> Model:
    """Validate a response body, reporting a shape the console cannot read as an ApiError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning("Unexpected %s payload: %s", model.__name__, e)
        raise ApiError("Respuesta no válida del servidor")


def _error_message(response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        if body.get("message"):
            return str(body["message"])
        detail = body.get("detail")
        if isinstance(detail, list):
            # FastAPI validation errors
            parts = []
            for item in detail:
                if isinstance(item, dict):
                    loc = ".".join(str(p) for p in item.get("loc", []) if p != "body")
                    parts.append(f"{loc}: {item.get('msg', '')}" if loc else str(item.get("msg", "")))
                else:
                    parts.append(str(item))
            return "; ".join(parts)
        if detail:
            return str(detail)
    return f"HTTP Error: {response.status_code}"


class ApiClient:
    """Thin wrapper over a requests-compatible session.

    `token_provider` returns the current id token (or None) so a refreshed
    token is picked up on the next call without rebuilding the client.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token_provider: Callable[[], str | None] | None = None,
        timeout: float | None = None,
        session=None,
    ):
        self.base_url = (base_url or settings.BACKEND_URL).rstrip("/")
        self.token_provider = token_provider or (lambda: None)
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS
        self.session = session if session is not None else requests.Session()

    def _headers(self, json_body: bool = True) -> dict:
        headers = {"Content-Type": "application/json"} if json_body else {}
        token = self.token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(self, method: str, path: str, json_body: bool = True, **kwargs):
        url = f"{self.base_url}{path}"
        params = kwargs.get("params")
        if params:
            kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method, url, headers=self._headers(json_body), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise ApiError(f"Error de conexión: {e}")
        if not 200 <= response.status_code < 300:
            message = _error_message(response)
            logger.warning("%s %s -> %s %s", method, url, response.status_code, message)
            raise ApiError(message, response.status_code)
        return response

    def request(self, method: str, path: str, **kwargs) -> Any:
        response = self._send(method, path, **kwargs)
        if response.status_code == 204 or not response.content:
            return None
        try:
            body = response.json()
        except ValueError:
            raise ApiError("Respuesta no válida del servidor", response.status_code)
        if isinstance(body, dict) and set(body) <= {"data", "success", "message"} and "data" in body:
            return body["data"]
        return body

    def get(self, path: str, params: dict | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, payload: Any = None, params: dict | None = None) -> Any:
        return self.request("POST", path, json=payload, params=params)

    def put(self, path: str, payload: Any = None) -> Any:
        return self.request("PUT", path, json=payload)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def get_bytes(self, path: str, params: dict | None = None) -> bytes:
        return self._send("GET", path, params=params).content

    def post_file(self, path: str, filename: str, content: bytes, mime: str = "application/json") -> Any:
        files = {"file": (filename, content, mime)}
        return self.request("POST", path, json_body=False, files=files)
