"""Configuration for the admin console and the development backend.

Centralizes environment variables for the REST backend, authentication,
notifications and the AI dashboard.
"""
from typing import Optional
import os


try:
    from dotenv import load_dotenv  # type: ignore
    _ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
    _ENV_PATH = os.path.join(_ROOT_DIR, ".env")
    if os.path.exists(_ENV_PATH):
        load_dotenv(_ENV_PATH)
    else:
        load_dotenv()
except ImportError:
    pass


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes", "y")


class Settings:
    """Simple settings container using environment variables.

    - BACKEND_URL: base URL of the admin REST API
    - DEV_AUTH / LOCALHOST_AUTH_BYPASS: mock authentication for local development
    - AI_*: defaults for the AI accuracy dashboard
    """

    BACKEND_URL: str = os.environ.get("BACKEND_URL", "http://127.0.0.1:5000")
    REQUEST_TIMEOUT_SECONDS: float = float(os.environ.get("REQUEST_TIMEOUT_SECONDS", "30"))

    # --- Authentication ---
    DEV_AUTH: bool = _flag("DEV_AUTH", "false")
    LOCALHOST_AUTH_BYPASS: bool = _flag("LOCALHOST_AUTH_BYPASS", "true")
    DEV_USER_EMAIL: str = os.environ.get("DEV_USER_EMAIL", "admin@cttexpress.com")
    DEV_USER_ROLE: str = os.environ.get("DEV_USER_ROLE", "Administrador")
    DEV_TOKEN: str = os.environ.get("DEV_TOKEN", "mock-token-for-local-development")
    TOKEN_REFRESH_MINUTES: int = int(os.environ.get("TOKEN_REFRESH_MINUTES", "4"))

    # --- Notifications (milliseconds) ---
    TOAST_DURATION_MS: int = int(os.environ.get("TOAST_DURATION_MS", "5000"))
    TOAST_WARNING_MS: int = int(os.environ.get("TOAST_WARNING_MS", "6000"))
    TOAST_ERROR_MS: int = int(os.environ.get("TOAST_ERROR_MS", "8000"))

    # --- AI dashboard ---
    AI_DEFAULT_DAYS_BACK: int = int(os.environ.get("AI_DEFAULT_DAYS_BACK", "7"))
    AI_ACCURACY_THRESHOLD: float = float(os.environ.get("AI_ACCURACY_THRESHOLD", "80"))
    AI_ERROR_THRESHOLD: float = float(os.environ.get("AI_ERROR_THRESHOLD", "10"))
    AI_REFRESH_INTERVAL_MINUTES: int = int(os.environ.get("AI_REFRESH_INTERVAL_MINUTES", "15"))

    # --- Business rules ---
    MAX_AFFECTED_SYSTEMS: int = int(os.environ.get("MAX_AFFECTED_SYSTEMS", "5"))
    VALIDATE_CONTEXT_CONFLICTS: bool = _flag("VALIDATE_CONTEXT_CONFLICTS", "true")

    # --- Logging ---
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FILE: Optional[str] = os.environ.get("LOG_FILE")

    # --- Development backend ---
    CORS_ORIGINS: str = os.environ.get("CORS_ORIGINS", "*")
    SEED_SAMPLE_DATA: bool = _flag("SEED_SAMPLE_DATA", "true")

settings = Settings()
