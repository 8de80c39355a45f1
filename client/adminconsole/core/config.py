"""Client settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Load .env during development (no-op when missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_float(name: str, default: float) -> float:
    """Parse a float from an environment variable, falling back to ``default``.

    Empty or malformed values are treated as unset.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        return default


def _default_credential_file() -> str:
    return str(Path.home() / ".adminconsole" / "credentials.json")


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_URL: str
        Base URL of the remote admin API; resource paths are appended to it.
    REQUEST_TIMEOUT: float
        Seconds before a single HTTP call is abandoned by ``requests``.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CREDENTIAL_BACKEND: str
        Where the credential is persisted: ``memory``, ``file`` or ``redis``.
    CREDENTIAL_FILE: str
        JSON document used by the ``file`` backend.
    REDIS_URL: str | None
        Connection string for the ``redis`` backend.
    CREDENTIAL_KEY: str
        Key (file record name or Redis hash key) holding the credential.
    EXPIRY_GRACE_SECONDS: float
        Tokens expiring within this window are already treated as expired.
    DEFAULT_ACCESS_TTL_SECONDS: float
        Access lifetime assumed when the API omits ``accessTokenExpiry``.
    DEFAULT_REFRESH_TTL_SECONDS: float
        Refresh lifetime assumed when the API omits ``refreshTokenExpiry``.
    REFRESH_WAIT_TIMEOUT_SECONDS: float
        Upper bound for a caller waiting on a refresh issued by another caller.
    SESSION_IDLE_TIMEOUT_SECONDS: float
        Inactivity after which the session is signed out (``0`` disables).
    PREFLIGHT_REFRESH: bool
        Refresh an expired access token before sending instead of waiting for
        the server to answer 401.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    # Remote API
    API_URL = os.getenv("API_URL", "http://localhost:5000/api")
    REQUEST_TIMEOUT = env_float("REQUEST_TIMEOUT", 10.0)

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Credential persistence
    CREDENTIAL_BACKEND = os.getenv("CREDENTIAL_BACKEND", "file")
    CREDENTIAL_FILE = os.getenv("CREDENTIAL_FILE", _default_credential_file())
    REDIS_URL = os.getenv("REDIS_URL")
    CREDENTIAL_KEY = os.getenv("CREDENTIAL_KEY", "auth-storage")

    # Token lifecycle
    EXPIRY_GRACE_SECONDS = env_float("EXPIRY_GRACE_SECONDS", 5.0)
    DEFAULT_ACCESS_TTL_SECONDS = env_float("DEFAULT_ACCESS_TTL_SECONDS", 24 * 60 * 60)
    DEFAULT_REFRESH_TTL_SECONDS = env_float("DEFAULT_REFRESH_TTL_SECONDS", 7 * 24 * 60 * 60)
    REFRESH_WAIT_TIMEOUT_SECONDS = env_float("REFRESH_WAIT_TIMEOUT_SECONDS", 30.0)
    SESSION_IDLE_TIMEOUT_SECONDS = env_float("SESSION_IDLE_TIMEOUT_SECONDS", 30 * 60)
    PREFLIGHT_REFRESH = env_bool("PREFLIGHT_REFRESH", False)

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Keeps the durable ``file`` backend so a CLI login survives restarts.
    """

    DEBUG = env_bool("CONSOLE_DEBUG", True)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and the in-memory credential backend.
    - Points at a fixed fake API host so HTTP mocks can match URLs.
    - Disables idle sign-out so frozen clocks do not expire sessions.
    """

    TESTING = True
    DEBUG = False
    API_URL = os.getenv("TEST_API_URL", "https://api.test/api")
    CREDENTIAL_BACKEND = "memory"
    SESSION_IDLE_TIMEOUT_SECONDS = 0.0
    REFRESH_WAIT_TIMEOUT_SECONDS = 5.0


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug disabled; the credential backend is expected to be chosen
    explicitly through ``CREDENTIAL_BACKEND``.
    """

    DEBUG = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class whose upper-case attributes drive :func:`adminconsole.create_client`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
