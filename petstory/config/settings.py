"""
Runtime configuration for the Pet Story backend.

All environment variables are read once at boot into an immutable Settings
object which is then handed to every component that needs it.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from ..core.errors import ConfigurationError

DEFAULT_PIMS_BASE_URL = "https://api.mybalto.com/api:D60OKSek"
DEFAULT_FRONTEND_URL = "http://localhost:5173"
DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"

# Dev servers that are always allowed alongside FRONTEND_URL. Deployed
# frontends are not built in: list them in FRONTEND_URL or CORS_ALLOWED_ORIGINS.
LOCAL_DEV_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:5173",
)

_TRUTHY = ("true", "1", "yes")


def _flag(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    value = env.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in _TRUTHY


def _integer(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def _seconds(env: Mapping[str, str], name: str, default: float) -> float:
    value = env.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number of seconds, got {value!r}")


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    openai_api_key: str
    openai_model: str = DEFAULT_OPENAI_MODEL
    openai_json_mode: bool = False
    openai_timeout: float = 60.0
    moderation_block_flagged: bool = False

    pims_base_url: str = DEFAULT_PIMS_BASE_URL
    pims_api_key: Optional[str] = None
    pims_timeout: float = 15.0
    # True only when PIMS_BASE_URL was set explicitly
    pims_configured: bool = False

    xano_base_url: Optional[str] = None
    xano_api_key: Optional[str] = None
    xano_timeout: float = 10.0

    frontend_url: str = DEFAULT_FRONTEND_URL
    extra_cors_origins: tuple[str, ...] = field(default_factory=tuple)

    rate_limit_window_ms: int = 15 * 60 * 1000
    max_requests_per_window: int = 10
    general_rate_limit_window_ms: int = 15 * 60 * 1000
    general_max_requests: int = 100
    trust_proxy_headers: bool = False

    environment: str = "development"
    port: int = 3001
    version: str = "1.0.0"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def xano_configured(self) -> bool:
        return bool(self.xano_base_url)

    @property
    def allowed_origins(self) -> tuple[str, ...]:
        """CORS allow-list, normalized without trailing slashes."""
        origins = (self.frontend_url, *LOCAL_DEV_ORIGINS, *self.extra_cors_origins)
        normalized = []
        for origin in origins:
            origin = origin.rstrip("/")
            if origin and origin not in normalized:
                normalized.append(origin)
        return tuple(normalized)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Loads a .env file (searching parent directories) when reading the
        real process environment.

        Raises:
            ConfigurationError: if OPENAI_API_KEY is missing or a numeric
                variable cannot be parsed.
        """
        if env is None:
            load_dotenv(find_dotenv())
            env = os.environ

        api_key = env.get("OPENAI_API_KEY", "").strip()
        if not api_key:
            raise ConfigurationError(
                "Missing required environment variables: ['OPENAI_API_KEY']"
            )

        extra_origins = tuple(
            origin.strip()
            for origin in env.get("CORS_ALLOWED_ORIGINS", "").split(",")
            if origin.strip()
        )

        return cls(
            openai_api_key=api_key,
            openai_model=env.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
            openai_json_mode=_flag(env, "OPENAI_JSON_MODE"),
            openai_timeout=_seconds(env, "OPENAI_TIMEOUT_SECONDS", 60.0),
            moderation_block_flagged=_flag(env, "MODERATION_BLOCK_FLAGGED"),
            pims_base_url=env.get("PIMS_BASE_URL") or DEFAULT_PIMS_BASE_URL,
            pims_api_key=env.get("PIMS_API_KEY") or None,
            pims_timeout=_seconds(env, "PIMS_TIMEOUT_SECONDS", 15.0),
            pims_configured=bool(env.get("PIMS_BASE_URL")),
            xano_base_url=env.get("XANO_BASE_URL") or None,
            xano_api_key=env.get("XANO_API_KEY") or None,
            xano_timeout=_seconds(env, "XANO_TIMEOUT_SECONDS", 10.0),
            frontend_url=env.get("FRONTEND_URL") or DEFAULT_FRONTEND_URL,
            extra_cors_origins=extra_origins,
            rate_limit_window_ms=_integer(env, "RATE_LIMIT_WINDOW_MS", 15 * 60 * 1000),
            max_requests_per_window=_integer(env, "MAX_REQUESTS_PER_WINDOW", 10),
            trust_proxy_headers=_flag(env, "TRUST_PROXY_HEADERS"),
            environment=(env.get("NODE_ENV") or "development").strip().lower(),
            port=_integer(env, "PORT", 3001),
        )
