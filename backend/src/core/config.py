"""
Application settings.

Read once from the environment at startup (after `load_dotenv()` in `app.py`)
and passed explicitly into the policy, auth and orchestration components.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple


DEFAULT_PREVIEW_PATTERN = r"^https://interview-prep.*\.vercel\.app$"


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


def _parse_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def _parse_origins(raw: str) -> Tuple[str, ...]:
    # Trailing slashes are stripped so "https://a.com/" matches "https://a.com"
    origins = [o.strip().rstrip("/") for o in raw.split(",")]
    return tuple(o for o in origins if o)


def _parse_number(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    allowed_origins: Tuple[str, ...] = ()
    allow_vercel_preview: bool = False
    preview_origin_pattern: str = DEFAULT_PREVIEW_PATTERN
    environment: str = "development"
    port: int = 5000
    jwt_expires_in: int = 7 * 24 * 3600
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None
    ai_timeout_seconds: float = 30.0
    uploads_dir: str = field(
        default_factory=lambda: os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "uploads")
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def preview_enabled(self) -> bool:
        """Preview origins are only honoured outside production."""
        return self.allow_vercel_preview and not self.is_production


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from environment variables.

    Args:
        env: Mapping to read from (defaults to `os.environ`)

    Raises:
        ConfigError: If JWT_SECRET is missing or a numeric value is invalid
    """
    env = os.environ if env is None else env

    secret = (env.get("JWT_SECRET") or "").strip()
    if not secret:
        raise ConfigError("JWT_SECRET is not set; refusing to start without a token secret")

    port = int(_parse_number(env, "PORT", 5000))
    expires_in = int(_parse_number(env, "JWT_EXPIRES_IN", 7 * 24 * 3600))
    timeout = _parse_number(env, "AI_TIMEOUT_SECONDS", 30.0)

    kwargs = {}
    if env.get("UPLOADS_DIR"):
        kwargs["uploads_dir"] = env["UPLOADS_DIR"]

    return Settings(
        jwt_secret=secret,
        allowed_origins=_parse_origins(env.get("ALLOWED_ORIGINS", "")),
        allow_vercel_preview=_parse_bool(env.get("ALLOW_VERCEL_PREVIEW")),
        preview_origin_pattern=env.get("PREVIEW_ORIGIN_PATTERN") or DEFAULT_PREVIEW_PATTERN,
        environment=(env.get("APP_ENV") or env.get("NODE_ENV") or "development").strip(),
        port=port,
        jwt_expires_in=expires_in,
        openai_api_key=env.get("OPENAI_API_KEY") or None,
        openai_model=env.get("OPENAI_MODEL") or "gpt-4o-mini",
        openai_base_url=env.get("OPENAI_BASE_URL") or None,
        ai_timeout_seconds=timeout,
        **kwargs,
    )
