from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it's easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    org_cookie_ttl_days: int = 30
    resolve_timeout_seconds: float = 2.0
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def secure_cookies(self) -> bool:
        # Browsers drop Secure cookies on plain-http localhost.
        return not self.is_dev and not self.is_test


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    log_json = _parse_bool("LOG_JSON", _getenv("LOG_JSON", "false"))

    ttl_raw = _getenv("ORG_COOKIE_TTL_DAYS", "30")
    try:
        org_cookie_ttl_days = int(ttl_raw)
    except ValueError:
        raise ValueError(
            f"ORG_COOKIE_TTL_DAYS must be an integer (got {ttl_raw!r})"
        ) from None
    if org_cookie_ttl_days <= 0:
        raise ValueError(
            f"ORG_COOKIE_TTL_DAYS must be positive (got {org_cookie_ttl_days})"
        )

    timeout_raw = _getenv("RESOLVE_TIMEOUT_SECONDS", "2.0")
    try:
        resolve_timeout_seconds = float(timeout_raw)
    except ValueError:
        raise ValueError(
            f"RESOLVE_TIMEOUT_SECONDS must be a number (got {timeout_raw!r})"
        ) from None
    if resolve_timeout_seconds <= 0:
        raise ValueError(
            f"RESOLVE_TIMEOUT_SECONDS must be positive (got {resolve_timeout_seconds})"
        )

    cors_raw = _getenv("CORS_ORIGINS", "http://localhost:3000")
    cors_origins = tuple(o.strip() for o in cors_raw.split(",") if o.strip())

    database_url = _getenv("DATABASE_URL", "") or None
    redis_url = _getenv("REDIS_URL", "") or None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json,
        port=port,
        database_url=database_url,
        redis_url=redis_url,
        org_cookie_ttl_days=org_cookie_ttl_days,
        resolve_timeout_seconds=resolve_timeout_seconds,
        cors_origins=cors_origins,
    )


# Module-level singleton so imports are cheap
SETTINGS = load_settings()
