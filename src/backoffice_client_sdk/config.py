from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, TypeVar

from dotenv import load_dotenv

N = TypeVar("N", int, float)

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    api_token: str | None = None
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 3
    retry_backoff_seconds: float = 0.3
    max_connections: int = 20
    verify_ssl: bool = True
    inventory_max_pages: int = 50
    notification_timeout_seconds: float = 5.0
    submit_close_delay_seconds: float = 2.0


def _read_bounded(name: str, default: N, cast: Callable[[str], N], *, minimum: N, strict: bool) -> N:
    """Read ``name`` as a number that must be ``> minimum`` (strict) or ``>= minimum``."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        value = default
    else:
        try:
            value = cast(raw.strip())
        except ValueError as exc:
            kind = "an integer" if cast is int else "a number"
            raise ConfigError(f"Invalid {name}: expected {kind}, got {raw!r}") from exc
    in_range = value > minimum if strict else value >= minimum
    if not in_range:
        bound = ">" if strict else ">="
        raise ConfigError(f"Invalid {name}: expected {bound} {minimum}, got {value}")
    return value


def _base_url(env_key: str) -> str:
    for name in (f"BACKOFFICE_API_BASE_URL_{env_key}", "BACKOFFICE_API_BASE_URL"):
        value = (os.getenv(name) or "").strip()
        if value:
            return value.rstrip("/")
    raise ConfigError("Missing required config values: BACKOFFICE_API_BASE_URL")


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load config from environment with optional .env override.

    ``BACKOFFICE_API_BASE_URL_<ENV>`` wins over the generic base URL. The
    connect and read timeouts default from ``BACKOFFICE_TIMEOUT_SECONDS``.
    """
    load_dotenv(env_file)

    env_name = (os.getenv("BACKOFFICE_ENV") or "dev").strip()
    api_base_url = _base_url(env_name.upper())

    timeout = _read_bounded("BACKOFFICE_TIMEOUT_SECONDS", 10.0, float, minimum=0.0, strict=True)
    connect_timeout = _read_bounded(
        "BACKOFFICE_CONNECT_TIMEOUT_SECONDS", min(timeout, 5.0), float, minimum=0.0, strict=True
    )
    read_timeout = _read_bounded(
        "BACKOFFICE_READ_TIMEOUT_SECONDS", max(timeout, connect_timeout), float, minimum=0.0, strict=True
    )

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url,
        api_token=(os.getenv("BACKOFFICE_API_TOKEN") or "").strip() or None,
        connect_timeout_seconds=connect_timeout,
        read_timeout_seconds=read_timeout,
        retries=_read_bounded("BACKOFFICE_RETRIES", 3, int, minimum=0, strict=False),
        retry_backoff_seconds=_read_bounded(
            "BACKOFFICE_RETRY_BACKOFF_SECONDS", 0.3, float, minimum=0.0, strict=False
        ),
        max_connections=_read_bounded("BACKOFFICE_MAX_CONNECTIONS", 20, int, minimum=1, strict=False),
        verify_ssl=(os.getenv("BACKOFFICE_VERIFY_SSL") or "true").strip().lower() in _TRUE_VALUES,
        inventory_max_pages=_read_bounded("BACKOFFICE_INVENTORY_MAX_PAGES", 50, int, minimum=1, strict=False),
        notification_timeout_seconds=_read_bounded(
            "BACKOFFICE_NOTIFICATION_TIMEOUT_SECONDS", 5.0, float, minimum=0.0, strict=True
        ),
        submit_close_delay_seconds=_read_bounded(
            "BACKOFFICE_SUBMIT_CLOSE_DELAY_SECONDS", 2.0, float, minimum=0.0, strict=False
        ),
    )
