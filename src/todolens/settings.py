from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_API_URL = "https://api.watsonwork.ibm.com"


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - TODO_APP_ID: bot application id, used for OAuth and to drop the bot's own events
    - TODO_APP_SECRET: bot application secret
    - TODO_WEBHOOK_SECRET: shared secret for X-OUTBOUND-TOKEN signatures (unset disables verification)
    - WORKSPACE_API_URL: platform API base URL. Default 'https://api.watsonwork.ibm.com'
    - WORKSPACE_HTTP_TIMEOUT: outbound request timeout in seconds. Default 10
    - LOG_LEVEL: root logging level. Default 'INFO'
    - TODO_HOST / TODO_PORT: bind address for the server. Default 0.0.0.0:3000
    """

    app_id: Optional[str] = None
    app_secret: Optional[str] = None
    webhook_secret: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    http_timeout: float = 10.0
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _get_optional(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _parse_float(value: str, default: float) -> float:
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()

    return Settings(
        app_id=_get_optional("TODO_APP_ID"),
        app_secret=_get_optional("TODO_APP_SECRET"),
        webhook_secret=_get_optional("TODO_WEBHOOK_SECRET"),
        api_url=_get_env("WORKSPACE_API_URL", DEFAULT_API_URL).strip().rstrip("/"),
        http_timeout=_parse_float(_get_env("WORKSPACE_HTTP_TIMEOUT", "10"), 10.0),
        log_level=log_level,
        host=_get_env("TODO_HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("TODO_PORT", "3000"), 3000),
    )
