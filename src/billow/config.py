"""
Environment-driven configuration for Billow.

All settings are read once through :func:`load_settings` so the rest of
the package never touches ``os.environ`` directly. A ``.env`` file in the
working directory is loaded first; real environment variables win.

Environment variables:
- BILLOW_API_BASE_URL: Backend base URL (default http://localhost:8080/api)
- BILLOW_API_TIMEOUT: Request timeout in seconds (default 10)
- BILLOW_DEBOUNCE_MS: Search debounce window in milliseconds (default 300)
- BILLOW_SERVICE: "http" or "demo" (default http)
- BILLOW_USER_ID: Optional default current-user identifier
"""

import math
import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

DEFAULT_BASE_URL = "http://localhost:8080/api"
DEFAULT_TIMEOUT = 10.0
DEFAULT_DEBOUNCE_MS = 300


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration.

    Attributes:
        api_base_url: Base URL every resource path is joined to.
        api_timeout: Finite timeout applied to every request, in seconds.
        debounce_ms: Quiet window before a debounced query fires.
        service: Service kind passed to the service factory.
        user_id: Default identity used by the command-line entry point.
    """

    api_base_url: str = DEFAULT_BASE_URL
    api_timeout: float = DEFAULT_TIMEOUT
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    service: str = "http"
    user_id: str | None = None

    @property
    def debounce_seconds(self) -> float:
        """Debounce window in seconds, as used by the event loop."""
        return self.debounce_ms / 1000


def load_settings() -> Settings:
    """
    Build :class:`Settings` from the environment.

    Raises:
        ValueError: If a numeric setting is not a positive number.
    """
    load_dotenv(find_dotenv(usecwd=True))
    timeout = _positive(float, "BILLOW_API_TIMEOUT", DEFAULT_TIMEOUT)
    debounce_ms = _positive(int, "BILLOW_DEBOUNCE_MS", DEFAULT_DEBOUNCE_MS)
    return Settings(
        api_base_url=os.getenv("BILLOW_API_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        api_timeout=timeout,
        debounce_ms=debounce_ms,
        service=os.getenv("BILLOW_SERVICE", "http").lower(),
        user_id=os.getenv("BILLOW_USER_ID") or None,
    )


def _positive(cast, key: str, default):
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError as exc:
        msg = f"{key} must be a number, got {raw!r}"
        raise ValueError(msg) from exc
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{key} must be finite and positive, got {raw!r}")
    return value
