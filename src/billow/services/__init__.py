"""
Service factory for Billow.

This module provides the get_billow_service() factory function that returns
a BillowService wired to the configured backend.

Available Implementations:
- http: Live backend at the configured base URL
- demo: In-memory demo backend served through a mock transport

Services are not cached at the module level: each one owns an async
connection pool bound to the event loop that uses it. Configure via the
BILLOW_SERVICE environment variable.
"""

from typing import Callable, Dict

from billow.config import Settings, load_settings
from billow.lib import logs
from billow.services.billow_service import BillowService
from billow.services.demo_backend import DemoBackend
from billow.services.resource_client import ResourceClient

LOG = logs.logger(__file__)

DEMO_BASE_URL = "http://billow.demo/api"


def _http_service(settings: Settings) -> BillowService:
    return BillowService(
        ResourceClient(settings.api_base_url, timeout=settings.api_timeout)
    )


def _demo_service(settings: Settings) -> BillowService:
    transport = DemoBackend().transport()
    return BillowService(
        ResourceClient(DEMO_BASE_URL, timeout=settings.api_timeout, transport=transport)
    )


_SERVICE_REGISTRY: Dict[str, Callable[[Settings], BillowService]] = {
    "http": _http_service,
    "demo": _demo_service,
}


def get_billow_service(
    kind: str | None = None, settings: Settings | None = None
) -> BillowService:
    """Return a service for the configured backend kind."""
    settings = settings or load_settings()
    resolved_kind = (kind or settings.service).lower()
    LOG.info("get_billow_service - kind:%s resolved_kind:%s", kind, resolved_kind)
    try:
        factory = _SERVICE_REGISTRY[resolved_kind]
    except KeyError as exc:
        msg = f"Unknown billow service kind: {resolved_kind}"
        raise ValueError(msg) from exc
    return factory(settings)


__all__ = [
    "BillowService",
    "DemoBackend",
    "ResourceClient",
    "get_billow_service",
]
