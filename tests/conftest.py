"""
Shared fixtures for the Billow test suite.

Async code runs through ``asyncio.run`` inside plain test functions; HTTP is
served by ``httpx.MockTransport`` from either the demo backend or a
per-test handler.
"""

from datetime import date
from typing import Callable

import httpx
import pytest

from billow.models.identity import Identity
from billow.services.billow_service import BillowService
from billow.services.demo_backend import DemoBackend
from billow.services.resource_client import ResourceClient

BASE_URL = "http://billow.test/api"
TODAY = date(2025, 6, 15)


def make_client(handler: Callable, timeout: float = 10.0) -> ResourceClient:
    return ResourceClient(BASE_URL, timeout=timeout, transport=httpx.MockTransport(handler))


def make_service(handler: Callable) -> BillowService:
    return BillowService(make_client(handler))


@pytest.fixture
def identity() -> Identity:
    return Identity(user_id="USR-TEST", email="owner@billow.example")


@pytest.fixture
def backend() -> DemoBackend:
    return DemoBackend(today=TODAY)


@pytest.fixture
def service(backend: DemoBackend) -> BillowService:
    return make_service(backend)


@pytest.fixture
def client_factory() -> Callable[..., ResourceClient]:
    """Build a ResourceClient answering from a per-test handler."""
    return make_client


@pytest.fixture
def service_factory() -> Callable[[Callable], BillowService]:
    """Build a BillowService answering from a per-test handler."""
    return make_service


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run from an empty directory with no BILLOW_* variables set."""
    monkeypatch.chdir(tmp_path)
    for key in (
        "BILLOW_API_BASE_URL",
        "BILLOW_API_TIMEOUT",
        "BILLOW_DEBOUNCE_MS",
        "BILLOW_SERVICE",
        "BILLOW_USER_ID",
    ):
        # setenv first so teardown also removes values loaded from .env
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return tmp_path
