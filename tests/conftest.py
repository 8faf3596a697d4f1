"""Shared pytest fixtures for AlpineBridge tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from alpinebridge.api.factory import create_app  # noqa: E402
from alpinebridge.domain.models import Hotel  # noqa: E402
from alpinebridge.infra.store import get_store  # noqa: E402

from .helpers import (  # noqa: E402
    TEST_HOTEL_CODE,
    TEST_HOTEL_NAME,
    TEST_PASSWORD,
    TEST_USERNAME,
    FakeGuestRequestStore,
)

_MANAGED_ENV = (
    "ALPINEBITS_USERNAME",
    "ALPINEBITS_PASSWORD",
    "ALPINEBITS_REQUIRE_CLIENT_ID",
    "ADMIN_API_KEY",
    "DEFAULT_LANGUAGE",
    "CORS_ALLOW_ORIGINS",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Start every test from a known configuration.

    Settings are read from the environment on each call; a developer shell
    with real credentials exported must not leak into tests.
    """
    for name in _MANAGED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ALPINEBITS_USERNAME", TEST_USERNAME)
    monkeypatch.setenv("ALPINEBITS_PASSWORD", TEST_PASSWORD)


@pytest.fixture
def store() -> FakeGuestRequestStore:
    return FakeGuestRequestStore(hotels=[Hotel(TEST_HOTEL_CODE, TEST_HOTEL_NAME)])


@pytest.fixture
def client(store):
    """TestClient whose routes use the in-memory store."""
    app = create_app()
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
