"""Fixtures for API tests: the app wired to the shared test services."""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from gst_audit.api import create_app

PREFIX = "/api/v1"


@pytest.fixture
def client(settings, services) -> Generator[TestClient, None, None]:
    with TestClient(create_app(settings, services)) as test_client:
        yield test_client


@pytest.fixture
def access_key(client) -> str:
    return client.get(f"{PREFIX}/access/key").json()["data"]["value"]
