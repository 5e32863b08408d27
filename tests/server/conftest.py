"""Pytest fixtures for server module testing."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from minifinder.config import settings
from server.main import app


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    """Application client whose device listener runs on a free loopback port."""
    monkeypatch.setattr(settings, "TCP_LISTEN_ADDR", "127.0.0.1")
    monkeypatch.setattr(settings, "TCP_PORT", 0)
    with TestClient(app) as test_client:
        yield test_client
