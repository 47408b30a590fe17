"""
Pytest configuration and fixtures for travel provider tests
"""
import json

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from models import Base
from travel_hub.providers import ProviderConfig


@pytest.fixture(scope="function")
def test_engine():
    """In-memory SQLite engine shared across sessions for one test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def hotelbeds_config():
    return ProviderConfig(
        name="hotelbeds",
        enabled=True,
        credentials={
            "apiKey": "hb-key-123456",
            "secret": "hb-secret-abcdef",
            "endpoint": "http://backend.test",
        },
        settings={"timeout": 5000, "retryAttempts": 0},
    )


@pytest.fixture
def duffel_config():
    return ProviderConfig(
        name="duffel",
        enabled=True,
        credentials={
            "accessToken": "duffel_test_abc123def456",
            "endpoint": "http://backend.test/api/duffel",
        },
        settings={"timeout": 5000, "retryAttempts": 0},
    )


class RecordingTransport:
    """
    Builds an httpx.MockTransport from a handler and records every request.

    Usage:
        recorder = RecordingTransport(lambda request: httpx.Response(200, json={}))
        provider = HotelbedsProvider(transport=recorder.transport)
    """

    def __init__(self, handler):
        self.requests = []
        self._handler = handler
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    def json_bodies(self):
        return [json.loads(r.content) if r.content else None for r in self.requests]


@pytest.fixture
def recording_transport():
    return RecordingTransport
