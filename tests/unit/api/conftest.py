"""Pytest fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from crateadapter.adapter import CrateAdapter
from crateadapter.api.app import create_app
from crateadapter.config import Settings
from crateadapter.metrics import PrometheusObserver
from crateadapter.translation import ResultTable


class FakeTransport:
    """In-memory store transport recording every statement."""

    def __init__(self):
        self.statements = []
        self.bulk_statements = []
        self.result = ResultTable(["valueRaw", "timestamp"], [])
        self.error = None

    async def execute(self, statement):
        self.statements.append(statement)
        if self.error:
            raise self.error
        return self.result

    async def execute_bulk(self, statement):
        self.bulk_statements.append(statement)
        if self.error:
            raise self.error
        return statement.row_count


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def observer():
    return PrometheusObserver()


@pytest.fixture
def client(fake_transport, observer):
    """Test client for an app backed by the fake transport."""
    settings = Settings(crate_table="samples", max_request_size_mb=1)
    adapter = CrateAdapter(fake_transport, table="samples", observer=observer)
    app = create_app(settings=settings, adapter=adapter, observer=observer)
    with TestClient(app) as test_client:
        yield test_client
