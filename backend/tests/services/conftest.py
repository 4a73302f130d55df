"""Service test fixtures — controllable clock, in-memory service, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory ClockService (no store file unless asked)
    - "now" is a FakeNow the test advances explicitly
    - get_clock_service dependency overridden to return the test service

Design Decisions:
    - ASGITransport without lifespan: the real store file is never loaded
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from clk2.main import app
from clk2.services.clock_service import ClockService, get_clock_service

CET = timezone(timedelta(hours=1))


class FakeNow:
    """Callable standing in for local_now()."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now += timedelta(**delta)
        return self.now


@pytest.fixture
def fake_now():
    return FakeNow(datetime(2021, 3, 1, 8, 0, 0, tzinfo=CET))


@pytest.fixture
def service(fake_now):
    return ClockService(now_fn=fake_now)


@pytest.fixture
async def client(service):
    """FastAPI test client with the clock service dependency overridden."""
    app.dependency_overrides[get_clock_service] = lambda: service
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def rpc(client):
    """POST one JSON-RPC request and return the decoded envelope."""
    counter = iter(range(1, 10_000))

    async def _call(method, params=None):
        body = {"jsonrpc": "2.0", "id": next(counter), "method": method}
        if params is not None:
            body["params"] = params
        res = await client.post(
            "/", json=body, headers={"Content-Type": "application/json-rpc"},
        )
        assert res.status_code == 200
        return res.json()

    return _call
