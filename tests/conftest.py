import os

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

# Fixed config for tests; the remote API is always faked
os.environ["DEMOMED_API_KEY"] = "test-key"
os.environ["DEMOMED_BASE_URL"] = "https://demomed.test/api"

from vitalscore.main import app
from vitalscore.services.demomed_client import DemoMedClient, get_client_factory

BASE_URL = "https://demomed.test/api"


def page_response(
    records: list,
    page: int | None = None,
    total_pages: int | None = None,
    has_next: bool | None = None,
) -> httpx.Response:
    """Build a fake patients page in the remote API's shape."""
    pagination: dict = {}
    if page is not None:
        pagination["page"] = page
    if total_pages is not None:
        pagination["totalPages"] = total_pages
    if has_next is not None:
        pagination["hasNext"] = has_next
    return httpx.Response(200, json={"data": records, "pagination": pagination})


def make_patients(start: int, count: int) -> list[dict]:
    return [
        {
            "patient_id": f"DEMO{n:03d}",
            "blood_pressure": "115/75",
            "temperature": 98.6,
            "age": 45,
        }
        for n in range(start, start + count)
    ]


class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.delays)


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def make_client(fake_sleep):
    """Build a DemoMedClient talking to a fake server handler."""

    def _make(handler) -> DemoMedClient:
        return DemoMedClient(
            api_key="test-key",
            base_url=BASE_URL,
            transport=httpx.MockTransport(handler),
            sleep=fake_sleep,
        )

    return _make


@pytest.fixture
def fake_remote(make_client):
    """Route the app's remote client to a fake server handler."""

    def _install(handler) -> None:
        app.dependency_overrides[get_client_factory] = lambda: (lambda: make_client(handler))

    yield _install
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    """Provide a synchronous TestClient for HTTP endpoint tests."""
    return TestClient(app)


@pytest_asyncio.fixture
async def async_client():
    """Provide an async httpx client for async HTTP tests."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
