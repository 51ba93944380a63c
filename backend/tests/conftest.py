from __future__ import annotations

from datetime import datetime
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from profile_portal.main import app
from profile_portal.services.record_service import record_service
from profile_portal.services.sheet_store import DETAIL_HEADERS, ROSTER_HEADERS, InMemoryStore

ROSTER_SHEET = "List"
DETAIL_SHEET = "Data"

ROSTER_ROWS: list[list[Any]] = [
    ROSTER_HEADERS,
    ["E100", "Asha Rao", "आशा राव", "Officer", "1990-03-05", "Block Office Sadar", "10010203"],
    ["E200", "Ravi Kumar", "रवि कुमार", "Teacher", datetime(1985, 12, 1), "GPS Rampur", "10010456"],
    ["E300", "Meena Devi", "", "Clerk", "14/07/1992", "District Office", 10010789.0],
]

DETAIL_ROWS: list[list[Any]] = [
    DETAIL_HEADERS,
    [
        "E200",
        "Ravi Kumar",
        "रवि कुमार (संशोधित)",
        "Teacher",
        "01-12-1985",
        "GPS Rampur",
        "10010456",
        "123456789012",
        "ABC1234567",
        "ABCDE1234F",
        "9876543210",
        "ravi.kumar@gmail.com",
        "data:image/jpeg;base64,AAAA",
    ],
]


def make_store() -> InMemoryStore:
    return InMemoryStore({ROSTER_SHEET: ROSTER_ROWS, DETAIL_SHEET: DETAIL_ROWS})


@pytest.fixture(autouse=True)
def _memory_backend():
    from profile_portal.core.config import settings

    original = settings.STORE_BACKEND
    settings.STORE_BACKEND = "memory"
    yield
    settings.STORE_BACKEND = original


@pytest.fixture
def store() -> InMemoryStore:
    return make_store()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def portal_client(store):
    with TestClient(app) as c:
        record_service.store = store
        record_service.initialized = True
        yield c


@pytest.fixture
async def async_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def anyio_backend():
    return "asyncio"
