"""Shared fixtures for the test suite."""

from __future__ import annotations

import json
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from healthcore.db import MemoryKeyValueStore, get_store
from healthcore.kernel.models import UserCandidate
from healthcore.kernel.router import get_today
from healthcore.main import app

TODAY = "2026-02-15"
YESTERDAY = "2026-02-14"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def store() -> MemoryKeyValueStore:
    """Empty in-memory key/value store."""
    return MemoryKeyValueStore()


@pytest.fixture()
def override_store(store):
    """Override the FastAPI dependencies so no real database or clock is used."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_today] = lambda: TODAY
    yield store
    app.dependency_overrides.clear()


@pytest.fixture()
async def client(override_store):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Record helpers
# ---------------------------------------------------------------------------

def make_candidate(phone: str = "+10000000000", password: str = "secret", **extra: Any) -> UserCandidate:
    return UserCandidate(phone=phone, password=password, nickname=extra.pop("nickname", "tester"), **extra)


def put(store: MemoryKeyValueStore, key: str, value: Any) -> None:
    store.set(key, json.dumps(value))


def get(store: MemoryKeyValueStore, key: str) -> Any:
    raw = store.get(key)
    return None if raw is None else json.loads(raw)


def make_nutrition_record(day: str, items: int = 1, kcal: float = 500) -> dict[str, Any]:
    return {
        "date": day,
        "breakfast": [{"name": f"meal {i}", "manualKcal": kcal} for i in range(items)],
        "lunch": [],
        "dinner": [],
        "snacks": [],
    }


def make_water_record(day: str, current: float = 750, goal: float = 3000) -> dict[str, Any]:
    return {"current": current, "goal": goal, "lastUpdatedDate": day}
