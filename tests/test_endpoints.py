"""Endpoint tests: FastAPI app via httpx."""

from __future__ import annotations

import pytest

from healthcore.config import settings
from healthcore.kernel.users import get_storage_key
from tests.conftest import TODAY, YESTERDAY, get, make_nutrition_record, make_water_record, put


async def _register(client, phone: str = "+15550001", password: str = "pw", **extra) -> dict:
    resp = await client.post("/kernel/users", json={"phone": phone, "password": password, **extra})
    assert resp.status_code == 201
    return resp.json()


class TestServiceEndpoints:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_root_lists_routes(self, client):
        resp = await client.get("/")
        assert resp.status_code == 200
        assert resp.json()["kernel"]["metrics"] == "/kernel/metrics"


class TestMetricsEndpoint:
    @pytest.mark.asyncio
    async def test_compute(self, client):
        payload = {
            "sleepHours": 7.5,
            "caloriesConsumed": 2000,
            "caloriesTarget": 2000,
            "workoutIntensity": 0,
            "waterMl": 1500,
            "age": 30,
            "weightKg": 70,
            "heightCm": 170,
            "labs": {"testosterone": 21},
        }
        resp = await client.post("/kernel/metrics", json=payload)
        assert resp.status_code == 200
        body = resp.json()
        assert body["recoveryScore"] == 75
        assert body["testosteroneIndex"] == 50

    @pytest.mark.asyncio
    async def test_missing_field_422(self, client):
        resp = await client.post("/kernel/metrics", json={"sleepHours": 7})
        assert resp.status_code == 422


class TestUserEndpoints:
    @pytest.mark.asyncio
    async def test_register_hides_password(self, client):
        user = await _register(client, nickname="Neo", firstName="Thomas")
        assert user["id"]
        assert user["firstName"] == "Thomas"
        assert "password" not in user
        assert user["fullName"] == "Neo"

        listed = (await client.get("/kernel/users")).json()
        assert [u["id"] for u in listed] == [user["id"]]

    @pytest.mark.asyncio
    async def test_capacity_409(self, client):
        for i in range(settings.max_users):
            await _register(client, phone=f"+1{i}")
        resp = await client.post("/kernel/users", json={"phone": "+999", "password": "pw"})
        assert resp.status_code == 409
        assert len((await client.get("/kernel/users")).json()) == settings.max_users

    @pytest.mark.asyncio
    async def test_login_flow(self, client):
        user = await _register(client, email="neo@matrix.io")

        assert (await client.get("/kernel/users/current")).status_code == 404

        bad = await client.post("/kernel/users/login", json={"identifier": "neo@matrix.io", "password": "nope"})
        assert bad.status_code == 401

        ok = await client.post("/kernel/users/login", json={"identifier": "neo@matrix.io", "password": "pw"})
        assert ok.status_code == 200
        assert ok.json()["id"] == user["id"]
        assert (await client.get("/kernel/users/current")).json()["id"] == user["id"]

        await client.post("/kernel/users/logout")
        assert (await client.get("/kernel/users/current")).status_code == 404

    @pytest.mark.asyncio
    async def test_update_profile(self, client):
        user = await _register(client, nickname="old")
        resp = await client.patch(f"/kernel/users/{user['id']}", json={"nickname": "new", "weight": 81})
        assert resp.status_code == 200
        assert resp.json()["nickname"] == "new"
        assert (await client.get(f"/kernel/users/{user['id']}")).json()["weight"] == 81

    @pytest.mark.asyncio
    async def test_update_clears_and_rejects_nulls(self, client):
        user = await _register(client, email="neo@matrix.io")
        url = f"/kernel/users/{user['id']}"
        cleared = await client.patch(url, json={"email": None})
        assert cleared.status_code == 200
        assert cleared.json()["email"] is None
        assert (await client.patch(url, json={"phone": None})).status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_user_404(self, client):
        assert (await client.get("/kernel/users/ghost")).status_code == 404
        assert (await client.patch("/kernel/users/ghost", json={"nickname": "x"})).status_code == 404
        assert (await client.get("/kernel/users/ghost/dashboard")).status_code == 404


class TestCounterEndpoints:
    @pytest.mark.asyncio
    async def test_add_food(self, client):
        user = await _register(client)
        resp = await client.post(f"/kernel/users/{user['id']}/nutrition/lunch", json={"name": "rice", "manualKcal": 300})
        assert resp.status_code == 200
        body = resp.json()
        assert body["date"] == TODAY
        assert body["lunch"][0]["manualKcal"] == 300

    @pytest.mark.asyncio
    async def test_unknown_meal_404(self, client):
        user = await _register(client)
        resp = await client.post(f"/kernel/users/{user['id']}/nutrition/brunch", json={"manualKcal": 1})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_water(self, client):
        user = await _register(client)
        base = f"/kernel/users/{user['id']}/water"

        assert (await client.post(base, json={"amountMl": 250})).json()["current"] == 250
        goal = await client.put(f"{base}/goal", json={"goalMl": 3000})
        assert goal.json() == {"current": 250, "goal": 3000, "lastUpdatedDate": TODAY}
        assert (await client.post(base, json={"amountMl": 0})).status_code == 422

    @pytest.mark.asyncio
    async def test_workouts(self, client):
        user = await _register(client)
        resp = await client.post(
            f"/kernel/users/{user['id']}/workouts",
            json={"date": TODAY, "type": "run", "durationSec": 1800, "caloriesBurned": 300},
        )
        assert resp.status_code == 201
        assert resp.json()[0]["type"] == "run"


class TestRolloverEndpoints:
    @pytest.mark.asyncio
    async def test_rollover_then_history(self, client, override_store):
        user = await _register(client)
        uid = user["id"]
        put(override_store, get_storage_key(uid, "nutrition"), make_nutrition_record(YESTERDAY))
        put(override_store, get_storage_key(uid, "water"), make_water_record(YESTERDAY))

        first = await client.post(f"/kernel/users/{uid}/rollover")
        assert first.json() == {"userId": uid, "today": TODAY, "rolledOver": True}
        second = await client.post(f"/kernel/users/{uid}/rollover")
        assert second.json()["rolledOver"] is False

        history = (await client.get(f"/kernel/users/{uid}/history/nutrition")).json()
        assert [h["date"] for h in history] == [YESTERDAY]
        assert get(override_store, get_storage_key(uid, "water"))["current"] == 0

    @pytest.mark.asyncio
    async def test_unknown_domain_404(self, client):
        user = await _register(client)
        assert (await client.get(f"/kernel/users/{user['id']}/history/sleep")).status_code == 404


class TestLabsAndDashboard:
    @pytest.mark.asyncio
    async def test_labs(self, client):
        user = await _register(client)
        url = f"/kernel/users/{user['id']}/labs"
        resp = await client.post(url, json={"date": "2026-02-01", "testosterone": 550, "vitaminD": 32})
        assert resp.status_code == 201
        labs = (await client.get(url)).json()
        assert labs == [{"date": "2026-02-01", "testosterone": 550.0, "cortisol": None, "vitaminD": 32.0,
                         "hemoglobin": None, "other": None}]

    @pytest.mark.asyncio
    async def test_dashboard(self, client):
        user = await _register(client, weight=80, height=180)
        uid = user["id"]
        await client.post(f"/kernel/users/{uid}/nutrition/dinner", json={"manualKcal": 2000})

        resp = await client.get(f"/kernel/users/{uid}/dashboard", params={"sleep_hours": 7.5})
        assert resp.status_code == 200
        body = resp.json()
        assert body["date"] == TODAY
        assert body["metrics"]["energyScore"] == 62
        assert body["caloriesConsumed"] == 2000
        assert body["caloriesTarget"] == 2000
        assert body["energyStatus"] == "high"

    @pytest.mark.asyncio
    async def test_dashboard_rejects_bad_sleep(self, client):
        user = await _register(client)
        resp = await client.get(f"/kernel/users/{user['id']}/dashboard", params={"sleep_hours": 30})
        assert resp.status_code == 422
