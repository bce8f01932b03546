"""Kernel HTTP router: users, daily counters, labs, metrics."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from healthcore.db import KeyValueStore, get_store
from healthcore.kernel import builders, clock, counters, labs, rollover, users
from healthcore.kernel.counter_map import MEALS
from healthcore.kernel.engine import compute_health_metrics
from healthcore.kernel.models import (
    Dashboard,
    FoodItem,
    HealthInput,
    HealthMetrics,
    LabEntry,
    LoginRequest,
    NutritionDay,
    ProfileUpdate,
    RolloverResult,
    UserCandidate,
    UserProfile,
    WaterAmount,
    WaterDay,
    WaterGoal,
    WorkoutEntry,
)

router = APIRouter(prefix="/kernel", tags=["kernel"])


def get_today() -> str:
    return clock.today_local()


def _public_user(user: UserProfile) -> dict[str, Any]:
    payload = user.model_dump(mode="json", by_alias=True, exclude={"password"})
    payload["fullName"] = user.full_name
    return payload


def _require_user(store: KeyValueStore, user_id: str) -> UserProfile:
    user = users.get_user(store, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail=f"Unknown user: {user_id}")
    return user


# ---------------------------------------------------------------------------
# /kernel/metrics
# ---------------------------------------------------------------------------


@router.post("/metrics", response_model=HealthMetrics)
async def compute_metrics(payload: HealthInput) -> HealthMetrics:
    return compute_health_metrics(payload)


# ---------------------------------------------------------------------------
# /kernel/users
# ---------------------------------------------------------------------------


@router.get("/users")
async def users_list(store: KeyValueStore = Depends(get_store)) -> list[dict]:
    return [_public_user(u) for u in users.list_users(store)]


@router.post("/users", status_code=201)
async def register(candidate: UserCandidate, store: KeyValueStore = Depends(get_store)) -> dict:
    result = users.add_user(store, candidate)
    if not result.success or result.user is None:
        raise HTTPException(status_code=409, detail=result.error)
    return _public_user(result.user)


@router.post("/users/login")
async def login(payload: LoginRequest, store: KeyValueStore = Depends(get_store)) -> dict:
    user = users.login(store, payload.identifier, payload.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid login or password.")
    return _public_user(user)


@router.post("/users/logout")
async def logout(store: KeyValueStore = Depends(get_store)) -> dict[str, str]:
    users.logout(store)
    return {"status": "ok"}


@router.get("/users/current")
async def current_user(store: KeyValueStore = Depends(get_store)) -> dict:
    user = users.get_current_user(store)
    if user is None:
        raise HTTPException(status_code=404, detail="No user is signed in.")
    return _public_user(user)


@router.get("/users/{user_id}")
async def user_detail(user_id: str, store: KeyValueStore = Depends(get_store)) -> dict:
    return _public_user(_require_user(store, user_id))


@router.patch("/users/{user_id}")
async def user_update(
    user_id: str,
    updates: ProfileUpdate,
    store: KeyValueStore = Depends(get_store),
) -> dict:
    user = users.update_user(store, user_id, updates)
    if user is None:
        raise HTTPException(status_code=404, detail=f"Unknown user: {user_id}")
    return _public_user(user)


# ---------------------------------------------------------------------------
# /kernel/users/{id}/... daily state
# ---------------------------------------------------------------------------


@router.post("/users/{user_id}/rollover", response_model=RolloverResult)
async def user_rollover(
    user_id: str,
    store: KeyValueStore = Depends(get_store),
    today: str = Depends(get_today),
) -> RolloverResult:
    _require_user(store, user_id)
    rolled = rollover.ensure_daily_reset(store, user_id, today=today)
    return RolloverResult(user_id=user_id, today=today, rolled_over=rolled)


@router.post("/users/{user_id}/nutrition/{meal}", response_model=NutritionDay)
async def nutrition_add(
    user_id: str,
    meal: str,
    item: FoodItem,
    store: KeyValueStore = Depends(get_store),
    today: str = Depends(get_today),
) -> NutritionDay:
    _require_user(store, user_id)
    if meal not in MEALS:
        raise HTTPException(status_code=404, detail=f"Unknown meal: {meal}")
    return counters.add_food_item(store, user_id, meal, item, today)


@router.post("/users/{user_id}/water", response_model=WaterDay)
async def water_add(
    user_id: str,
    payload: WaterAmount,
    store: KeyValueStore = Depends(get_store),
    today: str = Depends(get_today),
) -> WaterDay:
    _require_user(store, user_id)
    return counters.add_water(store, user_id, payload.amount_ml, today)


@router.put("/users/{user_id}/water/goal", response_model=WaterDay)
async def water_goal(
    user_id: str,
    payload: WaterGoal,
    store: KeyValueStore = Depends(get_store),
    today: str = Depends(get_today),
) -> WaterDay:
    _require_user(store, user_id)
    return counters.set_water_goal(store, user_id, payload.goal_ml, today)


@router.post("/users/{user_id}/workouts", status_code=201)
async def workout_log(
    user_id: str,
    entry: WorkoutEntry,
    store: KeyValueStore = Depends(get_store),
) -> list[dict]:
    _require_user(store, user_id)
    return counters.log_workout(store, user_id, entry)


@router.get("/users/{user_id}/history/{domain}")
async def domain_history(
    user_id: str,
    domain: str,
    store: KeyValueStore = Depends(get_store),
) -> list[dict]:
    _require_user(store, user_id)
    history = counters.history_for(store, user_id, domain)
    if history is None:
        raise HTTPException(status_code=404, detail=f"Unknown counter domain: {domain}")
    return history


# ---------------------------------------------------------------------------
# /kernel/users/{id}/labs
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}/labs", response_model=list[LabEntry])
async def labs_list(user_id: str, store: KeyValueStore = Depends(get_store)) -> list[LabEntry]:
    _require_user(store, user_id)
    return labs.get_labs(store, user_id)


@router.post("/users/{user_id}/labs", response_model=list[LabEntry], status_code=201)
async def labs_add(
    user_id: str,
    entry: LabEntry,
    store: KeyValueStore = Depends(get_store),
) -> list[LabEntry]:
    _require_user(store, user_id)
    return labs.add_lab(store, user_id, entry)


# ---------------------------------------------------------------------------
# /kernel/users/{id}/dashboard
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}/dashboard", response_model=Dashboard)
async def dashboard(
    user_id: str,
    store: KeyValueStore = Depends(get_store),
    today: str = Depends(get_today),
    sleep_hours: float | None = Query(default=None, ge=0, le=24, description="Last night's sleep"),
) -> Dashboard:
    profile = _require_user(store, user_id)
    rollover.ensure_daily_reset(store, user_id, today=today)
    return builders.build_dashboard(store, profile, today, sleep_hours)
