"""Counter mutations and today's readers.

Mutations first run the daily rollover so a stale day is archived rather
than overwritten. Readers never raise: a record dated another day reads as
zero.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from healthcore.config import settings
from healthcore.db import KeyValueStore
from healthcore.kernel import connector, features, rollover
from healthcore.kernel.counter_map import COUNTER_DOMAINS, MEALS, get_domain, water_goal
from healthcore.kernel.models import FoodItem, NutritionDay, WaterDay, WorkoutEntry
from healthcore.kernel.users import resolve_key

logger = logging.getLogger(__name__)

WORKOUT_HISTORY_SUFFIX = "workout_history"


# ---------------------------------------------------------------------------
# Nutrition
# ---------------------------------------------------------------------------

def item_kcal(item: FoodItem) -> int:
    """Manual kcal if given, else grams × kcal/100g."""
    if item.manual_kcal is not None:
        kcal = item.manual_kcal
    elif item.kcal_per_100 and item.grams:
        kcal = item.grams / 100 * item.kcal_per_100
    else:
        kcal = 0.0
    return features.round_half_up(kcal)


def read_nutrition(store: KeyValueStore, user_id: str | None, today: str) -> NutritionDay:
    """Today's meals. Malformed items are skipped one by one; the rest are kept."""
    day = NutritionDay(date=today)
    raw = connector.read_dict(store, resolve_key(user_id, "nutrition"))
    if raw is None or raw.get("date") != today:
        return day
    for meal in MEALS:
        entries = raw.get(meal)
        if not isinstance(entries, list):
            continue
        for entry in entries:
            try:
                getattr(day, meal).append(FoodItem.model_validate(entry))
            except ValidationError:
                logger.warning("Skipping malformed %s item for %s", meal, user_id)
    return day


def day_kcal(day: NutritionDay) -> int:
    return sum(item_kcal(item) for meal in MEALS for item in getattr(day, meal))


def today_kcal(store: KeyValueStore, user_id: str | None, today: str) -> int:
    return day_kcal(read_nutrition(store, user_id, today))


def add_food_item(
    store: KeyValueStore,
    user_id: str | None,
    meal: str,
    item: FoodItem,
    today: str,
) -> NutritionDay:
    if meal not in MEALS:
        raise ValueError(f"Unknown meal: {meal}")
    rollover.ensure_daily_reset(store, user_id, today=today)
    day = read_nutrition(store, user_id, today)
    getattr(day, meal).append(item)
    connector.write_json(store, resolve_key(user_id, "nutrition"), day.to_record())
    return day


# ---------------------------------------------------------------------------
# Water
# ---------------------------------------------------------------------------

def read_water(store: KeyValueStore, user_id: str | None, today: str) -> WaterDay:
    raw = connector.read_dict(store, resolve_key(user_id, "water"))
    fresh = COUNTER_DOMAINS["water"].fresh(today, raw)
    if raw is None or raw.get("lastUpdatedDate") != today:
        return WaterDay.model_validate(fresh)
    try:
        day = WaterDay.model_validate(raw)
    except ValidationError:
        return WaterDay.model_validate(fresh)
    day.goal = water_goal(raw)
    return day


def add_water(store: KeyValueStore, user_id: str | None, amount_ml: float, today: str) -> WaterDay:
    rollover.ensure_daily_reset(store, user_id, today=today)
    day = read_water(store, user_id, today)
    day.current = max(0.0, day.current + amount_ml)
    connector.write_json(store, resolve_key(user_id, "water"), day.to_record())
    return day


def set_water_goal(store: KeyValueStore, user_id: str | None, goal_ml: float, today: str) -> WaterDay:
    rollover.ensure_daily_reset(store, user_id, today=today)
    day = read_water(store, user_id, today)
    day.goal = goal_ml
    connector.write_json(store, resolve_key(user_id, "water"), day.to_record())
    return day


# ---------------------------------------------------------------------------
# Workouts (already per-entry dated; never reset)
# ---------------------------------------------------------------------------

def log_workout(store: KeyValueStore, user_id: str | None, entry: WorkoutEntry) -> list[dict]:
    key = resolve_key(user_id, WORKOUT_HISTORY_SUFFIX)
    return connector.prepend_bounded(store, key, entry.to_record(), settings.history_max_items)


def today_workout(store: KeyValueStore, user_id: str | None, today: str) -> tuple[float, float]:
    """(duration_sec, calories_burned) summed over today's entries."""
    duration = 0.0
    calories = 0.0
    for raw in connector.read_list(store, resolve_key(user_id, WORKOUT_HISTORY_SUFFIX)):
        if not isinstance(raw, dict) or raw.get("date") != today:
            continue
        try:
            entry = WorkoutEntry.model_validate(raw)
        except ValidationError:
            continue
        duration += entry.duration_sec
        calories += entry.calories_burned
    return duration, calories


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

def history_for(store: KeyValueStore, user_id: str | None, domain: str) -> list[dict] | None:
    """Archived days for a counter domain, newest first. None for an unknown domain."""
    cfg = get_domain(domain)
    if cfg is None:
        return None
    return [e for e in connector.read_list(store, resolve_key(user_id, cfg.history_suffix)) if isinstance(e, dict)]
