"""
Daily counter domains tracked by the rollover.

Each domain owns one mutable record per user (dated by `date_field`) and one
bounded, newest-first history list of archived days:

  user_{id}_nutrition          {date, breakfast[], lunch[], dinner[], snacks[]}
  user_{id}_nutrition_history  [{date, breakfast[], ...}, ...]
  user_{id}_water              {current, goal, lastUpdatedDate}
  user_{id}_water_history      [{date, current, goal}, ...]

Water's `goal` is user configuration, not a counter, and survives resets.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable

from healthcore.config import settings

MEALS = ("breakfast", "lunch", "dinner", "snacks")


def _number(value: Any) -> float:
    """Lenient numeric coercion: anything non-numeric or non-finite counts as 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def water_goal(record: dict[str, Any] | None) -> float:
    """Stored goal, or the configured default when missing or non-positive."""
    goal = _number((record or {}).get("goal"))
    return goal if goal > 0 else float(settings.water_goal_default_ml)


# -- nutrition ---------------------------------------------------------------

def _nutrition_has_activity(record: dict[str, Any]) -> bool:
    return any(isinstance(record.get(meal), list) and record[meal] for meal in MEALS)


def _nutrition_snapshot(record: dict[str, Any], day: str) -> dict[str, Any]:
    return {**record, "date": day}


def _nutrition_fresh(today: str, previous: dict[str, Any] | None) -> dict[str, Any]:
    return {"date": today, **{meal: [] for meal in MEALS}}


# -- water -------------------------------------------------------------------

def _water_has_activity(record: dict[str, Any]) -> bool:
    return _number(record.get("current")) > 0


def _water_snapshot(record: dict[str, Any], day: str) -> dict[str, Any]:
    return {"date": day, "current": _number(record.get("current")), "goal": water_goal(record)}


def _water_fresh(today: str, previous: dict[str, Any] | None) -> dict[str, Any]:
    return {"current": 0, "goal": water_goal(previous), "lastUpdatedDate": today}


@dataclass(frozen=True, slots=True)
class CounterDomain:
    name: str
    suffix: str  # record key suffix
    history_suffix: str
    date_field: str
    has_activity: Callable[[dict[str, Any]], bool]
    snapshot: Callable[[dict[str, Any], str], dict[str, Any]]  # (record, its day) -> history entry
    fresh: Callable[[str, dict[str, Any] | None], dict[str, Any]]  # (today, previous) -> zeroed record


COUNTER_DOMAINS: dict[str, CounterDomain] = {
    "nutrition": CounterDomain(
        name="nutrition",
        suffix="nutrition",
        history_suffix="nutrition_history",
        date_field="date",
        has_activity=_nutrition_has_activity,
        snapshot=_nutrition_snapshot,
        fresh=_nutrition_fresh,
    ),
    "water": CounterDomain(
        name="water",
        suffix="water",
        history_suffix="water_history",
        date_field="lastUpdatedDate",
        has_activity=_water_has_activity,
        snapshot=_water_snapshot,
        fresh=_water_fresh,
    ),
}

LAST_RESET_SUFFIX = "last_reset_date"


def get_domain(name: str) -> CounterDomain | None:
    return COUNTER_DOMAINS.get(name)


def list_domains() -> list[CounterDomain]:
    return list(COUNTER_DOMAINS.values())
