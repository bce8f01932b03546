"""Health-state contract: Pydantic v2 models.

Persisted records and HTTP bodies use camelCase keys (the UI's wire format);
attributes are snake_case. Every model accepts either spelling.
"""

from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict:
        """Serialize for the key/value store."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Goal(str, Enum):
    gain = "gain"
    maintain = "maintain"
    lose = "lose"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCandidate(WireModel):
    """Registration payload: a profile before it has an id."""

    phone: str
    password: str  # opaque, compared verbatim
    nickname: str = ""
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    avatar: str | None = None
    dob: str | None = None  # ISO date
    activity_level: str | None = None
    wearable: str | None = None
    height: float | None = None  # cm
    weight: float | None = None  # kg
    goal: Goal | None = None


class UserProfile(UserCandidate):
    id: str
    created_at: int  # epoch milliseconds

    @property
    def full_name(self) -> str:
        if self.nickname.strip():
            return self.nickname.strip()
        joined = " ".join(p for p in (self.first_name, self.last_name) if p).strip()
        return joined or "User"


class ProfileUpdate(WireModel):
    """Partial profile edit. Identity fields (id, created_at) are not editable.

    Fields left out are kept. An explicit null clears an optional field, but
    phone, password and nickname cannot be cleared.
    """

    phone: str | None = None
    password: str | None = None
    nickname: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    avatar: str | None = None
    dob: str | None = None
    activity_level: str | None = None
    wearable: str | None = None
    height: float | None = None
    weight: float | None = None
    goal: Goal | None = None

    @field_validator("phone", "password", "nickname")
    @classmethod
    def _required_not_null(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class UsersState(WireModel):
    current_user_id: str | None = None
    users: list[UserProfile] = Field(default_factory=list)


class AddUserResult(WireModel):
    success: bool
    user: UserProfile | None = None
    error: str | None = None


class LoginRequest(WireModel):
    identifier: str  # phone or email
    password: str


# ---------------------------------------------------------------------------
# Daily counters
# ---------------------------------------------------------------------------


class FoodItem(WireModel):
    name: str = ""
    grams: float | None = None
    kcal_per_100: float | None = None
    manual_kcal: float | None = None


class NutritionDay(WireModel):
    date: str
    breakfast: list[FoodItem] = Field(default_factory=list)
    lunch: list[FoodItem] = Field(default_factory=list)
    dinner: list[FoodItem] = Field(default_factory=list)
    snacks: list[FoodItem] = Field(default_factory=list)


class WaterDay(WireModel):
    current: float = 0.0
    goal: float = 2500.0
    last_updated_date: str | None = None


class WaterAmount(WireModel):
    amount_ml: float = Field(gt=0)


class WaterGoal(WireModel):
    goal_ml: float = Field(gt=0)


class WorkoutEntry(WireModel):
    date: str
    type: str = "workout"
    duration_sec: float = Field(default=0.0, ge=0)
    calories_burned: float = Field(default=0.0, ge=0)
    started_at: int | None = None  # epoch milliseconds


class RolloverResult(WireModel):
    user_id: str
    today: str
    rolled_over: bool


# ---------------------------------------------------------------------------
# Labs
# ---------------------------------------------------------------------------


class LabEntry(WireModel):
    date: str
    testosterone: float  # ng/dL, as entered
    cortisol: float | None = None
    vitamin_d: float | None = None
    hemoglobin: float | None = None
    other: dict[str, float] | None = None  # bilirubin, uricAcid, platelets, ...


# ---------------------------------------------------------------------------
# Metric engine
# ---------------------------------------------------------------------------


class HealthLabs(WireModel):
    testosterone: float | None = None  # nmol/L
    bilirubin: float | None = None  # µmol/L
    uric_acid: float | None = None  # µmol/L
    platelets: float | None = None  # 10^9/L

    @field_validator("testosterone", "bilirubin", "uric_acid", "platelets")
    @classmethod
    def _non_finite_is_missing(cls, v: float | None) -> float | None:
        if v is not None and not math.isfinite(v):
            return None
        return v


class HealthInput(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False)

    sleep_hours: float
    calories_consumed: float
    calories_target: float
    workout_intensity: float  # 0–10
    water_ml: float = 0.0
    age: float
    weight_kg: float
    height_cm: float
    labs: HealthLabs | None = None


class HealthMetrics(WireModel):
    energy_score: int
    stress_score: int
    recovery_score: int
    testosterone_index: int | None = None
    liver_load: float = 0.0
    metabolic_stress: float = 0.0


class Dashboard(WireModel):
    """Everything the control-center screen renders for one user and day."""

    date: str
    metrics: HealthMetrics
    energy_status: str
    stress_status: str
    body_state_score: int
    body_state_label: str
    calories_consumed: float
    calories_target: float
    water_ml: float
    water_goal_ml: float
    workout_duration_sec: float
    workout_calories: float
    workout_intensity: int
    latest_lab: LabEntry | None = None
    testosterone_status: str | None = None
    bmi: float | None = None
    bmi_category: str | None = None
    macros: dict[str, int] | None = None  # grams of protein, fat, carbs
