"""Domain models for goals, OKRs, plans and subscriptions."""

import calendar
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from health_tracker.domain.entries import MealType, utc_now
from health_tracker.services.progress import key_result_progress, okr_progress


class GoalType(StrEnum):
    WEIGHT_LOSS = "weightLoss"
    WEIGHT_GAIN = "weightGain"
    MAINTENANCE = "maintenance"
    MUSCLE_BUILD = "muscleBuild"
    FAT_LOSS = "fatLoss"
    FITNESS = "fitness"


@dataclass(frozen=True, kw_only=True)
class Goal:
    """A health goal with a target and current value."""

    id: UUID = field(default_factory=uuid4)
    type: GoalType
    target_value: float
    current_value: float = 0.0
    unit: str
    deadline: datetime | None = None
    is_active: bool = True


@dataclass(frozen=True, kw_only=True)
class KeyResult:
    """Measurable sub-goal of an OKR."""

    id: UUID = field(default_factory=uuid4)
    description: str
    target: float
    current: float = 0.0
    unit: str

    @property
    def progress(self) -> float:
        return key_result_progress(self.current, self.target)


@dataclass(frozen=True, kw_only=True)
class OKR:
    """Objective with ordered key results."""

    objective: str
    quarter: str
    key_results: tuple[KeyResult, ...] = ()

    @property
    def progress(self) -> float:
        return okr_progress(self.key_results)


@dataclass(frozen=True, kw_only=True)
class MealPlan:
    """Recommended foods and calories for one meal slot."""

    id: UUID = field(default_factory=uuid4)
    meal_type: MealType
    foods: tuple[str, ...]
    target_calories: float


@dataclass(frozen=True, kw_only=True)
class DietPlan:
    """A diet plan that sets the daily calorie target when activated."""

    id: UUID = field(default_factory=uuid4)
    name: str
    description: str
    duration: int
    daily_calories: float
    meal_plans: tuple[MealPlan, ...] = ()
    is_active: bool = False


class SubscriptionTier(StrEnum):
    MONTHLY = "monthly"
    HALF_YEARLY = "halfYearly"
    YEARLY = "yearly"

    @property
    def months(self) -> int:
        return _TIER_MONTHS[self]


_TIER_MONTHS = {
    SubscriptionTier.MONTHLY: 1,
    SubscriptionTier.HALF_YEARLY: 6,
    SubscriptionTier.YEARLY: 12,
}


@dataclass(frozen=True, kw_only=True)
class Subscription:
    """Membership subscription."""

    id: UUID = field(default_factory=uuid4)
    tier: SubscriptionTier
    start_date: datetime = field(default_factory=utc_now)
    price: float
    is_active: bool = True

    @property
    def end_date(self) -> datetime:
        return add_months(self.start_date, self.tier.months)


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
