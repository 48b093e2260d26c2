"""Goal and progress computations.

Every function here is pure: no clock reads, no I/O, and no exceptions for
numeric input. Out-of-range ratios saturate to the [0, 1] interval.
"""

from collections.abc import Iterable, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from health_tracker.domain.goals import Goal, KeyResult
    from health_tracker.domain.stats import DaySummary

CALORIE_TOLERANCE = 200.0


class BmiCategory(StrEnum):
    UNDERWEIGHT = "underweight"
    NORMAL = "normal"
    OVERWEIGHT = "overweight"
    OBESE = "obese"


# Upper bounds are exclusive; anything at or above the last bound is obese.
_BMI_THRESHOLDS: tuple[tuple[float, BmiCategory], ...] = (
    (18.5, BmiCategory.UNDERWEIGHT),
    (24.0, BmiCategory.NORMAL),
    (28.0, BmiCategory.OVERWEIGHT),
)


def clamp_ratio(numerator: float, denominator: float) -> float:
    """Return numerator/denominator clamped to [0, 1], or 0 for a bad denominator."""
    if denominator <= 0:
        return 0.0
    return min(max(numerator / denominator, 0.0), 1.0)


def calorie_progress(consumed: float, target: float) -> float:
    """Share of the daily calorie target consumed so far."""
    return clamp_ratio(consumed, target)


def bmi(height_cm: float, weight_kg: float) -> float:
    """Body mass index; 0 when height is not positive."""
    if height_cm <= 0:
        return 0.0
    height_m = height_cm / 100.0
    return weight_kg / (height_m * height_m)


def bmi_category(value: float) -> BmiCategory:
    """Classify a BMI value using half-open threshold ranges."""
    for upper_bound, category in _BMI_THRESHOLDS:
        if value < upper_bound:
            return category
    return BmiCategory.OBESE


def key_result_progress(current: float, target: float) -> float:
    return clamp_ratio(current, target)


def okr_progress(key_results: Sequence["KeyResult"]) -> float:
    """Mean key result progress; 0 when there are no key results."""
    if not key_results:
        return 0.0
    total = sum(key_result_progress(kr.current, kr.target) for kr in key_results)
    return total / len(key_results)


def goal_progress(goal: "Goal") -> float:
    return clamp_ratio(goal.current_value, goal.target_value)


def is_on_target(
    calories: float, target: float, tolerance: float = CALORIE_TOLERANCE
) -> bool:
    """Return True when calories are within tolerance of the target."""
    return abs(calories - target) <= tolerance


def achievement_rate(days: Iterable["DaySummary"], target: float) -> float:
    """Share of days whose calories landed on target."""
    day_list = list(days)
    if not day_list:
        return 0.0
    hits = sum(1 for day in day_list if is_on_target(day.calories, target))
    return hits / len(day_list)
