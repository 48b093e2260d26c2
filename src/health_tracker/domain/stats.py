"""Domain models for statistics."""

from dataclasses import dataclass
from datetime import date

PLACEHOLDER_WATER_INTAKE = 2000.0


@dataclass(frozen=True)
class DaySummary:
    """Daily totals for food and exercise."""

    day: date
    calories: float
    protein: float
    carbs: float
    fat: float
    exercise_minutes: int = 0
    water_intake: float = PLACEHOLDER_WATER_INTAKE


@dataclass(frozen=True)
class WeeklyReport:
    """Seven day series with summary figures."""

    days: list[DaySummary]
    calorie_target: float
    average_calories: float
    logged_days: int
    total_protein: float
    on_target_days: int
    achievement_rate: float
