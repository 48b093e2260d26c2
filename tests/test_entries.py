"""Tests for entry and goal domain models."""

from datetime import UTC, datetime

import pytest

from health_tracker.domain.entries import (
    ExerciseEntry,
    ExerciseType,
    MealType,
    MoodCategory,
    MoodEntry,
    WeightEntry,
)
from health_tracker.domain.goals import Subscription, SubscriptionTier, add_months
from health_tracker.domain.nutrition import NutritionFacts
from tests.conftest import make_food


def test_total_nutrition_scales_linearly_with_quantity() -> None:
    entry = make_food(calories=52, protein=0.3, carbs=14, fat=0.2, quantity=250)

    total = entry.total_nutrition

    assert total.calories == pytest.approx(130)
    assert total.protein == pytest.approx(0.75)
    assert total.carbs == pytest.approx(35)
    assert total.fat == pytest.approx(0.5)


def test_zero_quantity_means_zero_nutrition() -> None:
    entry = make_food(calories=52, quantity=0)
    assert entry.total_nutrition.calories == 0


def test_scaling_is_linear() -> None:
    facts = NutritionFacts(calories=100, protein=10, carbs=20, fat=5, fiber=2)
    assert facts.scaled(2).scaled(1.5) == facts.scaled(3)


def test_negative_values_are_rejected() -> None:
    with pytest.raises(ValueError):
        NutritionFacts(calories=-1, protein=0, carbs=0, fat=0)
    with pytest.raises(ValueError):
        make_food(quantity=-10)
    with pytest.raises(ValueError):
        make_food(confidence=1.5)
    with pytest.raises(ValueError):
        WeightEntry(weight=0)


@pytest.mark.parametrize("intensity", [0, 6])
def test_mood_intensity_range(intensity: int) -> None:
    with pytest.raises(ValueError):
        MoodEntry(mood=MoodCategory.CALM, intensity=intensity, content="")


def test_exercise_minutes_truncate_seconds() -> None:
    entry = ExerciseEntry(
        name="walk", type=ExerciseType.DAILY, duration=1799, calories_burned=80
    )
    assert entry.minutes == 29


def test_enum_icons() -> None:
    assert MealType.SNACK.emoji == "🍿"
    assert MoodCategory.HAPPY.emoji == "😊"


def test_add_months_clamps_day() -> None:
    start = datetime(2024, 1, 31, 9, 30, tzinfo=UTC)
    assert add_months(start, 1) == datetime(2024, 2, 29, 9, 30, tzinfo=UTC)
    assert add_months(start, 12) == datetime(2025, 1, 31, 9, 30, tzinfo=UTC)


def test_subscription_end_date_follows_tier() -> None:
    start = datetime(2024, 3, 15, tzinfo=UTC)
    subscription = Subscription(
        tier=SubscriptionTier.HALF_YEARLY, start_date=start, price=88
    )
    assert subscription.end_date == datetime(2024, 9, 15, tzinfo=UTC)
