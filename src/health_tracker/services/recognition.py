"""Food recognition interface, food catalog and capture flow."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from health_tracker.domain.entries import FoodEntry, RecordType
from health_tracker.domain.goals import GoalType
from health_tracker.domain.nutrition import NutritionFacts, NutritionSummary

if TYPE_CHECKING:
    from health_tracker.services.tracking import TrackingStore

DEFAULT_FOOD_ICON = "🍽️"

_logger = logging.getLogger(__name__)

FOOD_TABLE: dict[str, NutritionFacts] = {
    "apple": NutritionFacts(calories=52, protein=0.3, carbs=14, fat=0.2),
    "banana": NutritionFacts(calories=89, protein=1.1, carbs=23, fat=0.3),
    "orange": NutritionFacts(calories=43, protein=0.9, carbs=11, fat=0.1),
    "rice": NutritionFacts(calories=130, protein=2.7, carbs=28, fat=0.3),
    "chicken": NutritionFacts(calories=239, protein=27, carbs=0, fat=14),
    "beef": NutritionFacts(calories=250, protein=26, carbs=0, fat=15),
    "fish": NutritionFacts(calories=206, protein=22, carbs=0, fat=12),
    "egg": NutritionFacts(calories=155, protein=13, carbs=1.1, fat=11),
    "milk": NutritionFacts(calories=42, protein=3.4, carbs=5, fat=1),
    "bread": NutritionFacts(calories=265, protein=9, carbs=49, fat=3.2),
    "pasta": NutritionFacts(calories=220, protein=8, carbs=44, fat=1.1),
    "tomato": NutritionFacts(calories=18, protein=0.9, carbs=3.9, fat=0.2),
    "lettuce": NutritionFacts(calories=15, protein=1.4, carbs=2.9, fat=0.2),
    "carrot": NutritionFacts(calories=41, protein=0.9, carbs=10, fat=0.2),
    "potato": NutritionFacts(calories=77, protein=2, carbs=17, fat=0.1),
    "cheese": NutritionFacts(calories=402, protein=25, carbs=1.3, fat=33),
    "yogurt": NutritionFacts(calories=59, protein=10, carbs=3.6, fat=0.4),
    "salmon": NutritionFacts(calories=208, protein=22, carbs=0, fat=12),
    "broccoli": NutritionFacts(calories=34, protein=2.8, carbs=7, fat=0.4),
    "spinach": NutritionFacts(calories=23, protein=2.9, carbs=3.6, fat=0.4),
}

# First matching keyword wins, so more specific names come first.
_ICON_RULES: tuple[tuple[str, str], ...] = (
    ("salmon", "🐟"),
    ("fish", "🐟"),
    ("chicken", "🍗"),
    ("beef", "🥩"),
    ("egg", "🥚"),
    ("yogurt", "🥛"),
    ("milk", "🥛"),
    ("cheese", "🧀"),
    ("bread", "🍞"),
    ("pasta", "🍝"),
    ("rice", "🍚"),
    ("apple", "🍎"),
    ("banana", "🍌"),
    ("orange", "🍊"),
    ("tomato", "🍅"),
    ("lettuce", "🥬"),
    ("spinach", "🥬"),
    ("carrot", "🥕"),
    ("potato", "🥔"),
    ("broccoli", "🥦"),
)

_LIGHT_FOODS = ("apple", "lettuce", "tomato", "broccoli", "spinach")
_BALANCED_FOODS = ("fish", "egg", "milk", "yogurt", "carrot")

_RECOMMENDED_FOODS: dict[GoalType, tuple[str, ...]] = {
    GoalType.WEIGHT_LOSS: _LIGHT_FOODS,
    GoalType.WEIGHT_GAIN: ("banana", "rice", "chicken", "beef", "cheese"),
    GoalType.MAINTENANCE: _BALANCED_FOODS,
    GoalType.MUSCLE_BUILD: ("chicken", "beef", "salmon", "egg", "milk"),
    GoalType.FAT_LOSS: _LIGHT_FOODS,
    GoalType.FITNESS: _BALANCED_FOODS,
}


class RecognitionProvider(Protocol):
    """Maps an image payload to candidate food entries."""

    async def identify(
        self, image: bytes, *, record_type: RecordType = RecordType.PHOTO
    ) -> list[FoodEntry]:
        """Return candidate entries; an empty list means nothing was found."""


def lookup_nutrition(name: str) -> NutritionFacts | None:
    """Return catalog nutrition for a food name, if known."""
    return FOOD_TABLE.get(name.strip().lower())


def food_icon(name: str) -> str:
    """Pick an icon for a food name by keyword, falling back to a plate."""
    lowered = name.lower()
    for keyword, icon in _ICON_RULES:
        if keyword in lowered:
            return icon
    return DEFAULT_FOOD_ICON


def recommended_foods(goal_type: GoalType) -> list[str]:
    return list(_RECOMMENDED_FOODS[goal_type])


def nutrition_summary(entries: Iterable[FoodEntry]) -> NutritionSummary:
    """Sum scaled macros across entries."""
    calories = protein = carbs = fat = 0.0
    for entry in entries:
        total = entry.total_nutrition
        calories += total.calories
        protein += total.protein
        carbs += total.carbs
        fat += total.fat
    return NutritionSummary(calories=calories, protein=protein, carbs=carbs, fat=fat)


def food_suggestions(entries: Sequence[FoodEntry], goal_type: GoalType) -> list[str]:
    """Return short advice strings for the day's entries and goal."""
    summary = nutrition_summary(entries)
    suggestions: list[str] = []
    if goal_type == GoalType.WEIGHT_LOSS:
        if summary.calories > 500:
            suggestions.append("Calories are high today; prefer low-calorie foods.")
        suggestions.append("Try: vegetable salad, fruit.")
    elif goal_type == GoalType.WEIGHT_GAIN:
        if summary.calories < 800:
            suggestions.append("Calories are low today; add energy-dense foods.")
        suggestions.append("Try: nuts, milk, meat.")
    elif goal_type == GoalType.MAINTENANCE:
        suggestions.append("Keep a balanced diet across all food groups.")
    elif goal_type == GoalType.MUSCLE_BUILD:
        if summary.protein < 50:
            suggestions.append("Protein is low today; add more protein.")
        suggestions.append("Try: chicken breast, fish, eggs.")
    elif goal_type == GoalType.FAT_LOSS:
        suggestions.append("Try: low-fat, high-protein foods.")
    else:
        suggestions.append("Try: balanced meals with regular exercise.")
    return suggestions


async def recognize_many(
    provider: RecognitionProvider,
    images: Iterable[bytes],
    *,
    record_type: RecordType = RecordType.ALBUM,
) -> list[FoodEntry]:
    """Identify several images one after another and concatenate results."""
    results: list[FoodEntry] = []
    for image in images:
        results.extend(await provider.identify(image, record_type=record_type))
    return results


@dataclass
class CaptureSession:
    """One capture flow: a single in-flight recognition and its results."""

    provider: RecognitionProvider
    store: "TrackingStore"
    record_type: RecordType = RecordType.PHOTO
    candidates: list[FoodEntry] = field(default_factory=list)
    _in_flight: bool = False
    _cancelled: bool = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def capture(self, image: bytes) -> list[FoodEntry]:
        """Run recognition; stale results after cancel() are dropped."""
        if self._in_flight:
            raise RuntimeError("A recognition is already in flight for this session")
        if self._cancelled:
            return []
        self._in_flight = True
        try:
            results = await self.provider.identify(image, record_type=self.record_type)
        finally:
            self._in_flight = False
        if self._cancelled:
            _logger.info("Discarding %s stale recognition results", len(results))
            return []
        self.candidates = list(results)
        return self.candidates

    def cancel(self) -> None:
        self._cancelled = True
        self.candidates = []

    def accept(self, entries: Sequence[FoodEntry] | None = None) -> list[FoodEntry]:
        """Log the chosen candidates (all by default) as food entries."""
        if self._cancelled:
            return []
        chosen = list(self.candidates if entries is None else entries)
        for entry in chosen:
            self.store.add_food(entry)
        self.candidates = []
        return chosen
