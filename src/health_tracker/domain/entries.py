"""Domain models for logged entries."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID, uuid4

from health_tracker.domain.nutrition import NutritionFacts

MIN_INTENSITY = 1
MAX_INTENSITY = 5


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


class RecordType(StrEnum):
    """How a food entry was captured."""

    PHOTO = "photo"
    ALBUM = "album"
    BARCODE = "barcode"
    MANUAL = "manual"


class MealType(StrEnum):
    """Meal slot of a food entry."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"

    @property
    def emoji(self) -> str:
        return _MEAL_EMOJI[self]


_MEAL_EMOJI = {
    MealType.BREAKFAST: "🌅",
    MealType.LUNCH: "☀️",
    MealType.DINNER: "🌙",
    MealType.SNACK: "🍿",
}


class ExerciseType(StrEnum):
    """Category of an exercise entry."""

    CARDIO = "cardio"
    STRENGTH = "strength"
    FLEXIBILITY = "flexibility"
    SPORTS = "sports"
    DAILY = "daily"


class MoodCategory(StrEnum):
    """Mood recorded in a diary entry."""

    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    ANXIOUS = "anxious"
    EXCITED = "excited"
    CALM = "calm"
    STRESSED = "stressed"

    @property
    def emoji(self) -> str:
        return _MOOD_EMOJI[self]


_MOOD_EMOJI = {
    MoodCategory.HAPPY: "😊",
    MoodCategory.SAD: "😢",
    MoodCategory.ANGRY: "😠",
    MoodCategory.ANXIOUS: "😰",
    MoodCategory.EXCITED: "🤩",
    MoodCategory.CALM: "😌",
    MoodCategory.STRESSED: "😤",
}


@dataclass(frozen=True, kw_only=True)
class FoodEntry:
    """A logged food with nutrition facts per 100 units."""

    id: UUID = field(default_factory=uuid4)
    name: str
    emoji: str = "🍎"
    image: str | None = None
    weight: float
    portion: str
    quantity: float = 100.0
    unit: str = "g"
    nutrition: NutritionFacts
    timestamp: datetime = field(default_factory=utc_now)
    record_type: RecordType
    barcode: str | None = None
    meal_type: MealType = MealType.BREAKFAST
    image_url: str | None = None
    confidence: float = 1.0
    tags: frozenset[str] = frozenset()
    mood: str | None = None

    def __post_init__(self) -> None:
        if self.weight < 0 or self.quantity < 0:
            raise ValueError("weight and quantity must be non-negative")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("confidence must be within [0, 1]")

    @property
    def total_nutrition(self) -> NutritionFacts:
        """Nutrition for the logged quantity."""
        return self.nutrition.scaled(self.quantity / 100.0)


@dataclass(frozen=True, kw_only=True)
class ExerciseEntry:
    """A logged exercise session."""

    id: UUID = field(default_factory=uuid4)
    name: str
    type: ExerciseType
    duration: float
    calories_burned: float
    timestamp: datetime = field(default_factory=utc_now)
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.duration < 0 or self.calories_burned < 0:
            raise ValueError("duration and calories_burned must be non-negative")

    @property
    def minutes(self) -> int:
        return int(self.duration // 60)


@dataclass(frozen=True, kw_only=True)
class MoodEntry:
    """A mood diary entry."""

    id: UUID = field(default_factory=uuid4)
    mood: MoodCategory
    intensity: int
    content: str
    timestamp: datetime = field(default_factory=utc_now)
    triggers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not MIN_INTENSITY <= self.intensity <= MAX_INTENSITY:
            raise ValueError(
                f"intensity must be between {MIN_INTENSITY} and {MAX_INTENSITY}"
            )


@dataclass(frozen=True, kw_only=True)
class WeightEntry:
    """A body weight measurement in kilograms."""

    id: UUID = field(default_factory=uuid4)
    weight: float
    timestamp: datetime = field(default_factory=utc_now)
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.weight <= 0:
            raise ValueError("weight must be positive")
