"""Pydantic request models for the HTTP API."""

import math
from datetime import date, datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field

from health_tracker.domain.entries import (
    ExerciseEntry,
    ExerciseType,
    FoodEntry,
    MealType,
    MoodCategory,
    MoodEntry,
    RecordType,
    WeightEntry,
)
from health_tracker.domain.goals import DietPlan, MealPlan, SubscriptionTier
from health_tracker.domain.nutrition import NutritionFacts
from health_tracker.domain.profile import Gender, UserProfile


def parse_number(value: object) -> float:
    """Coerce user input to a float; anything unparseable becomes 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


Number = Annotated[float, BeforeValidator(parse_number)]


class NutritionIn(BaseModel):
    calories: Number = 0.0
    protein: Number = 0.0
    carbs: Number = 0.0
    fat: Number = 0.0
    fiber: Number = 0.0
    sugar: Number = 0.0
    sodium: Number = 0.0
    potassium: Number = 0.0
    vitamin_c: Number = 0.0
    calcium: Number = 0.0
    iron: Number = 0.0

    def to_domain(self) -> NutritionFacts:
        return NutritionFacts(**self.model_dump())


class FoodIn(BaseModel):
    """Food entry as submitted by a client."""

    name: str
    emoji: str = "🍎"
    image: str | None = None
    weight: Number = 0.0
    portion: str = ""
    quantity: Number = 100.0
    unit: str = "g"
    nutrition: NutritionIn = Field(default_factory=NutritionIn)
    timestamp: datetime | None = None
    record_type: RecordType = RecordType.MANUAL
    barcode: str | None = None
    meal_type: MealType = MealType.BREAKFAST
    image_url: str | None = None
    confidence: Number = 1.0
    tags: list[str] = Field(default_factory=list)
    mood: str | None = None

    def to_domain(self, **overrides: object) -> FoodEntry:
        """Build a FoodEntry; overrides win over submitted fields."""
        fields: dict[str, object] = {
            "name": self.name,
            "emoji": self.emoji,
            "image": self.image,
            "weight": self.weight,
            "portion": self.portion,
            "quantity": self.quantity,
            "unit": self.unit,
            "nutrition": self.nutrition.to_domain(),
            "record_type": self.record_type,
            "barcode": self.barcode,
            "meal_type": self.meal_type,
            "image_url": self.image_url,
            "confidence": self.confidence,
            "tags": frozenset(self.tags),
            "mood": self.mood,
        }
        if self.timestamp is not None:
            fields["timestamp"] = self.timestamp
        fields.update(overrides)
        return FoodEntry(**fields)  # type: ignore[arg-type]


class ExerciseIn(BaseModel):
    name: str
    type: ExerciseType = ExerciseType.DAILY
    duration: Number = 0.0
    calories_burned: Number = 0.0
    timestamp: datetime | None = None
    notes: str | None = None

    def to_domain(self) -> ExerciseEntry:
        if self.timestamp is None:
            return ExerciseEntry(**self.model_dump(exclude={"timestamp"}))
        return ExerciseEntry(**self.model_dump())


class MoodIn(BaseModel):
    mood: MoodCategory
    intensity: int = 3
    content: str = ""
    timestamp: datetime | None = None
    triggers: list[str] = Field(default_factory=list)

    def to_domain(self) -> MoodEntry:
        fields = self.model_dump(exclude={"timestamp", "triggers"})
        if self.timestamp is not None:
            fields["timestamp"] = self.timestamp
        return MoodEntry(triggers=tuple(self.triggers), **fields)


class WeightIn(BaseModel):
    weight: Number
    timestamp: datetime | None = None
    notes: str | None = None

    def to_domain(self) -> WeightEntry:
        if self.timestamp is None:
            return WeightEntry(weight=self.weight, notes=self.notes)
        return WeightEntry(weight=self.weight, timestamp=self.timestamp, notes=self.notes)


class ProfileIn(BaseModel):
    nickname: str
    gender: Gender
    birthday: date
    height: Number
    weight: Number
    occupation: str = ""
    avatar: str | None = None
    dietary_preferences: list[str] = Field(default_factory=list)
    exercise_preferences: list[str] = Field(default_factory=list)
    food_allergies: list[str] = Field(default_factory=list)

    def to_domain(self, current: UserProfile | None = None) -> UserProfile:
        """Build a profile, keeping the current profile id when there is one."""
        fields = self.model_dump()
        for name in ("dietary_preferences", "exercise_preferences", "food_allergies"):
            fields[name] = tuple(fields[name])
        if current is not None:
            fields["id"] = current.id
        return UserProfile(**fields)


class SensorReadingIn(BaseModel):
    steps: int | None = None
    weight: float | None = None


class ValueIn(BaseModel):
    value: Number


class MealPlanIn(BaseModel):
    meal_type: MealType
    foods: list[str] = Field(default_factory=list)
    target_calories: Number = 0.0


class DietPlanIn(BaseModel):
    name: str
    description: str = ""
    duration: int = 7
    daily_calories: Number
    meal_plans: list[MealPlanIn] = Field(default_factory=list)

    def to_domain(self) -> DietPlan:
        return DietPlan(
            name=self.name,
            description=self.description,
            duration=self.duration,
            daily_calories=self.daily_calories,
            meal_plans=tuple(
                MealPlan(
                    meal_type=plan.meal_type,
                    foods=tuple(plan.foods),
                    target_calories=plan.target_calories,
                )
                for plan in self.meal_plans
            ),
        )


class SubscriptionIn(BaseModel):
    tier: SubscriptionTier
    price: Number = 0.0


class PostIn(BaseModel):
    content: str
    images: list[str] = Field(default_factory=list)
