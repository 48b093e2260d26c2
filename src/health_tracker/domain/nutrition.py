"""Nutrition domain models."""

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class NutritionFacts:
    """Nutrient amounts per 100 units of a food."""

    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float = 0.0
    sugar: float = 0.0
    sodium: float = 0.0
    potassium: float = 0.0
    vitamin_c: float = 0.0
    calcium: float = 0.0
    iron: float = 0.0

    def __post_init__(self) -> None:
        for item in fields(self):
            if getattr(self, item.name) < 0:
                raise ValueError(f"{item.name} must be non-negative")

    def scaled(self, factor: float) -> "NutritionFacts":
        """Return a copy with every nutrient multiplied by factor."""
        return NutritionFacts(
            **{item.name: getattr(self, item.name) * factor for item in fields(self)}
        )


@dataclass(frozen=True)
class NutritionSummary:
    """Macro totals across a group of food entries."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
