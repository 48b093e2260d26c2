"""Domain models for the user profile."""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from uuid import UUID, uuid4


class Gender(StrEnum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


@dataclass(frozen=True, kw_only=True)
class UserProfile:
    """Basic information about the single app user."""

    id: UUID = field(default_factory=uuid4)
    nickname: str
    gender: Gender
    birthday: date
    height: float
    weight: float
    occupation: str = ""
    avatar: str | None = None
    dietary_preferences: tuple[str, ...] = ()
    exercise_preferences: tuple[str, ...] = ()
    food_allergies: tuple[str, ...] = ()


@dataclass(frozen=True)
class HealthSnapshot:
    """Latest body metrics and sensor readings."""

    weight: float
    height: float
    steps: int = 0
    heart_rate: int | None = None
    blood_pressure: str | None = None
    sleep_hours: float | None = None
