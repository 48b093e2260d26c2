"""Domain models for the food buddy feed."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from health_tracker.domain.entries import FoodEntry, utc_now


@dataclass(frozen=True, kw_only=True)
class FoodBuddy:
    """Another user the owner can follow."""

    id: UUID = field(default_factory=uuid4)
    nickname: str
    avatar: str | None = None
    bio: str = ""
    followers_count: int = 0
    following_count: int = 0
    posts_count: int = 0
    is_following: bool = False


@dataclass(frozen=True, kw_only=True)
class FoodPost:
    """A shared post, optionally referencing food entries."""

    id: UUID = field(default_factory=uuid4)
    author_id: UUID
    content: str
    images: tuple[str, ...] = ()
    food_records: tuple[FoodEntry, ...] = ()
    timestamp: datetime = field(default_factory=utc_now)
    likes_count: int = 0
    comments_count: int = 0
    is_liked: bool = False
