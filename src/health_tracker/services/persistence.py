"""Persistence gateway for named entity collections."""

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from threading import Lock
from typing import Protocol

from pydantic import TypeAdapter, ValidationError

from health_tracker.domain.entries import (
    ExerciseEntry,
    FoodEntry,
    MoodEntry,
    WeightEntry,
)
from health_tracker.domain.goals import OKR, DietPlan, Goal, Subscription
from health_tracker.domain.profile import UserProfile

FOOD_ENTRIES = "food_entries"
EXERCISE_ENTRIES = "exercise_entries"
MOOD_ENTRIES = "mood_entries"
WEIGHT_ENTRIES = "weight_entries"
USER_PROFILE = "user_profile"
HEALTH_GOALS = "health_goals"
OKR_PROGRESS = "okr"
DIET_PLAN = "diet_plan"
SUBSCRIPTION = "subscription"

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Collection:
    adapter: TypeAdapter
    default: Callable[[], object]


_COLLECTIONS: dict[str, _Collection] = {
    FOOD_ENTRIES: _Collection(TypeAdapter(list[FoodEntry]), list),
    EXERCISE_ENTRIES: _Collection(TypeAdapter(list[ExerciseEntry]), list),
    MOOD_ENTRIES: _Collection(TypeAdapter(list[MoodEntry]), list),
    WEIGHT_ENTRIES: _Collection(TypeAdapter(list[WeightEntry]), list),
    USER_PROFILE: _Collection(TypeAdapter(UserProfile | None), lambda: None),
    HEALTH_GOALS: _Collection(TypeAdapter(list[Goal]), list),
    OKR_PROGRESS: _Collection(TypeAdapter(OKR | None), lambda: None),
    DIET_PLAN: _Collection(TypeAdapter(DietPlan | None), lambda: None),
    SUBSCRIPTION: _Collection(TypeAdapter(Subscription | None), lambda: None),
}

COLLECTION_KEYS: tuple[str, ...] = tuple(_COLLECTIONS)


class KeyValueStore(Protocol):
    """Durable storage for named blobs."""

    def read(self, key: str) -> bytes | None:
        """Return the blob stored under key, or None when absent."""

    def write(self, key: str, data: bytes) -> None:
        """Replace the blob stored under key."""


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store, used for tests and ephemeral sessions."""

    blobs: dict[str, bytes] = field(default_factory=dict)

    def read(self, key: str) -> bytes | None:
        return self.blobs.get(key)

    def write(self, key: str, data: bytes) -> None:
        self.blobs[key] = data


@dataclass
class PersistenceGateway:
    """Encodes collections to JSON blobs and decodes them back."""

    store: KeyValueStore

    def encode(self, key: str, value: object) -> bytes:
        """Serialize a complete collection for key."""
        return _collection(key).adapter.dump_json(value)

    def write(self, key: str, data: bytes) -> None:
        self.store.write(key, data)

    def save(self, key: str, value: object) -> None:
        """Serialize and store a collection."""
        self.write(key, self.encode(key, value))

    def load(self, key: str) -> object:
        """Return the stored collection, or its default when missing or corrupt."""
        collection = _collection(key)
        try:
            raw = self.store.read(key)
        except Exception:
            _logger.exception("Failed to read %s; starting empty", key)
            return collection.default()
        if raw is None:
            return collection.default()
        try:
            return collection.adapter.validate_json(raw)
        except (ValidationError, ValueError) as exc:
            _logger.warning("Discarding corrupt %s blob: %s", key, exc)
            return collection.default()


def _collection(key: str) -> _Collection:
    try:
        return _COLLECTIONS[key]
    except KeyError:
        raise KeyError(f"Unknown collection key: {key}") from None


class PersistDispatcher(Protocol):
    """Runs persistence jobs without blocking the mutating caller."""

    def submit(self, key: str, job: Callable[[], None]) -> None:
        """Schedule a job that writes the collection stored under key."""


@dataclass
class InlineDispatcher(PersistDispatcher):
    """Runs jobs immediately on the calling thread."""

    def submit(self, key: str, job: Callable[[], None]) -> None:
        job()


class BackgroundDispatcher(PersistDispatcher):
    """Runs jobs on one worker thread so writes apply in dispatch order."""

    def __init__(self) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="health-tracker-persist"
        )
        self._pending: set[Future[None]] = set()
        self._lock = Lock()

    def submit(self, key: str, job: Callable[[], None]) -> None:
        future = self._executor.submit(job)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def flush(self, timeout: float | None = None) -> None:
        """Block until every queued job has finished."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def _forget(self, future: Future[None]) -> None:
        with self._lock:
            self._pending.discard(future)
