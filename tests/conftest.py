"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from health_tracker.config import Settings
from health_tracker.containers import AppContainer
from health_tracker.domain.entries import FoodEntry, RecordType
from health_tracker.domain.nutrition import NutritionFacts
from health_tracker.domain.recognition import RecognitionError
from health_tracker.services.persistence import (
    InlineDispatcher,
    KeyValueStore,
    PersistenceGateway,
)
from health_tracker.services.recognition import RecognitionProvider
from health_tracker.services.tracking import TrackingStore
from health_tracker.services.vision import VisionClient

NOON = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


@dataclass
class FixedClock:
    """Clock returning a settable instant."""

    now: datetime = NOON

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass
class FlakyKeyValueStore(KeyValueStore):
    """In-memory store whose reads or writes can be made to fail."""

    blobs: dict[str, bytes] = field(default_factory=dict)
    fail_writes: bool = False
    fail_reads: bool = False
    writes: list[str] = field(default_factory=list)

    def read(self, key: str) -> bytes | None:
        if self.fail_reads:
            raise RuntimeError("storage offline")
        return self.blobs.get(key)

    def write(self, key: str, data: bytes) -> None:
        self.writes.append(key)
        if self.fail_writes:
            raise RuntimeError("storage offline")
        self.blobs[key] = data


@dataclass
class StubRecognitionProvider(RecognitionProvider):
    """Returns canned candidates, or raises a canned error."""

    results: list[FoodEntry] = field(default_factory=list)
    error: RecognitionError | None = None
    calls: list[tuple[bytes, RecordType]] = field(default_factory=list)

    async def identify(
        self, image: bytes, *, record_type: RecordType = RecordType.PHOTO
    ) -> list[FoodEntry]:
        self.calls.append((image, record_type))
        if self.error is not None:
            raise self.error
        return [
            FoodEntry(
                name=entry.name,
                weight=entry.weight,
                portion=entry.portion,
                nutrition=entry.nutrition,
                record_type=record_type,
                confidence=entry.confidence,
            )
            for entry in self.results
        ]


@dataclass
class FakeVisionClient(VisionClient):
    """Vision client returning a fixed payload."""

    payload: dict[str, object] = field(default_factory=lambda: {"items": []})
    error: Exception | None = None
    requests: list[dict[str, object]] = field(default_factory=list)

    async def extract(
        self,
        *,
        model: str,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        self.requests.append({"model": model, "image_data_url": image_data_url})
        if self.error is not None:
            raise self.error
        return self.payload


def make_food(
    name: str = "apple",
    calories: float = 100.0,
    *,
    protein: float = 0.0,
    carbs: float = 0.0,
    fat: float = 0.0,
    timestamp: datetime = NOON,
    **kwargs: object,
) -> FoodEntry:
    return FoodEntry(
        name=name,
        weight=100.0,
        portion="1 serving",
        nutrition=NutritionFacts(
            calories=calories, protein=protein, carbs=carbs, fat=fat
        ),
        timestamp=timestamp,
        **{"record_type": RecordType.MANUAL, **kwargs},  # type: ignore[arg-type]
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def kv_store() -> FlakyKeyValueStore:
    return FlakyKeyValueStore()


@pytest.fixture
def gateway(kv_store: FlakyKeyValueStore) -> PersistenceGateway:
    return PersistenceGateway(kv_store)


@pytest.fixture
def store(gateway: PersistenceGateway, clock: FixedClock) -> TrackingStore:
    return TrackingStore(gateway, InlineDispatcher(), clock=clock)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        storage_backend="memory",
        recognition_provider="sample",
        recognition_delay_seconds=0,
        background_persistence=False,
    )


@pytest.fixture
def recognition_provider() -> StubRecognitionProvider:
    return StubRecognitionProvider(results=[make_food("banana", 89.0)])


@pytest.fixture
def container(
    settings: Settings,
    store: TrackingStore,
    recognition_provider: StubRecognitionProvider,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        gateway=store.gateway,
        dispatcher=store.dispatcher,
        store=store,
        recognition_provider=recognition_provider,
        close_resources=close_resources,
    )
