"""Illustrative recognition provider drawing random foods from the catalog."""

import asyncio
import random
from dataclasses import dataclass, field

from health_tracker.domain.entries import FoodEntry, RecordType
from health_tracker.domain.recognition import RecognitionError, RecognitionErrorKind
from health_tracker.services.recognition import (
    FOOD_TABLE,
    RecognitionProvider,
    food_icon,
)

MIN_ITEMS = 1
MAX_ITEMS = 3
MIN_CONFIDENCE = 0.7
MAX_CONFIDENCE = 0.95
MIN_WEIGHT_G = 50.0
MAX_WEIGHT_G = 200.0


@dataclass
class SampleRecognitionProvider(RecognitionProvider):
    """Stand-in for a real model: no image understanding at all."""

    delay_seconds: float = 2.0
    rng: random.Random = field(default_factory=random.Random)

    async def identify(
        self, image: bytes, *, record_type: RecordType = RecordType.PHOTO
    ) -> list[FoodEntry]:
        """Return 1-3 random catalog foods after a simulated delay."""
        if not image:
            raise RecognitionError(
                RecognitionErrorKind.IMAGE_PROCESSING_FAILED, "empty image payload"
            )
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        names = sorted(FOOD_TABLE)
        count = self.rng.randint(MIN_ITEMS, MAX_ITEMS)
        results = []
        for _ in range(count):
            name = self.rng.choice(names)
            results.append(
                FoodEntry(
                    name=name,
                    emoji=food_icon(name),
                    weight=self.rng.uniform(MIN_WEIGHT_G, MAX_WEIGHT_G),
                    portion="1 serving",
                    nutrition=FOOD_TABLE[name],
                    record_type=record_type,
                    confidence=self.rng.uniform(MIN_CONFIDENCE, MAX_CONFIDENCE),
                )
            )
        return results
