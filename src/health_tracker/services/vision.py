"""Recognition provider backed by an LLM vision client."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from health_tracker.domain.entries import FoodEntry, RecordType
from health_tracker.domain.nutrition import NutritionFacts
from health_tracker.domain.recognition import (
    RecognitionError,
    RecognitionErrorKind,
    VisionExtract,
    VisionItem,
)
from health_tracker.services.recognition import (
    RecognitionProvider,
    food_icon,
    lookup_nutrition,
)

DEFAULT_PORTION_G = 100.0

VISION_PROMPT = (
    "Identify food items in the image. "
    "Return each item with a short lowercase English label, confidence (0-1), "
    "and a rough estimated grams range if visible."
)

VISION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "label": {"type": "string"},
                    "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
                    "estimated_grams_low": {
                        "anyOf": [{"type": "integer", "minimum": 0}, {"type": "null"}]
                    },
                    "estimated_grams_high": {
                        "anyOf": [{"type": "integer", "minimum": 0}, {"type": "null"}]
                    },
                },
                "required": [
                    "label",
                    "confidence",
                    "estimated_grams_low",
                    "estimated_grams_high",
                ],
                "additionalProperties": False,
            },
        }
    },
    "required": ["items"],
    "additionalProperties": False,
}

_ZERO_NUTRITION = NutritionFacts(calories=0, protein=0, carbs=0, fat=0)

_logger = logging.getLogger(__name__)


class VisionClient(Protocol):
    """Interface for LLM vision extraction."""

    async def extract(
        self,
        *,
        model: str,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured vision extraction data."""


@dataclass
class VisionRecognitionProvider(RecognitionProvider):
    """Asks a vision model for labels and prices them from the food catalog."""

    client: VisionClient
    model: str

    async def identify(
        self, image: bytes, *, record_type: RecordType = RecordType.PHOTO
    ) -> list[FoodEntry]:
        """Identify foods in an image via the configured client."""
        if not image:
            raise RecognitionError(
                RecognitionErrorKind.IMAGE_PROCESSING_FAILED, "empty image payload"
            )
        try:
            raw = await self.client.extract(
                model=self.model,
                image_data_url=_to_data_url(image),
                schema=VISION_SCHEMA,
                prompt=VISION_PROMPT,
            )
        except Exception as exc:
            _logger.warning("Vision extraction failed: %s", exc)
            raise RecognitionError(
                RecognitionErrorKind.RECOGNITION_FAILED, str(exc)
            ) from exc
        try:
            extract = VisionExtract.model_validate(raw)
        except ValidationError as exc:
            raise RecognitionError(
                RecognitionErrorKind.RECOGNITION_FAILED, "invalid vision payload"
            ) from exc
        return [_to_entry(item, record_type) for item in extract.items]


def _to_entry(item: VisionItem, record_type: RecordType) -> FoodEntry:
    name = item.label.strip().lower()
    nutrition = lookup_nutrition(name)
    if nutrition is None:
        _logger.info("No catalog nutrition for %s", name)
        nutrition = _ZERO_NUTRITION
    return FoodEntry(
        name=name,
        emoji=food_icon(name),
        weight=_estimate_grams(item),
        portion="1 serving",
        nutrition=nutrition,
        record_type=record_type,
        confidence=item.confidence,
    )


def _estimate_grams(item: VisionItem) -> float:
    low = item.estimated_grams_low
    high = item.estimated_grams_high
    if low is not None and high is not None and high > 0:
        return (low + high) / 2
    if low is not None and low > 0:
        return float(low)
    if high is not None and high > 0:
        return float(high)
    return DEFAULT_PORTION_G


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
