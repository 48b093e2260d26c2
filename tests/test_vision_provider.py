"""Tests for the vision-backed recognition provider."""

import asyncio

import pytest

from health_tracker.domain.entries import RecordType
from health_tracker.domain.recognition import RecognitionError, RecognitionErrorKind
from health_tracker.services.recognition import FOOD_TABLE
from health_tracker.services.vision import VISION_SCHEMA, VisionRecognitionProvider
from tests.conftest import FakeVisionClient

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8


def test_labels_are_priced_from_catalog() -> None:
    client = FakeVisionClient(
        payload={
            "items": [
                {
                    "label": "Banana",
                    "confidence": 0.9,
                    "estimated_grams_low": 100,
                    "estimated_grams_high": 140,
                },
                {
                    "label": "dragon fruit",
                    "confidence": 0.4,
                    "estimated_grams_low": None,
                    "estimated_grams_high": None,
                },
            ]
        }
    )
    provider = VisionRecognitionProvider(client=client, model="vision-model")

    results = asyncio.run(provider.identify(PNG, record_type=RecordType.ALBUM))

    banana, unknown = results
    assert banana.name == "banana"
    assert banana.emoji == "🍌"
    assert banana.nutrition == FOOD_TABLE["banana"]
    assert banana.weight == 120
    assert banana.record_type == RecordType.ALBUM
    assert unknown.nutrition.calories == 0
    assert unknown.weight == 100
    assert client.requests[0]["image_data_url"].startswith("data:image/png;base64,")


def test_client_failure_maps_to_recognition_failed() -> None:
    provider = VisionRecognitionProvider(
        client=FakeVisionClient(error=RuntimeError("timeout")), model="m"
    )

    with pytest.raises(RecognitionError) as excinfo:
        asyncio.run(provider.identify(PNG))

    assert excinfo.value.kind == RecognitionErrorKind.RECOGNITION_FAILED
    assert "timeout" in str(excinfo.value)


def test_invalid_payload_maps_to_recognition_failed() -> None:
    provider = VisionRecognitionProvider(
        client=FakeVisionClient(payload={"items": [{"label": "x", "confidence": 3}]}),
        model="m",
    )

    with pytest.raises(RecognitionError) as excinfo:
        asyncio.run(provider.identify(PNG))

    assert excinfo.value.kind == RecognitionErrorKind.RECOGNITION_FAILED


def test_empty_image_is_rejected_before_calling_client() -> None:
    client = FakeVisionClient()
    provider = VisionRecognitionProvider(client=client, model="m")

    with pytest.raises(RecognitionError) as excinfo:
        asyncio.run(provider.identify(b""))

    assert excinfo.value.kind == RecognitionErrorKind.IMAGE_PROCESSING_FAILED
    assert client.requests == []


def test_schema_requests_only_fields_the_provider_reads() -> None:
    items = VISION_SCHEMA["properties"]["items"]["items"]  # type: ignore[index]

    assert set(items["properties"]) == {
        "label",
        "confidence",
        "estimated_grams_low",
        "estimated_grams_high",
    }
    assert set(items["required"]) == set(items["properties"])
