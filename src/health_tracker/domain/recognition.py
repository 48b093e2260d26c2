"""Recognition errors and raw vision payload models."""

from enum import StrEnum

from pydantic import BaseModel, Field


class RecognitionErrorKind(StrEnum):
    IMAGE_PROCESSING_FAILED = "imageProcessingFailed"
    MODEL_LOADING_FAILED = "modelLoadingFailed"
    RECOGNITION_FAILED = "recognitionFailed"
    NO_FOOD_DETECTED = "noFoodDetected"


_MESSAGES = {
    RecognitionErrorKind.IMAGE_PROCESSING_FAILED: "Image processing failed",
    RecognitionErrorKind.MODEL_LOADING_FAILED: "Model loading failed",
    RecognitionErrorKind.RECOGNITION_FAILED: "Recognition failed",
    RecognitionErrorKind.NO_FOOD_DETECTED: "No food detected",
}


class RecognitionError(Exception):
    """Raised when a recognition provider cannot produce a result."""

    def __init__(self, kind: RecognitionErrorKind, detail: str | None = None):
        message = _MESSAGES[kind]
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.kind = kind
        self.detail = detail


class VisionItem(BaseModel):
    """Single detected food item from vision."""

    label: str
    confidence: float = Field(ge=0.0, le=1.0)
    estimated_grams_low: int | None = Field(default=None, ge=0)
    estimated_grams_high: int | None = Field(default=None, ge=0)


class VisionExtract(BaseModel):
    """Structured output for vision extraction."""

    items: list[VisionItem]
