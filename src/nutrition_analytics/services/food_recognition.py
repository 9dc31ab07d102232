"""Food recognition service: classify images or text into meal entries."""

import base64
from dataclasses import dataclass
from typing import Protocol

from nutrition_analytics.domain.day_logs import MealEntry
from nutrition_analytics.domain.nutrients import PortionUnit
from nutrition_analytics.domain.recognition import FoodCandidate, RecognitionResult

RECOGNITION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "portionGrams": {"type": "number", "minimum": 0},
                    "unit": {"type": "string", "enum": ["g", "ml", "oz", "pcs"]},
                    "gramsPerPiece": {"anyOf": [{"type": "number"}, {"type": "null"}]},
                    "nutrients": {
                        "type": "object",
                        "properties": {
                            "calories": {"type": "number", "minimum": 0},
                            "proteinGrams": {"type": "number", "minimum": 0},
                            "carbsGrams": {"type": "number", "minimum": 0},
                            "fatGrams": {"type": "number", "minimum": 0},
                        },
                        "required": [
                            "calories",
                            "proteinGrams",
                            "carbsGrams",
                            "fatGrams",
                        ],
                        "additionalProperties": False,
                    },
                },
                "required": [
                    "name",
                    "portionGrams",
                    "unit",
                    "gramsPerPiece",
                    "nutrients",
                ],
                "additionalProperties": False,
            },
        }
    },
    "required": ["items"],
    "additionalProperties": False,
}

IMAGE_PROMPT = (
    "Identify every food item in the image. For each item return a short name, "
    "the visible portion in grams, a default unit, gramsPerPiece for countable "
    "foods, and calories, protein, carbs and fat for that whole portion."
)

REFINE_PROMPT = (
    IMAGE_PROMPT
    + " An earlier reading of this image was wrong and the user corrected it. "
    "Re-analyze the image, following the correction closely.\n"
    'User correction: "{correction}"'
)

TEXT_PROMPT = (
    "Extract one or more food items with estimated nutrition from this meal "
    "description. Convert volumes or pieces to grams when reasonable and include "
    "gramsPerPiece for countable foods. If ambiguous, choose the most common "
    "interpretation.\nDescription: {description}"
)


class FoodRecognitionClient(Protocol):
    """Interface for the external food recognition model."""

    async def recognize(
        self,
        *,
        prompt: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Return a raw ``{"items": [...]}`` payload."""


@dataclass
class FoodRecognitionService:
    """Service that prompts the recognizer and normalizes its candidates."""

    client: FoodRecognitionClient

    async def classify_image(
        self, image_bytes: bytes, correction: str | None = None
    ) -> list[FoodCandidate]:
        """Recognize food items in a photo.

        ``correction`` is the user's feedback on an earlier reading of the same
        photo; the image is analyzed again with it in the prompt.
        """
        prompt = IMAGE_PROMPT
        if correction and correction.strip():
            prompt = REFINE_PROMPT.format(correction=correction.strip())
        raw = await self.client.recognize(
            prompt=prompt,
            schema=RECOGNITION_SCHEMA,
            image_data_url=_to_data_url(image_bytes),
        )
        return RecognitionResult.model_validate(raw).items

    async def classify_text(self, description: str) -> list[FoodCandidate]:
        """Recognize food items in a free-text meal description."""
        if not description.strip():
            return []
        raw = await self.client.recognize(
            prompt=TEXT_PROMPT.format(description=description.strip()),
            schema=RECOGNITION_SCHEMA,
        )
        return RecognitionResult.model_validate(raw).items


def entry_from_candidate(
    candidate: FoodCandidate,
    amount: float | None = None,
    unit: PortionUnit | None = None,
) -> MealEntry:
    """Build a meal entry from a candidate, optionally at a user-chosen portion.

    The candidate's nutrients describe its whole reported portion, so the
    per-gram density is taken from that before any rescaling.
    """
    if amount is None:
        amount, unit = candidate.portion_grams, PortionUnit.GRAMS
    return MealEntry.from_density(
        name=candidate.name,
        nutrients_per_gram=candidate.nutrients_per_gram(),
        amount=amount,
        unit=unit or candidate.unit,
        grams_per_piece=candidate.grams_per_piece,
    )


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
