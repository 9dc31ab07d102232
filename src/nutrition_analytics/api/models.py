"""Request models for the HTTP API."""

from datetime import date

from pydantic import BaseModel, Field, model_validator

from nutrition_analytics.domain.day_logs import MealSlot
from nutrition_analytics.domain.goals import ActivityLevel, Gender, GoalSpec, GoalType
from nutrition_analytics.domain.nutrients import PortionUnit
from nutrition_analytics.domain.recognition import CandidateNutrients


class EntryRequest(BaseModel):
    """Manually entered food item; nutrients describe the whole portion."""

    slot: MealSlot
    name: str = Field(min_length=1)
    portion: float = Field(gt=0)
    unit: PortionUnit = PortionUnit.GRAMS
    grams_per_piece: float | None = Field(default=None, gt=0)
    nutrients: CandidateNutrients


class RecognizeRequest(BaseModel):
    """Meal description or base64 photo to recognize and log.

    ``correction`` re-reads a photo with the user's feedback on an earlier result.
    """

    slot: MealSlot
    description: str | None = None
    image_base64: str | None = None
    correction: str | None = None

    @model_validator(mode="after")
    def _require_input(self) -> "RecognizeRequest":
        if not self.description and not self.image_base64:
            raise ValueError("Provide a description or an image")
        if self.correction and not self.image_base64:
            raise ValueError("A correction needs the image it refers to")
        return self


class PortionUpdate(BaseModel):
    portion: float = Field(gt=0)
    unit: PortionUnit = PortionUnit.GRAMS


class DayGoalsRequest(BaseModel):
    calories: float | None = Field(default=None, gt=0)
    protein: float | None = Field(default=None, gt=0)


class BodyMetricsRequest(BaseModel):
    captured_at: date | None = None
    weight_kg: float | None = Field(default=None, gt=0)
    height_cm: float | None = Field(default=None, gt=0)
    body_fat_pct: float | None = Field(default=None, ge=0, le=100)


class GoalSpecRequest(BaseModel):
    """Goal inputs; weight and height fall back to the current body metrics."""

    goal_type: GoalType | None = None
    activity_level: ActivityLevel | None = None
    current_weight_kg: float | None = None
    target_weight_kg: float | None = None
    timeframe_weeks: int | None = None
    age: int | None = None
    gender: Gender | None = None
    height_cm: float | None = None

    def to_spec(self) -> GoalSpec:
        return GoalSpec(**self.model_dump())


class CleanupRequest(BaseModel):
    keep_start: date
    keep_end: date
    today: date | None = None

    @model_validator(mode="after")
    def _ordered(self) -> "CleanupRequest":
        if self.keep_start > self.keep_end:
            raise ValueError("keep_start must not be after keep_end")
        return self
