"""Models for food recognition candidates."""

from pydantic import AliasChoices, BaseModel, Field, model_validator

from nutrition_analytics.domain.nutrients import NutrientVector, PortionUnit


class CandidateNutrients(BaseModel):
    """Nutrients reported for the candidate's whole portion."""

    calories: float = Field(default=0.0, ge=0.0)
    protein: float = Field(
        default=0.0, ge=0.0, validation_alias=AliasChoices("protein", "proteinGrams")
    )
    carbs: float = Field(
        default=0.0, ge=0.0, validation_alias=AliasChoices("carbs", "carbsGrams")
    )
    fat: float = Field(
        default=0.0, ge=0.0, validation_alias=AliasChoices("fat", "fatGrams")
    )

    def to_vector(self) -> NutrientVector:
        return NutrientVector(
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
        )


class FoodCandidate(BaseModel):
    """Single food item returned by the recognition service."""

    name: str = Field(validation_alias=AliasChoices("name", "foodName"))
    portion_grams: float = Field(
        gt=0.0, validation_alias=AliasChoices("portion_grams", "portionGrams")
    )
    unit: PortionUnit = PortionUnit.GRAMS
    grams_per_piece: float | None = Field(
        default=None,
        gt=0.0,
        validation_alias=AliasChoices("grams_per_piece", "gramsPerPiece"),
    )
    nutrients: CandidateNutrients

    @model_validator(mode="before")
    @classmethod
    def _lift_flat_nutrients(cls, data: object) -> object:
        """Accept nutrients given flat on the item or under ``nutrition``."""
        if not isinstance(data, dict) or "nutrients" in data:
            return data
        lifted = dict(data)
        nested = lifted.pop("nutrition", None)
        if isinstance(nested, dict):
            lifted["nutrients"] = nested
        else:
            lifted["nutrients"] = {
                key: lifted[key]
                for key in (
                    "calories",
                    "protein",
                    "proteinGrams",
                    "carbs",
                    "carbsGrams",
                    "fat",
                    "fatGrams",
                )
                if key in lifted
            }
        return lifted

    def nutrients_per_gram(self) -> NutrientVector:
        return self.nutrients.to_vector().scale(1 / self.portion_grams)


class RecognitionResult(BaseModel):
    """Structured output of a recognition call."""

    items: list[FoodCandidate]
