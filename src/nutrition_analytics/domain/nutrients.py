"""Nutrient vector value type and portion arithmetic."""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from nutrition_analytics.domain.errors import InvalidQuantity

GRAMS_PER_OUNCE = 28.35


class PortionUnit(str, Enum):
    """Units accepted for a logged portion."""

    GRAMS = "g"
    MILLILITERS = "ml"
    OUNCES = "oz"
    PIECES = "pcs"


@dataclass(frozen=True)
class NutrientVector:
    """Calories and macronutrients for a portion, day or period."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    def __post_init__(self) -> None:
        for name in ("calories", "protein", "carbs", "fat"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise InvalidQuantity(f"{name} must be finite and >= 0, got {value}")

    def __add__(self, other: "NutrientVector") -> "NutrientVector":
        return add(self, other)

    def scale(self, factor: float) -> "NutrientVector":
        """Return this vector multiplied by a factor."""
        return scale(self, factor)

    def rounded(self) -> "NutrientVector":
        """Return a presentation copy rounded to whole numbers."""
        return NutrientVector(
            calories=round_half_up(self.calories),
            protein=round_half_up(self.protein),
            carbs=round_half_up(self.carbs),
            fat=round_half_up(self.fat),
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
        }


ZERO = NutrientVector()


def add(a: NutrientVector, b: NutrientVector) -> NutrientVector:
    """Field-wise sum of two vectors."""
    return NutrientVector(
        calories=a.calories + b.calories,
        protein=a.protein + b.protein,
        carbs=a.carbs + b.carbs,
        fat=a.fat + b.fat,
    )


def scale(vector: NutrientVector, factor: float) -> NutrientVector:
    """Field-wise multiply by a non-negative finite factor."""
    if not isinstance(factor, int | float) or not math.isfinite(factor) or factor < 0:
        raise InvalidQuantity(f"Scale factor must be finite and >= 0, got {factor}")
    return NutrientVector(
        calories=vector.calories * factor,
        protein=vector.protein * factor,
        carbs=vector.carbs * factor,
        fat=vector.fat * factor,
    )


def sum_vectors(vectors: Iterable[NutrientVector]) -> NutrientVector:
    total = ZERO
    for vector in vectors:
        total = add(total, vector)
    return total


def to_grams(
    amount: float, unit: PortionUnit, grams_per_piece: float | None = None
) -> float:
    """Convert a portion amount to grams."""
    _require_positive(amount, "portion amount")
    if unit is PortionUnit.OUNCES:
        return amount * GRAMS_PER_OUNCE
    if unit is PortionUnit.PIECES:
        if grams_per_piece is None:
            raise InvalidQuantity("grams_per_piece is required for unit 'pcs'")
        _require_positive(grams_per_piece, "grams_per_piece")
        return amount * grams_per_piece
    return float(amount)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up."""
    return math.floor(value + 0.5)


def _require_positive(value: float, label: str) -> None:
    if not isinstance(value, int | float) or not math.isfinite(value) or value <= 0:
        raise InvalidQuantity(f"{label} must be a finite number > 0, got {value}")
