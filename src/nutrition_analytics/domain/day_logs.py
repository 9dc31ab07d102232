"""Domain models for per-day meal logs."""

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from uuid import uuid4

from nutrition_analytics.domain.errors import EntryNotFound
from nutrition_analytics.domain.nutrients import (
    ZERO,
    NutrientVector,
    PortionUnit,
    scale,
    sum_vectors,
    to_grams,
)


class MealSlot(str, Enum):
    """Meal slots a day is divided into."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACKS = "snacks"


@dataclass(frozen=True)
class MealEntry:
    """A single logged food item."""

    id: str
    name: str
    portion_amount: float
    portion_unit: PortionUnit
    nutrients: NutrientVector
    nutrients_per_gram: NutrientVector
    grams_per_piece: float | None = None

    @classmethod
    def from_density(  # noqa: PLR0913
        cls,
        name: str,
        nutrients_per_gram: NutrientVector,
        amount: float,
        unit: PortionUnit,
        grams_per_piece: float | None = None,
        entry_id: str | None = None,
    ) -> "MealEntry":
        """Build an entry whose nutrients are density times portion grams."""
        grams = to_grams(amount, unit, grams_per_piece)
        return cls(
            id=entry_id or uuid4().hex,
            name=name,
            portion_amount=amount,
            portion_unit=unit,
            grams_per_piece=grams_per_piece,
            nutrients=scale(nutrients_per_gram, grams),
            nutrients_per_gram=nutrients_per_gram,
        )

    @property
    def total_grams(self) -> float:
        return to_grams(self.portion_amount, self.portion_unit, self.grams_per_piece)

    def with_portion(self, amount: float, unit: PortionUnit) -> "MealEntry":
        """Return a copy rescaled from the stored per-gram density."""
        grams = to_grams(amount, unit, self.grams_per_piece)
        return replace(
            self,
            portion_amount=amount,
            portion_unit=unit,
            nutrients=scale(self.nutrients_per_gram, grams),
        )


@dataclass(frozen=True)
class DayGoals:
    """Per-day calorie and protein goals; unset values fall back per context."""

    calories: float | None = None
    protein: float | None = None


def _empty_meals() -> dict[MealSlot, list[MealEntry]]:
    return {slot: [] for slot in MealSlot}


@dataclass
class DailyLog:
    """One calendar day of meals with derived totals.

    ``totals`` is owned by the log: every mutation recomputes it from the
    entries, so callers never adjust it directly.
    """

    date_key: str
    meals: dict[MealSlot, list[MealEntry]] = field(default_factory=_empty_meals)
    goals: DayGoals = field(default_factory=DayGoals)
    totals: NutrientVector = ZERO

    def __post_init__(self) -> None:
        for slot in MealSlot:
            self.meals.setdefault(slot, [])
        self.recompute_totals()

    @classmethod
    def empty(cls, day: date, goals: DayGoals | None = None) -> "DailyLog":
        return cls(date_key=date_key(day), goals=goals or DayGoals())

    @property
    def day(self) -> date:
        return date.fromisoformat(self.date_key)

    @property
    def is_valid(self) -> bool:
        """A day counts for analytics when it has any logged calories."""
        return self.totals.calories > 0

    def entries(self) -> list[MealEntry]:
        return [entry for slot in MealSlot for entry in self.meals[slot]]

    def recompute_totals(self) -> NutrientVector:
        self.totals = sum_vectors(entry.nutrients for entry in self.entries())
        return self.totals

    def add_entry(self, slot: MealSlot, entry: MealEntry) -> None:
        self.meals[slot].append(entry)
        self.recompute_totals()

    def remove_entry(self, entry_id: str) -> MealEntry:
        slot, index = self._locate(entry_id)
        removed = self.meals[slot].pop(index)
        self.recompute_totals()
        return removed

    def update_entry(
        self, entry_id: str, amount: float, unit: PortionUnit
    ) -> MealEntry:
        slot, index = self._locate(entry_id)
        updated = self.meals[slot][index].with_portion(amount, unit)
        self.meals[slot][index] = updated
        self.recompute_totals()
        return updated

    def _locate(self, entry_id: str) -> tuple[MealSlot, int]:
        for slot in MealSlot:
            for index, entry in enumerate(self.meals[slot]):
                if entry.id == entry_id:
                    return slot, index
        raise EntryNotFound(entry_id)


def date_key(day: date) -> str:
    """Canonical ISO key for a calendar day."""
    return day.isoformat()
