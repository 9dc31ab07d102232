"""Domain models for body metrics and goal projections."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from nutrition_analytics.domain.day_logs import MealSlot

BMI_UNDERWEIGHT = 18.5
BMI_NORMAL = 25.0
BMI_OVERWEIGHT = 30.0


class GoalType(str, Enum):
    LOSE = "lose"
    GAIN = "gain"
    MAINTAIN = "maintain"


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


@dataclass(frozen=True)
class BodyMetricsSnapshot:
    """Body measurements captured on a given day."""

    captured_at: date
    weight_kg: float | None = None
    height_cm: float | None = None
    body_fat_pct: float | None = None

    @property
    def bmi(self) -> float | None:
        """Body mass index derived from the current weight and height."""
        if not self.weight_kg or not self.height_cm:
            return None
        height_m = self.height_cm / 100
        return self.weight_kg / (height_m * height_m)

    @property
    def bmi_category(self) -> str | None:
        bmi = self.bmi
        if bmi is None:
            return None
        if bmi < BMI_UNDERWEIGHT:
            return "Underweight"
        if bmi < BMI_NORMAL:
            return "Normal"
        if bmi < BMI_OVERWEIGHT:
            return "Overweight"
        return "Obese"


@dataclass(frozen=True)
class GoalSpec:
    """User-chosen goal parameters; any field may still be missing."""

    goal_type: GoalType | None = None
    activity_level: ActivityLevel | None = None
    current_weight_kg: float | None = None
    target_weight_kg: float | None = None
    timeframe_weeks: int | None = None
    age: int | None = None
    gender: Gender | None = None
    height_cm: float | None = None


@dataclass(frozen=True)
class MacroTargets:
    """Daily macronutrient targets in grams."""

    protein: int
    carbs: int
    fat: int


@dataclass(frozen=True)
class GoalTimeline:
    """Weekly pace of the projected weight change."""

    weekly_weight_change_kg: float
    weekly_calorie_delta: float
    estimated_weeks: int
    direction: GoalType


@dataclass(frozen=True)
class WeightPoint:
    week: int
    weight_kg: float


@dataclass(frozen=True)
class GoalProjection:
    """Derived calorie target, macro split and weight timeline."""

    bmr: float
    tdee: float
    daily_calorie_target: int
    macros: MacroTargets
    meal_distribution: dict[MealSlot, int]
    timeline: GoalTimeline
    trajectory: list[WeightPoint] = field(default_factory=list)
