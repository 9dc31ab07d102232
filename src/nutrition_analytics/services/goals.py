"""Goal projection: calorie target, macro split and weight timeline."""

import logging
from dataclasses import dataclass, replace
from typing import Protocol
from uuid import UUID

from nutrition_analytics.domain.day_logs import MealSlot
from nutrition_analytics.domain.errors import IncompleteGoalInput
from nutrition_analytics.domain.goals import (
    ActivityLevel,
    BodyMetricsSnapshot,
    Gender,
    GoalProjection,
    GoalSpec,
    GoalTimeline,
    GoalType,
    MacroTargets,
    WeightPoint,
)
from nutrition_analytics.domain.nutrients import round_half_up

KCAL_PER_KG = 7700
MIN_DAILY_CALORIES = 1200
TARGET_WEIGHT_RANGE_KG = (30, 200)
TIMEFRAME_RANGE_WEEKS = (4, 52)

ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

# (share of target calories, kcal per gram)
MACRO_RATIOS = {
    "protein": (0.25, 4),
    "fat": (0.30, 9),
    "carbs": (0.45, 4),
}

MEAL_SHARES = {
    MealSlot.BREAKFAST: 0.20,
    MealSlot.LUNCH: 0.30,
    MealSlot.DINNER: 0.35,
    MealSlot.SNACKS: 0.15,
}

_logger = logging.getLogger(__name__)


class GoalRepository(Protocol):
    """Persistence interface for goal inputs and projections."""

    async def get_goal_spec(self, user_id: UUID) -> GoalSpec | None:
        """Return the saved goal spec, if any."""

    async def get_goal_projection(self, user_id: UUID) -> GoalProjection | None:
        """Return the current goal projection, if any."""

    async def save_goal(
        self, user_id: UUID, spec: GoalSpec, projection: GoalProjection
    ) -> None:
        """Persist a spec with its projection in one write.

        The pair supersedes the previous one; a failed write leaves both as
        they were.
        """


def calculate_bmr(
    weight_kg: float, height_cm: float, age: int, gender: Gender
) -> float:
    """Basal metabolic rate in kcal/day."""
    if gender is Gender.MALE:
        return 88.362 + 13.397 * weight_kg + 4.799 * height_cm - 5.677 * age
    return 447.593 + 9.247 * weight_kg + 3.098 * height_cm - 4.330 * age


def calculate_tdee(bmr: float, activity_level: ActivityLevel) -> float:
    """Total daily energy expenditure for an activity level."""
    return bmr * ACTIVITY_MULTIPLIERS[activity_level]


def calculate_target_calories(
    tdee: float, current_weight_kg: float, target_weight_kg: float, weeks: int
) -> int:
    """Daily calorie target for reaching the target weight in the timeframe."""
    delta = target_weight_kg - current_weight_kg
    daily_delta = delta * KCAL_PER_KG / (weeks * 7)
    return round_half_up(max(tdee + daily_delta, MIN_DAILY_CALORIES))


def calculate_macros(target_calories: float) -> MacroTargets:
    grams = {
        name: round_half_up(target_calories * share / kcal_per_gram)
        for name, (share, kcal_per_gram) in MACRO_RATIOS.items()
    }
    return MacroTargets(
        protein=grams["protein"], carbs=grams["carbs"], fat=grams["fat"]
    )


def distribute_meals(target_calories: float) -> dict[MealSlot, int]:
    return {
        slot: round_half_up(target_calories * share)
        for slot, share in MEAL_SHARES.items()
    }


def build_timeline(
    goal_type: GoalType, current_weight_kg: float, target_weight_kg: float, weeks: int
) -> tuple[GoalTimeline, list[WeightPoint]]:
    """Weekly pace and the projected weight at the end of each week."""
    delta = target_weight_kg - current_weight_kg
    weekly_change = abs(delta) / weeks
    timeline = GoalTimeline(
        weekly_weight_change_kg=weekly_change,
        weekly_calorie_delta=weekly_change * KCAL_PER_KG,
        estimated_weeks=weeks,
        direction=goal_type,
    )
    step = delta / weeks
    trajectory = [
        WeightPoint(week=week, weight_kg=round(current_weight_kg + step * week, 2))
        for week in range(weeks + 1)
    ]
    return timeline, trajectory


def project_goal(spec: GoalSpec) -> GoalProjection:
    """Run the full projection pipeline for a complete goal spec.

    Raises:
        IncompleteGoalInput: when any input is missing or out of range.
    """
    validate_goal_spec(spec)
    bmr = calculate_bmr(spec.current_weight_kg, spec.height_cm, spec.age, spec.gender)
    tdee = calculate_tdee(bmr, spec.activity_level)
    target = calculate_target_calories(
        tdee, spec.current_weight_kg, spec.target_weight_kg, spec.timeframe_weeks
    )
    timeline, trajectory = build_timeline(
        spec.goal_type,
        spec.current_weight_kg,
        spec.target_weight_kg,
        spec.timeframe_weeks,
    )
    return GoalProjection(
        bmr=bmr,
        tdee=tdee,
        daily_calorie_target=target,
        macros=calculate_macros(target),
        meal_distribution=distribute_meals(target),
        timeline=timeline,
        trajectory=trajectory,
    )


def validate_goal_spec(spec: GoalSpec) -> None:
    """Raise IncompleteGoalInput naming every missing or out-of-range field."""
    invalid: list[str] = []
    for name in ("goal_type", "activity_level", "gender"):
        if getattr(spec, name) is None:
            invalid.append(name)
    for name in ("current_weight_kg", "height_cm", "age"):
        value = getattr(spec, name)
        if value is None or value <= 0:
            invalid.append(name)
    low, high = TARGET_WEIGHT_RANGE_KG
    if spec.target_weight_kg is None or not low <= spec.target_weight_kg <= high:
        invalid.append("target_weight_kg")
    low, high = TIMEFRAME_RANGE_WEEKS
    if spec.timeframe_weeks is None or not low <= spec.timeframe_weeks <= high:
        invalid.append("timeframe_weeks")
    if invalid:
        raise IncompleteGoalInput(invalid)


def merge_body_metrics(spec: GoalSpec, metrics: BodyMetricsSnapshot | None) -> GoalSpec:
    """Fill missing weight and height from the current body metrics."""
    if metrics is None:
        return spec
    return replace(
        spec,
        current_weight_kg=spec.current_weight_kg or metrics.weight_kg,
        height_cm=spec.height_cm or metrics.height_cm,
    )


@dataclass
class GoalService:
    """Service that validates, projects and persists goals."""

    repository: GoalRepository

    async def project(self, user_id: UUID, spec: GoalSpec) -> GoalProjection:
        """Project a new goal spec and persist it with its projection."""
        projection = project_goal(spec)
        await self.repository.save_goal(user_id, spec, projection)
        _logger.info(
            "Goal projected: user=%s target=%s weeks=%s",
            user_id,
            projection.daily_calorie_target,
            projection.timeline.estimated_weeks,
        )
        return projection

    async def project_saved(
        self, user_id: UUID, metrics: BodyMetricsSnapshot | None = None
    ) -> GoalProjection:
        """Recompute the projection from the saved spec and body metrics."""
        spec = await self.repository.get_goal_spec(user_id) or GoalSpec()
        return await self.project(user_id, merge_body_metrics(spec, metrics))

    async def get_projection(self, user_id: UUID) -> GoalProjection | None:
        return await self.repository.get_goal_projection(user_id)
