"""JSON document codecs for day logs, goals and body metrics."""

from datetime import date
from enum import Enum
from typing import TypeVar
from uuid import uuid4

from nutrition_analytics.domain.day_logs import DailyLog, DayGoals, MealEntry, MealSlot
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
from nutrition_analytics.domain.nutrients import NutrientVector, PortionUnit, to_grams

# Older documents stored macros as ``proteinGrams`` or under ``nutrition``.
E = TypeVar("E", bound=Enum)

_NUTRIENT_ALIASES = {
    "calories": ("calories", "kcal"),
    "protein": ("protein", "proteinGrams", "protein_g"),
    "carbs": ("carbs", "carbsGrams", "carbs_g"),
    "fat": ("fat", "fatGrams", "fat_g"),
}


def day_to_document(log: DailyLog) -> dict[str, object]:
    """Serialize a day log to its stored document shape."""
    return {
        "date": log.date_key,
        "meals": {
            slot.value: [_entry_to_document(entry) for entry in log.meals[slot]]
            for slot in MealSlot
        },
        "totals": log.totals.to_dict(),
        "goals": {"calories": log.goals.calories, "protein": log.goals.protein},
    }


def day_from_document(date_key: str, document: dict[str, object]) -> DailyLog:
    """Parse a stored document; totals are always recomputed from the entries.

    The row key is authoritative. Older documents carry a locale-formatted
    ``date`` field, which is ignored.
    """
    raw_meals = document.get("meals")
    meals: dict[MealSlot, list[MealEntry]] = {}
    for slot in MealSlot:
        items = raw_meals.get(slot.value) if isinstance(raw_meals, dict) else None
        meals[slot] = [
            _entry_from_document(item) for item in items or [] if isinstance(item, dict)
        ]
    raw_goals = document.get("goals")
    goals = raw_goals if isinstance(raw_goals, dict) else {}
    return DailyLog(
        date_key=date_key,
        meals=meals,
        goals=DayGoals(
            calories=_optional_float(goals.get("calories")),
            protein=_optional_float(goals.get("protein")),
        ),
    )


def nutrients_from_document(raw: object) -> NutrientVector:
    """Read a nutrient vector, accepting legacy key names."""
    if not isinstance(raw, dict):
        return NutrientVector()
    nested = raw.get("nutrition")
    if isinstance(nested, dict):
        raw = nested
    values = {}
    for field_name, aliases in _NUTRIENT_ALIASES.items():
        values[field_name] = next(
            (float(raw[alias]) for alias in aliases if raw.get(alias) is not None),
            0.0,
        )
    return NutrientVector(**values)


def goal_spec_to_document(spec: GoalSpec) -> dict[str, object]:
    return {
        "goalType": spec.goal_type.value if spec.goal_type else None,
        "activityLevel": spec.activity_level.value if spec.activity_level else None,
        "currentWeight": spec.current_weight_kg,
        "targetWeight": spec.target_weight_kg,
        "timeframe": spec.timeframe_weeks,
        "age": spec.age,
        "gender": spec.gender.value if spec.gender else None,
        "height": spec.height_cm,
    }


def goal_spec_from_document(document: dict[str, object]) -> GoalSpec:
    return GoalSpec(
        goal_type=_optional_enum(GoalType, document.get("goalType")),
        activity_level=_optional_enum(ActivityLevel, document.get("activityLevel")),
        current_weight_kg=_optional_float(document.get("currentWeight")),
        target_weight_kg=_optional_float(document.get("targetWeight")),
        timeframe_weeks=_optional_int(document.get("timeframe")),
        age=_optional_int(document.get("age")),
        gender=_optional_enum(Gender, document.get("gender")),
        height_cm=_optional_float(document.get("height")),
    )


def projection_to_document(projection: GoalProjection) -> dict[str, object]:
    timeline = projection.timeline
    return {
        "bmr": projection.bmr,
        "tdee": projection.tdee,
        "dailyCalorieTarget": projection.daily_calorie_target,
        "macros": {
            "protein": projection.macros.protein,
            "carbs": projection.macros.carbs,
            "fat": projection.macros.fat,
        },
        "mealDistribution": {
            slot.value: calories
            for slot, calories in projection.meal_distribution.items()
        },
        "timeline": {
            "weeklyWeightChange": timeline.weekly_weight_change_kg,
            "weeklyCalorieDelta": timeline.weekly_calorie_delta,
            "estimatedWeeks": timeline.estimated_weeks,
            "direction": timeline.direction.value,
        },
        "trajectory": [
            {"week": point.week, "weight": point.weight_kg}
            for point in projection.trajectory
        ],
    }


def projection_from_document(document: dict[str, object]) -> GoalProjection:
    macros = document.get("macros") or {}
    timeline = document.get("timeline") or {}
    distribution = document.get("mealDistribution") or {}
    return GoalProjection(
        bmr=float(document.get("bmr", 0.0)),
        tdee=float(document.get("tdee", 0.0)),
        daily_calorie_target=int(document.get("dailyCalorieTarget", 0)),
        macros=MacroTargets(
            protein=int(macros.get("protein", 0)),
            carbs=int(macros.get("carbs", 0)),
            fat=int(macros.get("fat", 0)),
        ),
        meal_distribution={
            MealSlot(slot): int(calories) for slot, calories in distribution.items()
        },
        timeline=GoalTimeline(
            weekly_weight_change_kg=float(timeline.get("weeklyWeightChange", 0.0)),
            weekly_calorie_delta=float(timeline.get("weeklyCalorieDelta", 0.0)),
            estimated_weeks=int(timeline.get("estimatedWeeks", 0)),
            direction=GoalType(timeline.get("direction", GoalType.MAINTAIN.value)),
        ),
        trajectory=[
            WeightPoint(week=int(point["week"]), weight_kg=float(point["weight"]))
            for point in document.get("trajectory") or []
        ],
    )


def body_metrics_to_document(snapshot: BodyMetricsSnapshot) -> dict[str, object]:
    return {
        "date": snapshot.captured_at.isoformat(),
        "weight": snapshot.weight_kg,
        "height": snapshot.height_cm,
        "bodyFat": snapshot.body_fat_pct,
    }


def body_metrics_from_document(document: dict[str, object]) -> BodyMetricsSnapshot:
    return BodyMetricsSnapshot(
        captured_at=date.fromisoformat(str(document["date"])),
        weight_kg=_optional_float(document.get("weight")),
        height_cm=_optional_float(document.get("height")),
        body_fat_pct=_optional_float(document.get("bodyFat")),
    )


def _entry_to_document(entry: MealEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "name": entry.name,
        "portion": entry.portion_amount,
        "unit": entry.portion_unit.value,
        "gramsPerPiece": entry.grams_per_piece,
        "nutrients": entry.nutrients.to_dict(),
        "nutrientsPerGram": entry.nutrients_per_gram.to_dict(),
    }


def _entry_from_document(raw: dict[str, object]) -> MealEntry:
    nutrients = nutrients_from_document(raw.get("nutrients") or raw)
    amount = float(raw.get("portion") or raw.get("quantity") or 100.0)
    unit = _optional_enum(PortionUnit, raw.get("unit")) or PortionUnit.GRAMS
    grams_per_piece = _optional_float(raw.get("gramsPerPiece"))
    if unit is PortionUnit.PIECES and not grams_per_piece:
        # pieces without a known weight were counted as grams
        unit, grams_per_piece = PortionUnit.GRAMS, None
    if raw.get("nutrientsPerGram") is not None:
        per_gram = nutrients_from_document(raw["nutrientsPerGram"])
    else:
        # derive the density from the stored portion when it was not saved
        per_gram = nutrients.scale(1 / to_grams(amount, unit, grams_per_piece))
    return MealEntry(
        id=str(raw.get("id") or uuid4().hex),
        name=str(raw.get("name") or ""),
        portion_amount=amount,
        portion_unit=unit,
        nutrients=nutrients,
        nutrients_per_gram=per_gram,
        grams_per_piece=grams_per_piece,
    )


def _optional_float(value: object) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def _optional_int(value: object) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def _optional_enum(enum_type: type[E], value: object) -> E | None:
    if value is None or value == "":
        return None
    return enum_type(value)
