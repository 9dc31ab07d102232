"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from nutrition_analytics.api.admin import router as admin_router
from nutrition_analytics.api.models import (
    BodyMetricsRequest,
    DayGoalsRequest,
    EntryRequest,
    GoalSpecRequest,
    PortionUpdate,
    RecognizeRequest,
)
from nutrition_analytics.app_logging import configure_logging
from nutrition_analytics.containers import AppContainer
from nutrition_analytics.domain.analytics import (
    AnalyticsSummary,
    PeriodBucket,
    Timeframe,
)
from nutrition_analytics.domain.day_logs import DailyLog, DayGoals, MealEntry, MealSlot
from nutrition_analytics.domain.errors import (
    EntryNotFound,
    IncompleteGoalInput,
    InvalidQuantity,
    StoreUnavailable,
)
from nutrition_analytics.domain.goals import BodyMetricsSnapshot, GoalProjection
from nutrition_analytics.domain.nutrients import round_half_up, to_grams
from nutrition_analytics.services.goals import merge_body_metrics


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(EntryNotFound)
    async def entry_not_found(_request: Request, exc: EntryNotFound) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": str(exc), "entry_id": exc.entry_id},
        )

    @app.exception_handler(IncompleteGoalInput)
    async def incomplete_goal(
        _request: Request, exc: IncompleteGoalInput
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc), "fields": exc.fields},
        )

    @app.exception_handler(InvalidQuantity)
    async def invalid_quantity(_request: Request, exc: InvalidQuantity) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable(
        request: Request, exc: StoreUnavailable
    ) -> JSONResponse:
        logger.error("Store unavailable: path=%s error=%s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Storage is temporarily unavailable"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/users/{user_id}/days/{date_key}")
    async def get_day(user_id: UUID, date_key: date, request: Request) -> dict:
        """Return the day log, empty when nothing is logged yet."""
        state_container: AppContainer = request.app.state.container
        log = await state_container.day_log_service.get_day(user_id, date_key)
        return _day_payload(log)

    @app.post("/users/{user_id}/days/{date_key}/entries")
    async def add_entry(
        user_id: UUID, date_key: date, payload: EntryRequest, request: Request
    ) -> dict:
        """Log a manually entered food item."""
        state_container: AppContainer = request.app.state.container
        grams = to_grams(payload.portion, payload.unit, payload.grams_per_piece)
        entry = MealEntry.from_density(
            name=payload.name,
            nutrients_per_gram=payload.nutrients.to_vector().scale(1 / grams),
            amount=payload.portion,
            unit=payload.unit,
            grams_per_piece=payload.grams_per_piece,
        )
        log = await state_container.day_log_service.add_entry(
            user_id, date_key, payload.slot, entry
        )
        return _day_payload(log)

    @app.post("/users/{user_id}/days/{date_key}/recognize")
    async def recognize(
        user_id: UUID, date_key: date, payload: RecognizeRequest, request: Request
    ) -> dict:
        """Recognize foods from a description or photo and log them."""
        state_container: AppContainer = request.app.state.container
        recognition = state_container.food_recognition_service
        if payload.image_base64:
            try:
                image_bytes = base64.b64decode(payload.image_base64, validate=True)
            except binascii.Error as exc:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="image_base64 is not valid base64",
                ) from exc
            candidates = await recognition.classify_image(
                image_bytes, correction=payload.correction
            )
        else:
            candidates = await recognition.classify_text(payload.description or "")
        logger.info(
            "Recognized foods: user=%s date=%s items=%s",
            user_id,
            date_key,
            len(candidates),
        )
        log = await state_container.day_log_service.add_candidates(
            user_id, date_key, payload.slot, candidates
        )
        return _day_payload(log)

    @app.patch("/users/{user_id}/days/{date_key}/entries/{entry_id}")
    async def update_entry(
        user_id: UUID,
        date_key: date,
        entry_id: str,
        payload: PortionUpdate,
        request: Request,
    ) -> dict:
        """Change an entry's portion; nutrients are rescaled from its density."""
        state_container: AppContainer = request.app.state.container
        log = await state_container.day_log_service.update_entry(
            user_id, date_key, entry_id, payload.portion, payload.unit
        )
        return _day_payload(log)

    @app.delete("/users/{user_id}/days/{date_key}/entries/{entry_id}")
    async def remove_entry(
        user_id: UUID, date_key: date, entry_id: str, request: Request
    ) -> dict:
        state_container: AppContainer = request.app.state.container
        log = await state_container.day_log_service.remove_entry(
            user_id, date_key, entry_id
        )
        return _day_payload(log)

    @app.put("/users/{user_id}/days/{date_key}/goals")
    async def set_day_goals(
        user_id: UUID, date_key: date, payload: DayGoalsRequest, request: Request
    ) -> dict:
        state_container: AppContainer = request.app.state.container
        log = await state_container.day_log_service.set_goals(
            user_id,
            date_key,
            DayGoals(calories=payload.calories, protein=payload.protein),
        )
        return _day_payload(log)

    @app.get("/users/{user_id}/analytics/{timeframe}")
    async def analytics(
        user_id: UUID,
        timeframe: Timeframe,
        request: Request,
        anchor: date | None = None,
    ) -> dict:
        """Return the rollup, streak and variety summary for a timeframe."""
        state_container: AppContainer = request.app.state.container
        summary = await state_container.analytics_service.summarize(
            user_id, timeframe, anchor or date.today()
        )
        return _summary_payload(summary)

    @app.get("/users/{user_id}/body-metrics")
    async def get_body_metrics(
        user_id: UUID, request: Request, today: date | None = None
    ) -> dict:
        state_container: AppContainer = request.app.state.container
        resolved_today = today or date.today()
        service = state_container.body_metrics_service
        snapshot = await service.get_current(user_id, resolved_today)
        change = await service.weight_change(user_id, resolved_today)
        return _body_metrics_payload(snapshot, change)

    @app.put("/users/{user_id}/body-metrics")
    async def record_body_metrics(
        user_id: UUID, payload: BodyMetricsRequest, request: Request
    ) -> dict:
        """Store the current snapshot and append it to the history."""
        state_container: AppContainer = request.app.state.container
        captured_at = payload.captured_at or date.today()
        snapshot = BodyMetricsSnapshot(
            captured_at=captured_at,
            weight_kg=payload.weight_kg,
            height_cm=payload.height_cm,
            body_fat_pct=payload.body_fat_pct,
        )
        service = state_container.body_metrics_service
        await service.record(user_id, snapshot)
        change = await service.weight_change(user_id, captured_at)
        return _body_metrics_payload(snapshot, change)

    @app.post("/users/{user_id}/goals/projection")
    async def project_goal(
        user_id: UUID, payload: GoalSpecRequest, request: Request
    ) -> dict:
        """Project and persist a goal from the request and current metrics."""
        state_container: AppContainer = request.app.state.container
        metrics = await state_container.body_metrics_service.find_current(user_id)
        spec = merge_body_metrics(payload.to_spec(), metrics)
        projection = await state_container.goal_service.project(user_id, spec)
        return _projection_payload(projection)

    @app.get("/users/{user_id}/goals/projection")
    async def get_goal_projection(user_id: UUID, request: Request) -> dict:
        state_container: AppContainer = request.app.state.container
        projection = await state_container.goal_service.get_projection(user_id)
        if projection is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _projection_payload(projection)

    return app


def _day_payload(log: DailyLog) -> dict[str, object]:
    """Presentation copy of a day log with rounded totals."""
    return {
        "date": log.date_key,
        "meals": {
            slot.value: [_entry_payload(entry) for entry in log.meals[slot]]
            for slot in MealSlot
        },
        "totals": log.totals.rounded().to_dict(),
        "goals": {"calories": log.goals.calories, "protein": log.goals.protein},
    }


def _entry_payload(entry: MealEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "name": entry.name,
        "portion": entry.portion_amount,
        "unit": entry.portion_unit.value,
        "gramsPerPiece": entry.grams_per_piece,
        "nutrients": entry.nutrients.rounded().to_dict(),
    }


def _summary_payload(summary: AnalyticsSummary) -> dict[str, object]:
    """Format an analytics summary with whole-number presentation values."""
    rollup = summary.rollup
    return {
        "timeframe": summary.timeframe.value,
        "anchor": summary.anchor.isoformat(),
        "noData": summary.no_data,
        "degraded": summary.degraded,
        "failedDays": summary.failed_days,
        "rollup": {
            "start": rollup.start.isoformat(),
            "end": rollup.end.isoformat(),
            "daysInWindow": rollup.days_in_window,
            "daysLogged": rollup.days_logged,
            "validDays": rollup.valid_days,
            "avgCalories": round_half_up(rollup.avg_calories),
            "avgProtein": round_half_up(rollup.avg_protein),
            "avgCarbs": round_half_up(rollup.avg_carbs),
            "avgFat": round_half_up(rollup.avg_fat),
            "totalCalories": round_half_up(rollup.total_calories),
            "totalProtein": round_half_up(rollup.total_protein),
            "daysOnTrack": rollup.days_on_track,
            "consistencyPct": rollup.consistency_pct,
            "goalAchievementPct": rollup.goal_achievement_pct,
            "bestDay": rollup.best_day,
            "worstDay": rollup.worst_day,
            "improvementPct": rollup.improvement_pct,
            "longestStreak": rollup.longest_streak,
            "macroSplitPct": {
                "carbs": rollup.macro_split.carbs,
                "protein": rollup.macro_split.protein,
                "fat": rollup.macro_split.fat,
            },
            "categoryCounts": rollup.category_counts,
            "daily": [
                {
                    "date": point.date_key,
                    "calories": round_half_up(point.calories),
                    "protein": round_half_up(point.protein),
                    "calorieGoalPct": point.calorie_goal_pct,
                    "proteinGoalPct": point.protein_goal_pct,
                    "score": (
                        round_half_up(point.score) if point.score is not None else None
                    ),
                }
                for point in rollup.daily
            ],
            "buckets": [_bucket_payload(bucket) for bucket in rollup.buckets],
            "seasons": [_bucket_payload(bucket) for bucket in rollup.seasons],
        },
        "streak": {
            "current": summary.streak.current,
            "consistencyPct": summary.streak.window_consistency_pct,
        },
        "variety": {
            "uniqueFoods": summary.variety.unique_foods,
            "categories": summary.variety.categories,
            "categoryNames": summary.variety.category_names,
            "healthScorePct": summary.variety.health_score_pct,
        },
    }


def _bucket_payload(bucket: PeriodBucket) -> dict[str, object]:
    return {
        "label": bucket.label,
        "start": bucket.start.isoformat(),
        "end": bucket.end.isoformat(),
        "daysLogged": bucket.days_logged,
        "validDays": bucket.valid_days,
        "avgCalories": round_half_up(bucket.avg_calories),
        "avgProtein": round_half_up(bucket.avg_protein),
    }


def _body_metrics_payload(
    snapshot: BodyMetricsSnapshot, weight_change: float | None
) -> dict[str, object]:
    bmi = snapshot.bmi
    return {
        "capturedAt": snapshot.captured_at.isoformat(),
        "weightKg": snapshot.weight_kg,
        "heightCm": snapshot.height_cm,
        "bodyFatPct": snapshot.body_fat_pct,
        "bmi": round(bmi, 1) if bmi is not None else None,
        "bmiCategory": snapshot.bmi_category,
        "weightChange30d": (
            round(weight_change, 1) if weight_change is not None else None
        ),
    }


def _projection_payload(projection: GoalProjection) -> dict[str, object]:
    timeline = projection.timeline
    return {
        "bmr": round_half_up(projection.bmr),
        "tdee": round_half_up(projection.tdee),
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
            "weeklyWeightChangeKg": round(timeline.weekly_weight_change_kg, 2),
            "weeklyCalorieDelta": round_half_up(timeline.weekly_calorie_delta),
            "estimatedWeeks": timeline.estimated_weeks,
            "direction": timeline.direction.value,
        },
        "trajectory": [
            {"week": point.week, "weightKg": point.weight_kg}
            for point in projection.trajectory
        ],
    }
