"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_analytics.adapters.openai_food_client import OpenAIFoodClient
from nutrition_analytics.adapters.supabase_day_store import SupabaseDayStore
from nutrition_analytics.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from nutrition_analytics.config import Settings
from nutrition_analytics.services.analytics import AnalyticsService
from nutrition_analytics.services.body_metrics import BodyMetricsService
from nutrition_analytics.services.day_logs import DayLogService
from nutrition_analytics.services.food_recognition import FoodRecognitionService
from nutrition_analytics.services.goals import GoalService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    day_log_service: DayLogService
    analytics_service: AnalyticsService
    goal_service: GoalService
    body_metrics_service: BodyMetricsService
    food_recognition_service: FoodRecognitionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    day_store = SupabaseDayStore(supabase_client, table=resolved_settings.day_table)
    profile_repository = SupabaseProfileRepository(
        supabase_client,
        table=resolved_settings.profile_table,
        history_table=resolved_settings.body_metrics_history_table,
    )
    food_client = OpenAIFoodClient.create(
        api_key=resolved_settings.openai_api_key,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )

    async def close_resources() -> None:
        await food_client.close()

    return AppContainer(
        settings=resolved_settings,
        day_log_service=DayLogService(
            store=day_store, goal_repository=profile_repository
        ),
        analytics_service=AnalyticsService(
            store=day_store,
            streak_chunk_days=resolved_settings.history_fetch_chunk_days,
        ),
        goal_service=GoalService(profile_repository),
        body_metrics_service=BodyMetricsService(profile_repository),
        food_recognition_service=FoodRecognitionService(food_client),
        close_resources=close_resources,
    )
