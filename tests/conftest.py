"""Shared test fixtures."""

import copy
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID, uuid4

import pytest

from nutrition_analytics.config import Settings
from nutrition_analytics.containers import AppContainer
from nutrition_analytics.domain.day_logs import DailyLog, DayGoals, MealEntry, MealSlot
from nutrition_analytics.domain.errors import StoreUnavailable
from nutrition_analytics.domain.goals import (
    ActivityLevel,
    BodyMetricsSnapshot,
    Gender,
    GoalProjection,
    GoalSpec,
    GoalType,
)
from nutrition_analytics.domain.nutrients import NutrientVector, PortionUnit
from nutrition_analytics.services.analytics import AnalyticsService
from nutrition_analytics.services.body_metrics import (
    BodyMetricsRepository,
    BodyMetricsService,
)
from nutrition_analytics.services.day_logs import DayLogService, DayStore
from nutrition_analytics.services.food_recognition import (
    FoodRecognitionClient,
    FoodRecognitionService,
)
from nutrition_analytics.services.goals import GoalRepository, GoalService


@dataclass
class InMemoryDayStore(DayStore):
    """In-memory day store for tests; stores copies like a document store."""

    documents: dict[tuple[UUID, str], DailyLog] = field(default_factory=dict)
    reads: list[str] = field(default_factory=list)

    async def get_day(self, user_id: UUID, date_key: str) -> DailyLog | None:
        self.reads.append(date_key)
        stored = self.documents.get((user_id, date_key))
        return copy.deepcopy(stored)

    async def set_day(self, user_id: UUID, date_key: str, log: DailyLog) -> None:
        self.documents[(user_id, date_key)] = copy.deepcopy(log)

    async def delete_day(self, user_id: UUID, date_key: str) -> bool:
        return self.documents.pop((user_id, date_key), None) is not None

    def put(self, user_id: UUID, log: DailyLog) -> None:
        self.documents[(user_id, log.date_key)] = copy.deepcopy(log)


@dataclass
class FailingDayStore(InMemoryDayStore):
    """Day store that fails reads for selected date keys."""

    failing_keys: set[str] = field(default_factory=set)
    error: type[Exception] = StoreUnavailable

    async def get_day(self, user_id: UUID, date_key: str) -> DailyLog | None:
        if date_key in self.failing_keys:
            raise self.error(f"read failed for {date_key}")
        return await super().get_day(user_id, date_key)


@dataclass
class InMemoryProfileRepository(GoalRepository, BodyMetricsRepository):
    """In-memory goals and body metrics repository for tests."""

    specs: dict[UUID, GoalSpec] = field(default_factory=dict)
    projections: dict[UUID, GoalProjection] = field(default_factory=dict)
    metrics: dict[UUID, BodyMetricsSnapshot] = field(default_factory=dict)
    history: dict[UUID, dict[date, BodyMetricsSnapshot]] = field(default_factory=dict)

    async def get_goal_spec(self, user_id: UUID) -> GoalSpec | None:
        return self.specs.get(user_id)

    async def get_goal_projection(self, user_id: UUID) -> GoalProjection | None:
        return self.projections.get(user_id)

    async def save_goal(
        self, user_id: UUID, spec: GoalSpec, projection: GoalProjection
    ) -> None:
        self.specs[user_id] = spec
        self.projections[user_id] = projection

    async def get_body_metrics(self, user_id: UUID) -> BodyMetricsSnapshot | None:
        return self.metrics.get(user_id)

    async def set_body_metrics(
        self, user_id: UUID, snapshot: BodyMetricsSnapshot
    ) -> None:
        self.metrics[user_id] = snapshot

    async def append_body_metrics_history(
        self, user_id: UUID, snapshot: BodyMetricsSnapshot
    ) -> None:
        self.history.setdefault(user_id, {})[snapshot.captured_at] = snapshot

    async def list_body_metrics_history(
        self, user_id: UUID, start: date, end: date
    ) -> list[BodyMetricsSnapshot]:
        items = self.history.get(user_id, {})
        return [items[day] for day in sorted(items) if start <= day <= end]


@dataclass
class FakeFoodRecognitionClient(FoodRecognitionClient):
    """Fake recognition client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "items": [
                {
                    "name": "Sambar Rice",
                    "portionGrams": 250,
                    "unit": "g",
                    "gramsPerPiece": None,
                    "nutrients": {
                        "calories": 300,
                        "proteinGrams": 8,
                        "carbsGrams": 55,
                        "fatGrams": 5,
                    },
                },
                {
                    "name": "Idli",
                    "portionGrams": 80,
                    "unit": "pcs",
                    "gramsPerPiece": 40,
                    "nutrients": {
                        "calories": 120,
                        "proteinGrams": 4,
                        "carbsGrams": 24,
                        "fatGrams": 0.4,
                    },
                },
            ]
        }
    )
    calls: list[dict[str, object]] = field(default_factory=list)

    async def recognize(
        self,
        *,
        prompt: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        self.calls.append({"prompt": prompt, "image_data_url": image_data_url})
        return self.payload


def maintain_spec(**overrides: object) -> GoalSpec:
    """70 kg, 175 cm, 25 year old male, moderately active, maintaining."""
    values: dict[str, object] = {
        "goal_type": GoalType.MAINTAIN,
        "activity_level": ActivityLevel.MODERATE,
        "current_weight_kg": 70.0,
        "target_weight_kg": 70.0,
        "timeframe_weeks": 12,
        "age": 25,
        "gender": Gender.MALE,
        "height_cm": 175.0,
    }
    values.update(overrides)
    return GoalSpec(**values)


def make_entry(
    name: str, calories: float, protein: float = 0.0, grams: float = 100.0
) -> MealEntry:
    """Entry for ``grams`` grams of a food with the given portion nutrients."""
    portion = NutrientVector(calories=calories, protein=protein)
    return MealEntry(
        id=uuid4().hex,
        name=name,
        portion_amount=grams,
        portion_unit=PortionUnit.GRAMS,
        nutrients=portion,
        nutrients_per_gram=portion.scale(1 / grams),
    )


def make_log(
    day: date,
    calories: float,
    protein: float = 0.0,
    goal: float | None = None,
    name: str = "Rice",
) -> DailyLog:
    """Day log with a single lunch entry carrying the given totals."""
    log = DailyLog.empty(day, goals=DayGoals(calories=goal))
    if calories or protein:
        log.add_entry(MealSlot.LUNCH, make_entry(name, calories, protein))
    return log


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        openai_api_key="openai-key",
    )


@pytest.fixture
def day_store() -> InMemoryDayStore:
    return InMemoryDayStore()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def recognition_client() -> FakeFoodRecognitionClient:
    return FakeFoodRecognitionClient()


@pytest.fixture
def container(
    settings: Settings,
    day_store: InMemoryDayStore,
    profile_repository: InMemoryProfileRepository,
    recognition_client: FakeFoodRecognitionClient,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        day_log_service=DayLogService(
            store=day_store, goal_repository=profile_repository
        ),
        analytics_service=AnalyticsService(store=day_store, streak_chunk_days=7),
        goal_service=GoalService(profile_repository),
        body_metrics_service=BodyMetricsService(profile_repository),
        food_recognition_service=FoodRecognitionService(recognition_client),
        close_resources=close_resources,
    )
