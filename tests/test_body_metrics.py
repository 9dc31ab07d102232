"""Tests for body metrics."""

import asyncio
from dataclasses import dataclass
from datetime import date
from uuid import UUID, uuid4

import pytest

from nutrition_analytics.domain.errors import StoreUnavailable
from nutrition_analytics.domain.goals import BodyMetricsSnapshot
from nutrition_analytics.services.body_metrics import BodyMetricsService
from tests.conftest import InMemoryProfileRepository


def test_bmi_is_derived_from_weight_and_height() -> None:
    snapshot = BodyMetricsSnapshot(
        captured_at=date(2024, 6, 1), weight_kg=70.0, height_cm=175.0
    )

    assert snapshot.bmi == pytest.approx(22.857, abs=1e-3)
    assert snapshot.bmi_category == "Normal"
    assert BodyMetricsSnapshot(captured_at=date(2024, 6, 1)).bmi is None


@pytest.mark.parametrize(
    ("weight", "category"),
    [(50.0, "Underweight"), (80.0, "Overweight"), (95.0, "Obese")],
)
def test_bmi_categories(weight: float, category: str) -> None:
    snapshot = BodyMetricsSnapshot(
        captured_at=date(2024, 6, 1), weight_kg=weight, height_cm=175.0
    )

    assert snapshot.bmi_category == category


def test_record_updates_current_and_history(
    profile_repository: InMemoryProfileRepository,
) -> None:
    user_id = uuid4()
    service = BodyMetricsService(profile_repository)
    first = BodyMetricsSnapshot(captured_at=date(2024, 5, 20), weight_kg=72.0)
    second = BodyMetricsSnapshot(captured_at=date(2024, 6, 10), weight_kg=70.5)

    asyncio.run(service.record(user_id, first))
    asyncio.run(service.record(user_id, second))

    assert asyncio.run(service.get_current(user_id, date(2024, 6, 15))) == second
    assert asyncio.run(
        service.weight_change(user_id, date(2024, 6, 15))
    ) == pytest.approx(-1.5)


def test_weight_change_needs_two_points(
    profile_repository: InMemoryProfileRepository,
) -> None:
    user_id = uuid4()
    service = BodyMetricsService(profile_repository)
    asyncio.run(
        service.record(
            user_id, BodyMetricsSnapshot(captured_at=date(2024, 6, 1), weight_kg=70.0)
        )
    )

    assert asyncio.run(service.weight_change(user_id, date(2024, 6, 15))) is None


def test_current_defaults_to_empty_snapshot(
    profile_repository: InMemoryProfileRepository,
) -> None:
    service = BodyMetricsService(profile_repository)

    current = asyncio.run(service.get_current(uuid4(), date(2024, 6, 15)))

    assert current == BodyMetricsSnapshot(captured_at=date(2024, 6, 15))


@dataclass
class FailingCurrentRepository(InMemoryProfileRepository):
    async def set_body_metrics(
        self, user_id: UUID, snapshot: BodyMetricsSnapshot
    ) -> None:
        raise StoreUnavailable("profiles unavailable")


def test_record_writes_history_before_current() -> None:
    user_id = uuid4()
    repository = FailingCurrentRepository()
    service = BodyMetricsService(repository)
    snapshot = BodyMetricsSnapshot(captured_at=date(2024, 6, 10), weight_kg=70.5)

    with pytest.raises(StoreUnavailable):
        asyncio.run(service.record(user_id, snapshot))

    assert repository.history[user_id] == {date(2024, 6, 10): snapshot}
    assert user_id not in repository.metrics
