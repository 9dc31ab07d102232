"""Tests for Supabase adapter implementations."""

import asyncio
from dataclasses import dataclass, field
from datetime import date
from uuid import uuid4

import pytest

from nutrition_analytics.adapters.supabase_day_store import SupabaseDayStore
from nutrition_analytics.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from nutrition_analytics.domain.day_logs import MealSlot
from nutrition_analytics.domain.errors import StoreUnavailable
from nutrition_analytics.domain.goals import BodyMetricsSnapshot
from nutrition_analytics.services.goals import project_goal
from nutrition_analytics.domain.nutrients import PortionUnit
from nutrition_analytics.services.day_logs import DayLogService
from tests.conftest import maintain_spec, make_entry, make_log


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "upsert": [], "delete": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_conflict: str | None = None
    fail: bool = False

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def upsert(  # type: ignore[no-untyped-def]
        self, payload, on_conflict: str = ""
    ) -> "FakeTable":
        self._action = "upsert"
        self.last_payload = payload
        self.last_conflict = on_conflict
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def lte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        if self.fail:
            raise ConnectionError("connection reset")
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_day_store_roundtrip() -> None:
    client = FakeSupabaseClient()
    table = client.table("daily_logs")
    store = SupabaseDayStore(client)
    user_id = uuid4()
    log = make_log(date(2024, 6, 1), 450, protein=12, name="Masala Dosa")

    asyncio.run(store.set_day(user_id, log.date_key, log))
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["date_key"] == "2024-06-01"
    assert table.last_conflict == "user_id,date_key"

    document = table.last_payload["document"]
    table.queue("select", [{"date_key": "2024-06-01", "document": document}])
    fetched = asyncio.run(store.get_day(user_id, "2024-06-01"))

    assert fetched is not None
    assert fetched.totals.calories == pytest.approx(450)
    assert fetched.meals[MealSlot.LUNCH][0].name == "Masala Dosa"
    assert ("user_id", str(user_id)) in table.last_filters


def test_day_store_missing_day() -> None:
    store = SupabaseDayStore(FakeSupabaseClient())

    assert asyncio.run(store.get_day(uuid4(), "2024-06-01")) is None


def test_day_store_normalizes_legacy_documents() -> None:
    client = FakeSupabaseClient()
    client.table("daily_logs").queue(
        "select",
        [
            {
                "date_key": "2024-06-01",
                "document": {
                    "date": "2024-06-01",
                    "meals": {
                        "breakfast": [
                            {
                                "id": "a1",
                                "name": "Idli",
                                "portion": 2,
                                "unit": "pcs",
                                "gramsPerPiece": 40,
                                "nutrition": {"calories": 120, "proteinGrams": 4},
                            }
                        ]
                    },
                    "totals": {"calories": 9999},
                },
            }
        ],
    )
    store = SupabaseDayStore(client)

    log = asyncio.run(store.get_day(uuid4(), "2024-06-01"))

    assert log is not None
    assert log.totals.calories == pytest.approx(120)
    entry = log.meals[MealSlot.BREAKFAST][0]
    assert entry.nutrients.protein == pytest.approx(4)
    assert entry.nutrients_per_gram.calories == pytest.approx(1.5)


def test_day_store_delete_reports_existing() -> None:
    client = FakeSupabaseClient()
    client.table("daily_logs").queue("delete", [{"date_key": "2024-06-01"}])
    store = SupabaseDayStore(client)

    assert asyncio.run(store.delete_day(uuid4(), "2024-06-01")) is True
    assert asyncio.run(store.delete_day(uuid4(), "2024-06-01")) is False


def test_day_store_errors_become_store_unavailable() -> None:
    client = FakeSupabaseClient()
    client.table("daily_logs").fail = True
    store = SupabaseDayStore(client)

    with pytest.raises(StoreUnavailable):
        asyncio.run(store.get_day(uuid4(), "2024-06-01"))


def test_profile_repository_saves_goal_in_one_write() -> None:
    client = FakeSupabaseClient()
    profiles = client.table("profiles")
    repository = SupabaseProfileRepository(client)
    user_id = uuid4()
    spec = maintain_spec()
    projection = project_goal(spec)

    asyncio.run(repository.save_goal(user_id, spec, projection))
    stored = profiles.last_payload
    assert isinstance(stored, dict)
    assert profiles.last_conflict == "user_id"
    assert stored["user_id"] == str(user_id)
    assert {"goal_spec", "goal_projection", "updated_at"} <= set(stored)

    profiles.queue("select", [{"goal_spec": stored["goal_spec"]}])
    profiles.queue("select", [{"goal_projection": stored["goal_projection"]}])

    assert asyncio.run(repository.get_goal_spec(user_id)) == spec
    assert asyncio.run(repository.get_goal_projection(user_id)) == projection
    assert asyncio.run(repository.get_goal_spec(user_id)) is None


def test_profile_repository_failed_goal_write_is_store_unavailable() -> None:
    client = FakeSupabaseClient()
    client.table("profiles").fail = True
    repository = SupabaseProfileRepository(client)
    spec = maintain_spec()

    with pytest.raises(StoreUnavailable):
        asyncio.run(repository.save_goal(uuid4(), spec, project_goal(spec)))


def test_profile_repository_body_metrics_history() -> None:
    client = FakeSupabaseClient()
    history = client.table("body_metrics_history")
    repository = SupabaseProfileRepository(client)
    user_id = uuid4()
    snapshot = BodyMetricsSnapshot(
        captured_at=date(2024, 6, 1), weight_kg=71.2, height_cm=175.0
    )

    asyncio.run(repository.append_body_metrics_history(user_id, snapshot))
    assert history.last_conflict == "user_id,captured_on"

    history.queue(
        "select",
        [{"captured_on": "2024-06-01", "document": history.last_payload["document"]}],
    )
    items = asyncio.run(
        repository.list_body_metrics_history(
            user_id, date(2024, 5, 1), date(2024, 6, 30)
        )
    )

    assert items == [snapshot]
    assert ("captured_on", "2024-05-01") in history.last_filters


def test_day_store_uses_row_key_over_document_date() -> None:
    client = FakeSupabaseClient()
    table = client.table("daily_logs")
    document = {
        "date": "6/15/2024",
        "meals": {
            "lunch": [
                {"name": "Rice", "portion": 200, "nutrients": {"calories": 260}}
            ]
        },
    }
    table.queue("select", [{"date_key": "2024-06-15", "document": document}])
    service = DayLogService(SupabaseDayStore(client))

    log = asyncio.run(
        service.add_entry(
            uuid4(), date(2024, 6, 15), MealSlot.DINNER, make_entry("Dal", 180)
        )
    )

    assert log.date_key == "2024-06-15"
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["date_key"] == "2024-06-15"
    assert table.last_payload["document"]["date"] == "2024-06-15"


def test_day_store_reads_pieces_without_weight_as_grams() -> None:
    client = FakeSupabaseClient()
    document = {
        "meals": {
            "breakfast": [
                {
                    "name": "Idli",
                    "portion": 2,
                    "unit": "pcs",
                    "nutrients": {"calories": 120},
                }
            ]
        }
    }
    client.table("daily_logs").queue(
        "select", [{"date_key": "2024-06-15", "document": document}]
    )

    log = asyncio.run(SupabaseDayStore(client).get_day(uuid4(), "2024-06-15"))

    assert log is not None
    entry = log.meals[MealSlot.BREAKFAST][0]
    assert entry.portion_unit is PortionUnit.GRAMS
    assert entry.nutrients_per_gram.calories == pytest.approx(60)
    assert log.totals.calories == pytest.approx(120)


def test_day_store_unreadable_document_is_store_unavailable() -> None:
    client = FakeSupabaseClient()
    document = {
        "meals": {
            "lunch": [
                {
                    "name": "Tea",
                    "portion": 1,
                    "unit": "cup",
                    "nutrients": {"calories": 30},
                }
            ]
        }
    }
    client.table("daily_logs").queue(
        "select", [{"date_key": "2024-06-15", "document": document}]
    )

    with pytest.raises(StoreUnavailable):
        asyncio.run(SupabaseDayStore(client).get_day(uuid4(), "2024-06-15"))
