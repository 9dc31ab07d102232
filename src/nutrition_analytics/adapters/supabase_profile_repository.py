"""Supabase repository for goals and body metrics."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import TypeVar
from uuid import UUID

from supabase import Client

from nutrition_analytics.adapters.documents import (
    body_metrics_from_document,
    body_metrics_to_document,
    goal_spec_from_document,
    goal_spec_to_document,
    projection_from_document,
    projection_to_document,
)
from nutrition_analytics.domain.errors import StoreUnavailable
from nutrition_analytics.domain.goals import (
    BodyMetricsSnapshot,
    GoalProjection,
    GoalSpec,
)
from nutrition_analytics.services.body_metrics import BodyMetricsRepository
from nutrition_analytics.services.goals import GoalRepository

T = TypeVar("T")


@dataclass
class SupabaseProfileRepository(GoalRepository, BodyMetricsRepository):
    """Supabase implementation storing profile documents per user."""

    client: Client
    table: str = "profiles"
    history_table: str = "body_metrics_history"

    async def get_goal_spec(self, user_id: UUID) -> GoalSpec | None:
        document = await self._get_column(user_id, "goal_spec")
        return goal_spec_from_document(document) if document else None

    async def get_goal_projection(self, user_id: UUID) -> GoalProjection | None:
        document = await self._get_column(user_id, "goal_projection")
        return projection_from_document(document) if document else None

    async def save_goal(
        self, user_id: UUID, spec: GoalSpec, projection: GoalProjection
    ) -> None:
        """Write spec and projection in a single profile row upsert."""
        await self._set_columns(
            user_id,
            {
                "goal_spec": goal_spec_to_document(spec),
                "goal_projection": projection_to_document(projection),
            },
        )

    async def get_body_metrics(self, user_id: UUID) -> BodyMetricsSnapshot | None:
        document = await self._get_column(user_id, "body_metrics")
        return body_metrics_from_document(document) if document else None

    async def set_body_metrics(
        self, user_id: UUID, snapshot: BodyMetricsSnapshot
    ) -> None:
        await self._set_columns(
            user_id, {"body_metrics": body_metrics_to_document(snapshot)}
        )

    async def append_body_metrics_history(
        self, user_id: UUID, snapshot: BodyMetricsSnapshot
    ) -> None:
        """Upsert the history row for the snapshot's capture date."""

        def upsert() -> None:
            self.client.table(self.history_table).upsert(
                {
                    "user_id": str(user_id),
                    "captured_on": snapshot.captured_at.isoformat(),
                    "document": body_metrics_to_document(snapshot),
                },
                on_conflict="user_id,captured_on",
            ).execute()

        await _run(upsert)

    async def list_body_metrics_history(
        self, user_id: UUID, start: date, end: date
    ) -> list[BodyMetricsSnapshot]:
        """Return history snapshots captured within [start, end], oldest first."""
        response = await _run(
            lambda: self.client.table(self.history_table)
            .select("captured_on, document")
            .eq("user_id", str(user_id))
            .gte("captured_on", start.isoformat())
            .lte("captured_on", end.isoformat())
            .order("captured_on", desc=False)
            .execute()
        )
        return [
            body_metrics_from_document(row["document"])
            for row in response.data or []
            if isinstance(row.get("document"), dict)
        ]

    async def _get_column(self, user_id: UUID, column: str) -> dict | None:
        response = await _run(
            lambda: self.client.table(self.table)
            .select(column)
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        value = response.data[0].get(column)
        return value if isinstance(value, dict) else None

    async def _set_columns(
        self, user_id: UUID, documents: dict[str, dict[str, object]]
    ) -> None:
        row: dict[str, object] = {"user_id": str(user_id), **documents}
        row["updated_at"] = datetime.now(tz=UTC).isoformat()
        await _run(
            lambda: self.client.table(self.table)
            .upsert(row, on_conflict="user_id")
            .execute()
        )


async def _run(call: Callable[[], T]) -> T:
    try:
        return await asyncio.to_thread(call)
    except Exception as exc:
        raise StoreUnavailable(str(exc)) from exc
