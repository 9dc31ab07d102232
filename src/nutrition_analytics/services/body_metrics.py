"""Body metrics service."""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol
from uuid import UUID

from nutrition_analytics.domain.goals import BodyMetricsSnapshot


class BodyMetricsRepository(Protocol):
    """Persistence interface for current and historical body metrics."""

    async def get_body_metrics(self, user_id: UUID) -> BodyMetricsSnapshot | None:
        """Return the current snapshot, if any."""

    async def set_body_metrics(
        self, user_id: UUID, snapshot: BodyMetricsSnapshot
    ) -> None:
        """Replace the current snapshot."""

    async def append_body_metrics_history(
        self, user_id: UUID, snapshot: BodyMetricsSnapshot
    ) -> None:
        """Store the snapshot in the history keyed by its capture date."""

    async def list_body_metrics_history(
        self, user_id: UUID, start: date, end: date
    ) -> list[BodyMetricsSnapshot]:
        """Return history snapshots captured within [start, end], oldest first."""


@dataclass
class BodyMetricsService:
    """Service for recording body metrics and reading weight trends."""

    repository: BodyMetricsRepository

    async def find_current(self, user_id: UUID) -> BodyMetricsSnapshot | None:
        return await self.repository.get_body_metrics(user_id)

    async def get_current(self, user_id: UUID, today: date) -> BodyMetricsSnapshot:
        """Return the current snapshot or an empty default for today."""
        current = await self.find_current(user_id)
        return current or BodyMetricsSnapshot(captured_at=today)

    async def record(self, user_id: UUID, snapshot: BodyMetricsSnapshot) -> None:
        """Add the snapshot to the history, then make it the current one."""
        await self.repository.append_body_metrics_history(user_id, snapshot)
        await self.repository.set_body_metrics(user_id, snapshot)

    async def weight_change(
        self, user_id: UUID, today: date, days: int = 30
    ) -> float | None:
        """Weight change across the history window, newest minus oldest."""
        history = await self.repository.list_body_metrics_history(
            user_id, today - timedelta(days=days), today
        )
        weights = [item.weight_kg for item in history if item.weight_kg is not None]
        if len(weights) < 2:  # noqa: PLR2004
            return None
        return weights[-1] - weights[0]
