"""Day log service: read-modify-write of per-day meal logs."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol
from uuid import UUID

from nutrition_analytics.domain.day_logs import (
    DailyLog,
    DayGoals,
    MealEntry,
    MealSlot,
    date_key,
)
from nutrition_analytics.domain.nutrients import PortionUnit
from nutrition_analytics.domain.recognition import FoodCandidate
from nutrition_analytics.services.food_recognition import entry_from_candidate
from nutrition_analytics.services.goals import GoalRepository

_logger = logging.getLogger(__name__)


class DayStore(Protocol):
    """Per-user store of one day log document per ISO date key."""

    async def get_day(self, user_id: UUID, date_key: str) -> DailyLog | None:
        """Return the stored day log, or None when the date has no document."""

    async def set_day(self, user_id: UUID, date_key: str, log: DailyLog) -> None:
        """Persist the day log under the date key, replacing any previous one."""

    async def delete_day(self, user_id: UUID, date_key: str) -> bool:
        """Delete the document for a date key; return True if one existed."""


@dataclass
class DayLogService:
    """Service for logging meals against a calendar day."""

    store: DayStore
    goal_repository: GoalRepository | None = None

    async def get_day(self, user_id: UUID, day: date) -> DailyLog:
        """Return the day's log, or a fresh empty one when none is stored."""
        existing = await self.store.get_day(user_id, date_key(day))
        if existing is not None:
            return existing
        return DailyLog.empty(day, goals=await self._default_goals(user_id))

    async def add_entry(
        self, user_id: UUID, day: date, slot: MealSlot, entry: MealEntry
    ) -> DailyLog:
        log = await self.get_day(user_id, day)
        log.add_entry(slot, entry)
        await self._save(user_id, log)
        return log

    async def add_candidates(
        self,
        user_id: UUID,
        day: date,
        slot: MealSlot,
        candidates: list[FoodCandidate],
    ) -> DailyLog:
        """Log recognized candidates at their reported portions."""
        entries = [entry_from_candidate(candidate) for candidate in candidates]
        log = await self.get_day(user_id, day)
        for entry in entries:
            log.add_entry(slot, entry)
        await self._save(user_id, log)
        return log

    async def remove_entry(self, user_id: UUID, day: date, entry_id: str) -> DailyLog:
        log = await self.get_day(user_id, day)
        log.remove_entry(entry_id)
        await self._save(user_id, log)
        return log

    async def update_entry(
        self,
        user_id: UUID,
        day: date,
        entry_id: str,
        amount: float,
        unit: PortionUnit,
    ) -> DailyLog:
        log = await self.get_day(user_id, day)
        log.update_entry(entry_id, amount, unit)
        await self._save(user_id, log)
        return log

    async def set_goals(self, user_id: UUID, day: date, goals: DayGoals) -> DailyLog:
        log = await self.get_day(user_id, day)
        log.goals = goals
        await self._save(user_id, log)
        return log

    async def delete_day(self, user_id: UUID, day: date) -> bool:
        """Remove an entire day; administrative cleanup only."""
        deleted = await self.store.delete_day(user_id, date_key(day))
        _logger.info("Day delete: user=%s date=%s deleted=%s", user_id, day, deleted)
        return deleted

    async def cleanup_outside(
        self,
        user_id: UUID,
        keep_start: date,
        keep_end: date,
        today: date,
        lookback_days: int = 365,
    ) -> list[str]:
        """Delete stored days in the look-back range outside [keep_start, keep_end]."""
        keys = [
            date_key(today - timedelta(days=offset))
            for offset in range(lookback_days)
            if not keep_start <= today - timedelta(days=offset) <= keep_end
        ]
        results = await asyncio.gather(
            *(self.store.delete_day(user_id, key) for key in keys)
        )
        deleted = [key for key, existed in zip(keys, results, strict=True) if existed]
        _logger.info(
            "Day cleanup: user=%s checked=%s deleted=%s",
            user_id,
            len(keys),
            len(deleted),
        )
        return sorted(deleted)

    async def _default_goals(self, user_id: UUID) -> DayGoals:
        if self.goal_repository is None:
            return DayGoals()
        projection = await self.goal_repository.get_goal_projection(user_id)
        if projection is None:
            return DayGoals()
        return DayGoals(
            calories=projection.daily_calorie_target,
            protein=projection.macros.protein,
        )

    async def _save(self, user_id: UUID, log: DailyLog) -> None:
        await self.store.set_day(user_id, log.date_key, log)
