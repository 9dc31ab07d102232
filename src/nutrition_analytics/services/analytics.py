"""Analytics facade: fetch a window of day logs and summarize it."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from uuid import UUID

from nutrition_analytics.domain.analytics import (
    AnalyticsSummary,
    RollupSummary,
    StreakResult,
    Timeframe,
)
from nutrition_analytics.domain.day_logs import DailyLog, date_key
from nutrition_analytics.domain.errors import StoreUnavailable
from nutrition_analytics.services.day_logs import DayStore
from nutrition_analytics.services.rollups import (
    DayRecord,
    summarize,
    summarize_month,
    summarize_year,
)
from nutrition_analytics.services.streaks import (
    MAX_STREAK_DAYS,
    current_streak,
    window_consistency_pct,
)
from nutrition_analytics.services.variety import analyze_logs

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeframePlan:
    """Window length and rollup used for a timeframe."""

    days: int
    rollup: Callable[[Sequence[DayRecord]], RollupSummary]


TIMEFRAME_PLANS: dict[Timeframe, TimeframePlan] = {
    Timeframe.DAILY: TimeframePlan(days=1, rollup=summarize),
    Timeframe.WEEKLY: TimeframePlan(days=7, rollup=summarize),
    Timeframe.MONTHLY: TimeframePlan(days=30, rollup=summarize_month),
    Timeframe.YEARLY: TimeframePlan(days=365, rollup=summarize_year),
}


@dataclass
class _Snapshot:
    """Days fetched for one summary; each date is fetched at most once."""

    days: dict[date, DailyLog | None] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)


@dataclass
class AnalyticsService:
    """Builds view-ready analytics for a user and timeframe."""

    store: DayStore
    streak_chunk_days: int = 30

    async def summarize(
        self,
        user_id: UUID,
        timeframe: Timeframe,
        today: date,
        current: DailyLog | None = None,
    ) -> AnalyticsSummary:
        """Summarize the window ending today.

        ``current`` is the caller's in-progress log for its date; it replaces
        the stored copy of that day instead of being fetched.
        """
        plan = TIMEFRAME_PLANS[timeframe]
        window = [today - timedelta(days=offset) for offset in range(plan.days)]
        window.reverse()

        snapshot = _Snapshot()
        if current is not None:
            snapshot.days[current.day] = current
        await self._fetch(user_id, window, snapshot)
        streak = await self._streak(user_id, today, snapshot)

        records = [(day, snapshot.days[day]) for day in window]
        logs = [log for _, log in records]
        streak = replace(streak, window_consistency_pct=window_consistency_pct(logs))
        if snapshot.failed:
            _logger.warning(
                "Analytics degraded: user=%s timeframe=%s failed_days=%s",
                user_id,
                timeframe.value,
                len(snapshot.failed),
            )
        return AnalyticsSummary(
            timeframe=timeframe,
            anchor=today,
            rollup=plan.rollup(records),
            streak=streak,
            variety=analyze_logs(logs),
            degraded=bool(snapshot.failed),
            failed_days=sorted(snapshot.failed),
        )

    async def _streak(
        self, user_id: UUID, today: date, snapshot: _Snapshot
    ) -> StreakResult:
        """Walk the streak back, fetching older chunks only while it continues."""
        earliest = today - timedelta(days=MAX_STREAK_DAYS - 1)
        streak = current_streak(snapshot.days, today)
        while not streak.complete:
            # the walk stopped at the first date not fetched yet
            resume = today - timedelta(days=streak_walk_length(snapshot.days, today))
            chunk = [
                resume - timedelta(days=offset)
                for offset in range(self.streak_chunk_days)
                if resume - timedelta(days=offset) >= earliest
            ]
            await self._fetch(user_id, chunk, snapshot)
            streak = current_streak(snapshot.days, today)
        return streak

    async def _fetch(
        self, user_id: UUID, days: list[date], snapshot: _Snapshot
    ) -> None:
        """Fetch the missing days concurrently into the snapshot."""
        pending = [day for day in days if day not in snapshot.days]
        results = await asyncio.gather(
            *(self.store.get_day(user_id, date_key(day)) for day in pending),
            return_exceptions=True,
        )
        for day, result in zip(pending, results, strict=True):
            if isinstance(result, StoreUnavailable):
                snapshot.failed.append(date_key(day))
                snapshot.days[day] = None
                continue
            if isinstance(result, BaseException):
                raise result
            snapshot.days[day] = result


def streak_walk_length(days: dict[date, DailyLog | None], today: date) -> int:
    """Number of consecutive dates, from today backwards, already fetched."""
    offset = 0
    while today - timedelta(days=offset) in days:
        offset += 1
    return offset
