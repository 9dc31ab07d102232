"""Current streak and on-track consistency."""

from collections.abc import Iterable, Mapping
from datetime import date, timedelta

from nutrition_analytics.domain.analytics import StreakResult
from nutrition_analytics.domain.day_logs import DailyLog
from nutrition_analytics.domain.nutrients import round_half_up

ON_TRACK_TOLERANCE = 0.20
# Fallback goal for days logged without one, as shown on the dashboard.
DASHBOARD_CALORIE_GOAL = 2000
MAX_STREAK_DAYS = 365


def calorie_goal(log: DailyLog, fallback: float) -> float:
    return log.goals.calories or fallback


def is_on_track(log: DailyLog | None, fallback_goal: float) -> bool:
    """A valid day within the tolerance band around its calorie goal."""
    if log is None or not log.is_valid:
        return False
    goal = calorie_goal(log, fallback_goal)
    return abs(log.totals.calories - goal) <= goal * ON_TRACK_TOLERANCE


def current_streak(
    days: Mapping[date, DailyLog | None],
    today: date,
    fallback_goal: float = DASHBOARD_CALORIE_GOAL,
    max_days: int = MAX_STREAK_DAYS,
) -> StreakResult:
    """Count on-track days walking back from today.

    ``days`` maps every fetched date to its log (None when nothing is stored).
    When the walk reaches a date that was not fetched the result is returned
    with ``complete=False`` so the caller can fetch older days and retry.
    """
    streak = 0
    for offset in range(max_days):
        day = today - timedelta(days=offset)
        if day not in days:
            return StreakResult(current=streak, complete=False)
        log = days[day]
        if is_on_track(log, fallback_goal):
            streak += 1
            continue
        if offset == 0 and (log is None or not log.is_valid):
            # today may simply not be logged yet
            continue
        return StreakResult(current=streak, complete=True)
    return StreakResult(current=streak, complete=True)


def window_consistency_pct(
    logs: Iterable[DailyLog | None], fallback_goal: float = DASHBOARD_CALORIE_GOAL
) -> int:
    """Share of valid days that were on track, in percent."""
    valid = [log for log in logs if log is not None and log.is_valid]
    on_track = sum(1 for log in valid if is_on_track(log, fallback_goal))
    return round_half_up(on_track / max(len(valid), 1) * 100)
