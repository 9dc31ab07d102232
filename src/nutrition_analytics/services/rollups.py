"""Rollups of day logs into period summaries."""

from collections.abc import Callable, Sequence
from datetime import date, timedelta

from nutrition_analytics.domain.analytics import (
    NO_DAY,
    DayPoint,
    MacroSplit,
    PeriodBucket,
    RollupSummary,
)
from nutrition_analytics.domain.day_logs import DailyLog
from nutrition_analytics.domain.nutrients import ZERO, round_half_up, sum_vectors
from nutrition_analytics.services.streaks import calorie_goal, is_on_track
from nutrition_analytics.services.variety import category_counts, logged_names

# Fallback goals for days logged without one, as used by the analytics views.
ANALYTICS_CALORIE_GOAL = 2800
ANALYTICS_PROTEIN_GOAL = 120
DAYS_PER_WEEK = 7

SEASONS = {
    12: "winter",
    1: "winter",
    2: "winter",
    3: "spring",
    4: "spring",
    5: "spring",
    6: "summer",
    7: "summer",
    8: "summer",
    9: "autumn",
    10: "autumn",
    11: "autumn",
}

DayRecord = tuple[date, DailyLog | None]


def day_deviation(
    log: DailyLog, fallback_goal: float = ANALYTICS_CALORIE_GOAL
) -> float:
    """Relative distance of the day's calories from its goal."""
    goal = calorie_goal(log, fallback_goal)
    return abs(log.totals.calories - goal) / goal


def day_score(log: DailyLog, fallback_goal: float = ANALYTICS_CALORIE_GOAL) -> float:
    """0-100 score; 100 means the calorie goal was hit exactly."""
    return max(0.0, 100 - day_deviation(log, fallback_goal) * 100)


def summarize(days: Sequence[DayRecord]) -> RollupSummary:
    """Summarize a window of days, given as (date, log or None) pairs."""
    if not days:
        raise ValueError("A rollup window needs at least one day")
    ordered = sorted(days, key=lambda record: record[0])
    present = [log for _, log in ordered if log is not None]
    valid = [log for log in present if log.is_valid]
    count = len(valid)

    totals = sum_vectors(log.totals for log in valid)
    averages = totals.scale(1 / count) if count else ZERO
    on_track = sum(1 for log in valid if is_on_track(log, ANALYTICS_CALORIE_GOAL))
    daily = [_day_point(day, log) for day, log in ordered]
    achievement = [point.calorie_goal_pct for point in daily if point.score is not None]

    return RollupSummary(
        start=ordered[0][0],
        end=ordered[-1][0],
        days_in_window=len(ordered),
        days_logged=len(present),
        valid_days=count,
        avg_calories=averages.calories,
        avg_protein=averages.protein,
        avg_carbs=averages.carbs,
        avg_fat=averages.fat,
        total_calories=totals.calories,
        total_protein=totals.protein,
        days_on_track=on_track,
        consistency_pct=round_half_up(on_track / max(count, 1) * 100),
        goal_achievement_pct=(
            round_half_up(sum(achievement) / len(achievement)) if achievement else 0
        ),
        best_day=_best_day(valid),
        worst_day=_worst_day(valid),
        improvement_pct=improvement_pct([day_score(log) for log in valid]),
        longest_streak=longest_streak(ordered),
        macro_split=macro_split(totals.carbs, totals.protein, totals.fat),
        category_counts=category_counts(logged_names(present)),
        daily=daily,
    )


def summarize_month(days: Sequence[DayRecord]) -> RollupSummary:
    """Summary with the window split into consecutive weeks."""
    summary = summarize(days)
    summary.buckets = week_buckets(days)
    return summary


def summarize_year(days: Sequence[DayRecord]) -> RollupSummary:
    """Summary with calendar month and season buckets."""
    summary = summarize(days)
    summary.buckets = month_buckets(days)
    summary.seasons = season_buckets(days)
    return summary


def longest_streak(days: Sequence[DayRecord]) -> int:
    """Longest run of consecutive calendar dates that are all valid."""
    longest = 0
    run = 0
    previous: date | None = None
    for day, log in sorted(days, key=lambda record: record[0]):
        contiguous = previous is not None and day - previous == timedelta(days=1)
        if log is not None and log.is_valid:
            run = run + 1 if contiguous else 1
        else:
            run = 0
        longest = max(longest, run)
        previous = day
    return longest


def improvement_pct(scores: Sequence[float]) -> int:
    """Percent change of the mean score from the first half to the second."""
    if len(scores) < 2:  # noqa: PLR2004
        return 0
    half = len(scores) // 2
    first = sum(scores[:half]) / half
    second = sum(scores[half:]) / (len(scores) - half)
    if first == 0:
        return 0 if second == 0 else 100
    return round_half_up((second - first) / first * 100)


def macro_split(carbs: float, protein: float, fat: float) -> MacroSplit:
    """Share of macro energy from carbs, protein and fat."""
    energy = carbs * 4 + protein * 4 + fat * 9
    if energy <= 0:
        return MacroSplit(carbs=0, protein=0, fat=0)
    return MacroSplit(
        carbs=round_half_up(carbs * 4 / energy * 100),
        protein=round_half_up(protein * 4 / energy * 100),
        fat=round_half_up(fat * 9 / energy * 100),
    )


def week_buckets(days: Sequence[DayRecord]) -> list[PeriodBucket]:
    ordered = sorted(days, key=lambda record: record[0])
    buckets = []
    for index in range(0, len(ordered), DAYS_PER_WEEK):
        chunk = ordered[index : index + DAYS_PER_WEEK]
        buckets.append(_bucket(f"Week {index // DAYS_PER_WEEK + 1}", chunk))
    return buckets


def month_buckets(days: Sequence[DayRecord]) -> list[PeriodBucket]:
    return _group(days, lambda day: f"{day.year}-{day.month:02d}")


def season_buckets(days: Sequence[DayRecord]) -> list[PeriodBucket]:
    return _group(days, _season_label)


def _season_label(day: date) -> str:
    # December opens the following year's winter.
    year = day.year + 1 if day.month == 12 else day.year  # noqa: PLR2004
    return f"{SEASONS[day.month]} {year}"


def _group(
    days: Sequence[DayRecord], label_for: Callable[[date], str]
) -> list[PeriodBucket]:
    groups: dict[str, list[DayRecord]] = {}
    for record in sorted(days, key=lambda item: item[0]):
        groups.setdefault(label_for(record[0]), []).append(record)
    return [_bucket(label, records) for label, records in groups.items()]


def _bucket(label: str, records: Sequence[DayRecord]) -> PeriodBucket:
    present = [log for _, log in records if log is not None]
    valid = [log for log in present if log.is_valid]
    totals = sum_vectors(log.totals for log in valid)
    count = len(valid)
    return PeriodBucket(
        label=label,
        start=records[0][0],
        end=records[-1][0],
        days_logged=len(present),
        valid_days=count,
        avg_calories=totals.calories / count if count else 0.0,
        avg_protein=totals.protein / count if count else 0.0,
    )


def _day_point(day: date, log: DailyLog | None) -> DayPoint:
    if log is None:
        return DayPoint(
            date_key=day.isoformat(),
            calories=0.0,
            protein=0.0,
            calorie_goal_pct=0,
            protein_goal_pct=0,
            score=None,
        )
    calorie_target = calorie_goal(log, ANALYTICS_CALORIE_GOAL)
    protein_target = log.goals.protein or ANALYTICS_PROTEIN_GOAL
    return DayPoint(
        date_key=log.date_key,
        calories=log.totals.calories,
        protein=log.totals.protein,
        calorie_goal_pct=round_half_up(log.totals.calories / calorie_target * 100),
        protein_goal_pct=round_half_up(log.totals.protein / protein_target * 100),
        score=day_score(log) if log.is_valid else None,
    )


def _best_day(valid: Sequence[DailyLog]) -> str:
    if not valid:
        return NO_DAY
    return min(valid, key=lambda log: (day_deviation(log), log.date_key)).date_key


def _worst_day(valid: Sequence[DailyLog]) -> str:
    if not valid:
        return NO_DAY
    return min(valid, key=lambda log: (-day_deviation(log), log.date_key)).date_key
