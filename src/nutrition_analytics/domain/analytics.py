"""Domain models for analytics summaries."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

NO_DAY = "-"


class Timeframe(str, Enum):
    """Analytics windows selectable by the client."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class DayPoint:
    """Per-day chart values for a valid or empty day."""

    date_key: str
    calories: float
    protein: float
    calorie_goal_pct: int
    protein_goal_pct: int
    score: float | None


@dataclass(frozen=True)
class PeriodBucket:
    """Averages for a sub-period such as a week, month or season."""

    label: str
    start: date
    end: date
    days_logged: int
    valid_days: int
    avg_calories: float
    avg_protein: float


@dataclass(frozen=True)
class MacroSplit:
    """Share of macro energy in percent."""

    carbs: int
    protein: int
    fat: int


@dataclass
class RollupSummary:
    """Statistical summary over a window of day logs."""

    start: date
    end: date
    days_in_window: int
    days_logged: int
    valid_days: int
    avg_calories: float
    avg_protein: float
    avg_carbs: float
    avg_fat: float
    total_calories: float
    total_protein: float
    days_on_track: int
    consistency_pct: int
    goal_achievement_pct: int
    best_day: str
    worst_day: str
    improvement_pct: int
    longest_streak: int
    macro_split: MacroSplit
    category_counts: dict[str, int]
    daily: list[DayPoint] = field(default_factory=list)
    buckets: list[PeriodBucket] = field(default_factory=list)
    seasons: list[PeriodBucket] = field(default_factory=list)

    @property
    def no_data(self) -> bool:
        return self.valid_days == 0


@dataclass(frozen=True)
class StreakResult:
    """Current streak walking back from today."""

    current: int
    complete: bool
    window_consistency_pct: int = 0


@dataclass(frozen=True)
class VarietyReport:
    """Distinct foods, categories and heuristic health score."""

    unique_foods: int
    categories: int
    category_names: list[str]
    health_score_pct: int
    healthy_matches: int
    unhealthy_matches: int


@dataclass
class AnalyticsSummary:
    """View-ready summary for a requested timeframe."""

    timeframe: Timeframe
    anchor: date
    rollup: RollupSummary
    streak: StreakResult
    variety: VarietyReport
    degraded: bool = False
    failed_days: list[str] = field(default_factory=list)

    @property
    def no_data(self) -> bool:
        return self.rollup.no_data
