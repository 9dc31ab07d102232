"""Food variety, category and health heuristics."""

from collections.abc import Iterable

from nutrition_analytics.domain.analytics import VarietyReport
from nutrition_analytics.domain.day_logs import DailyLog
from nutrition_analytics.domain.nutrients import round_half_up

OTHER_CATEGORY = "other"

# Checked in order; the first category with a matching keyword wins.
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "grains": (
        "rice",
        "dosa",
        "idli",
        "uttapam",
        "upma",
        "pongal",
        "poha",
        "appam",
        "biryani",
        "pulao",
        "chapati",
        "roti",
        "paratha",
        "bread",
        "oats",
        "noodle",
        "pasta",
        "bath",
    ),
    "proteins": (
        "chicken",
        "mutton",
        "fish",
        "egg",
        "paneer",
        "dal",
        "rajma",
        "sundal",
        "chana",
        "prawn",
        "tofu",
        "meat",
    ),
    "vegetables": (
        "vegetable",
        "sambar",
        "rasam",
        "salad",
        "spinach",
        "palak",
        "sabzi",
        "stew",
        "curry",
    ),
    "snacks": (
        "chips",
        "murukku",
        "mixture",
        "bonda",
        "bajji",
        "vada",
        "vadai",
        "samosa",
        "fries",
        "doritos",
        "burger",
        "pizza",
    ),
    "sweets": (
        "chocolate",
        "cake",
        "ice cream",
        "kitkat",
        "snickers",
        "laddu",
        "halwa",
        "payasam",
        "kheer",
        "jalebi",
        "sweet",
    ),
    "beverages": (
        "tea",
        "coffee",
        "juice",
        "milk",
        "lassi",
        "buttermilk",
        "cola",
        "soda",
        "water",
    ),
}

HEALTHY_KEYWORDS = ("rice", "dal", "sambar", "rasam", "vegetable", "curry", "fish")
UNHEALTHY_KEYWORDS = ("chips", "burger", "pizza", "chocolate", "cake", "cola")


def categorize(name: str) -> str:
    """Return the food category for an item name."""
    lowered = name.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return category
    return OTHER_CATEGORY


def category_counts(names: Iterable[str]) -> dict[str, int]:
    """Count item occurrences per category."""
    counts: dict[str, int] = {}
    for name in names:
        category = categorize(name)
        counts[category] = counts.get(category, 0) + 1
    return counts


def analyze_names(names: Iterable[str]) -> VarietyReport:
    """Variety and health heuristics over logged item names."""
    unique = {name.strip().lower() for name in names if name.strip()}
    categories = {categorize(name) for name in unique}
    healthy = sum(1 for name in unique if _matches(name, HEALTHY_KEYWORDS))
    unhealthy = sum(1 for name in unique if _matches(name, UNHEALTHY_KEYWORDS))
    matched = healthy + unhealthy
    score = round_half_up(healthy / matched * 100) if matched else 0
    return VarietyReport(
        unique_foods=len(unique),
        categories=len(categories),
        category_names=sorted(categories),
        health_score_pct=score,
        healthy_matches=healthy,
        unhealthy_matches=unhealthy,
    )


def analyze_logs(logs: Iterable[DailyLog | None]) -> VarietyReport:
    return analyze_names(logged_names(logs))


def logged_names(logs: Iterable[DailyLog | None]) -> list[str]:
    """Every item name logged across the days, one per occurrence."""
    return [
        entry.name for log in logs if log is not None for entry in log.entries()
    ]


def _matches(name: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in name for keyword in keywords)
