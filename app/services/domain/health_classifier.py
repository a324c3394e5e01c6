"""
Domain service: Health level classification and trend.
"""
from app.domain.models import HealthLevel, HealthLevelName, Trend, TrendDirection


# (inclusive lower bound, level, color, icon), checked top-down
HEALTH_BANDS: list[tuple[int, HealthLevelName, str, str]] = [
    (85, HealthLevelName.EXCELLENT, "#00D09C", "★"),
    (70, HealthLevelName.GOOD, "#4D9FFF", "✓"),
    (50, HealthLevelName.MODERATE, "#FFC857", "⚠"),
    (30, HealthLevelName.POOR, "#FF6B35", "⚠"),
]
CRITICAL_LEVEL = HealthLevel(level=HealthLevelName.CRITICAL, color="#FF3B30", icon="🚨")
UNKNOWN_LEVEL = HealthLevel(level=HealthLevelName.UNKNOWN, color="#808080", icon="❓")

STABLE_TREND = Trend(direction=TrendDirection.STABLE, change=0, icon="→")
UNKNOWN_TREND = Trend(direction=TrendDirection.UNKNOWN, change=0, icon="?")


def classify_health(score: float) -> HealthLevel:
    """
    Map an overall score onto a health level with display color and icon.

    Args:
        score: Overall zone score (0-100)

    Returns:
        HealthLevel for the band containing the score
    """
    for lower_bound, level, color, icon in HEALTH_BANDS:
        if score >= lower_bound:
            return HealthLevel(level=level, color=color, icon=icon)
    return CRITICAL_LEVEL.model_copy()


def calculate_trend(zone_id: str, current_score: float) -> Trend:
    """
    Trend of the zone score over time.

    Always stable: a real comparison needs persisted historical scores,
    which this service does not keep.
    """
    return STABLE_TREND.model_copy()
