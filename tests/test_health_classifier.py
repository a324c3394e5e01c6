"""
Unit tests for health level classification and trend.
"""
import pytest

from app.domain.models import HealthLevelName, TrendDirection
from app.services.domain.health_classifier import calculate_trend, classify_health


# ============================================================
# Health Level Tests
# ============================================================

class TestClassifyHealth:
    """Tests for score to health level mapping."""

    @pytest.mark.parametrize("score,level,color,icon", [
        (100, HealthLevelName.EXCELLENT, "#00D09C", "★"),
        (85, HealthLevelName.EXCELLENT, "#00D09C", "★"),
        (84, HealthLevelName.GOOD, "#4D9FFF", "✓"),
        (70, HealthLevelName.GOOD, "#4D9FFF", "✓"),
        (69, HealthLevelName.MODERATE, "#FFC857", "⚠"),
        (50, HealthLevelName.MODERATE, "#FFC857", "⚠"),
        (49, HealthLevelName.POOR, "#FF6B35", "⚠"),
        (30, HealthLevelName.POOR, "#FF6B35", "⚠"),
        (29, HealthLevelName.CRITICAL, "#FF3B30", "🚨"),
        (0, HealthLevelName.CRITICAL, "#FF3B30", "🚨"),
    ])
    def test_bands_inclusive_on_lower_bound(self, score, level, color, icon):
        result = classify_health(score)

        assert result.level == level
        assert result.color == color
        assert result.icon == icon


class TestTrend:
    """The trend is a placeholder until historical scores are stored."""

    def test_always_stable(self):
        trend = calculate_trend("zone_1", 42)

        assert trend.direction == TrendDirection.STABLE
        assert trend.change == 0
        assert trend.icon == "→"
