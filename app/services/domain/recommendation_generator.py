"""
Domain service: Actionable recommendations from the factor scores.

Recommendations are emitted in a fixed precedence:

1. Photo analysis recommendations, verbatim
2. Crop vigor (score < 70)
3. Weather stress (score < 60)
4. Irrigation (soil moisture score < 60)
5. Disease control, one per reported disease (score < 70)
6. Growth stage review (score < 70)
"""
from typing import Optional

from app.domain.models import (
    DiseaseRiskLevel,
    HealthBreakdown,
    Priority,
    Recommendation,
    RecommendationCategory,
    Timing,
    VisionAnalysis,
)

VISION_SOURCE = "AI Vision"
ENGINE_SOURCE = "Zone Health Engine"

VIGOR_THRESHOLD = 70
VIGOR_HIGH_PRIORITY_THRESHOLD = 50
WEATHER_THRESHOLD = 60
SOIL_THRESHOLD = 60
DISEASE_THRESHOLD = 70
GROWTH_STAGE_THRESHOLD = 70

VIGOR_FALLBACK_ACTION = "Investigate low vegetation index."
WEATHER_FALLBACK_ACTION = "Protect the crop from temperature stress."
IRRIGATION_FALLBACK_ACTION = "Check soil moisture and adjust irrigation."
GROWTH_STAGE_ACTION = "Conditions not optimal for current growth stage. Review critical factors."


def generate_recommendations(
    breakdown: HealthBreakdown,
    vision: Optional[VisionAnalysis] = None,
) -> list[Recommendation]:
    """
    Build the ordered recommendation list for a zone.

    Args:
        breakdown: The five factor scores
        vision: Optional photo analysis for the zone

    Returns:
        Recommendations in precedence order
    """
    recommendations: list[Recommendation] = []

    if vision is not None:
        for action in vision.recommendations:
            recommendations.append(Recommendation(
                priority=Priority.HIGH,
                category=RecommendationCategory.PHOTO_ANALYSIS,
                action=action,
                timing=Timing.IMMEDIATE,
                source=VISION_SOURCE,
            ))

    vigor = breakdown.vigor
    if vigor.score < VIGOR_THRESHOLD:
        recommendations.append(Recommendation(
            priority=Priority.HIGH if vigor.score < VIGOR_HIGH_PRIORITY_THRESHOLD else Priority.MODERATE,
            category=RecommendationCategory.CROP_VIGOR,
            action=vigor.factors[0] if vigor.factors else VIGOR_FALLBACK_ACTION,
            timing=Timing.IMMEDIATE,
            source=ENGINE_SOURCE,
        ))

    weather = breakdown.weather_stress
    if weather.score < WEATHER_THRESHOLD:
        recommendations.append(Recommendation(
            priority=Priority.HIGH,
            category=RecommendationCategory.WEATHER_STRESS,
            action=weather.recommendation or WEATHER_FALLBACK_ACTION,
            timing=Timing.IMMEDIATE,
            source=ENGINE_SOURCE,
        ))

    soil = breakdown.soil_moisture
    if soil.score < SOIL_THRESHOLD:
        recommendations.append(Recommendation(
            priority=Priority.URGENT,
            category=RecommendationCategory.IRRIGATION,
            action=soil.recommendation or IRRIGATION_FALLBACK_ACTION,
            timing=Timing.IMMEDIATE,
            source=ENGINE_SOURCE,
        ))

    disease = breakdown.disease_risk
    if disease.score < DISEASE_THRESHOLD and disease.diseases:
        for finding in disease.diseases:
            very_high = finding.level == DiseaseRiskLevel.VERY_HIGH
            recommendations.append(Recommendation(
                priority=Priority.URGENT if very_high else Priority.HIGH,
                category=RecommendationCategory.DISEASE_CONTROL,
                action=f"{finding.name}: {', '.join(finding.control_measures)}",
                timing=Timing.IMMEDIATE if very_high else Timing.NEXT_24_HOURS,
                source=ENGINE_SOURCE,
            ))

    if breakdown.growth_stage.score < GROWTH_STAGE_THRESHOLD:
        recommendations.append(Recommendation(
            priority=Priority.MODERATE,
            category=RecommendationCategory.GROWTH_STAGE,
            action=GROWTH_STAGE_ACTION,
            timing=Timing.NEXT_48_HOURS,
            source=ENGINE_SOURCE,
        ))

    return recommendations
