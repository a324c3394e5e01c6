"""
Application service: Zone health scoring engine.

Orchestrates data fusion, the five factor scorers, weighting, classification
and recommendations. Holds no per-call state; one instance can serve
concurrent requests.
"""
import asyncio
import logging
from datetime import datetime, timezone

from app.domain.exceptions import FusionFailure
from app.domain.models import (
    DataQualitySummary,
    FusionConfidence,
    FusionRequest,
    HealthBreakdown,
    Priority,
    Recommendation,
    RecommendationCategory,
    Timing,
    ZoneHealthOutcome,
    ZoneHealthRequest,
    ZoneHealthResult,
)
from app.domain.providers import CropOntologyProvider, DataFusionProvider
from app.services.domain.factor_scorers import (
    score_crop_vigor,
    score_disease_risk,
    score_growth_stage,
    score_soil_moisture,
    score_weather_stress,
)
from app.services.domain.health_classifier import (
    UNKNOWN_LEVEL,
    UNKNOWN_TREND,
    calculate_trend,
    classify_health,
)
from app.services.domain.provider_calls import guard_provider_call
from app.services.domain.recommendation_generator import (
    ENGINE_SOURCE,
    generate_recommendations,
)
from app.utils.scoring import round_half_up

logger = logging.getLogger(__name__)


HEALTH_WEIGHTS: dict[str, float] = {
    "vigor": 0.30,
    "weather_stress": 0.25,
    "soil_moisture": 0.20,
    "growth_stage": 0.15,
    "disease_risk": 0.10,
}

FALLBACK_SCORE = 50
FALLBACK_ACTION = "Insufficient data to calculate health score. Add sensors or satellite data."


def weighted_overall_score(breakdown: HealthBreakdown) -> int:
    """
    Combine the factor scores with the fixed weights.

    Args:
        breakdown: The five factor scores

    Returns:
        Overall score rounded half-up
    """
    total = sum(
        getattr(breakdown, factor).score * weight
        for factor, weight in HEALTH_WEIGHTS.items()
    )
    return round_half_up(total)


def build_fallback_result(zone_id: str) -> ZoneHealthResult:
    """
    Result returned when zone data could not be fused.

    Args:
        zone_id: Zone identifier

    Returns:
        Neutral ZoneHealthResult flagged as fallback
    """
    return ZoneHealthResult(
        zone_id=zone_id,
        overall_score=FALLBACK_SCORE,
        health_level=UNKNOWN_LEVEL.model_copy(),
        trend=UNKNOWN_TREND.model_copy(),
        confidence=FusionConfidence(score=0, level="none"),
        breakdown=None,
        recommendations=[
            Recommendation(
                priority=Priority.HIGH,
                category=RecommendationCategory.DATA,
                action=FALLBACK_ACTION,
                timing=Timing.IMMEDIATE,
                source=ENGINE_SOURCE,
            )
        ],
        data_quality=None,
        is_fallback=True,
    )


class ZoneHealthScoringEngine:
    """
    Computes a 0-100 health index for a field zone.

    Factors and weights:
    - Crop vigor (satellite NDVI, photo analysis): 30%
    - Weather stress: 25%
    - Soil moisture: 20%
    - Growth stage alignment: 15%
    - Disease risk: 10%

    Only a data fusion failure aborts a calculation; every other missing or
    failing input degrades its own factor to a documented default.
    """

    def __init__(
        self,
        fusion_provider: DataFusionProvider,
        ontology_provider: CropOntologyProvider,
    ):
        """
        Initialize the engine with its collaborators.

        Args:
            fusion_provider: Merges satellite, sensor and weather data
            ontology_provider: Crop knowledge base
        """
        self.fusion_provider = fusion_provider
        self.ontology_provider = ontology_provider

    async def calculate_zone_health(self, request: ZoneHealthRequest) -> ZoneHealthOutcome:
        """
        Calculate zone health, falling back when data fusion fails.

        Args:
            request: Zone health request

        Returns:
            ZoneHealthOutcome; ``success`` is False with fallback data when
            the zone data could not be fused
        """
        try:
            result = await self.score_zone(request)
        except FusionFailure as e:
            logger.warning(f"Zone {request.zone_id}: data fusion failed, returning fallback: {e.message}")
            return ZoneHealthOutcome(
                success=False,
                error=e.message,
                data=build_fallback_result(request.zone_id),
            )
        return ZoneHealthOutcome(success=True, data=result)

    async def score_zone(self, request: ZoneHealthRequest) -> ZoneHealthResult:
        """
        Score a zone from freshly fused data.

        This method orchestrates:
        1. Fusing satellite, sensor and weather data
        2. Scoring the five health factors
        3. Weighting them into the overall score
        4. Classifying the score and computing the trend
        5. Generating recommendations

        Args:
            request: Zone health request

        Returns:
            ZoneHealthResult

        Raises:
            FusionFailure: If the data fusion provider fails
        """
        logger.info(f"Calculating health for zone {request.zone_id} (crop={request.crop_type})")

        bundle = await guard_provider_call(
            self.fusion_provider.fuse_zone_data(FusionRequest(
                lat=request.lat,
                lon=request.lon,
                zone_id=request.zone_id,
                sensor_data=request.sensor_readings,
            )),
            FusionFailure,
            "Data fusion",
        )

        vision = request.vision_analysis
        vigor = score_crop_vigor(bundle.satellite, vision)
        weather_stress = score_weather_stress(bundle.intelligence.temperature_stress)
        soil_moisture = score_soil_moisture(bundle.intelligence.moisture_status, request.crop_type)

        # Independent ontology lookups; each scorer absorbs its own failures
        growth_stage, disease_risk = await asyncio.gather(
            score_growth_stage(
                self.ontology_provider,
                request.crop_type,
                request.days_after_sowing,
                bundle,
            ),
            score_disease_risk(
                self.ontology_provider,
                request.crop_type,
                bundle.weather,
                request.days_after_sowing,
                vision,
            ),
        )

        breakdown = HealthBreakdown(
            vigor=vigor,
            weather_stress=weather_stress,
            soil_moisture=soil_moisture,
            growth_stage=growth_stage,
            disease_risk=disease_risk,
        )
        overall_score = weighted_overall_score(breakdown)
        recommendations = generate_recommendations(breakdown, vision)

        logger.info(f"Zone {request.zone_id}: overall score {overall_score}, "
                    f"{len(recommendations)} recommendations")
        logger.debug(f"Zone {request.zone_id} breakdown: vigor={vigor.score}, "
                     f"weather={weather_stress.score}, soil={soil_moisture.score}, "
                     f"stage={growth_stage.score}, disease={disease_risk.score}")

        return ZoneHealthResult(
            zone_id=request.zone_id,
            overall_score=overall_score,
            health_level=classify_health(overall_score),
            trend=calculate_trend(request.zone_id, overall_score),
            confidence=bundle.confidence,
            breakdown=breakdown,
            recommendations=recommendations,
            timestamp=datetime.now(timezone.utc),
            data_quality=DataQualitySummary(
                fusion_confidence=bundle.confidence.score,
                missing_data=bundle.missing_data,
            ),
        )
