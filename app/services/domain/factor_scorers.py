"""
Domain service: Factor scorers for zone health.

Each scorer maps one signal category onto a 0-100 score with a confidence or
status label and human readable factors explaining the result:

- Crop vigor from satellite NDVI, refined by photo analysis
- Weather stress from the fused temperature stress assessment
- Soil moisture from the fused moisture status
- Growth stage alignment from the crop ontology
- Disease risk from the crop ontology, penalised by photo-confirmed issues

Missing inputs never fail a scorer: each one falls back to a neutral default
and says why in its factors. The two ontology-backed scorers absorb
ProviderLookupFailure in explicit branches.
"""
import logging
from typing import Optional

from app.domain.exceptions import ProviderLookupFailure
from app.domain.models import (
    CropVigorScore,
    DataQuality,
    DiseaseFinding,
    DiseaseRiskLevel,
    DiseaseRiskScore,
    DiseaseWeather,
    FieldConditions,
    FusedDataBundle,
    GrowthStageInfo,
    GrowthStageScore,
    MoistureReport,
    MoistureStatus,
    RiskLabel,
    SatelliteData,
    SoilMoistureScore,
    StressLevel,
    TemperatureStress,
    VisionAnalysis,
    WeatherData,
    WeatherStressScore,
)
from app.domain.providers import CropOntologyProvider
from app.services.domain.provider_calls import guard_provider_call
from app.utils.scoring import round_half_up

logger = logging.getLogger(__name__)


# Crop vigor: (exclusive NDVI lower bound, score, label), checked top-down
NDVI_BANDS: list[tuple[float, int, str]] = [
    (0.8, 95, "Excellent vegetation index (NDVI > 0.8)"),
    (0.7, 85, "Very good vegetation index (NDVI 0.7-0.8)"),
    (0.6, 70, "Good vegetation index (NDVI 0.6-0.7)"),
    (0.4, 50, "Moderate vegetation index (NDVI 0.4-0.6)"),
]
NDVI_FLOOR_SCORE = 30
NDVI_FLOOR_LABEL = "Low vegetation index (NDVI < 0.4)"
VIGOR_DEFAULT_SCORE = 50
SATELLITE_WEIGHT = 0.6
VISION_WEIGHT = 0.4

WEATHER_DEFAULT_SCORE = 70
WEATHER_STRESS_SCORES = {
    StressLevel.HIGH: 40,
    StressLevel.MODERATE: 70,
    StressLevel.LOW: 95,
}

SOIL_DEFAULT_SCORE = 60
# status -> (score, factor template)
SOIL_MOISTURE_BANDS = {
    MoistureStatus.OPTIMAL: (100, "Optimal soil moisture ({value}%)"),
    MoistureStatus.MODERATE: (75, "Acceptable soil moisture ({value}%)"),
    MoistureStatus.LOW: (45, "Low soil moisture ({value}%) - irrigation needed"),
    MoistureStatus.HIGH: (55, "High soil moisture ({value}%) - waterlogging risk"),
}

GROWTH_STAGE_DEFAULT_SCORE = 70
GROWTH_STAGE_UNCHECKED_SCORE = 100
UNKNOWN_STAGE = "unknown"
SOIL_MOISTURE_SENSOR_KEYS = ("soilMoisture", "soil_moisture")

DISEASE_DEFAULT_SCORE = 80
DISEASE_LOW_RISK_SCORE = 95
DISEASE_RISK_PENALTIES = {
    DiseaseRiskLevel.VERY_HIGH: 40,
    DiseaseRiskLevel.HIGH: 25,
    DiseaseRiskLevel.MODERATE: 15,
    DiseaseRiskLevel.LOW: 0,
}
DISEASE_RISK_LABELS = {
    DiseaseRiskLevel.VERY_HIGH: "Very high risk",
    DiseaseRiskLevel.HIGH: "High risk",
    DiseaseRiskLevel.MODERATE: "Moderate risk",
    DiseaseRiskLevel.LOW: "Low risk",
}
VISION_ISSUE_PENALTY = 20


def _format_reading(value: Optional[float]) -> str:
    if value is None:
        return "n/a"
    return f"{value:g}"


# ============================================================
# Crop vigor
# ============================================================

def score_crop_vigor(
    satellite: Optional[SatelliteData],
    vision: Optional[VisionAnalysis] = None,
) -> CropVigorScore:
    """
    Score crop vigor from satellite NDVI, refined by photo analysis.

    Satellite NDVI is banded into a score; without NDVI the score stays at a
    neutral 50. A photo health score, when present, is blended in at 40% and
    raises confidence to high.

    Args:
        satellite: Fused satellite data (may be missing)
        vision: Optional photo analysis for the zone

    Returns:
        CropVigorScore keeping the raw NDVI
    """
    score: float = VIGOR_DEFAULT_SCORE
    factors: list[str] = []
    ndvi = satellite.ndvi if satellite else None
    confidence = DataQuality.LOW

    # Data quality describes the NDVI reading; without one it says nothing
    if ndvi is not None:
        confidence = satellite.data_quality or DataQuality.LOW
        score, label = NDVI_FLOOR_SCORE, NDVI_FLOOR_LABEL
        for lower_bound, band_score, band_label in NDVI_BANDS:
            if ndvi > lower_bound:
                score, label = band_score, band_label
                break
        factors.append(label)

    if vision is not None and vision.health_score is not None:
        score = round_half_up(score * SATELLITE_WEIGHT + vision.health_score * VISION_WEIGHT)
        factors.append(f"Image analysis confirms {_format_reading(vision.health_score)}% health")
        confidence = DataQuality.HIGH

    return CropVigorScore(score=score, confidence=confidence, factors=factors, ndvi=ndvi)


# ============================================================
# Weather stress
# ============================================================

def score_weather_stress(temperature_stress: Optional[TemperatureStress]) -> WeatherStressScore:
    """
    Score weather stress (inverted: high stress gives a low score).

    Args:
        temperature_stress: Fused temperature stress assessment

    Returns:
        WeatherStressScore carrying the upstream recommendation unchanged
    """
    if temperature_stress is None or temperature_stress.level == StressLevel.UNKNOWN:
        return WeatherStressScore(
            score=WEATHER_DEFAULT_SCORE,
            level=StressLevel.UNKNOWN,
            factors=["Weather stress data unavailable"],
            recommendation=temperature_stress.recommendation if temperature_stress else None,
        )

    level = temperature_stress.level
    if level == StressLevel.HIGH:
        factors = [
            f"High temperature stress ({_format_reading(temperature_stress.temperature)}°C)",
            f"Low humidity ({_format_reading(temperature_stress.humidity)}%)",
        ]
    elif level == StressLevel.MODERATE:
        factors = ["Moderate temperature stress"]
    else:
        factors = ["Favorable weather conditions"]

    return WeatherStressScore(
        score=WEATHER_STRESS_SCORES[level],
        level=level,
        factors=factors,
        recommendation=temperature_stress.recommendation,
    )


# ============================================================
# Soil moisture
# ============================================================

def score_soil_moisture(
    moisture_status: Optional[MoistureReport],
    crop_type: Optional[str] = None,
) -> SoilMoistureScore:
    """
    Score soil moisture against flat thresholds.

    ``crop_type`` is accepted for per-crop thresholds but not used yet.

    Args:
        moisture_status: Fused soil moisture status
        crop_type: Crop grown in the zone

    Returns:
        SoilMoistureScore citing the measured moisture value
    """
    if moisture_status is None or moisture_status.status == MoistureStatus.UNKNOWN:
        return SoilMoistureScore(
            score=SOIL_DEFAULT_SCORE,
            status=MoistureStatus.UNKNOWN,
            factors=["Soil moisture data unavailable"],
        )

    score, template = SOIL_MOISTURE_BANDS[moisture_status.status]
    return SoilMoistureScore(
        score=score,
        status=moisture_status.status,
        value=moisture_status.value,
        factors=[template.format(value=_format_reading(moisture_status.value))],
        recommendation=moisture_status.recommendation,
    )


# ============================================================
# Growth stage
# ============================================================

async def lookup_growth_stage(
    ontology: CropOntologyProvider,
    crop_type: str,
    days_after_sowing: int,
) -> GrowthStageInfo:
    """Resolve the current growth stage; raises ProviderLookupFailure."""
    return await guard_provider_call(
        ontology.get_current_growth_stage(crop_type, days_after_sowing),
        ProviderLookupFailure,
        "Growth stage lookup",
    )


def _sensor_soil_moisture(sensors: dict[str, float]) -> Optional[float]:
    for key in SOIL_MOISTURE_SENSOR_KEYS:
        if key in sensors:
            return sensors[key]
    return None


async def score_growth_stage(
    ontology: CropOntologyProvider,
    crop_type: Optional[str],
    days_after_sowing: Optional[int],
    bundle: FusedDataBundle,
) -> GrowthStageScore:
    """
    Score how well current conditions suit the crop's growth stage.

    If the optimal-condition check fails after the stage was resolved, the
    score stays at 100: the stage is known and nothing contradicts it.

    Args:
        ontology: Crop ontology provider
        crop_type: Crop grown in the zone
        days_after_sowing: Days since sowing
        bundle: Fused zone data (weather and sensor readings)

    Returns:
        GrowthStageScore with stage name, days in stage and critical factors
    """
    if not crop_type or days_after_sowing is None:
        return GrowthStageScore(
            score=GROWTH_STAGE_DEFAULT_SCORE,
            stage=UNKNOWN_STAGE,
            factors=["Growth stage data unavailable"],
        )

    try:
        stage = await lookup_growth_stage(ontology, crop_type, days_after_sowing)
    except ProviderLookupFailure as e:
        logger.warning(f"Growth stage lookup failed for {crop_type}: {e.message}")
        return GrowthStageScore(
            score=GROWTH_STAGE_DEFAULT_SCORE,
            stage=UNKNOWN_STAGE,
            factors=[e.message],
        )

    factors = [f"Current stage: {stage.current_stage}"]
    weather = bundle.weather or WeatherData()
    conditions = FieldConditions(
        temperature=weather.temperature,
        soil_moisture=_sensor_soil_moisture(bundle.sensors),
        humidity=weather.humidity,
    )

    score: float = GROWTH_STAGE_UNCHECKED_SCORE
    try:
        report = await guard_provider_call(
            ontology.check_optimal_conditions(crop_type, conditions),
            ProviderLookupFailure,
            "Optimal conditions check",
        )
    except ProviderLookupFailure as e:
        logger.warning(f"Optimal conditions check failed for {crop_type}, keeping score: {e.message}")
    else:
        score = report.overall_score
        factors.append(f"Conditions: {report.status}")
        for deviation in report.deviations:
            factors.append(f"{deviation.factor}: {deviation.current} (optimal: {deviation.optimal})")

    return GrowthStageScore(
        score=score,
        stage=stage.current_stage,
        days_in_stage=stage.days_in_stage,
        factors=factors,
        critical_factors=stage.critical_factors,
    )


# ============================================================
# Disease risk
# ============================================================

def _risk_label(score: float) -> RiskLabel:
    if score < 40:
        return RiskLabel.HIGH
    if score < 70:
        return RiskLabel.MODERATE
    return RiskLabel.LOW


async def score_disease_risk(
    ontology: CropOntologyProvider,
    crop_type: Optional[str],
    weather: Optional[WeatherData],
    days_after_sowing: Optional[int],
    vision: Optional[VisionAnalysis] = None,
) -> DiseaseRiskScore:
    """
    Score disease risk (inverted: more risk gives a low score).

    Starts from 100 and subtracts a penalty per disease risk reported by the
    ontology, plus a penalty per issue confirmed by photo analysis.

    Args:
        ontology: Crop ontology provider
        crop_type: Crop grown in the zone
        weather: Fused weather data
        days_after_sowing: Days since sowing, used to resolve the stage
        vision: Optional photo analysis for the zone

    Returns:
        DiseaseRiskScore listing the reported diseases
    """
    if not crop_type or weather is None:
        return DiseaseRiskScore(
            score=DISEASE_DEFAULT_SCORE,
            risk=RiskLabel.UNKNOWN,
            factors=["Disease risk assessment unavailable"],
        )

    growth_stage = UNKNOWN_STAGE
    if days_after_sowing is not None:
        try:
            stage = await lookup_growth_stage(ontology, crop_type, days_after_sowing)
        except ProviderLookupFailure as e:
            logger.info(f"Disease risk continues without growth stage: {e.message}")
        else:
            growth_stage = stage.current_stage

    disease_weather = DiseaseWeather(
        temperature=weather.temperature,
        humidity=weather.humidity,
        rainfall=weather.precipitation or 0,
    )
    try:
        forecast = await guard_provider_call(
            ontology.predict_disease_risk(crop_type, disease_weather, growth_stage),
            ProviderLookupFailure,
            "Disease risk prediction",
        )
    except ProviderLookupFailure as e:
        logger.warning(f"Disease risk prediction failed for {crop_type}: {e.message}")
        forecast = None

    if forecast is None or forecast.overall_risk == DiseaseRiskLevel.LOW:
        return DiseaseRiskScore(
            score=DISEASE_LOW_RISK_SCORE,
            risk=RiskLabel.LOW,
            factors=["No significant disease risk detected"],
        )

    score = 100
    factors: list[str] = []
    for risk in forecast.risks:
        penalty = DISEASE_RISK_PENALTIES[risk.risk_level]
        if penalty:
            score -= penalty
            factors.append(f"{DISEASE_RISK_LABELS[risk.risk_level]}: {risk.disease}")

    issues = vision.issues if vision else []
    score -= len(issues) * VISION_ISSUE_PENALTY
    factors.extend(f"Vision AI confirms: {issue}" for issue in issues)

    score = max(0, score)
    logger.debug(f"Disease risk for {crop_type} at stage {growth_stage}: score={score}")

    return DiseaseRiskScore(
        score=score,
        risk=_risk_label(score),
        risk_count=len(forecast.risks) + len(issues),
        factors=factors,
        diseases=[
            DiseaseFinding(
                name=risk.disease,
                level=risk.risk_level,
                control_measures=risk.control_measures,
            )
            for risk in forecast.risks
        ],
    )
