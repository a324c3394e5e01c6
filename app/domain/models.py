"""
Domain models for zone health scoring.

These models represent the core domain entities and should be independent
of any infrastructure concerns (API clients, databases, etc.).

Attributes are snake_case; JSON uses the camelCase names shared with the
rest of the platform (``zoneId``, ``overallScore``, ...).
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.utils.scoring import clamp_score


class CamelModel(BaseModel):
    """Base model serialising to camelCase while accepting snake_case input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ============================================================
# Enumerations
# ============================================================

class DataQuality(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class StressLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    UNKNOWN = "unknown"


class MoistureStatus(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    OPTIMAL = "optimal"
    HIGH = "high"
    UNKNOWN = "unknown"


class DiseaseRiskLevel(str, Enum):
    """Severity reported by the crop ontology for a single disease."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"


class RiskLabel(str, Enum):
    """Qualitative label derived from the disease risk score."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    UNKNOWN = "unknown"


class Priority(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    MODERATE = "moderate"


class RecommendationCategory(str, Enum):
    PHOTO_ANALYSIS = "photo_analysis"
    CROP_VIGOR = "crop_vigor"
    WEATHER_STRESS = "weather_stress"
    IRRIGATION = "irrigation"
    DISEASE_CONTROL = "disease_control"
    GROWTH_STAGE = "growth_stage"
    DATA = "data"


class Timing(str, Enum):
    IMMEDIATE = "immediate"
    NEXT_24_HOURS = "next_24_hours"
    NEXT_48_HOURS = "next_48_hours"


class HealthLevelName(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    MODERATE = "moderate"
    POOR = "poor"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    UNKNOWN = "unknown"


# ============================================================
# Request
# ============================================================

class VisionAnalysis(CamelModel):
    """Output of the photo analysis model for a zone."""
    health_score: Optional[float] = Field(
        default=None,
        description="Plant health estimated from photos (0-100)",
    )
    issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class ZoneHealthRequest(CamelModel):
    """Input for a single zone health calculation."""
    zone_id: str = Field(min_length=1, description="Field zone identifier")
    lat: float = Field(ge=-90, le=90, description="Latitude in decimal degrees")
    lon: float = Field(ge=-180, le=180, description="Longitude in decimal degrees")
    crop_type: Optional[str] = Field(default=None, description="Crop grown in the zone")
    days_after_sowing: Optional[int] = Field(default=None, ge=0)
    sensor_readings: dict[str, float] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("sensorData", "sensorReadings", "sensor_readings"),
        serialization_alias="sensorData",
    )
    vision_analysis: Optional[VisionAnalysis] = Field(
        default=None,
        validation_alias=AliasChoices("imageAnalysis", "visionAnalysis", "vision_analysis"),
        serialization_alias="imageAnalysis",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "zoneId": "zone_1",
                "lat": 28.6139,
                "lon": 77.2090,
                "cropType": "rice",
                "daysAfterSowing": 45,
                "sensorData": {"soilMoisture": 32.5},
                "imageAnalysis": None,
            }
        }
    )


# ============================================================
# Fused data bundle (DataFusionProvider output)
# ============================================================

class FusionRequest(CamelModel):
    """Arguments passed to the data fusion provider."""
    lat: float
    lon: float
    zone_id: str
    sensor_data: dict[str, float] = Field(default_factory=dict)


class SatelliteData(CamelModel):
    ndvi: Optional[float] = None
    data_quality: Optional[DataQuality] = None


class WeatherData(CamelModel):
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    precipitation: Optional[float] = None


class TemperatureStress(CamelModel):
    level: StressLevel = StressLevel.UNKNOWN
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    recommendation: Optional[str] = None


class MoistureReport(CamelModel):
    status: MoistureStatus = MoistureStatus.UNKNOWN
    value: Optional[float] = None
    recommendation: Optional[str] = None


class ZoneIntelligence(CamelModel):
    temperature_stress: Optional[TemperatureStress] = None
    moisture_status: Optional[MoistureReport] = None


class FusionConfidence(CamelModel):
    """How complete the merged data bundle is for a zone."""
    score: float = Field(default=0, description="Fusion confidence (0-100)")
    level: str = "none"


class FusedDataBundle(CamelModel):
    """Merged satellite, weather and sensor data for a zone.

    Raw values are not range-checked; the scorers clamp what they derive.
    """
    satellite: Optional[SatelliteData] = None
    weather: Optional[WeatherData] = None
    sensors: dict[str, float] = Field(default_factory=dict)
    intelligence: ZoneIntelligence = Field(default_factory=ZoneIntelligence)
    confidence: FusionConfidence = Field(default_factory=FusionConfidence)
    missing_data: list[str] = Field(default_factory=list)


# ============================================================
# Crop ontology payloads (CropOntologyProvider input/output)
# ============================================================

class GrowthStageInfo(CamelModel):
    current_stage: str
    days_in_stage: Optional[int] = None
    critical_factors: list[str] = Field(default_factory=list)


class FieldConditions(CamelModel):
    temperature: Optional[float] = None
    soil_moisture: Optional[float] = None
    humidity: Optional[float] = None


class ConditionDeviation(CamelModel):
    factor: str
    current: Any = None
    optimal: Any = None


class OptimalConditionsReport(CamelModel):
    overall_score: float
    status: str = "unknown"
    deviations: list[ConditionDeviation] = Field(default_factory=list)


class DiseaseWeather(CamelModel):
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    rainfall: float = 0


class DiseaseRisk(CamelModel):
    disease: str
    risk_level: DiseaseRiskLevel
    control_measures: list[str] = Field(default_factory=list)


class DiseaseRiskForecast(CamelModel):
    overall_risk: DiseaseRiskLevel
    risks: list[DiseaseRisk] = Field(default_factory=list)


# ============================================================
# Factor scores
# ============================================================

class FactorScore(CamelModel):
    """Score for one agronomic signal, always within [0, 100]."""
    score: int
    factors: list[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def _clamp(cls, value: float) -> int:
        return clamp_score(value)


class CropVigorScore(FactorScore):
    confidence: DataQuality = DataQuality.LOW
    ndvi: Optional[float] = None


class WeatherStressScore(FactorScore):
    level: StressLevel = StressLevel.UNKNOWN
    recommendation: Optional[str] = None


class SoilMoistureScore(FactorScore):
    status: MoistureStatus = MoistureStatus.UNKNOWN
    value: Optional[float] = None
    recommendation: Optional[str] = None


class GrowthStageScore(FactorScore):
    stage: str = "unknown"
    days_in_stage: Optional[int] = None
    critical_factors: list[str] = Field(default_factory=list)


class DiseaseFinding(CamelModel):
    name: str
    level: DiseaseRiskLevel
    control_measures: list[str] = Field(default_factory=list)


class DiseaseRiskScore(FactorScore):
    risk: RiskLabel = RiskLabel.UNKNOWN
    risk_count: int = 0
    diseases: list[DiseaseFinding] = Field(default_factory=list)


class HealthBreakdown(CamelModel):
    vigor: CropVigorScore
    weather_stress: WeatherStressScore
    soil_moisture: SoilMoistureScore
    growth_stage: GrowthStageScore
    disease_risk: DiseaseRiskScore


# ============================================================
# Result
# ============================================================

class HealthLevel(CamelModel):
    level: HealthLevelName
    color: str
    icon: str


class Trend(CamelModel):
    direction: TrendDirection
    change: float = 0
    icon: str


class Recommendation(CamelModel):
    priority: Priority
    category: RecommendationCategory
    action: str
    timing: Timing
    source: str


class DataQualitySummary(CamelModel):
    fusion_confidence: float
    missing_data: list[str] = Field(default_factory=list)


class ZoneHealthResult(CamelModel):
    """Health index, breakdown and recommendations for one zone."""
    zone_id: str
    overall_score: int = Field(ge=0, le=100)
    health_level: HealthLevel
    trend: Trend
    confidence: FusionConfidence
    breakdown: Optional[HealthBreakdown] = None
    recommendations: list[Recommendation] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data_quality: Optional[DataQualitySummary] = None
    is_fallback: bool = False


class ZoneHealthOutcome(CamelModel):
    """Return value of a zone health calculation.

    ``success`` is False only when the data fusion step failed, in which
    case ``data`` holds the fallback result and ``error`` the reason.
    """
    success: bool
    data: ZoneHealthResult
    error: Optional[str] = None
