"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Sample zone requests
- Sample fused data bundles
- Mock data fusion and crop ontology providers
- FastAPI test client
"""
import pytest
from typing import AsyncGenerator
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.domain.models import (
    ConditionDeviation,
    CropVigorScore,
    DiseaseRisk,
    DiseaseRiskForecast,
    DiseaseRiskLevel,
    DiseaseRiskScore,
    FusedDataBundle,
    FusionConfidence,
    GrowthStageInfo,
    GrowthStageScore,
    HealthBreakdown,
    MoistureReport,
    MoistureStatus,
    OptimalConditionsReport,
    SatelliteData,
    SoilMoistureScore,
    StressLevel,
    TemperatureStress,
    VisionAnalysis,
    WeatherData,
    WeatherStressScore,
    ZoneHealthRequest,
    ZoneIntelligence,
)
from app.infrastructure.external_api_client import CropOntologyClient, DataFusionClient
from app.middleware.rate_limiter import limiter


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def sample_request() -> ZoneHealthRequest:
    """A rice zone 45 days after sowing, without photo analysis."""
    return ZoneHealthRequest(
        zone_id="zone_1",
        lat=28.6139,
        lon=77.2090,
        crop_type="rice",
        days_after_sowing=45,
        sensor_readings={"soilMoisture": 32.5},
    )


@pytest.fixture
def sample_vision() -> VisionAnalysis:
    """Photo analysis with one issue and one recommendation."""
    return VisionAnalysis(
        health_score=80,
        issues=["Leaf blast lesions"],
        recommendations=["Remove infected leaves"],
        confidence=0.9,
    )


@pytest.fixture
def healthy_bundle() -> FusedDataBundle:
    """Fused data for a zone in good condition."""
    return FusedDataBundle(
        satellite=SatelliteData(ndvi=0.85, data_quality="high"),
        weather=WeatherData(temperature=27.0, humidity=65.0, precipitation=2.0),
        sensors={"soilMoisture": 32.5},
        intelligence=ZoneIntelligence(
            temperature_stress=TemperatureStress(
                level=StressLevel.LOW,
                temperature=27.0,
                humidity=65.0,
                recommendation="No action needed",
            ),
            moisture_status=MoistureReport(
                status=MoistureStatus.OPTIMAL,
                value=32.5,
                recommendation="Maintain current irrigation",
            ),
        ),
        confidence=FusionConfidence(score=85, level="high"),
        missing_data=[],
    )


@pytest.fixture
def stressed_bundle() -> FusedDataBundle:
    """Fused data for a dry, hot zone with weak vegetation."""
    return FusedDataBundle(
        satellite=SatelliteData(ndvi=0.35, data_quality="moderate"),
        weather=WeatherData(temperature=39.0, humidity=20.0, precipitation=0.0),
        sensors={"soilMoisture": 12.0},
        intelligence=ZoneIntelligence(
            temperature_stress=TemperatureStress(
                level=StressLevel.HIGH,
                temperature=39.0,
                humidity=20.0,
                recommendation="Irrigate in the evening to reduce heat stress",
            ),
            moisture_status=MoistureReport(
                status=MoistureStatus.LOW,
                value=12.0,
                recommendation="Irrigate within 24 hours",
            ),
        ),
        confidence=FusionConfidence(score=60, level="moderate"),
        missing_data=["evi"],
    )


@pytest.fixture
def growth_stage() -> GrowthStageInfo:
    return GrowthStageInfo(
        current_stage="Vegetative",
        days_in_stage=15,
        critical_factors=["water", "nitrogen"],
    )


@pytest.fixture
def good_conditions() -> OptimalConditionsReport:
    return OptimalConditionsReport(overall_score=90, status="good", deviations=[])


@pytest.fixture
def low_disease_risk() -> DiseaseRiskForecast:
    return DiseaseRiskForecast(overall_risk=DiseaseRiskLevel.LOW, risks=[])


@pytest.fixture
def elevated_disease_risk() -> DiseaseRiskForecast:
    """One very high and one moderate disease risk."""
    return DiseaseRiskForecast(
        overall_risk=DiseaseRiskLevel.HIGH,
        risks=[
            DiseaseRisk(
                disease="Blast",
                risk_level=DiseaseRiskLevel.VERY_HIGH,
                control_measures=["Apply tricyclazole", "Drain field"],
            ),
            DiseaseRisk(
                disease="Sheath blight",
                risk_level=DiseaseRiskLevel.MODERATE,
                control_measures=["Reduce nitrogen"],
            ),
        ],
    )


@pytest.fixture
def poor_conditions() -> OptimalConditionsReport:
    return OptimalConditionsReport(
        overall_score=55,
        status="suboptimal",
        deviations=[
            ConditionDeviation(factor="temperature", current=39, optimal="20-35"),
        ],
    )


# ============================================================
# Factor Score Fixtures
# ============================================================

@pytest.fixture
def make_breakdown():
    """Factory for breakdowns; the defaults trigger no recommendations."""
    def _make(
        vigor=95,
        weather=95,
        soil=100,
        stage=90,
        disease=95,
        vigor_factors=None,
        weather_recommendation="Provide shade",
        soil_recommendation="Irrigate within 24 hours",
        diseases=None,
    ) -> HealthBreakdown:
        return HealthBreakdown(
            vigor=CropVigorScore(
                score=vigor,
                factors=vigor_factors if vigor_factors is not None else ["NDVI"],
            ),
            weather_stress=WeatherStressScore(score=weather, recommendation=weather_recommendation),
            soil_moisture=SoilMoistureScore(score=soil, recommendation=soil_recommendation),
            growth_stage=GrowthStageScore(score=stage),
            disease_risk=DiseaseRiskScore(score=disease, diseases=diseases or []),
        )
    return _make


# ============================================================
# Mock Provider Fixtures
# ============================================================

@pytest.fixture
def mock_fusion_provider(healthy_bundle):
    """Mock data fusion provider returning the healthy bundle."""
    provider = AsyncMock(spec=DataFusionClient)
    provider.fuse_zone_data.return_value = healthy_bundle
    return provider


@pytest.fixture
def mock_ontology_provider(growth_stage, good_conditions, low_disease_risk):
    """Mock crop ontology provider for a healthy vegetative crop."""
    provider = AsyncMock(spec=CropOntologyClient)
    provider.get_current_growth_stage.return_value = growth_stage
    provider.check_optimal_conditions.return_value = good_conditions
    provider.predict_disease_risk.return_value = low_disease_risk
    return provider


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Keep rate limit counters from leaking between tests."""
    limiter.reset()
    yield


@pytest.fixture
def test_client() -> TestClient:
    """Create a synchronous test client for FastAPI."""
    return TestClient(app)


@pytest.fixture
async def async_test_client() -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for FastAPI."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
