"""
Unit tests for the zone health scoring engine.

Tests cover:
- Weighted overall score
- Fallback on data fusion failure
- Isolation of ontology failures
- Recommendation ordering end to end
- Determinism
"""
import asyncio

import httpx
import pytest
import respx
from unittest.mock import AsyncMock

from app.domain.exceptions import FusionFailure, ProviderLookupFailure
from app.domain.models import (
    FusedDataBundle,
    HealthLevelName,
    Priority,
    RecommendationCategory,
    RiskLabel,
    TrendDirection,
)
from app.infrastructure.external_api_client import CropOntologyClient, DataFusionClient
from app.services.application.zone_health_engine import (
    HEALTH_WEIGHTS,
    ZoneHealthScoringEngine,
    build_fallback_result,
    weighted_overall_score,
)
from app.utils.scoring import round_half_up


@pytest.fixture
def engine(mock_fusion_provider, mock_ontology_provider) -> ZoneHealthScoringEngine:
    return ZoneHealthScoringEngine(
        fusion_provider=mock_fusion_provider,
        ontology_provider=mock_ontology_provider,
    )


# ============================================================
# Weighting Tests
# ============================================================

class TestWeighting:
    """Tests for the fixed factor weights."""

    def test_weights_sum_to_one(self):
        assert sum(HEALTH_WEIGHTS.values()) == pytest.approx(1.0)

    def test_weights_are_fixed(self):
        assert HEALTH_WEIGHTS == {
            "vigor": 0.30,
            "weather_stress": 0.25,
            "soil_moisture": 0.20,
            "growth_stage": 0.15,
            "disease_risk": 0.10,
        }

    @pytest.mark.asyncio
    async def test_overall_score_is_weighted_sum(self, engine, sample_request):
        """95*.30 + 95*.25 + 100*.20 + 90*.15 + 95*.10 = 95.25 -> 95."""
        result = await engine.score_zone(sample_request)

        breakdown = result.breakdown
        expected = round_half_up(
            breakdown.vigor.score * 0.30
            + breakdown.weather_stress.score * 0.25
            + breakdown.soil_moisture.score * 0.20
            + breakdown.growth_stage.score * 0.15
            + breakdown.disease_risk.score * 0.10
        )
        assert result.overall_score == expected == 95

    @pytest.mark.parametrize("scores", [
        (0, 0, 0, 0, 0),
        (100, 100, 100, 100, 100),
        (30, 40, 45, 70, 45),
        (50, 70, 60, 70, 80),
        (66, 95, 55, 100, 0),
    ])
    def test_weighted_overall_score_stays_in_range(self, scores, make_breakdown):
        vigor, weather, soil, stage, disease = scores
        breakdown = make_breakdown(vigor=vigor, weather=weather, soil=soil, stage=stage, disease=disease)

        result = weighted_overall_score(breakdown)

        assert 0 <= result <= 100
        assert result == round_half_up(
            vigor * 0.30 + weather * 0.25 + soil * 0.20 + stage * 0.15 + disease * 0.10
        )

    def test_half_points_round_up(self):
        """90 * 0.25 = 22.5 rounds to 23 rather than banker's 22."""
        assert round_half_up(22.5) == 23
        assert round_half_up(66.5) == 67
        assert round_half_up(72.49999999999999) == 73


# ============================================================
# Successful Calculation Tests
# ============================================================

class TestScoreZone:
    """Tests for the normal scoring path."""

    @pytest.mark.asyncio
    async def test_healthy_zone(self, engine, sample_request):
        result = await engine.score_zone(sample_request)

        assert result.zone_id == "zone_1"
        assert result.health_level.level == HealthLevelName.EXCELLENT
        assert result.trend.direction == TrendDirection.STABLE
        assert result.recommendations == []
        assert result.is_fallback is False
        assert result.confidence.score == 85
        assert result.data_quality.fusion_confidence == 85
        assert result.data_quality.missing_data == []

    @pytest.mark.asyncio
    async def test_fusion_request_arguments(self, engine, sample_request, mock_fusion_provider):
        await engine.score_zone(sample_request)

        fusion_request = mock_fusion_provider.fuse_zone_data.await_args.args[0]
        assert fusion_request.zone_id == "zone_1"
        assert fusion_request.lat == 28.6139
        assert fusion_request.lon == 77.2090
        assert fusion_request.sensor_data == {"soilMoisture": 32.5}

    @pytest.mark.asyncio
    async def test_stressed_zone_recommendations(
        self, engine, sample_request, mock_fusion_provider, stressed_bundle
    ):
        """Low vigor, heat stress and dry soil produce ordered recommendations."""
        mock_fusion_provider.fuse_zone_data.return_value = stressed_bundle

        result = await engine.score_zone(sample_request)

        breakdown = result.breakdown
        assert breakdown.vigor.score == 30
        assert breakdown.weather_stress.score == 40
        assert breakdown.soil_moisture.score == 45
        assert [r.category for r in result.recommendations] == [
            RecommendationCategory.CROP_VIGOR,
            RecommendationCategory.WEATHER_STRESS,
            RecommendationCategory.IRRIGATION,
        ]
        assert result.recommendations[0].priority == Priority.HIGH
        assert result.recommendations[2].action == "Irrigate within 24 hours"
        assert result.data_quality.missing_data == ["evi"]

    @pytest.mark.asyncio
    async def test_vigor_recommendation_precedes_irrigation(
        self, engine, sample_request, mock_fusion_provider, stressed_bundle
    ):
        mock_fusion_provider.fuse_zone_data.return_value = stressed_bundle

        result = await engine.score_zone(sample_request)

        categories = [r.category for r in result.recommendations]
        assert categories.index(RecommendationCategory.CROP_VIGOR) < categories.index(
            RecommendationCategory.IRRIGATION
        )

    @pytest.mark.asyncio
    async def test_vision_analysis_flows_through(
        self, engine, sample_request, sample_vision, mock_ontology_provider, elevated_disease_risk
    ):
        mock_ontology_provider.predict_disease_risk.return_value = elevated_disease_risk
        request = sample_request.model_copy(update={"vision_analysis": sample_vision})

        result = await engine.score_zone(request)

        assert result.breakdown.vigor.score == 89  # 95 * 0.6 + 80 * 0.4
        assert result.breakdown.disease_risk.score == 25
        assert result.breakdown.disease_risk.risk == RiskLabel.HIGH
        categories = [r.category for r in result.recommendations]
        assert categories == [
            RecommendationCategory.PHOTO_ANALYSIS,
            RecommendationCategory.DISEASE_CONTROL,
            RecommendationCategory.DISEASE_CONTROL,
        ]

    @pytest.mark.asyncio
    async def test_empty_bundle_uses_defaults(self, engine, sample_request, mock_fusion_provider):
        """A bundle with no data still scores, from neutral defaults."""
        mock_fusion_provider.fuse_zone_data.return_value = FusedDataBundle()

        result = await engine.score_zone(sample_request)

        breakdown = result.breakdown
        assert breakdown.vigor.score == 50
        assert breakdown.weather_stress.score == 70
        assert breakdown.soil_moisture.score == 60
        assert breakdown.disease_risk.score == 80
        assert breakdown.disease_risk.risk == RiskLabel.UNKNOWN

    @pytest.mark.asyncio
    async def test_deterministic_except_timestamp(self, engine, sample_request, sample_vision):
        request = sample_request.model_copy(update={"vision_analysis": sample_vision})

        first = await engine.score_zone(request)
        second = await engine.score_zone(request)

        assert first.model_dump(exclude={"timestamp"}) == second.model_dump(exclude={"timestamp"})

    @pytest.mark.asyncio
    async def test_every_factor_score_in_range(
        self, engine, sample_request, mock_fusion_provider, stressed_bundle
    ):
        stressed_bundle.satellite.ndvi = 1.5
        stressed_bundle.weather.humidity = -20
        mock_fusion_provider.fuse_zone_data.return_value = stressed_bundle

        result = await engine.score_zone(sample_request)

        for factor in (
            result.breakdown.vigor,
            result.breakdown.weather_stress,
            result.breakdown.soil_moisture,
            result.breakdown.growth_stage,
            result.breakdown.disease_risk,
        ):
            assert 0 <= factor.score <= 100


# ============================================================
# Failure Handling Tests
# ============================================================

class TestFailureHandling:
    """Tests for fusion fallback and ontology failure isolation."""

    @pytest.mark.asyncio
    async def test_fusion_failure_raises_from_score_zone(self, engine, sample_request, mock_fusion_provider):
        mock_fusion_provider.fuse_zone_data.side_effect = FusionFailure("fusion service down")

        with pytest.raises(FusionFailure, match="fusion service down"):
            await engine.score_zone(sample_request)

    @pytest.mark.asyncio
    async def test_fusion_failure_yields_fallback(self, engine, sample_request, mock_fusion_provider):
        """Fallback: score 50, unknown level, one high priority data recommendation."""
        mock_fusion_provider.fuse_zone_data.side_effect = FusionFailure("fusion service down")

        outcome = await engine.calculate_zone_health(sample_request)

        assert outcome.success is False
        assert outcome.error == "fusion service down"
        result = outcome.data
        assert result.overall_score == 50
        assert result.health_level.level == HealthLevelName.UNKNOWN
        assert len(result.recommendations) == 1
        assert result.recommendations[0].priority == Priority.HIGH
        assert result.recommendations[0].category == RecommendationCategory.DATA
        assert result.is_fallback is True
        assert result.breakdown is None

    @pytest.mark.asyncio
    async def test_fusion_timeout_yields_fallback(self, engine, sample_request, mock_fusion_provider):
        mock_fusion_provider.fuse_zone_data.side_effect = asyncio.TimeoutError()

        outcome = await engine.calculate_zone_health(sample_request)

        assert outcome.success is False
        assert outcome.data.is_fallback is True
        assert "timed out" in outcome.error

    @pytest.mark.asyncio
    async def test_fusion_called_with_caller_timeout(self, mock_ontology_provider, sample_request):
        """A caller-imposed timeout on a slow provider resolves to the fallback."""
        async def slow_fusion(request):
            await asyncio.sleep(10)

        async def fuse_with_timeout(request):
            return await asyncio.wait_for(slow_fusion(request), 0.01)

        fusion = AsyncMock(spec=DataFusionClient)
        fusion.fuse_zone_data.side_effect = fuse_with_timeout
        engine = ZoneHealthScoringEngine(fusion, mock_ontology_provider)

        outcome = await engine.calculate_zone_health(sample_request)

        assert outcome.success is False
        assert outcome.data.overall_score == 50

    @pytest.mark.asyncio
    async def test_successful_outcome(self, engine, sample_request):
        outcome = await engine.calculate_zone_health(sample_request)

        assert outcome.success is True
        assert outcome.error is None
        assert outcome.data.is_fallback is False

    @pytest.mark.asyncio
    async def test_ontology_outage_does_not_abort(self, engine, sample_request, mock_ontology_provider):
        """Every ontology call failing still gives a full result with defaults."""
        failure = ProviderLookupFailure("ontology unavailable")
        mock_ontology_provider.get_current_growth_stage.side_effect = failure
        mock_ontology_provider.check_optimal_conditions.side_effect = failure
        mock_ontology_provider.predict_disease_risk.side_effect = failure

        outcome = await engine.calculate_zone_health(sample_request)

        assert outcome.success is True
        assert outcome.data.breakdown.growth_stage.score == 70
        assert outcome.data.breakdown.growth_stage.factors == ["ontology unavailable"]
        assert outcome.data.breakdown.disease_risk.score == 95

    @pytest.mark.asyncio
    async def test_disease_failure_isolated_from_growth_stage(
        self, engine, sample_request, mock_ontology_provider
    ):
        mock_ontology_provider.predict_disease_risk.side_effect = ProviderLookupFailure("boom")

        result = await engine.score_zone(sample_request)

        assert result.breakdown.growth_stage.score == 90
        assert result.breakdown.growth_stage.stage == "Vegetative"
        assert result.breakdown.disease_risk.score == 95

    @pytest.mark.asyncio
    async def test_missing_crop_details(self, engine, sample_request, mock_ontology_provider):
        request = sample_request.model_copy(update={"crop_type": None, "days_after_sowing": None})

        result = await engine.score_zone(request)

        assert result.breakdown.growth_stage.score == 70
        assert result.breakdown.disease_risk.score == 80
        mock_ontology_provider.get_current_growth_stage.assert_not_called()

    def test_fallback_result_shape(self):
        result = build_fallback_result("zone_9")

        assert result.zone_id == "zone_9"
        assert result.health_level.color == "#808080"
        assert result.trend.direction == TrendDirection.UNKNOWN
        assert result.confidence.score == 0
        assert result.confidence.level == "none"
        assert result.data_quality is None

    @pytest.mark.asyncio
    async def test_unexpected_ontology_exception_is_absorbed(
        self, engine, sample_request, mock_ontology_provider
    ):
        """An injected provider raising outside its contract degrades the factors."""
        mock_ontology_provider.get_current_growth_stage.side_effect = RuntimeError("socket closed")
        mock_ontology_provider.predict_disease_risk.side_effect = KeyError("risks")

        outcome = await engine.calculate_zone_health(sample_request)

        assert outcome.success is True
        assert outcome.data.breakdown.growth_stage.score == 70
        assert outcome.data.breakdown.growth_stage.factors == [
            "Growth stage lookup failed: socket closed"
        ]
        assert outcome.data.breakdown.disease_risk.score == 95

    @pytest.mark.asyncio
    async def test_unexpected_fusion_exception_yields_fallback(
        self, engine, sample_request, mock_fusion_provider
    ):
        mock_fusion_provider.fuse_zone_data.side_effect = AttributeError("'str' object has no attribute 'get'")

        outcome = await engine.calculate_zone_health(sample_request)

        assert outcome.success is False
        assert outcome.data.is_fallback is True
        assert outcome.error.startswith("Data fusion failed")


# ============================================================
# Malformed Provider Response Tests
# ============================================================

class TestMalformedProviderResponses:
    """Real HTTP clients against providers answering with non-envelope bodies."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_ontology_list_body_degrades_factors(self, mock_fusion_provider, sample_request):
        respx.route(host="ontology.test").mock(return_value=httpx.Response(200, json=[]))

        async with CropOntologyClient(base_url="http://ontology.test") as ontology:
            engine = ZoneHealthScoringEngine(mock_fusion_provider, ontology)
            outcome = await engine.calculate_zone_health(sample_request)

        assert outcome.success is True
        assert outcome.data.breakdown.growth_stage.score == 70
        assert outcome.data.breakdown.disease_risk.score == 95

    @pytest.mark.asyncio
    @respx.mock
    async def test_fusion_string_body_yields_fallback(self, mock_ontology_provider, sample_request):
        respx.post("http://fusion.test/fusion/zones").mock(
            return_value=httpx.Response(200, json="oops")
        )

        async with DataFusionClient(base_url="http://fusion.test") as fusion:
            engine = ZoneHealthScoringEngine(fusion, mock_ontology_provider)
            outcome = await engine.calculate_zone_health(sample_request)

        assert outcome.success is False
        assert outcome.data.overall_score == 50
        assert "instead of an envelope" in outcome.error
