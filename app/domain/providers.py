"""
Capability interfaces for the external collaborators of the scoring engine.

Any object implementing these methods can be injected into the engine: the
HTTP clients in ``app.infrastructure`` in production, mocks in tests.
"""
from typing import Protocol

from app.domain.models import (
    DiseaseRiskForecast,
    DiseaseWeather,
    FieldConditions,
    FusedDataBundle,
    FusionRequest,
    GrowthStageInfo,
    OptimalConditionsReport,
)


class DataFusionProvider(Protocol):
    """Merges satellite, sensor and weather data for a zone."""

    async def fuse_zone_data(self, request: FusionRequest) -> FusedDataBundle:
        """Raises FusionFailure when no bundle can be produced."""
        ...


class CropOntologyProvider(Protocol):
    """Crop knowledge base. Every method raises ProviderLookupFailure on failure."""

    async def get_current_growth_stage(
        self,
        crop_type: str,
        days_after_sowing: int,
    ) -> GrowthStageInfo:
        ...

    async def check_optimal_conditions(
        self,
        crop_type: str,
        conditions: FieldConditions,
    ) -> OptimalConditionsReport:
        ...

    async def predict_disease_risk(
        self,
        crop_type: str,
        weather: DiseaseWeather,
        growth_stage: str,
    ) -> DiseaseRiskForecast:
        ...
