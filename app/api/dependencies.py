"""
Dependency injection for FastAPI.
"""
from typing import Annotated
from fastapi import Depends

from app.infrastructure.external_api_client import (
    CropOntologyClient,
    DataFusionClient,
    get_crop_ontology_client,
    get_data_fusion_client,
)
from app.services.application.zone_health_engine import ZoneHealthScoringEngine


def get_zone_health_engine(
    fusion_client: Annotated[DataFusionClient, Depends(get_data_fusion_client)],
    ontology_client: Annotated[CropOntologyClient, Depends(get_crop_ontology_client)],
) -> ZoneHealthScoringEngine:
    """
    Dependency factory for ZoneHealthScoringEngine.

    Args:
        fusion_client: Data fusion client (injected)
        ontology_client: Crop ontology client (injected)

    Returns:
        ZoneHealthScoringEngine instance
    """
    return ZoneHealthScoringEngine(
        fusion_provider=fusion_client,
        ontology_provider=ontology_client,
    )


# Type aliases for cleaner route signatures
ZoneHealthEngineDep = Annotated[ZoneHealthScoringEngine, Depends(get_zone_health_engine)]
