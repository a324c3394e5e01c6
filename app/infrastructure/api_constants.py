"""
API endpoint constants and configuration.

This module contains all external API endpoint paths and related constants.
Centralizing these values makes it easy to swap out endpoints or update API versions.
"""
from urllib.parse import quote


# Data fusion service endpoints
class DataFusionEndpoints:
    """Data fusion API endpoint paths."""

    FUSION_BASE = "/fusion"

    ZONES = f"{FUSION_BASE}/zones"


# Crop ontology service endpoints
class CropOntologyEndpoints:
    """Crop ontology API endpoint paths."""

    ONTOLOGY_BASE = "/ontology"

    GROWTH_STAGE = f"{ONTOLOGY_BASE}/crops/{{crop_type}}/growth-stage"
    OPTIMAL_CONDITIONS = f"{ONTOLOGY_BASE}/crops/{{crop_type}}/optimal-conditions"
    DISEASE_RISK = f"{ONTOLOGY_BASE}/crops/{{crop_type}}/disease-risk"

    @classmethod
    def get_growth_stage(cls, crop_type: str) -> str:
        """
        Get growth stage endpoint for a crop.

        Args:
            crop_type: Crop identifier

        Returns:
            Formatted endpoint path
        """
        return cls.GROWTH_STAGE.format(crop_type=quote(crop_type, safe=""))

    @classmethod
    def get_optimal_conditions(cls, crop_type: str) -> str:
        """
        Get optimal conditions endpoint for a crop.

        Args:
            crop_type: Crop identifier

        Returns:
            Formatted endpoint path
        """
        return cls.OPTIMAL_CONDITIONS.format(crop_type=quote(crop_type, safe=""))

    @classmethod
    def get_disease_risk(cls, crop_type: str) -> str:
        """
        Get disease risk endpoint for a crop.

        Args:
            crop_type: Crop identifier

        Returns:
            Formatted endpoint path
        """
        return cls.DISEASE_RISK.format(crop_type=quote(crop_type, safe=""))


# API Configuration Constants
class APIConstants:
    """General API configuration constants."""

    # HTTP Headers
    CONTENT_TYPE_JSON = "application/json"

    # Timeouts (in seconds)
    DEFAULT_TIMEOUT = 30.0
