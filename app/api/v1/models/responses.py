"""
API response models using Pydantic.
"""
from typing import Optional
from pydantic import BaseModel, Field

from app.domain.models import ZoneHealthOutcome


class ZoneHealthResponse(ZoneHealthOutcome):
    """Response model for the zone health endpoints."""

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "error": None,
                "data": {
                    "zoneId": "zone_1",
                    "overallScore": 78,
                    "healthLevel": {"level": "good", "color": "#4D9FFF", "icon": "✓"},
                    "trend": {"direction": "stable", "change": 0, "icon": "→"},
                    "confidence": {"score": 82, "level": "high"},
                    "recommendations": [
                        {
                            "priority": "urgent",
                            "category": "irrigation",
                            "action": "Irrigate within 24 hours",
                            "timing": "immediate",
                            "source": "Zone Health Engine",
                        }
                    ],
                    "timestamp": "2024-06-01T08:00:00Z",
                    "dataQuality": {"fusionConfidence": 82, "missingData": []},
                    "isFallback": False,
                },
            }
        }
    }


class ErrorResponse(BaseModel):
    """Body returned for unexpected errors."""
    error: str = Field(description="Short error category")
    detail: Optional[str] = Field(default=None, description="Error details")
