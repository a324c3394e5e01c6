"""
API router for zone health endpoints.
"""
import json
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Path, Query, Request, status
from fastapi.responses import JSONResponse

from app.api.dependencies import ZoneHealthEngineDep
from app.api.v1.models.responses import ErrorResponse, ZoneHealthResponse
from app.domain.models import ZoneHealthOutcome, ZoneHealthRequest
from app.middleware.rate_limiter import DEFAULT_RATE_LIMIT, limiter

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/zones",
    tags=["zones"],
)

ZONE_HEALTH_RESPONSES = {
    200: {
        "description": "Zone health calculated from fused data",
    },
    400: {
        "description": "Invalid sensor data values",
        "model": ErrorResponse,
    },
    422: {
        "description": "Invalid request (missing zone, coordinates out of range, ...)",
    },
    429: {
        "description": "Rate limit exceeded",
    },
    500: {
        "description": "Internal server error",
        "model": ErrorResponse,
    },
    502: {
        "description": "Upstream service failure outside the fallback path",
        "model": ErrorResponse,
    },
    503: {
        "description": "Zone data could not be fused; body carries the fallback result",
        "model": ZoneHealthResponse,
    },
}


def _to_response(outcome: ZoneHealthOutcome):
    """Fallback outcomes are returned with 503 so callers can tell them apart."""
    if outcome.success:
        return outcome
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=outcome.model_dump(mode="json", by_alias=True),
    )


@router.post(
    "/health",
    response_model=ZoneHealthResponse,
    summary="Calculate zone health",
    description="""
    Calculate a 0-100 health index for a field zone.

    The score combines five weighted factors:
    - Crop vigor from satellite NDVI and photo analysis (30%)
    - Weather stress (25%)
    - Soil moisture (20%)
    - Growth stage alignment (15%)
    - Disease risk (10%)

    Missing inputs degrade individual factors to neutral defaults. If the zone
    data cannot be fused at all, a fallback result is returned with status 503.
    """,
    responses=ZONE_HEALTH_RESPONSES,
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def calculate_zone_health(
    request: Request,
    body: ZoneHealthRequest,
    engine: ZoneHealthEngineDep,
):
    """
    Calculate zone health from a full request body.

    Args:
        request: Incoming request (used by the rate limiter)
        body: Zone health request
        engine: Zone health scoring engine (injected dependency)

    Returns:
        ZoneHealthResponse, or a 503 JSON response carrying the fallback
    """
    outcome = await engine.calculate_zone_health(body)
    return _to_response(outcome)


@router.get(
    "/{zone_id}/health",
    response_model=ZoneHealthResponse,
    summary="Get zone health",
    description="""
    Calculate zone health from query parameters.

    `sensor_data` is an optional JSON object of raw sensor readings; invalid
    JSON is ignored.
    """,
    responses=ZONE_HEALTH_RESPONSES,
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def get_zone_health(
    request: Request,
    zone_id: Annotated[str, Path(description="Field zone identifier")],
    engine: ZoneHealthEngineDep,
    lat: Annotated[float, Query(ge=-90, le=90)] = 28.6139,
    lon: Annotated[float, Query(ge=-180, le=180)] = 77.2090,
    crop_type: Annotated[str, Query()] = "rice",
    days_after_sowing: Annotated[Optional[int], Query(ge=0)] = 45,
    sensor_data: Annotated[Optional[str], Query(description="JSON object of sensor readings")] = None,
):
    """
    Calculate zone health for a zone identified in the path.

    Args:
        request: Incoming request (used by the rate limiter)
        zone_id: Field zone identifier
        engine: Zone health scoring engine (injected dependency)
        lat: Latitude of the zone
        lon: Longitude of the zone
        crop_type: Crop grown in the zone
        days_after_sowing: Days since sowing
        sensor_data: Raw sensor readings as a JSON object

    Returns:
        ZoneHealthResponse, or a 503 JSON response carrying the fallback
    """
    sensor_readings = {}
    if sensor_data:
        try:
            parsed = json.loads(sensor_data)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring invalid sensor data for zone {zone_id}: {e}")
        else:
            if isinstance(parsed, dict):
                sensor_readings = parsed
            else:
                logger.warning(f"Ignoring non-object sensor data for zone {zone_id}")

    zone_request = ZoneHealthRequest(
        zone_id=zone_id,
        lat=lat,
        lon=lon,
        crop_type=crop_type,
        days_after_sowing=days_after_sowing,
        sensor_readings=sensor_readings,
    )
    outcome = await engine.calculate_zone_health(zone_request)
    return _to_response(outcome)
