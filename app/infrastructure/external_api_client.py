"""
Infrastructure layer: HTTP clients for the data fusion and crop ontology services.

Both services answer with an envelope ``{"success": bool, "data": ..., "error": str}``.
Transport problems and ``success: false`` answers are translated into the
domain failures the scoring engine understands.
"""
from typing import Any, Optional

import httpx
from pydantic import ValidationError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from app.config import settings
from app.domain.exceptions import FusionFailure, ProviderLookupFailure
from app.domain.models import (
    DiseaseRiskForecast,
    DiseaseWeather,
    FieldConditions,
    FusedDataBundle,
    FusionRequest,
    GrowthStageInfo,
    OptimalConditionsReport,
)
from app.infrastructure.api_constants import (
    APIConstants,
    CropOntologyEndpoints,
    DataFusionEndpoints,
)


class ExternalAPIError(Exception):
    """Custom exception for external API errors."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ExternalAPIClient:
    """
    Base client for the platform's internal services.
    Implements retry logic with exponential backoff.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = APIConstants.DEFAULT_TIMEOUT,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Service base URL
            api_key: Bearer token, omitted from headers when empty
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url
        self.api_key = api_key
        headers = {"accept": APIConstants.CONTENT_TYPE_JSON}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.TransportError)),
        reraise=True,
    )
    async def _send(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        response = await self.client.request(method, endpoint, **kwargs)
        # Only server errors are worth retrying
        if response.status_code >= 500:
            response.raise_for_status()
        return response

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Any:
        """
        Make an HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments for the request

        Returns:
            Decoded JSON body

        Raises:
            ExternalAPIError: If the request fails after retries
        """
        try:
            response = await self._send(method, endpoint, **kwargs)
        except httpx.HTTPStatusError as e:
            raise ExternalAPIError(
                f"API request failed: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code,
            )
        except httpx.RequestError as e:
            raise ExternalAPIError(f"API request error: {str(e)}")

        if response.is_client_error:
            raise ExternalAPIError(
                f"API request failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError:
            raise ExternalAPIError(f"API returned invalid JSON for {endpoint}")

    @staticmethod
    def _unwrap(payload: Any, operation: str) -> Any:
        """
        Extract ``data`` from a service envelope.

        Raises:
            ExternalAPIError: If the body is not an envelope or the service
                reported a failure
        """
        if not isinstance(payload, dict):
            raise ExternalAPIError(
                f"{operation} returned a {type(payload).__name__} instead of an envelope"
            )
        if not payload.get("success", False):
            raise ExternalAPIError(payload.get("error") or f"{operation} failed")
        return payload.get("data")


class DataFusionClient(ExternalAPIClient):
    """Client for the data fusion service."""

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None):
        super().__init__(
            base_url=base_url or settings.data_fusion_base_url,
            api_key=settings.data_fusion_api_key if api_key is None else api_key,
            timeout=settings.http_timeout_seconds,
        )

    async def fuse_zone_data(self, request: FusionRequest) -> FusedDataBundle:
        """
        Fetch merged satellite, sensor and weather data for a zone.

        Args:
            request: Zone location and raw sensor readings

        Returns:
            FusedDataBundle

        Raises:
            FusionFailure: If the service is unreachable or cannot fuse the zone
        """
        try:
            payload = await self._make_request(
                "POST",
                DataFusionEndpoints.ZONES,
                json=request.model_dump(by_alias=True),
            )
            return FusedDataBundle.model_validate(self._unwrap(payload, "Data fusion"))
        except ExternalAPIError as e:
            raise FusionFailure(e.message) from e
        except ValidationError as e:
            raise FusionFailure(f"Invalid data fusion payload ({e.error_count()} errors)") from e


class CropOntologyClient(ExternalAPIClient):
    """Client for the crop ontology service."""

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None):
        super().__init__(
            base_url=base_url or settings.crop_ontology_base_url,
            api_key=settings.crop_ontology_api_key if api_key is None else api_key,
            timeout=settings.http_timeout_seconds,
        )

    async def _lookup(self, operation: str, method: str, endpoint: str, **kwargs) -> Any:
        try:
            payload = await self._make_request(method, endpoint, **kwargs)
            return self._unwrap(payload, operation)
        except ExternalAPIError as e:
            raise ProviderLookupFailure(e.message) from e

    async def get_current_growth_stage(
        self,
        crop_type: str,
        days_after_sowing: int,
    ) -> GrowthStageInfo:
        """
        Look up the growth stage of a crop.

        Args:
            crop_type: Crop identifier
            days_after_sowing: Days since sowing

        Returns:
            GrowthStageInfo

        Raises:
            ProviderLookupFailure: If the lookup fails
        """
        data = await self._lookup(
            "Growth stage lookup",
            "GET",
            CropOntologyEndpoints.get_growth_stage(crop_type),
            params={"daysAfterSowing": days_after_sowing},
        )
        return self._parse(GrowthStageInfo, data, "growth stage")

    async def check_optimal_conditions(
        self,
        crop_type: str,
        conditions: FieldConditions,
    ) -> OptimalConditionsReport:
        """Compare field conditions with the crop's optimal ranges."""
        data = await self._lookup(
            "Optimal conditions check",
            "POST",
            CropOntologyEndpoints.get_optimal_conditions(crop_type),
            json=conditions.model_dump(by_alias=True),
        )
        return self._parse(OptimalConditionsReport, data, "optimal conditions")

    async def predict_disease_risk(
        self,
        crop_type: str,
        weather: DiseaseWeather,
        growth_stage: str,
    ) -> DiseaseRiskForecast:
        """Predict disease risk for the crop under the given weather and stage."""
        data = await self._lookup(
            "Disease risk prediction",
            "POST",
            CropOntologyEndpoints.get_disease_risk(crop_type),
            json={
                "weather": weather.model_dump(by_alias=True),
                "growthStage": growth_stage,
            },
        )
        return self._parse(DiseaseRiskForecast, data, "disease risk")

    @staticmethod
    def _parse(model, data: Any, what: str):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ProviderLookupFailure(f"Invalid {what} payload ({e.error_count()} errors)") from e


# Singleton instances
_data_fusion_client: Optional[DataFusionClient] = None
_crop_ontology_client: Optional[CropOntologyClient] = None


def get_data_fusion_client() -> DataFusionClient:
    """
    Get or create the singleton data fusion client.

    Returns:
        DataFusionClient instance
    """
    global _data_fusion_client
    if _data_fusion_client is None:
        _data_fusion_client = DataFusionClient()
    return _data_fusion_client


def get_crop_ontology_client() -> CropOntologyClient:
    """
    Get or create the singleton crop ontology client.

    Returns:
        CropOntologyClient instance
    """
    global _crop_ontology_client
    if _crop_ontology_client is None:
        _crop_ontology_client = CropOntologyClient()
    return _crop_ontology_client
