"""Client for the geospatial feature lookup that returns per-maneuver vibe features."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from vibenav.config import settings
from vibenav.models.vibe import SegmentFeatures
from vibenav.services.errors import ExternalServiceError


class FeatureLookupService:
    """Simple HTTP client for the PostGIS ``get_path_features`` RPC."""

    def __init__(
        self,
        *,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._endpoint = (endpoint or settings.feature_service_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.feature_service_key
        self._timeout = timeout or settings.http_timeout_seconds
        self._client = client

    async def get_path_features(self, line_wkt: str) -> List[Optional[SegmentFeatures]]:
        """Features aligned to maneuver order; entries may be None for gaps."""
        payload = {"line_geom": line_wkt}
        try:
            if self._client is not None:
                response = await self._client.post(
                    self._endpoint, json=payload, headers=self._headers(), timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        self._endpoint, json=payload, headers=self._headers(), timeout=self._timeout
                    )
        except httpx.HTTPError as exc:
            raise ExternalServiceError("Feature lookup request failed") from exc

        if response.status_code >= 400:
            raise ExternalServiceError(
                f"Feature lookup failed with status {response.status_code}: {response.text}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ExternalServiceError("Feature lookup returned invalid JSON.") from exc

        if not isinstance(data, list):
            raise ExternalServiceError("Feature lookup response must be a JSON array.")

        return [self._parse_entry(entry) for entry in data]

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    @staticmethod
    def _parse_entry(entry: Any) -> Optional[SegmentFeatures]:
        if not isinstance(entry, dict):
            return None
        features = SegmentFeatures.from_mapping(entry)
        if not features.present(features.as_dict().keys()):
            return None
        return features
