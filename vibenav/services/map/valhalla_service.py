import httpx
import polyline
from typing import Dict, List, Optional

from vibenav.config import settings
from vibenav.services.errors import ExternalServiceError
from vibenav.services.map.routing_engine import (
    CostingStrategy,
    EngineRoute,
    LatLng,
    Maneuver,
    RoutingEngine,
)

# Valhalla encodes shapes with six decimal digits of precision
SHAPE_PRECISION = 6


def build_costing_strategies(
    avoid_highways: bool = False, prefer_bike_routes: bool = False
) -> List[CostingStrategy]:
    """Costing profiles requested in parallel to get distinct base routes."""
    walkway_factor = 1.5
    if avoid_highways:
        walkway_factor = 2.0

    strategies = [
        CostingStrategy(name="fastest", costing="pedestrian"),
        CostingStrategy(
            name="walkways",
            costing="pedestrian",
            options={
                "pedestrian": {
                    "walkway_factor": walkway_factor,
                    "sidewalk_factor": 1.3,
                    "alley_factor": 0.5,
                    "use_hills": 0.3,
                }
            },
        ),
    ]
    if prefer_bike_routes:
        strategies.append(
            CostingStrategy(
                name="bicycle",
                costing="bicycle",
                options={"bicycle": {"use_roads": 0.1 if avoid_highways else 0.3}},
            )
        )
    return strategies


class ValhallaRoutingService(RoutingEngine):
    """Valhalla routing engine HTTP client"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.valhalla_url).rstrip("/")
        self.route_url = f"{self.base_url}/route"
        self.timeout = timeout or settings.http_timeout_seconds
        self._client = client

        if not self.base_url:
            raise ValueError("Valhalla URL is required")

    async def get_route(
        self, origin: LatLng, destination: LatLng, strategy: CostingStrategy
    ) -> EngineRoute:
        """Request a route from Valhalla and convert it to the standard format"""
        body = self._build_route_request_body(origin, destination, strategy)

        try:
            if self._client is not None:
                data = await self._post(self._client, body)
            else:
                async with httpx.AsyncClient() as client:
                    data = await self._post(client, body)
        except httpx.HTTPStatusError as e:
            error_detail = ""
            try:
                error_detail = f" - {e.response.json().get('error', '')}"
            except ValueError:
                pass

            if e.response.status_code == 400:
                raise ExternalServiceError(
                    f"Routing engine rejected the request (400){error_detail}"
                ) from e
            raise ExternalServiceError(
                f"Routing engine error: {e.response.status_code}{error_detail}"
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Routing engine unreachable: {str(e)}") from e

        return self._convert_route_response(data, strategy)

    async def _post(self, client: httpx.AsyncClient, body: Dict) -> Dict:
        response = await client.post(self.route_url, json=body, timeout=self.timeout)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError("Routing engine returned invalid JSON") from e

    def _build_route_request_body(
        self, origin: LatLng, destination: LatLng, strategy: CostingStrategy
    ) -> Dict:
        request_body = {
            "locations": [
                {"lat": origin[0], "lon": origin[1]},
                {"lat": destination[0], "lon": destination[1]},
            ],
            "costing": strategy.costing,
            "units": "kilometers",
        }
        if strategy.options:
            request_body["costing_options"] = strategy.options
        return request_body

    def _convert_route_response(self, data: Dict, strategy: CostingStrategy) -> EngineRoute:
        """Merge all legs of a Valhalla trip into one route"""
        legs = (data.get("trip") or {}).get("legs") or []
        if not legs:
            raise ExternalServiceError("Routing engine returned no legs")

        coordinates: List[LatLng] = []
        maneuvers: List[Maneuver] = []
        distance_km = 0.0
        duration_s = 0.0

        for leg in legs:
            points = [tuple(p) for p in polyline.decode(leg.get("shape", ""), SHAPE_PRECISION)]
            # Legs share their joining point
            offset = max(len(coordinates) - 1, 0)
            if coordinates and points:
                points = points[1:]
            coordinates.extend(points)

            summary = leg.get("summary", {})
            distance_km += float(summary.get("length", 0.0))
            duration_s += float(summary.get("time", 0.0))

            for m in leg.get("maneuvers", []):
                maneuvers.append(
                    Maneuver(
                        instruction=m.get("instruction", ""),
                        type=int(m.get("type", 0)),
                        length_m=float(m.get("length", 0.0)) * 1000,
                        time_s=float(m.get("time", 0.0)),
                        begin_shape_index=int(m.get("begin_shape_index", 0)) + offset,
                        end_shape_index=int(m.get("end_shape_index", 0)) + offset,
                    )
                )

        if len(coordinates) < 2:
            raise ExternalServiceError("Routing engine returned an empty shape")

        return EngineRoute(
            strategy=strategy.name,
            coordinates=coordinates,
            distance_m=distance_km * 1000,
            duration_s=duration_s,
            maneuvers=maneuvers,
        )
