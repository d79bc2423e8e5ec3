"""
Main route service
Integrates plan building, generation, scoring, ranking, storage and response building
"""
import asyncio
import uuid
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool

from vibenav.config import settings
from vibenav.config.vibe_weights import VibeWeightsConfig, vibe_weights_config
from vibenav.models.request import RouteRequest
from vibenav.models.response import VibeRouteResponse
from vibenav.models.vibe import LatLng, RouteCandidate, VibeWeights
from vibenav.services.errors import ConfigurationError, RouteValidationError
from vibenav.services.geo import haversine_distance, point_to_polyline_distance
from vibenav.services.route.generation_service import RouteGenerationService
from vibenav.services.route.plan_builder import CandidatePlanBuilder
from vibenav.services.route.ranking_service import RouteRankingService
from vibenav.services.route.response_builder import ResponseBuilderService
from vibenav.services.route.scoring import score_candidate
from vibenav.services.route_store import RouteStore

ROUTE_CACHE_SIZE = 256
# Cached routes must end this close to the requested destination
DESTINATION_TOLERANCE_M = 25.0


@dataclass(frozen=True)
class RouteContext:
    """Everything needed to plan the same kind of route again."""

    weights: VibeWeights
    emotion: str = "neutral"
    mode: str = "synthetic"
    night_mode: bool = False
    avoid_highways: bool = False
    prefer_bike_routes: bool = False
    label: str = ""
    description: str = ""


class RouteService:
    """
    Main route service - four-layer processing flow

    Architecture: Plan building → Generation (per plan) → Scoring (per plan, concurrent)
    → Reranking → Response building
    """

    def __init__(
        self,
        generation_service: Optional[RouteGenerationService] = None,
        *,
        plan_builder: Optional[CandidatePlanBuilder] = None,
        ranking_service: Optional[RouteRankingService] = None,
        response_builder: Optional[ResponseBuilderService] = None,
        route_store: Optional[RouteStore] = None,
        weights_config: Optional[VibeWeightsConfig] = None,
    ):
        self.generation_service = generation_service or RouteGenerationService()
        self.plan_builder = plan_builder or CandidatePlanBuilder()
        self.ranking_service = ranking_service or RouteRankingService()
        self.response_builder = response_builder or ResponseBuilderService()
        self.route_store = route_store
        self.weights_config = weights_config or vibe_weights_config
        self._routes: "OrderedDict[str, Tuple[RouteCandidate, RouteContext]]" = OrderedDict()

    def _resolve_mode(self, mode: Optional[str]) -> str:
        mode = mode or settings.routing_mode
        if mode not in ("synthetic", "engine"):
            raise ConfigurationError(f"Unknown routing mode: {mode}")
        return mode

    async def plan_routes(
        self,
        start: LatLng,
        end: LatLng,
        context: RouteContext,
        alternatives: int,
    ) -> List[RouteCandidate]:
        """Generate, score and rank candidates; recommended route first."""
        # Unknown emotion keys fail before any external call
        self.weights_config.emotion_weights(context.emotion)
        mode = self._resolve_mode(context.mode)
        alternatives = min(alternatives, settings.max_alternatives)

        plans = self.plan_builder.build_plans(context.weights, alternatives)

        # Step 1: Generate one candidate per plan
        candidates = await self.generation_service.generate_candidate_routes(
            plans,
            start,
            end,
            mode=mode,
            emotion=context.emotion,
            avoid_highways=context.avoid_highways,
            prefer_bike_routes=context.prefer_bike_routes,
            id_prefix=f"route-{uuid.uuid4().hex[:8]}",
        )
        if not candidates:
            raise RouteValidationError("No route candidates could be generated")

        # Step 2: Score every candidate independently
        scored = await asyncio.gather(
            *[
                run_in_threadpool(
                    score_candidate,
                    candidate,
                    night_mode=context.night_mode,
                    config=self.weights_config,
                )
                for candidate in candidates
            ]
        )

        # Step 3: Rerank after the join
        ranked = self.ranking_service.rank_routes(list(scored))

        for route in ranked:
            self._remember(route, replace(context, mode=mode))
        return ranked

    async def generate_routes(self, request: RouteRequest) -> VibeRouteResponse:
        """Main route generation process"""
        context = RouteContext(
            weights=VibeWeights(**request.vibe_weights.model_dump()),
            emotion=request.emotion,
            mode=request.mode or settings.routing_mode,
            night_mode=request.night_mode,
            avoid_highways=request.avoid_highways,
            prefer_bike_routes=request.prefer_bike_routes,
        )
        ranked = await self.plan_routes(
            (request.start.lat, request.start.lng),
            (request.end.lat, request.end.lng),
            context,
            request.alternatives,
        )

        stored_route = None
        recommended = self.ranking_service.recommended(ranked)
        if self.route_store is not None and recommended is not None:
            stored_route = await run_in_threadpool(self.route_store.store_route, recommended)

        return self.response_builder.build_response(ranked, stored_route)

    async def recalculate(
        self, position: LatLng, destination: LatLng, context: RouteContext
    ) -> RouteCandidate:
        """Plan a single route from the current position with the same context."""
        cached = self.nearby_route(position, destination, context)
        if cached is not None:
            print(f"♻️ Reusing cached route {cached.id} for recalculation")
            return cached

        ranked = await self.plan_routes(position, destination, context, alternatives=0)
        route = ranked[0]
        if context.label:
            route = replace(route, label=context.label, description=context.description)
            self._remember(route, context)
        return route

    def nearby_route(
        self,
        position: LatLng,
        destination: LatLng,
        context: RouteContext,
        radius_m: Optional[float] = None,
        min_vibe_score: Optional[float] = None,
    ) -> Optional[RouteCandidate]:
        """
        Best cached route that starts within ``radius_m`` of the walker and ends at
        ``destination``. The walker must already be on its path, so the route
        they just left is never offered again.
        """
        if radius_m is None:
            radius_m = settings.recalculation_cache_radius_m
        if min_vibe_score is None:
            min_vibe_score = settings.recalculation_cache_min_vibe_score

        best = None
        for route, cached_context in self._routes.values():
            if (
                cached_context.emotion != context.emotion
                or cached_context.mode != context.mode
                or cached_context.night_mode != context.night_mode
            ):
                continue
            if route.vibe_score < min_vibe_score:
                continue
            if haversine_distance(*route.destination, *destination) > DESTINATION_TOLERANCE_M:
                continue
            if haversine_distance(*route.origin, *position) > radius_m:
                continue
            if point_to_polyline_distance(position, route.coordinates) > settings.off_route_distance_m:
                continue
            if best is None or route.vibe_score > best.vibe_score:
                best = route
        return best

    def get_route(self, route_id: str) -> Optional[Tuple[RouteCandidate, RouteContext]]:
        return self._routes.get(route_id)

    def _remember(self, route: RouteCandidate, context: RouteContext) -> None:
        # Keep the plan weights and copy that produced this candidate
        self._routes[route.id] = (
            route,
            replace(
                context,
                weights=route.weights,
                label=route.label,
                description=route.description,
            ),
        )
        self._routes.move_to_end(route.id)
        while len(self._routes) > ROUTE_CACHE_SIZE:
            self._routes.popitem(last=False)
