import asyncio
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from vibenav.models.vibe import (
    VIBE_DIMENSIONS,
    LatLng,
    RouteCandidate,
    Segment,
    SegmentFeatures,
    TurnInstruction,
    VibeWeights,
)
from vibenav.services.errors import ExternalServiceError
from vibenav.services.geo import (
    bearing_between,
    haversine_distance,
    relative_direction,
    to_wkt_linestring,
)
from vibenav.services.map.feature_service import FeatureLookupService
from vibenav.services.map.routing_engine import EngineRoute, RoutingEngine
from vibenav.services.map.valhalla_service import (
    ValhallaRoutingService,
    build_costing_strategies,
)
from vibenav.services.route.highlight_service import (
    generate_highlights,
    generate_route_label,
)
from vibenav.services.route.plan_builder import CandidatePlan
from vibenav.services.route.scoring import summarize_vibes, vibe_profile_from_features

SYNTHETIC_SEGMENT_COUNT = 8
ARCHETYPE_BLEND = 0.55
PLAN_BLEND = 0.45
VARIATION_AMPLITUDE = 0.05

BASE_CURVE = 0.04
SWAY_FACTOR = 0.12
DRIFT_FACTOR = 0.08

BASE_WALKING_SPEED = 1.35  # m/s

# People linger in some surroundings more than others
PACE_ADJUSTMENT: Dict[str, float] = {
    "greenery": 0.95,
    "quietness": 1.0,
    "culture": 0.85,
    "scenery": 0.9,
}

ARCHETYPES: Tuple[VibeWeights, ...] = (
    VibeWeights(greenery=0.85, quietness=0.6, culture=0.25, scenery=0.55),  # park corridor
    VibeWeights(greenery=0.45, quietness=0.85, culture=0.2, scenery=0.35),  # quiet lane
    VibeWeights(greenery=0.25, quietness=0.35, culture=0.9, scenery=0.5),  # culture quarter
    VibeWeights(greenery=0.5, quietness=0.5, culture=0.35, scenery=0.9),  # waterfront
)

VIBE_PHRASES: Dict[str, str] = {
    "greenery": "leafy, tree-lined streets",
    "quietness": "calm, low-traffic lanes",
    "culture": "galleries and local landmarks",
    "scenery": "open views and waterfront edges",
}

# Valhalla start maneuvers carry no turn to announce
_START_MANEUVER_TYPES = {1, 2, 3}


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def describe_segment(profile: VibeWeights) -> str:
    first, second = profile.ranked_dimensions()[:2]
    return f"Mostly {VIBE_PHRASES[first]} with {VIBE_PHRASES[second]}"


def segment_duration(distance_m: float, dominant: str) -> float:
    return distance_m / (BASE_WALKING_SPEED * PACE_ADJUSTMENT[dominant])


@dataclass
class EnrichedRoute:
    """Engine route partitioned into maneuver segments with attached features."""

    route: EngineRoute
    segments: Tuple[Segment, ...]
    turns: Tuple[TurnInstruction, ...]
    degraded_segments: int = 0


class RouteGenerationService:
    """
    Route generation service - builds candidate routes for each vibe plan, either
    as stylized synthetic geometry or from the external routing engine
    """

    def __init__(
        self,
        routing_engine: Optional[RoutingEngine] = None,
        feature_service: Optional[FeatureLookupService] = None,
    ):
        self.routing_engine = routing_engine or ValhallaRoutingService()
        self.feature_service = feature_service or FeatureLookupService()

    # Synthetic mode

    def synthesize_path(
        self, start: LatLng, end: LatLng, weights: VibeWeights
    ) -> List[LatLng]:
        """Interpolate start→end with a gentle weight-dependent sway."""
        span_lat = end[0] - start[0]
        span_lng = end[1] - start[1]
        # Perpendicular to the travel direction, same magnitude as the span
        perp_lat, perp_lng = -span_lng, span_lat

        sway = SWAY_FACTOR * (weights.greenery - weights.culture)
        drift = DRIFT_FACTOR * (weights.scenery - weights.quietness)

        points = []
        for i in range(SYNTHETIC_SEGMENT_COUNT + 1):
            t = i / SYNTHETIC_SEGMENT_COUNT
            lat = start[0] + span_lat * t
            lng = start[1] + span_lng * t
            if 0 < i < SYNTHETIC_SEGMENT_COUNT:
                offset = (BASE_CURVE + sway) * math.sin(math.pi * t) + drift * math.sin(
                    2 * math.pi * t
                )
                lat += perp_lat * offset
                lng += perp_lng * offset
            points.append((lat, lng))
        return points

    @staticmethod
    def synthesize_profile(index: int, weights: VibeWeights) -> VibeWeights:
        archetype = ARCHETYPES[index % len(ARCHETYPES)]
        profile = {}
        for k, dim in enumerate(VIBE_DIMENSIONS):
            variation = VARIATION_AMPLITUDE * math.sin(1.7 * index + k)
            profile[dim] = _clamp01(
                ARCHETYPE_BLEND * archetype.get(dim) + PLAN_BLEND * weights.get(dim) + variation
            )
        return VibeWeights(**profile)

    def generate_synthetic_candidate(
        self,
        plan: CandidatePlan,
        plan_index: int,
        start: LatLng,
        end: LatLng,
        *,
        id_prefix: str = "route",
    ) -> RouteCandidate:
        points = self.synthesize_path(start, end, plan.weights)

        segments = []
        for i in range(len(points) - 1):
            a, b = points[i], points[i + 1]
            distance = haversine_distance(a[0], a[1], b[0], b[1])
            profile = self.synthesize_profile(i, plan.weights)
            dominant = profile.dominant()
            segments.append(
                Segment(
                    index=i,
                    geometry=(a, b),
                    distance=distance,
                    duration=segment_duration(distance, dominant),
                    vibe_profile=profile,
                    dominant_vibe=dominant,
                    summary=describe_segment(profile),
                )
            )

        candidate_id = f"{id_prefix}-{plan.id}"
        return RouteCandidate(
            id=candidate_id,
            label=plan.label,
            description=plan.description,
            weights=plan.weights,
            mode="synthetic",
            coordinates=points,
            segments=tuple(segments),
            turns=self._synthetic_turns(points, segments),
            distance=sum(s.distance for s in segments),
            duration=sum(s.duration for s in segments),
            plan_id=plan.id,
            plan_index=plan_index,
            highlights=tuple(generate_highlights(candidate_id, plan.weights, points)),
        )

    @staticmethod
    def _synthetic_turns(
        points: Sequence[LatLng], segments: Sequence[Segment]
    ) -> Tuple[TurnInstruction, ...]:
        turns = []
        since_last_turn = 0.0
        for i in range(1, len(points) - 1):
            since_last_turn += segments[i - 1].distance
            incoming = bearing_between(*points[i - 1], *points[i])
            outgoing = bearing_between(*points[i], *points[i + 1])
            direction = relative_direction(incoming, outgoing)
            if direction == "straight":
                continue
            turns.append(
                TurnInstruction(
                    distance=since_last_turn,
                    direction=direction,
                    point=points[i],
                    bearing=outgoing,
                )
            )
            since_last_turn = 0.0

        since_last_turn += segments[-1].distance if segments else 0.0
        turns.append(
            TurnInstruction(distance=since_last_turn, direction="arrive", point=points[-1])
        )
        return tuple(turns)

    # Engine-backed mode

    async def fetch_engine_routes(
        self,
        start: LatLng,
        end: LatLng,
        *,
        avoid_highways: bool = False,
        prefer_bike_routes: bool = False,
    ) -> List[EnrichedRoute]:
        """Request every costing strategy concurrently and enrich the survivors."""
        strategies = build_costing_strategies(avoid_highways, prefer_bike_routes)
        print(f"🗺️ Requesting {len(strategies)} base routes from the routing engine...")

        results = await asyncio.gather(
            *[self.routing_engine.get_route(start, end, s) for s in strategies],
            return_exceptions=True,
        )

        routes: List[EngineRoute] = []
        for strategy, result in zip(strategies, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                print(f"   ⚠️ {strategy.name} route failed: {str(result)}")
                continue
            routes.append(result)

        if not routes:
            raise ExternalServiceError("Routing engine returned no usable routes")

        enriched = await asyncio.gather(*[self.enrich_route(route) for route in routes])
        print(f"✅ Enriched {len(enriched)} engine routes")
        return list(enriched)

    async def enrich_route(self, route: EngineRoute) -> EnrichedRoute:
        """Attach looked-up features to each maneuver segment, defaults on gaps."""
        features: List[Optional[SegmentFeatures]] = []
        try:
            features = await self.feature_service.get_path_features(
                to_wkt_linestring(route.coordinates)
            )
        except ExternalServiceError as e:
            print(f"⚠️ Feature lookup failed, using default features: {str(e)}")

        segments = []
        degraded = 0
        for idx, maneuver in enumerate(route.maneuvers):
            geometry = tuple(
                route.coordinates[maneuver.begin_shape_index : maneuver.end_shape_index + 1]
            )
            if len(geometry) < 2:
                continue

            segment_features = features[idx] if idx < len(features) else None
            if segment_features is None:
                segment_features = SegmentFeatures.defaults()
                degraded += 1

            profile = vibe_profile_from_features(segment_features)
            dominant = profile.dominant()
            segments.append(
                Segment(
                    index=len(segments),
                    geometry=geometry,
                    distance=maneuver.length_m,
                    duration=maneuver.time_s,
                    vibe_profile=profile,
                    dominant_vibe=dominant,
                    summary=describe_segment(profile),
                    features=segment_features,
                    instruction=maneuver.instruction,
                )
            )

        if degraded:
            print(f"⚠️ {degraded} segment(s) on {route.strategy} route use default features")

        turns = []
        for maneuver in route.maneuvers:
            if maneuver.type in _START_MANEUVER_TYPES:
                continue
            point = route.coordinates[min(maneuver.begin_shape_index, len(route.coordinates) - 1)]
            bearing = None
            if maneuver.begin_shape_index + 1 < len(route.coordinates):
                nxt = route.coordinates[maneuver.begin_shape_index + 1]
                bearing = bearing_between(point[0], point[1], nxt[0], nxt[1])
            turns.append(
                TurnInstruction(
                    distance=maneuver.length_m,
                    direction=maneuver.direction,
                    point=point,
                    bearing=bearing,
                    instruction=maneuver.instruction,
                )
            )

        return EnrichedRoute(
            route=route, segments=tuple(segments), turns=tuple(turns), degraded_segments=degraded
        )

    def build_engine_candidate(
        self,
        plan: CandidatePlan,
        plan_index: int,
        options: Sequence[EnrichedRoute],
        *,
        emotion: str = "neutral",
        id_prefix: str = "route",
    ) -> Optional[RouteCandidate]:
        """Pair a plan with the engine route that best matches its weights."""
        usable = [option for option in options if option.segments]
        if not usable:
            return None

        fastest = min(option.route.duration_s for option in usable)
        best = max(
            usable,
            key=lambda option: summarize_vibes(option.segments, plan.weights).weighted_score,
        )
        route = best.route

        candidate_id = f"{id_prefix}-{plan.id}"
        feature_label = generate_route_label(best.segments)
        return RouteCandidate(
            id=candidate_id,
            label=plan.label,
            description=f"{feature_label} via {route.strategy} routing. {plan.description}",
            weights=plan.weights,
            mode="engine",
            coordinates=list(route.coordinates),
            segments=best.segments,
            turns=best.turns,
            distance=route.distance_m,
            duration=route.duration_s,
            plan_id=plan.id,
            plan_index=plan_index,
            emotion=emotion,
            detour_minutes=(route.duration_s - fastest) / 60,
            highlights=tuple(
                generate_highlights(candidate_id, plan.weights, route.coordinates)
            ),
        )

    async def generate_candidate_routes(
        self,
        plans: Sequence[CandidatePlan],
        start: LatLng,
        end: LatLng,
        *,
        mode: str = "synthetic",
        emotion: str = "neutral",
        avoid_highways: bool = False,
        prefer_bike_routes: bool = False,
        id_prefix: str = "route",
    ) -> List[RouteCandidate]:
        """
        Generate one candidate per plan.

        Args:
            plans: Candidate plans, base plan first
            start: Start coordinates (lat, lng)
            end: End coordinates (lat, lng)
            mode: "synthetic" or "engine"

        Returns:
            Unscored candidates in plan order
        """
        if mode == "engine":
            options = await self.fetch_engine_routes(
                start,
                end,
                avoid_highways=avoid_highways,
                prefer_bike_routes=prefer_bike_routes,
            )
            candidates = [
                self.build_engine_candidate(
                    plan, idx, options, emotion=emotion, id_prefix=id_prefix
                )
                for idx, plan in enumerate(plans)
            ]
        else:
            candidates = [
                self.generate_synthetic_candidate(plan, idx, start, end, id_prefix=id_prefix)
                for idx, plan in enumerate(plans)
            ]

        generated = [c for c in candidates if c is not None]
        print(f"🎉 Generated {len(generated)} candidate routes ({mode} mode)")
        return generated
