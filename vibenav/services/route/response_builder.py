"""
Response builder service - converts ranked route candidates to API response format
Includes WKT path, GeoJSON feature, segments and highlights
"""
from typing import Any, Dict, List, Optional

from vibenav.models.request import Coordinate, VibeWeightsPayload
from vibenav.models.response import (
    HighlightResponse,
    RouteCandidateResponse,
    RouteSummaryResponse,
    SegmentResponse,
    TurnResponse,
    VibeRouteResponse,
    VibeSummaryResponse,
)
from vibenav.models.vibe import RouteCandidate, VibeWeights
from vibenav.services.errors import RouteValidationError
from vibenav.services.geo import to_geojson_feature, to_lnglat, to_wkt_linestring


def _weights_payload(weights: VibeWeights) -> VibeWeightsPayload:
    return VibeWeightsPayload(**weights.as_dict())


class ResponseBuilderService:
    """Response builder service - converts internal data to API response format"""

    def build_candidate(self, candidate: RouteCandidate) -> RouteCandidateResponse:
        if candidate.summary is None:
            raise RouteValidationError(f"Route {candidate.id} has not been scored")

        summary = candidate.summary
        segments = [
            SegmentResponse(
                index=seg.index,
                start=Coordinate(lat=seg.start[0], lng=seg.start[1]),
                end=Coordinate(lat=seg.end[0], lng=seg.end[1]),
                distance=round(seg.distance, 1),
                duration=round(seg.duration, 1),
                summary=seg.summary,
                dominant_vibe=seg.dominant_vibe,
                vibe_scores=_weights_payload(seg.vibe_profile),
                instruction=seg.instruction,
            )
            for seg in candidate.segments
        ]

        highlights = [
            HighlightResponse(
                id=h.id,
                name=h.name,
                description=h.description,
                coordinate=list(h.coordinate),
                vibe=h.vibe,
            )
            for h in candidate.highlights
        ]

        turns = [
            TurnResponse(
                distance=round(turn.distance, 1),
                direction=turn.direction,
                point=[turn.point[1], turn.point[0]],
                bearing=turn.bearing,
                instruction=turn.instruction,
            )
            for turn in candidate.turns
        ]

        return RouteCandidateResponse(
            id=candidate.id,
            label=candidate.label,
            description=candidate.description,
            mode=candidate.mode,
            vibe_weights=_weights_payload(candidate.weights),
            route=RouteSummaryResponse(
                path=to_wkt_linestring(candidate.coordinates),
                total_distance=round(candidate.distance, 1),
                estimated_duration=round(candidate.duration, 1),
                vibe_summary=VibeSummaryResponse(
                    normalized_weights=_weights_payload(summary.normalized_weights),
                    segment_averages=_weights_payload(summary.segment_averages),
                    weighted_score=summary.weighted_score,
                    dominant_vibe=summary.dominant_vibe,
                ),
            ),
            segments=segments,
            highlights=highlights,
            turns=turns,
            geojson=to_geojson_feature(
                candidate.coordinates,
                {"id": candidate.id, "label": candidate.label, "dominantVibe": summary.dominant_vibe},
            ),
            coordinates=to_lnglat(candidate.coordinates),
            vibe_score=candidate.vibe_score,
            confidence=candidate.confidence,
            recommended=candidate.recommended,
        )

    def build_response(
        self,
        routes: List[RouteCandidate],
        stored_route: Optional[Dict[str, Any]] = None,
    ) -> VibeRouteResponse:
        """
        Build API response from ranked candidates

        Args:
            routes: Ranked candidates, recommended first
            stored_route: Persisted copy of the recommended route, if any

        Returns:
            VibeRouteResponse with every candidate serialized
        """
        recommended_id = next((r.id for r in routes if r.recommended), None)
        return VibeRouteResponse(
            stored_route=stored_route,
            routes=[self.build_candidate(route) for route in routes],
            recommended_route_id=recommended_id,
        )
