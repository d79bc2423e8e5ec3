"""
Response models for the vibe routing and navigation API
Field aliases follow the mobile client's JSON shape.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from vibenav.models.request import Coordinate, VibeWeightsPayload


class _AliasedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class VibeSummaryResponse(_AliasedModel):
    normalized_weights: VibeWeightsPayload = Field(alias="normalizedWeights")
    segment_averages: VibeWeightsPayload = Field(alias="segmentAverages")
    weighted_score: float = Field(alias="weightedScore")
    dominant_vibe: str = Field(alias="dominantVibe")


class RouteSummaryResponse(BaseModel):
    """Route geometry (WKT LINESTRING, lng lat order) and totals"""
    path: str
    total_distance: float  # meters
    estimated_duration: float  # seconds
    vibe_summary: VibeSummaryResponse


class SegmentResponse(_AliasedModel):
    index: int
    start: Coordinate
    end: Coordinate
    distance: float
    duration: float
    summary: str
    dominant_vibe: str = Field(alias="dominantVibe")
    vibe_scores: VibeWeightsPayload = Field(alias="vibeScores")
    instruction: Optional[str] = None


class HighlightResponse(BaseModel):
    id: str
    name: str
    description: str
    coordinate: List[float]  # [lng, lat]
    vibe: str


class TurnResponse(BaseModel):
    distance: float
    direction: str
    point: List[float]  # [lng, lat]
    bearing: Optional[float] = None
    instruction: Optional[str] = None


class RouteCandidateResponse(BaseModel):
    """One ranked route candidate"""
    id: str
    label: str
    description: str
    mode: str
    vibe_weights: VibeWeightsPayload
    route: RouteSummaryResponse
    segments: List[SegmentResponse]
    highlights: List[HighlightResponse]
    turns: List[TurnResponse] = []
    geojson: Dict[str, Any]
    coordinates: List[List[float]]  # [[lng, lat], ...]
    vibe_score: float = 0.0
    confidence: float = 1.0
    recommended: bool = False


class VibeRouteResponse(_AliasedModel):
    stored_route: Optional[Dict[str, Any]] = Field(default=None, alias="storedRoute")
    routes: List[RouteCandidateResponse] = []
    recommended_route_id: Optional[str] = Field(default=None, alias="recommendedRouteId")


class NavigationEventResponse(BaseModel):
    type: str
    payload: Dict[str, Any] = {}


class NavigationStateResponse(_AliasedModel):
    status: str
    route_id: Optional[str] = Field(default=None, alias="routeId")
    position: Optional[Coordinate] = None
    heading: float = 0.0
    next_turn_index: int = Field(default=0, alias="nextTurnIndex")
    distance_to_next_turn: float = Field(default=0.0, alias="distanceToNextTurn")
    is_off_route: bool = Field(default=False, alias="isOffRoute")


class NavigationSessionResponse(_AliasedModel):
    session_id: str = Field(alias="sessionId")
    state: NavigationStateResponse
    events: List[NavigationEventResponse] = []
