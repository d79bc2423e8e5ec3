from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class VibeWeightsPayload(BaseModel):
    """Raw user weights; unknown dimension keys are rejected"""
    model_config = ConfigDict(extra="forbid")

    greenery: float = 0.0
    quietness: float = 0.0
    culture: float = 0.0
    scenery: float = 0.0


class RouteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start: Coordinate
    end: Coordinate
    vibe_weights: VibeWeightsPayload = Field(alias="vibeWeights")
    alternatives: int = 2
    avoid_highways: bool = Field(default=False, alias="avoidHighways")
    prefer_bike_routes: bool = Field(default=False, alias="preferBikeRoutes")
    emotion: str = "neutral"
    night_mode: bool = Field(default=False, alias="nightMode")
    mode: Optional[Literal["synthetic", "engine"]] = None


class NavigationStartRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    route_id: str = Field(alias="routeId")
    position: Coordinate
    heading: float = 0.0
    night_mode: bool = Field(default=False, alias="nightMode")


class PositionUpdate(BaseModel):
    position: Coordinate
    heading: float = 0.0
