"""
User feedback models for rating a chosen route
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from vibenav.models.request import VibeWeightsPayload


class RouteFeedback(BaseModel):
    """Route feedback model; a rating of 0 or a missing rating is rejected"""
    model_config = ConfigDict(populate_by_name=True)

    route_id: str = Field(alias="routeId", min_length=1)
    route_label: str = Field(alias="routeLabel")
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None
    vibe_weights: VibeWeightsPayload = Field(alias="vibeWeights")
    stored_route_id: Optional[str] = Field(default=None, alias="storedRouteId")

    @field_validator("comment")
    @classmethod
    def _trim_comment(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


class EmotionRecord(BaseModel):
    """Self-reported emotion sample; intensity runs from 0 to 1"""
    model_config = ConfigDict(populate_by_name=True)

    state: str = Field(min_length=1)
    intensity: float = Field(default=0.5, ge=0.0, le=1.0)
    user_id: Optional[str] = Field(default=None, alias="userId")
    route_id: Optional[str] = Field(default=None, alias="routeId")
