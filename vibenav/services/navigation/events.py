"""Typed navigation events; adapters outside the core perform speech, vibration and audio."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from vibenav.models.vibe import NavigationState


class NavigationEvent:
    type = "event"

    def to_payload(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class StateChanged(NavigationEvent):
    state: NavigationState
    type = "state_changed"

    def to_payload(self) -> Dict[str, Any]:
        state = self.state
        route = state.current_route
        return {
            "status": state.status.value,
            "routeId": route.id if route else None,
            "nextTurnIndex": state.next_turn_index,
            "distanceToNextTurn": round(state.distance_to_next_turn, 1),
            "isOffRoute": state.is_off_route,
        }


@dataclass(frozen=True)
class HapticFeedback(NavigationEvent):
    intensity: str
    type = "haptic"

    def to_payload(self) -> Dict[str, Any]:
        return {"intensity": self.intensity}


@dataclass(frozen=True)
class AudioInstruction(NavigationEvent):
    text: str
    type = "audio"

    def to_payload(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True)
class AmbienceChanged(NavigationEvent):
    ambience: Optional[str]
    volume: float
    type = "ambience"

    def to_payload(self) -> Dict[str, Any]:
        return {"ambience": self.ambience, "volume": round(self.volume, 2)}


@dataclass(frozen=True)
class RouteRecalculated(NavigationEvent):
    route_id: str
    type = "route_recalculated"

    def to_payload(self) -> Dict[str, Any]:
        return {"routeId": self.route_id}


@dataclass(frozen=True)
class RecalculationFailed(NavigationEvent):
    reason: str
    type = "recalculation_failed"

    def to_payload(self) -> Dict[str, Any]:
        return {"reason": self.reason}


NavigationObserver = Callable[[NavigationEvent], None]


class EventCollector:
    """Observer that buffers events until drained."""

    def __init__(self) -> None:
        self.events: List[NavigationEvent] = []

    def __call__(self, event: NavigationEvent) -> None:
        self.events.append(event)

    def drain(self) -> List[NavigationEvent]:
        events, self.events = self.events, []
        return events

    def of_type(self, event_type: type) -> List[NavigationEvent]:
        return [event for event in self.events if isinstance(event, event_type)]
