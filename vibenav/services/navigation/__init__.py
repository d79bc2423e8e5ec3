"""Live navigation: tracker state machine, typed events and session ownership."""
from .ambience import AmbienceController
from .events import (
    AmbienceChanged,
    AudioInstruction,
    EventCollector,
    HapticFeedback,
    NavigationEvent,
    RecalculationFailed,
    RouteRecalculated,
    StateChanged,
)
from .session import NavigationSession, NavigationSessionManager
from .tracker import NavigationTracker, is_off_route

__all__ = [
    "AmbienceController",
    "AmbienceChanged",
    "AudioInstruction",
    "EventCollector",
    "HapticFeedback",
    "NavigationEvent",
    "RecalculationFailed",
    "RouteRecalculated",
    "StateChanged",
    "NavigationSession",
    "NavigationSessionManager",
    "NavigationTracker",
    "is_off_route",
]
