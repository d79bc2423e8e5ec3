"""
Navigation tracker - turn-by-turn state machine

idle → navigating → (navigating ⇄ recalculating) → arrived | stopped
All side effects are emitted as typed events to registered observers.
"""
import asyncio
from dataclasses import replace
from typing import Awaitable, Callable, List, Optional, Tuple

from vibenav.config import settings
from vibenav.models.vibe import (
    LatLng,
    NavigationState,
    NavigationStatus,
    RouteCandidate,
    Segment,
    TurnInstruction,
)
from vibenav.services.errors import VibeNavError
from vibenav.services.geo import (
    bearing_between,
    haversine_distance,
    heading_difference,
    point_to_polyline_distance,
)
from vibenav.services.navigation.ambience import AmbienceController, features_for_segment
from vibenav.services.navigation.events import (
    AudioInstruction,
    HapticFeedback,
    NavigationEvent,
    NavigationObserver,
    RecalculationFailed,
    RouteRecalculated,
    StateChanged,
)

Recalculator = Callable[[LatLng, LatLng], Awaitable[RouteCandidate]]

DIRECTION_PHRASES = {
    "left": "turn left",
    "right": "turn right",
    "straight": "continue straight",
    "arrive": "arrive at your destination",
}


def is_off_route(
    distance_m: float,
    heading_diff: float,
    distance_threshold: Optional[float] = None,
    heading_threshold: Optional[float] = None,
    hard_distance_threshold: Optional[float] = None,
) -> bool:
    """Far from the route and heading away, or simply too far."""
    distance_threshold = (
        settings.off_route_distance_m if distance_threshold is None else distance_threshold
    )
    heading_threshold = (
        settings.off_route_heading_deg if heading_threshold is None else heading_threshold
    )
    hard_distance_threshold = (
        settings.off_route_hard_distance_m
        if hard_distance_threshold is None
        else hard_distance_threshold
    )
    return (
        distance_m > distance_threshold and heading_diff > heading_threshold
    ) or distance_m > hard_distance_threshold


def turn_phrase(turn: TurnInstruction) -> str:
    return DIRECTION_PHRASES.get(turn.direction, "keep going")


class NavigationTracker:
    """Tracks progress along one route candidate"""

    def __init__(
        self,
        route: RouteCandidate,
        *,
        recalculator: Optional[Recalculator] = None,
        ambience: Optional[AmbienceController] = None,
        recalculation_timeout: Optional[float] = None,
    ):
        self.destination = route.destination
        self.recalculator = recalculator
        self.ambience = ambience
        if recalculation_timeout is None:
            recalculation_timeout = settings.recalculation_timeout_seconds
        self.recalculation_timeout = recalculation_timeout
        self.state = NavigationState(current_route=route)
        self._observers: List[NavigationObserver] = []
        # Bumped on stop so a late recalculation result can be recognised
        self._generation = 0

    def subscribe(self, observer: NavigationObserver) -> None:
        self._observers.append(observer)

    def _emit(self, event: Optional[NavigationEvent]) -> None:
        if event is None:
            return
        for observer in self._observers:
            observer(event)

    def _emit_state(self) -> None:
        self._emit(StateChanged(state=replace(self.state)))

    @property
    def route(self) -> RouteCandidate:
        return self.state.current_route

    def start(self, position: LatLng, heading: float = 0.0) -> NavigationState:
        if self.state.status != NavigationStatus.IDLE:
            return self.state

        self.state.status = NavigationStatus.NAVIGATING
        self.state.current_position = position
        self.state.current_heading = heading
        self.state.next_turn_index = 0
        print(f"🧭 Navigation started on {self.route.id}")
        self._emit_state()
        self._announce_next_turn()
        return self.state

    def nearest_segment(self, position: LatLng) -> Optional[Tuple[Segment, float, float]]:
        """Closest segment with its distance (m) and bearing (first → last point)."""
        best = None
        for segment in self.route.segments:
            if len(segment.geometry) < 2:
                continue
            distance = point_to_polyline_distance(position, segment.geometry)
            if best is None or distance < best[1]:
                start, end = segment.start, segment.end
                bearing = bearing_between(start[0], start[1], end[0], end[1])
                best = (segment, distance, bearing)
        return best

    async def update(self, position: LatLng, heading: float) -> NavigationState:
        if self.state.status != NavigationStatus.NAVIGATING:
            return self.state

        self.state.current_position = position
        self.state.current_heading = heading

        nearest = self.nearest_segment(position)
        off_route = False
        if nearest is not None:
            _, distance, bearing = nearest
            off_route = is_off_route(distance, heading_difference(heading, bearing))
        self.state.is_off_route = off_route

        if off_route:
            await self._recalculate(position)
            if self.state.status == NavigationStatus.NAVIGATING:
                self._emit_state()
            return self.state

        turns = self.route.turns
        if self.state.next_turn_index >= len(turns):
            self._arrive()
            return self.state

        turn = turns[self.state.next_turn_index]
        distance_to_turn = haversine_distance(position[0], position[1], turn.point[0], turn.point[1])
        self.state.distance_to_next_turn = distance_to_turn

        if settings.turn_voice_distance_m < distance_to_turn < settings.turn_haptic_distance_m:
            self._emit(HapticFeedback(intensity="light"))
        elif settings.turn_complete_distance_m < distance_to_turn < settings.turn_voice_distance_m:
            self._emit(AudioInstruction(text=f"In {round(distance_to_turn)} meters, {turn_phrase(turn)}"))
        elif distance_to_turn < settings.turn_complete_distance_m:
            self._emit(HapticFeedback(intensity="medium"))
            self.state.next_turn_index += 1
            self._announce_next_turn()

        if nearest is not None and self.ambience is not None:
            self._emit(self.ambience.update(features_for_segment(nearest[0])))

        self._emit_state()
        return self.state

    def stop(self) -> NavigationState:
        if self.state.status == NavigationStatus.STOPPED:
            return self.state

        self._generation += 1
        self.state.status = NavigationStatus.STOPPED
        print(f"🛑 Navigation stopped on {self.route.id}")
        self._emit_state()
        return self.state

    def _announce_next_turn(self) -> None:
        turns = self.route.turns
        if self.state.next_turn_index >= len(turns):
            return
        turn = turns[self.state.next_turn_index]
        self._emit(AudioInstruction(text=turn.instruction or f"Prepare to {turn_phrase(turn)}"))

    def _arrive(self) -> None:
        self.state.status = NavigationStatus.ARRIVED
        self.state.distance_to_next_turn = 0.0
        print(f"🏁 Arrived at destination of {self.route.id}")
        self._emit(HapticFeedback(intensity="heavy"))
        self._emit(AudioInstruction(text="You have arrived at your destination"))
        if self.ambience is not None:
            self._emit(self.ambience.stop_all())
        self._emit_state()

    async def _recalculate(self, position: LatLng) -> None:
        self.state.status = NavigationStatus.RECALCULATING
        self._emit_state()
        generation = self._generation

        if self.recalculator is None:
            self._recalculation_failed("no recalculator configured")
            return

        try:
            route = await asyncio.wait_for(
                self.recalculator(position, self.destination),
                timeout=self.recalculation_timeout,
            )
        except asyncio.TimeoutError:
            if generation == self._generation:
                self._recalculation_failed("timed out")
            return
        except VibeNavError as e:
            if generation == self._generation:
                self._recalculation_failed(str(e))
            return
        except Exception as e:
            if generation == self._generation:
                self._recalculation_failed(f"{type(e).__name__}: {e}")
            return

        if generation != self._generation:
            print(f"⚠️ Discarding recalculated route {route.id}: navigation stopped")
            return

        self.state.current_route = route
        self.state.next_turn_index = 0
        self.state.distance_to_next_turn = 0.0
        self.state.is_off_route = False
        self.state.recalculation_count += 1
        self.state.status = NavigationStatus.NAVIGATING
        print(f"✅ Route recalculated: {route.id}")
        self._emit(RouteRecalculated(route_id=route.id))
        self._emit(AudioInstruction(text="Route recalculated"))

    def _recalculation_failed(self, reason: str) -> None:
        print(f"⚠️ Route recalculation failed, keeping current route: {reason}")
        self.state.status = NavigationStatus.NAVIGATING
        self._emit(RecalculationFailed(reason=reason))
