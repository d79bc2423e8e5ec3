"""Tests for the navigation tracker, ambience and sessions."""

import asyncio

import pytest

from vibenav.config.config import settings
from vibenav.models.vibe import (
    NavigationState,
    NavigationStatus,
    RouteCandidate,
    Segment,
    SegmentFeatures,
    TurnInstruction,
    VibeWeights,
)
from vibenav.services.errors import ExternalServiceError, NotFoundError
from vibenav.services.navigation import (
    AmbienceChanged,
    AmbienceController,
    AudioInstruction,
    EventCollector,
    HapticFeedback,
    NavigationSession,
    NavigationSessionManager,
    NavigationTracker,
    RecalculationFailed,
    RouteRecalculated,
    StateChanged,
    is_off_route,
)
from vibenav.services.navigation.ambience import select_ambience

A, B, C = (40.7800, -73.9700), (40.7810, -73.9700), (40.7820, -73.9700)
# About 100 m east of the route
OFF_ROUTE = (40.7805, -73.9688)
METERS_PER_DEGREE_LAT = 111195


def _south_of(point, meters):
    return (point[0] - meters / METERS_PER_DEGREE_LAT, point[1])


def _route(route_id="route-your-mix", coords=(A, B, C)):
    profile = VibeWeights.uniform()
    segments = tuple(
        Segment(
            index=i,
            geometry=(coords[i], coords[i + 1]),
            distance=111.0,
            duration=82.0,
            vibe_profile=profile,
            dominant_vibe="greenery",
            summary="",
        )
        for i in range(len(coords) - 1)
    )
    return RouteCandidate(
        id=route_id,
        label="Your mix",
        description="",
        weights=profile,
        mode="synthetic",
        coordinates=list(coords),
        segments=segments,
        turns=(
            TurnInstruction(distance=111.0, direction="right", point=coords[1]),
            TurnInstruction(distance=111.0, direction="arrive", point=coords[-1]),
        ),
        distance=222.0,
        duration=164.0,
    )


def _tracker(**kwargs):
    tracker = NavigationTracker(_route(), **kwargs)
    collector = EventCollector()
    tracker.subscribe(collector)
    return tracker, collector


def _statuses(events):
    return [e.state.status for e in events if isinstance(e, StateChanged)]


@pytest.mark.parametrize(
    "distance,heading_diff,expected",
    [(40, 50, True), (20, 90, False), (60, 0, True), (30, 90, False), (45, 45, False)],
)
def test_off_route_decision(distance, heading_diff, expected):
    assert is_off_route(distance, heading_diff) is expected


def test_start_emits_state_and_announces_first_turn():
    tracker, collector = _tracker()
    tracker.start(A, 0.0)

    assert tracker.state.status == NavigationStatus.NAVIGATING
    assert _statuses(collector.events) == [NavigationStatus.NAVIGATING]
    assert collector.of_type(AudioInstruction)[0].text == "Prepare to turn right"


def test_updates_ignored_until_started():
    tracker, collector = _tracker()
    state = asyncio.run(tracker.update(A, 0.0))

    assert state.status == NavigationStatus.IDLE
    assert collector.events == []


def test_graduated_turn_feedback():
    tracker, collector = _tracker()
    tracker.start(A, 0.0)
    collector.drain()

    asyncio.run(tracker.update(_south_of(B, 40), 0.0))
    assert collector.of_type(HapticFeedback) == [HapticFeedback(intensity="light")]
    collector.drain()

    asyncio.run(tracker.update(_south_of(B, 20), 0.0))
    assert collector.of_type(AudioInstruction)[0].text == "In 20 meters, turn right"
    assert tracker.state.next_turn_index == 0
    collector.drain()

    asyncio.run(tracker.update(_south_of(B, 5), 0.0))
    assert collector.of_type(HapticFeedback) == [HapticFeedback(intensity="medium")]
    assert tracker.state.next_turn_index == 1


def test_two_turn_route_arrives_after_last_turn():
    tracker, collector = _tracker()
    tracker.start(A, 0.0)

    async def drive():
        await tracker.update(B, 0.0)
        await tracker.update(C, 0.0)
        assert tracker.state.next_turn_index == 2
        assert tracker.state.status == NavigationStatus.NAVIGATING
        await tracker.update(C, 0.0)

    asyncio.run(drive())

    assert tracker.state.status == NavigationStatus.ARRIVED
    assert collector.of_type(HapticFeedback)[-1] == HapticFeedback(intensity="heavy")
    assert _statuses(collector.events)[-1] == NavigationStatus.ARRIVED

    # Arrived trackers ignore further samples
    count = len(collector.events)
    asyncio.run(tracker.update(C, 0.0))
    assert len(collector.events) == count


def test_off_route_recalculation_replaces_route():
    new_route = _route("route-recalculated", coords=(OFF_ROUTE, B, C))
    requested = []

    async def recalculate(position, destination):
        requested.append((position, destination))
        return new_route

    tracker, collector = _tracker(recalculator=recalculate)
    tracker.start(A, 0.0)
    collector.drain()
    asyncio.run(tracker.update(OFF_ROUTE, 0.0))

    assert requested == [(OFF_ROUTE, C)]
    assert tracker.state.current_route is new_route
    assert tracker.state.next_turn_index == 0
    assert tracker.state.recalculation_count == 1
    assert tracker.state.status == NavigationStatus.NAVIGATING
    assert _statuses(collector.events) == [
        NavigationStatus.RECALCULATING,
        NavigationStatus.NAVIGATING,
    ]
    assert collector.of_type(RouteRecalculated) == [RouteRecalculated(route_id="route-recalculated")]
    assert AudioInstruction(text="Route recalculated") in collector.events


def test_failed_recalculation_keeps_stale_route(capsys):
    original = _route()

    async def recalculate(position, destination):
        raise ExternalServiceError("engine down")

    tracker = NavigationTracker(original, recalculator=recalculate)
    collector = EventCollector()
    tracker.subscribe(collector)
    tracker.start(A, 0.0)
    asyncio.run(tracker.update(OFF_ROUTE, 0.0))

    assert tracker.state.current_route is original
    assert tracker.state.status == NavigationStatus.NAVIGATING
    assert tracker.state.is_off_route is True
    assert collector.of_type(RecalculationFailed) == [RecalculationFailed(reason="engine down")]
    assert "recalculation failed" in capsys.readouterr().out


def test_recalculation_timeout_keeps_navigating():
    async def recalculate(position, destination):
        await asyncio.sleep(1)

    tracker, collector = _tracker(recalculator=recalculate, recalculation_timeout=0.01)
    tracker.start(A, 0.0)
    asyncio.run(tracker.update(OFF_ROUTE, 0.0))

    assert tracker.state.status == NavigationStatus.NAVIGATING
    assert collector.of_type(RecalculationFailed) == [RecalculationFailed(reason="timed out")]


def test_unexpected_recalculation_error_keeps_navigating():
    async def recalculate(position, destination):
        raise ValueError("malformed engine payload")

    tracker, collector = _tracker(recalculator=recalculate)
    tracker.start(A, 0.0)
    asyncio.run(tracker.update(OFF_ROUTE, 0.0))

    assert tracker.state.status == NavigationStatus.NAVIGATING
    assert collector.of_type(RecalculationFailed) == [
        RecalculationFailed(reason="ValueError: malformed engine payload")
    ]
    collector.drain()

    # The next on-route sample is processed normally
    asyncio.run(tracker.update(A, 0.0))
    assert tracker.state.is_off_route is False
    assert _statuses(collector.events) == [NavigationStatus.NAVIGATING]


def test_zero_recalculation_timeout_is_kept():
    tracker = NavigationTracker(_route(), recalculation_timeout=0)
    assert tracker.recalculation_timeout == 0

    assert NavigationTracker(_route()).recalculation_timeout == settings.recalculation_timeout_seconds


def test_stop_discards_late_recalculation():
    original = _route()
    new_route = _route("route-late")

    async def scenario():
        gate = asyncio.Event()

        async def recalculate(position, destination):
            await gate.wait()
            return new_route

        tracker = NavigationTracker(original, recalculator=recalculate, recalculation_timeout=5)
        collector = EventCollector()
        tracker.subscribe(collector)
        tracker.start(A, 0.0)

        pending = asyncio.ensure_future(tracker.update(OFF_ROUTE, 0.0))
        await asyncio.sleep(0)
        tracker.stop()
        gate.set()
        await pending
        return tracker, collector

    tracker, collector = asyncio.run(scenario())

    assert tracker.state.status == NavigationStatus.STOPPED
    assert tracker.state.current_route is original
    assert collector.of_type(RouteRecalculated) == []
    assert _statuses(collector.events)[-1] == NavigationStatus.STOPPED


def test_stop_is_idempotent():
    tracker, collector = _tracker()
    tracker.start(A, 0.0)
    tracker.stop()
    count = len(collector.events)
    tracker.stop()

    assert len(collector.events) == count
    assert _statuses(collector.events)[-1] == NavigationStatus.STOPPED


def test_select_ambience_priority():
    assert select_ambience(SegmentFeatures(green_cover=0.9, water_proximity=0.9)) == ("birds", 0.4)
    assert select_ambience(SegmentFeatures(green_cover=0.1, water_proximity=0.9))[0] == "water"
    assert select_ambience(SegmentFeatures(green_cover=0.1, cafe_density=0.7))[0] == "cafe"
    assert select_ambience(
        SegmentFeatures(green_cover=0.1, tree_canopy=0.8, traffic_volume=0.1)
    ) == ("wind", 0.25)
    assert select_ambience(SegmentFeatures.defaults()) == (None, 0.0)


def test_ambience_controller_emits_only_on_change():
    controller = AmbienceController()
    cafes = SegmentFeatures(green_cover=0.1, cafe_density=0.61)

    first = controller.update(cafes)
    assert first.ambience == "cafe"
    assert first.volume == pytest.approx(0.244)
    assert controller.update(cafes) is None
    assert controller.update(SegmentFeatures(green_cover=0.1, cafe_density=0.65)) is None
    assert controller.update(SegmentFeatures(green_cover=0.1, cafe_density=0.9)) == AmbienceChanged(
        ambience="cafe", volume=0.3
    )

    assert controller.dispose() == AmbienceChanged(ambience=None, volume=0.0)
    assert controller.update(cafes) is None
    assert controller.disposed


def test_session_serializes_overlapping_updates():
    class RecordingTracker:
        def __init__(self):
            self.state = NavigationState(status=NavigationStatus.NAVIGATING)
            self.calls = []
            self.active = 0
            self.max_active = 0

        def subscribe(self, observer):
            self.observer = observer

        async def update(self, position, heading):
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            await asyncio.sleep(0.01)
            self.calls.append(position)
            self.active -= 1

    tracker = RecordingTracker()
    positions = [(40.78 + i * 0.001, -73.97) for i in range(3)]

    async def scenario():
        session = NavigationSession(tracker)
        await asyncio.gather(*[session.update(position, 0.0) for position in positions])

    asyncio.run(scenario())

    assert tracker.calls == positions
    assert tracker.max_active == 1


class StubRouteService:
    def __init__(self, route):
        self.route = route
        self.recalculated = []

    def get_route(self, route_id):
        if route_id != self.route.id:
            return None
        return self.route, "context"

    async def recalculate(self, position, destination, context):
        self.recalculated.append((position, destination, context))
        return _route("route-recalculated", coords=(position, B, C))


def test_session_manager_lifecycle():
    manager = NavigationSessionManager(StubRouteService(_route()))

    session, events = manager.start_session("route-your-mix", A, 0.0)
    assert manager.get(session.id) is session
    assert any(isinstance(e, StateChanged) for e in events)

    _, events = asyncio.run(manager.update(session.id, OFF_ROUTE, 0.0))
    assert any(isinstance(e, RouteRecalculated) for e in events)
    assert manager.route_service.recalculated[0][2] == "context"

    _, events = manager.stop(session.id)
    assert session.state.status == NavigationStatus.STOPPED
    assert session.ambience.disposed
    assert len(manager) == 0
    with pytest.raises(NotFoundError):
        manager.get(session.id)


def test_session_manager_closes_session_on_arrival():
    manager = NavigationSessionManager(StubRouteService(_route()))
    session, _ = manager.start_session("route-your-mix", A, 0.0)

    async def drive():
        events = []
        for position in (B, C, C):
            _, batch = await manager.update(session.id, position, 0.0)
            events.extend(batch)
        return events

    events = asyncio.run(drive())

    assert session.state.status == NavigationStatus.ARRIVED
    assert _statuses(events)[-1] == NavigationStatus.ARRIVED
    assert session.ambience.disposed
    assert len(manager) == 0
    with pytest.raises(NotFoundError):
        manager.get(session.id)


def test_session_manager_unknown_route():
    manager = NavigationSessionManager(StubRouteService(_route()))
    with pytest.raises(NotFoundError):
        manager.start_session("route-missing", A)
