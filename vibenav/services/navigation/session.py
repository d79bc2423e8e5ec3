"""Navigation sessions owned by the HTTP layer."""
import asyncio
import uuid
from dataclasses import replace
from typing import Dict, List, Optional

from vibenav.models.vibe import LatLng, NavigationState, NavigationStatus, RouteCandidate
from vibenav.services.errors import NotFoundError
from vibenav.services.navigation.ambience import AmbienceController
from vibenav.services.navigation.events import EventCollector, NavigationEvent
from vibenav.services.navigation.tracker import NavigationTracker


class NavigationSession:
    """One tracker plus its ambience; position updates are applied in arrival order."""

    def __init__(
        self,
        tracker: NavigationTracker,
        ambience: Optional[AmbienceController] = None,
        session_id: Optional[str] = None,
    ):
        self.id = session_id or uuid.uuid4().hex
        self.tracker = tracker
        self.ambience = ambience
        self._lock = asyncio.Lock()
        self._collector = EventCollector()
        tracker.subscribe(self._collector)

    @property
    def state(self) -> NavigationState:
        return self.tracker.state

    def start(self, position: LatLng, heading: float = 0.0) -> List[NavigationEvent]:
        self.tracker.start(position, heading)
        return self._collector.drain()

    async def update(self, position: LatLng, heading: float) -> List[NavigationEvent]:
        async with self._lock:
            await self.tracker.update(position, heading)
            if self.finished:
                self._dispose_ambience()
            return self._collector.drain()

    def stop(self) -> List[NavigationEvent]:
        self.tracker.stop()
        self._dispose_ambience()
        return self._collector.drain()

    @property
    def finished(self) -> bool:
        return self.state.status in (NavigationStatus.ARRIVED, NavigationStatus.STOPPED)

    def _dispose_ambience(self) -> None:
        if self.ambience is None or self.ambience.disposed:
            return
        event = self.ambience.dispose()
        if event is not None:
            self._collector(event)


class NavigationSessionManager:
    """Creates sessions for planned routes and looks them up by id."""

    def __init__(self, route_service):
        self.route_service = route_service
        self._sessions: Dict[str, NavigationSession] = {}

    def start_session(
        self,
        route_id: str,
        position: LatLng,
        heading: float = 0.0,
        night_mode: Optional[bool] = None,
    ):
        found = self.route_service.get_route(route_id)
        if found is None:
            raise NotFoundError(f"Unknown route: {route_id}")
        route, context = found
        if night_mode is not None:
            context = replace(context, night_mode=night_mode)

        async def recalculate(current: LatLng, destination: LatLng) -> RouteCandidate:
            return await self.route_service.recalculate(current, destination, context)

        ambience = AmbienceController()
        tracker = NavigationTracker(route, recalculator=recalculate, ambience=ambience)
        session = NavigationSession(tracker, ambience)
        self._sessions[session.id] = session
        events = session.start(position, heading)
        return session, events

    def get(self, session_id: str) -> NavigationSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Unknown navigation session: {session_id}")
        return session

    async def update(self, session_id: str, position: LatLng, heading: float):
        session = self.get(session_id)
        events = await session.update(position, heading)
        if session.finished:
            # Arrived sessions take no more samples
            self._sessions.pop(session_id, None)
            print(f"🏁 Navigation session {session_id} closed on arrival")
        return session, events

    def stop(self, session_id: str):
        session = self.get(session_id)
        del self._sessions[session_id]
        return session, session.stop()

    def __len__(self) -> int:
        return len(self._sessions)
