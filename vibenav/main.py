from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from typing import List

from vibenav.config import settings
from vibenav.config.vibe_weights import vibe_weights_config
from vibenav.models.feedback import EmotionRecord, RouteFeedback
from vibenav.models.request import (
    Coordinate,
    NavigationStartRequest,
    PositionUpdate,
    RouteRequest,
)
from vibenav.models.response import (
    NavigationEventResponse,
    NavigationSessionResponse,
    NavigationStateResponse,
    VibeRouteResponse,
)
from vibenav.services.errors import (
    ConfigurationError,
    ExternalServiceError,
    NotFoundError,
    RouteValidationError,
)
from vibenav.services.feedback_service import FeedbackService
from vibenav.services.navigation import NavigationEvent, NavigationSession, NavigationSessionManager
from vibenav.services.route_service import RouteService
from vibenav.services.route_store import RouteStore

app = FastAPI(
    title="VibeNav API",
    description="Vibe-aware walking route recommendation and navigation API",
    version=settings.api_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

route_service = RouteService(route_store=RouteStore())
session_manager = NavigationSessionManager(route_service)
feedback_service = FeedbackService()


def _session_response(
    session: NavigationSession, events: List[NavigationEvent]
) -> NavigationSessionResponse:
    state = session.state
    position = state.current_position
    return NavigationSessionResponse(
        session_id=session.id,
        state=NavigationStateResponse(
            status=state.status.value,
            route_id=state.current_route.id if state.current_route else None,
            position=Coordinate(lat=position[0], lng=position[1]) if position else None,
            heading=state.current_heading,
            next_turn_index=state.next_turn_index,
            distance_to_next_turn=round(state.distance_to_next_turn, 1),
            is_off_route=state.is_off_route,
        ),
        events=[
            NavigationEventResponse(type=event.type, payload=event.to_payload())
            for event in events
        ],
    )


# main api
@app.post("/api/v1/routes", response_model=VibeRouteResponse)
async def generate_routes(request: RouteRequest):
    """Generate vibe-ranked route candidates between two points"""
    try:
        return await route_service.generate_routes(request)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RouteValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ExternalServiceError as e:
        raise HTTPException(status_code=502, detail=f"Route generation failed: {str(e)}")


@app.post("/api/v1/feedback")
async def submit_feedback(feedback: RouteFeedback):
    """Submit a rating for the chosen route"""
    success = feedback_service.store_feedback(feedback)
    if not success:
        raise HTTPException(status_code=500, detail="Failed to store feedback")
    if feedback_service.is_available():
        return {"status": "success", "message": "Feedback stored successfully"}
    return {
        "status": "warning",
        "message": "Feedback received but not stored (MongoDB unavailable)",
    }


@app.post("/api/v1/emotions")
async def record_emotion(record: EmotionRecord):
    """Record a self-reported emotion sample"""
    if record.state not in vibe_weights_config.emotions():
        raise HTTPException(status_code=400, detail=f"Undefined emotion state: {record.state}")
    success = feedback_service.record_emotion(record)
    if not success:
        raise HTTPException(status_code=500, detail="Failed to store emotion")
    return {"status": "success", "message": "Emotion recorded"}


@app.post(
    "/api/v1/navigation/sessions",
    response_model=NavigationSessionResponse,
)
async def start_navigation(request: NavigationStartRequest):
    """Start turn-by-turn navigation on a previously planned route"""
    try:
        session, events = session_manager.start_session(
            request.route_id,
            (request.position.lat, request.position.lng),
            request.heading,
            night_mode=request.night_mode,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _session_response(session, events)


@app.post(
    "/api/v1/navigation/sessions/{session_id}/position",
    response_model=NavigationSessionResponse,
)
async def update_position(session_id: str, update: PositionUpdate):
    """Feed a position and heading sample into a navigation session"""
    try:
        session, events = await session_manager.update(
            session_id, (update.position.lat, update.position.lng), update.heading
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _session_response(session, events)


@app.delete(
    "/api/v1/navigation/sessions/{session_id}",
    response_model=NavigationSessionResponse,
)
async def stop_navigation(session_id: str):
    """Stop a navigation session and release its ambience"""
    try:
        session, events = session_manager.stop(session_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _session_response(session, events)


@app.post("/api/v1/config/reload")
async def reload_vibe_weights():
    """Re-read the emotion weight table; a bad table leaves the current one active"""
    try:
        vibe_weights_config.reload()
    except ConfigurationError as e:
        print(f"⚠️ Vibe weight table reload failed: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    print(f"✅ Vibe weight table reloaded from {vibe_weights_config.path}")
    return {"status": "success", "emotions": vibe_weights_config.emotions()}


@app.get("/health")
async def health_check():
    """Health check"""
    return {"status": "healthy", "version": settings.api_version}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
