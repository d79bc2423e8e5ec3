"""End-to-end tests for the HTTP surface."""

import json

import pytest
from fastapi.testclient import TestClient

from vibenav import main
from vibenav.config.vibe_weights import VibeWeightsConfig
from vibenav.services.feedback_service import FeedbackService
from vibenav.services.navigation import NavigationSessionManager
from vibenav.services.route_service import RouteService
from vibenav.services.route_store import RouteStore

from fakes import FakeCollection

ROUTE_REQUEST = {
    "start": {"lat": 40.785091, "lng": -73.968285},
    "end": {"lat": 40.746439, "lng": -74.004241},
    "vibeWeights": {"greenery": 0.4, "quietness": 0.3, "culture": 0.15, "scenery": 0.15},
    "alternatives": 2,
    "mode": "synthetic",
}


@pytest.fixture
def client(monkeypatch):
    route_service = RouteService(route_store=RouteStore(collection=FakeCollection()))
    monkeypatch.setattr(main, "route_service", route_service)
    monkeypatch.setattr(main, "session_manager", NavigationSessionManager(route_service))
    feedback_service = FeedbackService(
        collection=FakeCollection(), emotions_collection=FakeCollection()
    )
    monkeypatch.setattr(main, "feedback_service", feedback_service)
    with TestClient(main.app) as test_client:
        yield test_client


def _plan(client, **overrides):
    response = client.post("/api/v1/routes", json={**ROUTE_REQUEST, **overrides})
    assert response.status_code == 200, response.text
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_routes_end_to_end(client):
    body = _plan(client)

    routes = body["routes"]
    assert len(routes) == 3
    for route in routes:
        assert route["segments"]
        assert route["route"]["path"].startswith("LINESTRING(-73.968285 40.785091")
        assert route["coordinates"][0] == [-73.968285, 40.785091]
        assert route["geojson"]["geometry"]["type"] == "LineString"
        summary = route["route"]["vibe_summary"]
        assert abs(sum(summary["normalizedWeights"].values()) - 1.0) < 1e-9
        assert "dominantVibe" in route["segments"][0]

    best = max(routes, key=lambda r: r["route"]["vibe_summary"]["weightedScore"])
    recommended = next(r for r in routes if r["id"] == body["recommendedRouteId"])
    assert (
        recommended["route"]["vibe_summary"]["weightedScore"]
        == best["route"]["vibe_summary"]["weightedScore"]
    )
    assert recommended["recommended"] is True
    assert body["storedRoute"]["route_identifier"] == body["recommendedRouteId"]


def test_routes_zero_alternatives(client):
    body = _plan(client, alternatives=0)
    assert len(body["routes"]) == 1
    assert body["routes"][0]["label"] == "Your mix"


def test_routes_unknown_emotion_is_rejected(client):
    response = client.post("/api/v1/routes", json={**ROUTE_REQUEST, "emotion": "euphoric"})
    assert response.status_code == 400
    assert "Undefined emotion state" in response.json()["detail"]


def test_routes_unknown_vibe_dimension_is_rejected(client):
    weights = {**ROUTE_REQUEST["vibeWeights"], "nightlife": 0.5}
    response = client.post("/api/v1/routes", json={**ROUTE_REQUEST, "vibeWeights": weights})
    assert response.status_code == 422


def test_feedback_rating_validation(client):
    feedback = {
        "routeId": "route-abc-your-mix",
        "routeLabel": "Your mix",
        "vibeWeights": ROUTE_REQUEST["vibeWeights"],
        "comment": "   ",
    }

    assert client.post("/api/v1/feedback", json={**feedback, "rating": 0}).status_code == 422
    assert client.post("/api/v1/feedback", json=feedback).status_code == 422

    response = client.post("/api/v1/feedback", json={**feedback, "rating": 5})
    assert response.status_code == 200
    assert response.json()["status"] == "success"
    stored = main.feedback_service.collection.documents[0]
    assert stored["comment"] is None


def test_navigation_session_flow(client):
    body = _plan(client, alternatives=0)
    route = body["routes"][0]
    start = {"lat": 40.785091, "lng": -73.968285}

    response = client.post(
        "/api/v1/navigation/sessions",
        json={"routeId": route["id"], "position": start, "heading": 0},
    )
    assert response.status_code == 200
    session = response.json()
    assert session["state"]["status"] == "navigating"
    assert session["state"]["routeId"] == route["id"]
    assert "state_changed" in [event["type"] for event in session["events"]]

    session_id = session["sessionId"]
    response = client.post(
        f"/api/v1/navigation/sessions/{session_id}/position",
        json={"position": start, "heading": 0},
    )
    assert response.status_code == 200
    assert response.json()["state"]["position"] == start

    response = client.delete(f"/api/v1/navigation/sessions/{session_id}")
    assert response.status_code == 200
    assert response.json()["state"]["status"] == "stopped"

    assert client.delete(f"/api/v1/navigation/sessions/{session_id}").status_code == 404


def test_navigation_unknown_route(client):
    response = client.post(
        "/api/v1/navigation/sessions",
        json={"routeId": "route-missing", "position": {"lat": 40.78, "lng": -73.97}},
    )
    assert response.status_code == 404


def test_emotion_recording(client):
    response = client.post(
        "/api/v1/emotions", json={"state": "anxious", "intensity": 0.8, "userId": "walker-1"}
    )
    assert response.status_code == 200
    stored = main.feedback_service.emotions_collection.documents[0]
    assert stored["state"] == "anxious"
    assert stored["intensity"] == 0.8
    assert stored["user_id"] == "walker-1"

    assert client.post("/api/v1/emotions", json={"state": "euphoric"}).status_code == 400
    assert (
        client.post("/api/v1/emotions", json={"state": "anxious", "intensity": 1.5}).status_code
        == 422
    )


def _weight_table(emotions):
    return {
        "emotions": {emotion: {"green_cover": 0.5} for emotion in emotions},
        "missing_data_confidence_threshold": 0.6,
        "detour_penalty_per_minute": 0.01,
        "night_mode_safety_threshold": 0.4,
        "night_mode_penalty": 0.2,
    }


def test_config_reload(client, monkeypatch, tmp_path):
    path = tmp_path / "weights.json"
    path.write_text(json.dumps(_weight_table(["neutral"])), encoding="utf-8")
    config = VibeWeightsConfig(path)
    monkeypatch.setattr(main, "vibe_weights_config", config)

    path.write_text(json.dumps(_weight_table(["neutral", "curious"])), encoding="utf-8")
    response = client.post("/api/v1/config/reload")
    assert response.status_code == 200
    assert response.json()["emotions"] == ["neutral", "curious"]

    # A broken table is rejected and the previous one stays active
    path.write_text(json.dumps({"emotions": {}}), encoding="utf-8")
    response = client.post("/api/v1/config/reload")
    assert response.status_code == 400
    assert config.emotions() == ["neutral", "curious"]
