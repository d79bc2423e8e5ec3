"""Tests for feedback validation and MongoDB-backed storage."""

import pytest
from pydantic import ValidationError

from vibenav.models.feedback import EmotionRecord, RouteFeedback
from vibenav.models.vibe import VibeWeights
from vibenav.services.feedback_service import FeedbackService
from vibenav.services.route.generation_service import RouteGenerationService
from vibenav.services.route.plan_builder import CandidatePlanBuilder
from vibenav.services.route.scoring import score_candidate
from vibenav.services.route_store import RouteStore

from fakes import FakeCollection


def _feedback(**overrides):
    payload = {
        "routeId": "route-1a2b3c4d-your-mix",
        "routeLabel": "Your mix",
        "rating": 4,
        "comment": "  Lovely trees  ",
        "vibeWeights": {"greenery": 0.4, "quietness": 0.3, "culture": 0.15, "scenery": 0.15},
    }
    payload.update(overrides)
    return RouteFeedback(**payload)


def _scored_route():
    plan = CandidatePlanBuilder().build_plans(VibeWeights.uniform(), alternatives=0)[0]
    service = RouteGenerationService(routing_engine=object(), feature_service=object())
    candidate = service.generate_synthetic_candidate(
        plan, 0, (40.785091, -73.968285), (40.746439, -74.004241)
    )
    return score_candidate(candidate)


def test_feedback_comment_is_trimmed():
    assert _feedback().comment == "Lovely trees"
    assert _feedback(comment="   ").comment is None


@pytest.mark.parametrize("rating", [0, 6])
def test_feedback_rating_out_of_range_is_rejected(rating):
    with pytest.raises(ValidationError):
        _feedback(rating=rating)


def test_feedback_rating_is_required():
    payload = _feedback().model_dump(by_alias=True)
    del payload["rating"]
    with pytest.raises(ValidationError):
        RouteFeedback(**payload)


def test_feedback_service_stores_document():
    collection = FakeCollection()
    service = FeedbackService(collection=collection)

    assert service.store_feedback(_feedback(storedRouteId="oid-9")) is True

    document = collection.documents[0]
    assert document["route_identifier"] == "route-1a2b3c4d-your-mix"
    assert document["rating"] == 4
    assert document["comment"] == "Lovely trees"
    assert document["vibe_weights"]["greenery"] == 0.4
    assert document["stored_route_id"] == "oid-9"
    assert "created_at" in document


def test_feedback_service_reports_write_failure():
    service = FeedbackService(collection=FakeCollection(should_raise=True))
    assert service.store_feedback(_feedback()) is False


def test_route_store_returns_stored_copy():
    collection = FakeCollection()
    route = _scored_route()

    stored = RouteStore(collection=collection).store_route(route)

    assert stored["id"] == "oid-1"
    assert "_id" not in stored
    assert stored["route_identifier"] == route.id
    assert stored["path"].startswith("LINESTRING(-73.968285 40.785091")
    assert stored["start_point"] == "POINT(-73.968285 40.785091)"
    assert isinstance(stored["created_at"], str)


def test_route_store_failure_returns_none(capsys):
    stored = RouteStore(collection=FakeCollection(should_raise=True)).store_route(_scored_route())

    assert stored is None
    assert "Error storing route" in capsys.readouterr().out



def test_emotion_record_defaults_and_range():
    assert EmotionRecord(state="lonely").intensity == 0.5
    with pytest.raises(ValidationError):
        EmotionRecord(state="lonely", intensity=-0.1)


def test_feedback_service_records_emotion():
    emotions = FakeCollection()
    service = FeedbackService(collection=FakeCollection(), emotions_collection=emotions)

    assert service.record_emotion(EmotionRecord(state="burnt_out", intensity=0.9, routeId="route-1")) is True

    document = emotions.documents[0]
    assert document["state"] == "burnt_out"
    assert document["intensity"] == 0.9
    assert document["route_identifier"] == "route-1"
    assert document["user_id"] is None


def test_emotion_without_collection_is_accepted(capsys):
    service = FeedbackService(collection=FakeCollection())

    assert service.record_emotion(EmotionRecord(state="neutral")) is True
    assert "not stored" in capsys.readouterr().out
