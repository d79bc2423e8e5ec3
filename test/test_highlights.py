"""Unit tests for highlight placement and route labels."""

from vibenav.models.vibe import Segment, SegmentFeatures, VibeWeights
from vibenav.services.route.highlight_service import (
    DEFAULT_ROUTE_LABEL,
    generate_highlights,
    generate_route_label,
)

WEIGHTS = VibeWeights(greenery=0.4, quietness=0.3, culture=0.15, scenery=0.15)
POINTS = [(40.78 + i * 0.001, -73.97 - i * 0.0005) for i in range(9)]


def _segment(features):
    profile = VibeWeights.uniform()
    return Segment(
        index=0,
        geometry=(POINTS[0], POINTS[1]),
        distance=100.0,
        duration=75.0,
        vibe_profile=profile,
        dominant_vibe="greenery",
        summary="",
        features=features,
    )


def test_highlights_are_idempotent():
    first = generate_highlights("route-your-mix", WEIGHTS, POINTS)
    second = generate_highlights("route-your-mix", WEIGHTS, POINTS)

    assert first == second
    assert [h.id for h in first] == [
        "route-your-mix-highlight-1",
        "route-your-mix-highlight-2",
        "route-your-mix-highlight-3",
    ]


def test_highlights_follow_top_dimensions_at_interior_points():
    highlights = generate_highlights("r", WEIGHTS, POINTS)
    interior = {(lng, lat) for lat, lng in POINTS[1:-1]}

    assert [h.vibe for h in highlights] == ["greenery", "quietness", "culture"]
    assert all(h.coordinate in interior for h in highlights)
    assert highlights[0].description.endswith("(40% of your mix)")


def test_highlights_bounded_by_interior_points():
    assert len(generate_highlights("r", WEIGHTS, POINTS[:4])) == 2
    assert generate_highlights("r", WEIGHTS, POINTS[:2]) == []


def test_route_label_from_features():
    assert generate_route_label([_segment(SegmentFeatures(green_cover=0.9))]) == "Green canopy walk"
    assert (
        generate_route_label([_segment(SegmentFeatures(green_cover=0.2, cafe_density=0.7))])
        == "Urban cafe stroll"
    )


def test_route_label_defaults_without_features():
    assert generate_route_label([_segment(None)]) == DEFAULT_ROUTE_LABEL
    assert generate_route_label([_segment(SegmentFeatures(green_cover=0.1))]) == DEFAULT_ROUTE_LABEL
