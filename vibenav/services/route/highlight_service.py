"""
Highlight and label generation
Purely derived from plan weights, route points and segment features.
"""
from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from vibenav.models.vibe import LatLng, RouteHighlight, Segment, VibeWeights

MAX_HIGHLIGHTS = 3

HIGHLIGHT_NAMES: Dict[str, str] = {
    "greenery": "Green pocket",
    "quietness": "Quiet stretch",
    "culture": "Culture stop",
    "scenery": "Scenic viewpoint",
}

HIGHLIGHT_DESCRIPTIONS: Dict[str, Tuple[str, ...]] = {
    "greenery": (
        "Shaded trees and a pocket park to slow down in",
        "A leafy block with planters and fresh air",
        "Lawn edges and canopy cover along the path",
    ),
    "quietness": (
        "A calm side street with little traffic",
        "Softer soundscape away from the main roads",
        "A hushed residential lane",
    ),
    "culture": (
        "Murals and small galleries along the block",
        "A historic corner worth a pause",
        "Bookshops and cafes with local character",
    ),
    "scenery": (
        "An open view across the water",
        "Striking facades and a wide skyline",
        "A vista point with room to look around",
    ),
}

# Feature-average thresholds, checked in order
_FEATURE_LABELS: Tuple[Tuple[str, float, str], ...] = (
    ("green_cover", 0.7, "Green canopy walk"),
    ("water_proximity", 0.8, "Calm waterside"),
    ("cafe_density", 0.6, "Urban cafe stroll"),
    ("cultural_nodes", 0.5, "Culture stroll"),
    ("pedestrian_friendly", 0.8, "Walkable streets"),
)
DEFAULT_ROUTE_LABEL = "Recommended route"


def generate_highlights(
    candidate_id: str, weights: VibeWeights, coordinates: Sequence[LatLng]
) -> List[RouteHighlight]:
    """
    Place up to three highlights at evenly spaced interior points.

    One highlight per top-ranked dimension of ``weights``; bounded by how many
    interior points the path has. Deterministic for identical input.
    """
    interior = list(coordinates[1:-1])
    count = min(MAX_HIGHLIGHTS, len(interior))
    if count == 0:
        return []

    dimensions = weights.ranked_dimensions()[:count]
    step = (len(interior) + 1) / (count + 1)

    highlights = []
    for idx, dimension in enumerate(dimensions):
        position = min(len(interior) - 1, max(0, int(round(step * (idx + 1))) - 1))
        lat, lng = interior[position]
        pool = HIGHLIGHT_DESCRIPTIONS[dimension]
        percent = round(weights.get(dimension) * 100)
        highlights.append(
            RouteHighlight(
                id=f"{candidate_id}-highlight-{idx + 1}",
                name=HIGHLIGHT_NAMES[dimension],
                description=f"{pool[idx % len(pool)]} ({percent}% of your mix)",
                coordinate=(lng, lat),
                vibe=dimension,
            )
        )
    return highlights


def generate_route_label(segments: Sequence[Segment]) -> str:
    """Name a route after its dominant spatial feature."""
    featured = [seg.features for seg in segments if seg.features is not None]
    if not featured:
        return DEFAULT_ROUTE_LABEL

    for name, threshold, label in _FEATURE_LABELS:
        values = [f.value(name) for f in featured]
        average = sum(v for v in values if v is not None) / len(featured)
        if average > threshold:
            return label
    return DEFAULT_ROUTE_LABEL
