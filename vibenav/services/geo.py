"""Geographic helpers: great-circle distance, bearings and route geometry formats."""
from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

LatLng = Tuple[float, float]

EARTH_RADIUS_M = 6371000


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Calculate distance between two points in meters (Haversine formula)"""
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lng = math.radians(lng2 - lng1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def bearing_between(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Calculate the bearing (0-360 degrees, 0=North) from point 1 to point 2."""
    lat1_rad, lat2_rad = math.radians(lat1), math.radians(lat2)
    d_lng = math.radians(lng2 - lng1)

    y = math.sin(d_lng) * math.cos(lat2_rad)
    x = math.cos(lat1_rad) * math.sin(lat2_rad) - math.sin(lat1_rad) * math.cos(
        lat2_rad
    ) * math.cos(d_lng)

    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360) % 360


def heading_difference(heading: float, bearing: float) -> float:
    """Absolute angle between two headings, folded to [0, 180]."""
    diff = (heading - bearing) % 360
    return 360 - diff if diff > 180 else diff


def relative_direction(from_bearing: float, to_bearing: float, straight_band: float = 30) -> str:
    """Collapse a bearing change into left / right / straight."""
    diff = (to_bearing - from_bearing + 360) % 360
    if diff < straight_band or diff > 360 - straight_band:
        return "straight"
    return "right" if diff < 180 else "left"


def point_to_segment_distance(point: LatLng, a: LatLng, b: LatLng) -> float:
    """Perpendicular (or endpoint) distance in meters from ``point`` to segment a-b.

    Uses an equirectangular projection centred on ``point``, accurate to well
    under a meter at street scale.
    """
    lat0 = math.radians(point[0])
    scale_x = EARTH_RADIUS_M * math.cos(lat0)

    def project(p: LatLng) -> Tuple[float, float]:
        return (
            math.radians(p[1] - point[1]) * scale_x,
            math.radians(p[0] - point[0]) * EARTH_RADIUS_M,
        )

    ax, ay = project(a)
    bx, by = project(b)
    dx, dy = bx - ax, by - ay
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return math.hypot(ax, ay)

    # Point is the origin of the projection
    t = max(0.0, min(1.0, -(ax * dx + ay * dy) / length_sq))
    return math.hypot(ax + t * dx, ay + t * dy)


def point_to_polyline_distance(point: LatLng, coords: Sequence[LatLng]) -> float:
    if not coords:
        return math.inf
    if len(coords) == 1:
        return haversine_distance(point[0], point[1], coords[0][0], coords[0][1])
    return min(
        point_to_segment_distance(point, coords[i], coords[i + 1])
        for i in range(len(coords) - 1)
    )


def to_wkt_linestring(coords: Sequence[LatLng]) -> str:
    """Serialize (lat, lng) points as a WKT LINESTRING in lng/lat order."""
    return "LINESTRING(" + ", ".join(f"{lng} {lat}" for lat, lng in coords) + ")"


def to_lnglat(coords: Sequence[LatLng]) -> List[List[float]]:
    return [[lng, lat] for lat, lng in coords]


def to_geojson_feature(
    coords: Sequence[LatLng], properties: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": "LineString", "coordinates": to_lnglat(coords)},
        "properties": properties or {},
    }
