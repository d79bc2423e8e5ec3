"""
Domain records for vibe routing and navigation
Internal coordinates are (lat, lng) tuples; WKT/GeoJSON output flips them.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from vibenav.services.errors import ConfigurationError

LatLng = Tuple[float, float]

VIBE_DIMENSIONS: Tuple[str, ...] = ("greenery", "quietness", "culture", "scenery")


def _finite_or_zero(value: object) -> float:
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(num) or math.isinf(num) or num < 0:
        return 0.0
    return num


@dataclass(frozen=True)
class VibeWeights:
    """Four named vibe dimensions; used for plan weights and segment profiles."""

    greenery: float = 0.25
    quietness: float = 0.25
    culture: float = 0.25
    scenery: float = 0.25

    @classmethod
    def uniform(cls) -> "VibeWeights":
        return cls(0.25, 0.25, 0.25, 0.25)

    def get(self, dimension: str) -> float:
        if dimension not in VIBE_DIMENSIONS:
            raise ConfigurationError(f"Unknown vibe dimension: {dimension}")
        return getattr(self, dimension)

    def as_dict(self) -> Dict[str, float]:
        return {dim: getattr(self, dim) for dim in VIBE_DIMENSIONS}

    def total(self) -> float:
        return sum(self.as_dict().values())

    def ranked_dimensions(self) -> List[str]:
        """Dimensions by value descending; ties keep dimension order."""
        values = self.as_dict()
        return sorted(VIBE_DIMENSIONS, key=lambda dim: -values[dim])

    def dominant(self) -> str:
        return self.ranked_dimensions()[0]


def normalize_weights(weights: VibeWeights) -> VibeWeights:
    """Scale to a distribution; all-zero or invalid input becomes uniform."""
    values = {dim: _finite_or_zero(getattr(weights, dim)) for dim in VIBE_DIMENSIONS}
    peak = max(values.values())
    if peak <= 0:
        return VibeWeights.uniform()
    # scale by the peak first so huge finite weights cannot overflow the sum
    scaled = {dim: value / peak for dim, value in values.items()}
    total = sum(scaled.values())
    return VibeWeights(**{dim: value / total for dim, value in scaled.items()})


@dataclass(frozen=True)
class SegmentFeatures:
    """Per-segment spatial features, each nominally in [0, 1]; None means missing."""

    green_cover: Optional[float] = None
    water_proximity: Optional[float] = None
    tree_canopy: Optional[float] = None
    cafe_density: Optional[float] = None
    cultural_nodes: Optional[float] = None
    traffic_volume: Optional[float] = None
    noise_level: Optional[float] = None
    pedestrian_friendly: Optional[float] = None
    slope: Optional[float] = None
    light_safety_night: Optional[float] = None
    open_space: Optional[float] = None

    @classmethod
    def defaults(cls) -> "SegmentFeatures":
        """Substitute used when the feature lookup has nothing for a segment."""
        return cls(
            green_cover=0.3,
            water_proximity=0.2,
            tree_canopy=0.25,
            cafe_density=0.1,
            cultural_nodes=0.1,
            traffic_volume=0.5,
            noise_level=0.5,
            pedestrian_friendly=0.6,
            slope=0.1,
            light_safety_night=0.5,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "SegmentFeatures":
        """Build from a loosely typed payload, dropping unknown keys and bad values."""
        values: Dict[str, Optional[float]] = {}
        for name in FEATURE_NAMES:
            raw = data.get(name)
            if raw is None:
                continue
            try:
                num = float(raw)
            except (TypeError, ValueError):
                continue
            if math.isnan(num) or math.isinf(num):
                continue
            values[name] = num
        return cls(**values)

    def value(self, name: str) -> Optional[float]:
        raw = getattr(self, name, None)
        if raw is None or math.isnan(raw):
            return None
        return raw

    def present(self, names: Iterable[str]) -> List[str]:
        """Subset of ``names`` that carry real data."""
        return [name for name in names if self.value(name) is not None]

    def as_dict(self) -> Dict[str, Optional[float]]:
        return {name: getattr(self, name) for name in FEATURE_NAMES}


FEATURE_NAMES: Tuple[str, ...] = tuple(f.name for f in fields(SegmentFeatures))


@dataclass(frozen=True)
class Segment:
    index: int
    geometry: Tuple[LatLng, ...]
    distance: float
    duration: float
    vibe_profile: VibeWeights
    dominant_vibe: str
    summary: str
    features: Optional[SegmentFeatures] = None
    instruction: Optional[str] = None

    @property
    def start(self) -> LatLng:
        return self.geometry[0]

    @property
    def end(self) -> LatLng:
        return self.geometry[-1]


@dataclass(frozen=True)
class TurnInstruction:
    distance: float
    direction: str  # left | right | straight | arrive
    point: LatLng
    bearing: Optional[float] = None
    instruction: Optional[str] = None


@dataclass(frozen=True)
class VibeSummary:
    normalized_weights: VibeWeights
    segment_averages: VibeWeights
    weighted_score: float
    dominant_vibe: str


@dataclass(frozen=True)
class RouteHighlight:
    id: str
    name: str
    description: str
    coordinate: Tuple[float, float]  # (lng, lat)
    vibe: str


@dataclass
class RouteCandidate:
    """A planned route; scored once, afterwards only ``recommended`` changes."""

    id: str
    label: str
    description: str
    weights: VibeWeights
    mode: str
    coordinates: List[LatLng]
    segments: Tuple[Segment, ...]
    turns: Tuple[TurnInstruction, ...]
    distance: float
    duration: float
    plan_id: str = ""
    plan_index: int = 0
    emotion: str = "neutral"
    detour_minutes: float = 0.0
    summary: Optional[VibeSummary] = None
    highlights: Tuple[RouteHighlight, ...] = ()
    vibe_score: float = 0.0
    confidence: float = 1.0
    recommended: bool = False

    @property
    def origin(self) -> LatLng:
        return self.coordinates[0]

    @property
    def destination(self) -> LatLng:
        return self.coordinates[-1]

    @property
    def weighted_score(self) -> float:
        return self.summary.weighted_score if self.summary else 0.0


class NavigationStatus(str, Enum):
    IDLE = "idle"
    NAVIGATING = "navigating"
    RECALCULATING = "recalculating"
    ARRIVED = "arrived"
    STOPPED = "stopped"


@dataclass
class NavigationState:
    """Transient snapshot owned by a single navigation tracker."""

    status: NavigationStatus = NavigationStatus.IDLE
    current_route: Optional[RouteCandidate] = None
    current_position: Optional[LatLng] = None
    current_heading: float = 0.0
    next_turn_index: int = 0
    distance_to_next_turn: float = 0.0
    is_off_route: bool = False
    recalculation_count: int = 0

