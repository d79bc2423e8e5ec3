"""Soundscape selection from segment features."""
from __future__ import annotations

from typing import Optional, Tuple

from vibenav.models.vibe import Segment, SegmentFeatures
from vibenav.services.navigation.events import AmbienceChanged

AMBIENCES = ("birds", "water", "cafe", "wind")
VOLUME_TOLERANCE = 0.05


def features_for_segment(segment: Segment) -> SegmentFeatures:
    """Segment features, approximated from the vibe profile for synthetic segments."""
    if segment.features is not None:
        return segment.features
    profile = segment.vibe_profile
    return SegmentFeatures(
        green_cover=profile.greenery,
        tree_canopy=profile.greenery,
        water_proximity=profile.scenery,
        cafe_density=profile.culture,
        cultural_nodes=profile.culture,
        traffic_volume=1.0 - profile.quietness,
        noise_level=1.0 - profile.quietness,
    )


def select_ambience(features: SegmentFeatures) -> Tuple[Optional[str], float]:
    """Pick the soundscape and volume; the first matching feature wins."""
    defaults = SegmentFeatures.defaults()

    def value(name: str) -> float:
        found = features.value(name)
        return found if found is not None else defaults.value(name)

    if value("green_cover") > 0.7:
        return "birds", min(value("green_cover") * 0.5, 0.4)
    if value("water_proximity") > 0.8:
        return "water", min(value("water_proximity") * 0.45, 0.35)
    if value("cafe_density") > 0.6:
        return "cafe", min(value("cafe_density") * 0.4, 0.3)
    if value("tree_canopy") > 0.6 and value("traffic_volume") < 0.3:
        return "wind", 0.25
    return None, 0.0


class AmbienceController:
    """Tracks the active soundscape; playback itself happens in the client."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.current: Optional[str] = None
        self.volume = 0.0
        self._disposed = False

    def update(self, features: SegmentFeatures) -> Optional[AmbienceChanged]:
        """Return an event when the soundscape or its volume changes."""
        if not self.enabled or self._disposed:
            return None

        target, volume = select_ambience(features)
        if target != self.current:
            print(f"🎵 Ambience: {self.current} → {target} (volume {volume:.2f})")
            self.current, self.volume = target, volume
            return AmbienceChanged(ambience=target, volume=volume)

        if target is not None and abs(self.volume - volume) > VOLUME_TOLERANCE:
            self.volume = volume
            return AmbienceChanged(ambience=target, volume=volume)
        return None

    def stop_all(self) -> Optional[AmbienceChanged]:
        if self.current is None:
            return None
        self.current, self.volume = None, 0.0
        return AmbienceChanged(ambience=None, volume=0.0)

    def dispose(self) -> Optional[AmbienceChanged]:
        event = self.stop_all()
        self._disposed = True
        return event

    @property
    def disposed(self) -> bool:
        return self._disposed
