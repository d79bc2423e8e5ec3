"""
Vibe scoring engine
Confidence-weighted segment scoring, route aggregation with detour and night
penalties, and the per-candidate vibe summary.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Mapping, Optional, Sequence, Union

from vibenav.config.vibe_weights import VibeWeightsConfig, vibe_weights_config
from vibenav.models.vibe import (
    VIBE_DIMENSIONS,
    RouteCandidate,
    Segment,
    SegmentFeatures,
    VibeSummary,
    VibeWeights,
    normalize_weights,
)
from vibenav.services.errors import RouteValidationError

# Feature groups that make up each vibe dimension; inverted ones count 1 - value
_DIMENSION_FEATURES: Dict[str, Dict[str, bool]] = {
    "greenery": {"green_cover": False, "tree_canopy": False},
    "quietness": {"traffic_volume": True, "noise_level": True},
    "culture": {"cultural_nodes": False, "cafe_density": False},
    "scenery": {"water_proximity": False, "open_space": False},
}


@dataclass(frozen=True)
class SegmentScore:
    score: float
    confidence: float


@dataclass(frozen=True)
class PathScore:
    vibe_score: float
    avg_confidence: float
    penalty: float


def score_segment(
    features: SegmentFeatures,
    weights: Mapping[str, float],
    config: Optional[VibeWeightsConfig] = None,
) -> SegmentScore:
    """
    Score one segment against a feature weight table.

    Missing attributes are skipped; the raw weighted sum is scaled by the share
    of weighted attributes that actually had data.
    """
    config = config or vibe_weights_config
    total_weights = len(weights)
    score = 0.0
    valid_count = 0

    for name, weight in weights.items():
        value = features.value(name)
        if value is None:
            continue
        score += value * weight
        valid_count += 1

    confidence = valid_count / total_weights if total_weights > 0 else 0.0

    threshold = config.missing_data_confidence_threshold
    if confidence < threshold:
        print(
            f"⚠️ Segment data incomplete: confidence {confidence:.1%} "
            f"(threshold {threshold:.1%})"
        )

    return SegmentScore(score=score * confidence, confidence=confidence)


def score_path(
    segments: Sequence[Segment],
    weights: Union[str, Mapping[str, float]],
    *,
    detour_minutes: float = 0.0,
    night_mode: bool = False,
    config: Optional[VibeWeightsConfig] = None,
) -> PathScore:
    """
    Aggregate segment scores into a route vibe score.

    ``weights`` is either an emotion key from the weight table or an explicit
    feature weight mapping.
    """
    config = config or vibe_weights_config
    if isinstance(weights, str):
        weights = config.emotion_weights(weights)

    if not segments:
        raise RouteValidationError("Cannot score a route without segments")

    segment_scores = [
        score_segment(seg.features or SegmentFeatures(), weights, config)
        for seg in segments
    ]
    avg_score = sum(s.score for s in segment_scores) / len(segments)
    avg_confidence = sum(s.confidence for s in segment_scores) / len(segments)

    penalty = max(0.0, detour_minutes) * config.detour_penalty_per_minute

    if night_mode:
        threshold = config.night_mode_safety_threshold
        has_unsafe_segment = any(
            seg.features is not None
            and seg.features.value("light_safety_night") is not None
            and seg.features.value("light_safety_night") < threshold
            for seg in segments
        )
        if has_unsafe_segment:
            penalty += config.night_mode_penalty

    return PathScore(
        vibe_score=max(0.0, avg_score - penalty),
        avg_confidence=avg_confidence,
        penalty=penalty,
    )


def vibe_profile_from_features(features: SegmentFeatures) -> VibeWeights:
    """Collapse raw spatial features into the four vibe dimensions."""
    defaults = SegmentFeatures.defaults()
    profile = {}
    for dimension, members in _DIMENSION_FEATURES.items():
        values = []
        for name, inverted in members.items():
            value = features.value(name)
            if value is None:
                value = defaults.value(name)
            if value is None:
                continue
            value = max(0.0, min(1.0, value))
            values.append(1.0 - value if inverted else value)
        profile[dimension] = sum(values) / len(values) if values else 0.0
    return VibeWeights(**profile)


def summarize_vibes(segments: Sequence[Segment], weights: VibeWeights) -> VibeSummary:
    if not segments:
        raise RouteValidationError("Cannot summarize a route without segments")

    normalized = normalize_weights(weights)
    averages = {
        dim: sum(seg.vibe_profile.get(dim) for seg in segments) / len(segments)
        for dim in VIBE_DIMENSIONS
    }
    segment_averages = VibeWeights(**averages)
    weighted_score = sum(normalized.get(dim) * averages[dim] for dim in VIBE_DIMENSIONS)

    return VibeSummary(
        normalized_weights=normalized,
        segment_averages=segment_averages,
        weighted_score=weighted_score,
        dominant_vibe=segment_averages.dominant(),
    )


def score_candidate(
    candidate: RouteCandidate,
    *,
    night_mode: bool = False,
    config: Optional[VibeWeightsConfig] = None,
) -> RouteCandidate:
    """Attach summary, vibe score and confidence; returns a new candidate."""
    summary = summarize_vibes(candidate.segments, candidate.weights)

    if candidate.mode == "engine":
        path_score = score_path(
            candidate.segments,
            candidate.emotion,
            detour_minutes=candidate.detour_minutes,
            night_mode=night_mode,
            config=config,
        )
        vibe_score = path_score.vibe_score
        confidence = path_score.avg_confidence
    else:
        # Stylized geometry has no real travel times to penalise
        vibe_score = summary.weighted_score
        confidence = 1.0

    return replace(candidate, summary=summary, vibe_score=vibe_score, confidence=confidence)
