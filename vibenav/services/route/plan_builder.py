"""
Candidate plan builder - turns one user weight vector into distinct vibe plans
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from vibenav.models.vibe import VIBE_DIMENSIONS, VibeWeights, normalize_weights

MAX_ALTERNATIVES = 4
BALANCED_BLEND = 0.5
EMPHASIS_BOOST = 0.35
DIMENSION_FLOOR = 0.05

_EMPHASIS_COPY: Dict[str, Dict[str, str]] = {
    "greenery": {
        "label": "Green escape",
        "description": "Leans into parks, tree cover and planted streets.",
    },
    "quietness": {
        "label": "Quiet retreat",
        "description": "Favours calm lanes away from traffic and noise.",
    },
    "culture": {
        "label": "Culture trail",
        "description": "Threads past galleries, murals and historic corners.",
    },
    "scenery": {
        "label": "Scenic views",
        "description": "Chases waterfronts, vistas and striking architecture.",
    },
}


@dataclass(frozen=True)
class CandidatePlan:
    id: str
    label: str
    description: str
    weights: VibeWeights
    emphasis: Optional[str] = None


class CandidatePlanBuilder:
    """Build the base plan plus up to four alternative weight profiles."""

    def build_plans(self, base: VibeWeights, alternatives: int = 2) -> List[CandidatePlan]:
        alternatives = max(0, min(MAX_ALTERNATIVES, int(alternatives)))
        normalized = normalize_weights(base)

        plans = [
            CandidatePlan(
                id="your-mix",
                label="Your mix",
                description="Follows your vibe settings as given.",
                weights=normalized,
            )
        ]
        if alternatives == 0:
            return plans

        plans.append(
            CandidatePlan(
                id="balanced-explorer",
                label="Balanced explorer",
                description="Softens your mix toward an even blend of every vibe.",
                weights=self.blend_toward_uniform(normalized, BALANCED_BLEND),
            )
        )

        remaining = alternatives - 1
        for dimension in normalized.ranked_dimensions():
            if remaining <= 0:
                break
            emphasized = self.emphasize(normalized, dimension)
            if emphasized is None:
                continue
            copy = _EMPHASIS_COPY[dimension]
            plans.append(
                CandidatePlan(
                    id=f"emphasis-{dimension}",
                    label=copy["label"],
                    description=copy["description"],
                    weights=emphasized,
                    emphasis=dimension,
                )
            )
            remaining -= 1

        return plans

    @staticmethod
    def blend_toward_uniform(weights: VibeWeights, factor: float) -> VibeWeights:
        uniform = VibeWeights.uniform()
        blended = {
            dim: (1 - factor) * weights.get(dim) + factor * uniform.get(dim)
            for dim in VIBE_DIMENSIONS
        }
        return normalize_weights(VibeWeights(**blended))

    @staticmethod
    def emphasize(weights: VibeWeights, dimension: str) -> Optional[VibeWeights]:
        """Boost one dimension; None when it is already at the ceiling."""
        others = [dim for dim in VIBE_DIMENSIONS if dim != dimension]
        current = weights.get(dimension)
        # Keep room for every other dimension's floor
        ceiling = 1.0 - DIMENSION_FLOOR * len(others)
        focus = min(current + min(EMPHASIS_BOOST, 1.0 - current), ceiling)
        if focus <= current + 1e-9:
            return None

        spare = (1.0 - focus) - DIMENSION_FLOOR * len(others)
        other_total = sum(weights.get(dim) for dim in others)
        result = {dimension: focus}
        for dim in others:
            share = weights.get(dim) / other_total if other_total > 0 else 1.0 / len(others)
            result[dim] = DIMENSION_FLOOR + spare * share
        return normalize_weights(VibeWeights(**result))
