"""Route ranking service - reranks scored candidates and picks a recommendation."""
from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

from vibenav.models.vibe import RouteCandidate


class RouteRankingService:
    """Stable descending sort on vibe score (synthetic) or weighted match score (engine)."""

    @staticmethod
    def ranking_key(route: RouteCandidate) -> float:
        if route.mode == "engine":
            return route.weighted_score
        return route.vibe_score

    def rank_routes(self, routes: List[RouteCandidate]) -> List[RouteCandidate]:
        if not routes:
            return []

        # Ties keep plan order
        ordered = sorted(
            routes, key=lambda route: (-self.ranking_key(route), route.plan_index)
        )

        ranked = [replace(route, recommended=False) for route in ordered]
        ranked[0] = replace(ranked[0], recommended=True)
        return ranked

    @staticmethod
    def recommended(routes: List[RouteCandidate]) -> Optional[RouteCandidate]:
        for route in routes:
            if route.recommended:
                return route
        return None
