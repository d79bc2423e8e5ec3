# Route service package
from .generation_service import RouteGenerationService
from .plan_builder import CandidatePlanBuilder
from .ranking_service import RouteRankingService
from .response_builder import ResponseBuilderService

__all__ = [
    "CandidatePlanBuilder",
    "RouteGenerationService",
    "RouteRankingService",
    "ResponseBuilderService",
]
