from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

LatLng = Tuple[float, float]


def map_maneuver_type(maneuver_type: int) -> str:
    """Collapse Valhalla maneuver type codes into left / right / straight / arrive."""
    if maneuver_type in (4, 5, 6):
        return "arrive"
    if 7 <= maneuver_type <= 9:
        return "right"
    if 10 <= maneuver_type <= 12:
        return "left"
    return "straight"


@dataclass(frozen=True)
class Maneuver:
    instruction: str
    type: int
    length_m: float
    time_s: float
    begin_shape_index: int
    end_shape_index: int

    @property
    def direction(self) -> str:
        return map_maneuver_type(self.type)


@dataclass
class EngineRoute:
    """One leg-merged route as returned by the routing engine."""

    strategy: str
    coordinates: List[LatLng]
    distance_m: float
    duration_s: float
    maneuvers: List[Maneuver] = field(default_factory=list)


@dataclass(frozen=True)
class CostingStrategy:
    name: str
    costing: str
    options: Optional[Dict[str, Dict[str, float]]] = None


class RoutingEngine(ABC):
    """Turn-by-turn routing engine abstract interface"""

    @abstractmethod
    async def get_route(
        self, origin: LatLng, destination: LatLng, strategy: CostingStrategy
    ) -> EngineRoute:
        """Get one route between two points for a costing strategy

        Args:
            origin: Origin coordinates (lat, lng)
            destination: Destination coordinates (lat, lng)
            strategy: Travel mode costing profile
        """
        pass
