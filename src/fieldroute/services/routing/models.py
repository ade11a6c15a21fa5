"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class CostProvider(str, Enum):
    GEODESIC = "geodesic"
    ROAD_DISTANCE = "road-distance"
    ROAD_DURATION = "road-duration"

    @property
    def is_remote(self) -> bool:
        return self is not CostProvider.GEODESIC

    @property
    def cost_unit(self) -> str:
        return "min" if self is CostProvider.ROAD_DURATION else "km"


class FailureReason(str, Enum):
    NOT_CONFIGURED = "not_configured"
    TOO_MANY_POINTS = "too_many_points"
    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"
    MALFORMED_RESPONSE = "malformed_response"
    NON_FINITE = "non_finite"


class TourEndMode(str, Enum):
    RETURN_TO_DEPOT = "return-to-depot"
    END_AT_LAST = "end-at-last"
    CUSTOM = "custom"


@dataclass(frozen=True, slots=True)
class ProviderFailure:
    reason: FailureReason
    detail: str


@dataclass(slots=True)
class MatrixOutcome:
    """Result of a remote table request: either a matrix or a typed failure."""

    matrix: Optional[List[List[float]]] = None
    failure: Optional[ProviderFailure] = None

    @property
    def ok(self) -> bool:
        return self.matrix is not None and self.failure is None


@dataclass(slots=True)
class CostMatrix:
    values: List[List[float]]
    provider_requested: CostProvider
    provider_used: CostProvider
    failure: Optional[ProviderFailure] = None

    @property
    def size(self) -> int:
        return len(self.values)

    @property
    def fell_back(self) -> bool:
        return self.provider_used is not self.provider_requested


@dataclass(frozen=True, slots=True)
class TourPolicyResult:
    destination: tuple[float, float]
    is_closed: bool


@dataclass(slots=True)
class RouteStop:
    sequence: int
    unit_id: Optional[str]
    latitude: float
    longitude: float
    weight: Optional[float]
    leg_cost: float
    cumulative_cost: float
    is_return: bool = False


@dataclass(slots=True)
class RoutePlan:
    group: str
    tour: List[int]
    stops: List[RouteStop]
    total_cost: float
    cost_unit: str
    provider_requested: CostProvider
    provider_used: CostProvider
    is_closed: bool
    destination: tuple[float, float]
    fallback_reason: Optional[str] = None
    geometry: List[tuple[float, float]] = field(default_factory=list)
    geometry_source: str = "straight"
    maps_url: str = ""
    metadata: dict = field(default_factory=dict)
