"""Routing request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..config import settings
from ..services.routing.models import CostProvider, TourEndMode
from ..services.selection import SelectionStrategy


class DepotModel(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class CustomDestinationModel(BaseModel):
    """Not range-checked here; an unusable destination ends the route at the last stop."""

    latitude: Optional[float] = None
    longitude: Optional[float] = None


class RoutePlanRequest(BaseModel):
    group: str = Field(..., description="Site/depot grouping key of the units to visit.")
    depot: Optional[DepotModel] = Field(
        default=None,
        description="Crew base location. Defaults to the centroid of the group's units.",
    )
    strategy: SelectionStrategy = SelectionStrategy.PRIORITY
    top_n: int = Field(default_factory=lambda: settings.default_top_n, ge=1)
    radius_km: float = Field(default_factory=lambda: settings.default_radius_km)
    provider: CostProvider = CostProvider.GEODESIC
    end_mode: TourEndMode = TourEndMode.RETURN_TO_DEPOT
    custom_destination: Optional[CustomDestinationModel] = None
    search: Optional[str] = Field(default=None, description="Case-insensitive unit id filter.")
    exclude_unit_ids: List[str] = Field(default_factory=list, description="Units already completed.")
    max_iterations: Optional[int] = Field(default=None, ge=1)
    include_geometry: bool = True


class RouteStopModel(BaseModel):
    sequence: int
    unit_id: Optional[str]
    latitude: float
    longitude: float
    weight: Optional[float]
    leg_cost: float
    cumulative_cost: float
    is_return: bool = False


class RoutePlanResponse(BaseModel):
    group: str
    tour: List[int]
    stops: List[RouteStopModel]
    total_cost: float
    cost_unit: str
    provider_requested: CostProvider
    provider_used: CostProvider
    fallback_reason: Optional[str] = None
    is_closed: bool
    destination: tuple[float, float]
    geometry: List[tuple[float, float]]
    geometry_source: str
    maps_url: str
    metadata: dict
