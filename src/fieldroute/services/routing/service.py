"""Route planning orchestration service."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Sequence

from ...config import settings
from ...data.units_repository import group_centroid, units_for_group
from ...errors import EmptySelectionError
from ...models.domain import Unit
from ...schemas.routing import RoutePlanRequest, RoutePlanResponse, RouteStopModel
from ..outputs.links import build_maps_link
from ..selection import filter_pool, select_units
from .cost_matrix import compute_cost_matrix
from .models import CostProvider, RoutePlan, RouteStop
from .osrm_client import OSRMClient
from .policy import apply_policy, is_closed_tour
from .tour import improve, nearest_neighbor, route_length

logger = logging.getLogger(__name__)


def _make_client(provider: CostProvider) -> OSRMClient | None:
    if not provider.is_remote:
        return None
    try:
        return OSRMClient()
    except ValueError as e:
        logger.warning(f"OSRM client unavailable: {e}")
        return None


def _build_stops(
    tour: Sequence[int],
    points: Sequence[tuple[float, float]],
    selected: Sequence[Unit],
    matrix: Sequence[Sequence[float]],
    closed: bool,
) -> list[RouteStop]:
    """Stops in visiting order, depot first; closed tours end with the return leg."""
    stops: list[RouteStop] = []
    cumulative = 0.0
    for position, idx in enumerate(tour):
        leg = 0.0 if position == 0 else matrix[tour[position - 1]][idx]
        cumulative += leg
        unit = selected[idx - 1] if idx > 0 else None
        lat, lon = points[idx]
        stops.append(
            RouteStop(
                sequence=position + 1,
                unit_id=unit.unit_id if unit else None,
                latitude=lat,
                longitude=lon,
                weight=unit.weight if unit else None,
                leg_cost=leg,
                cumulative_cost=cumulative,
            )
        )
    if closed and len(tour) > 1:
        back = matrix[tour[-1]][tour[0]]
        cumulative += back
        lat, lon = points[tour[0]]
        stops.append(
            RouteStop(
                sequence=len(stops) + 1,
                unit_id=None,
                latitude=lat,
                longitude=lon,
                weight=None,
                leg_cost=back,
                cumulative_cost=cumulative,
                is_return=True,
            )
        )
    return stops


def plan_route(payload: RoutePlanRequest) -> RoutePlan:
    """Select units, optimize their visiting order and describe the resulting route."""
    group_units = units_for_group(payload.group)
    pool = filter_pool(group_units, search=payload.search, exclude_ids=payload.exclude_unit_ids)
    if not pool:
        raise EmptySelectionError(f"No units available in group '{payload.group}' with the current filters.")

    selected = select_units(pool, payload.strategy, top_n=payload.top_n, radius_km=payload.radius_km)
    if not selected:
        raise EmptySelectionError("Selection produced no units to route.")

    if payload.depot is not None:
        depot = (payload.depot.latitude, payload.depot.longitude)
    else:
        depot = group_centroid(payload.group, tuple(group_units))
    points = [depot, *[(unit.latitude, unit.longitude) for unit in selected]]

    closed = is_closed_tour(payload.end_mode)
    max_iterations = payload.max_iterations or settings.max_improvement_iterations
    client = _make_client(payload.provider)

    cost = compute_cost_matrix(payload.provider, points, client=client)
    initial = nearest_neighbor(cost.values, start=0)
    tour = improve(initial, cost.values, closed=closed, max_iterations=max_iterations)
    initial_cost = route_length(initial, cost.values, closed)
    total_cost = route_length(tour, cost.values, closed)

    ordered = [points[idx] for idx in tour]
    custom = None
    if payload.custom_destination is not None:
        custom = (payload.custom_destination.latitude, payload.custom_destination.longitude)
    policy = apply_policy(payload.end_mode, ordered, custom)

    straight = [*ordered, ordered[0]] if closed and len(ordered) > 1 else list(ordered)
    geometry, geometry_source = straight, "straight"
    if payload.include_geometry and client is not None and cost.provider_used.is_remote:
        road = client.route_geometry(straight)
        if road:
            geometry, geometry_source = road, "road"

    logger.info(
        f"Planned route for group '{payload.group}': {len(selected)} units, "
        f"{total_cost:.3f} {cost.provider_used.cost_unit} via {cost.provider_used.value} "
        f"(nearest neighbor {initial_cost:.3f})"
    )

    return RoutePlan(
        group=payload.group,
        tour=tour,
        stops=_build_stops(tour, points, selected, cost.values, closed),
        total_cost=total_cost,
        cost_unit=cost.provider_used.cost_unit,
        provider_requested=cost.provider_requested,
        provider_used=cost.provider_used,
        is_closed=policy.is_closed,
        destination=policy.destination,
        fallback_reason=cost.failure.reason.value if cost.failure else None,
        geometry=geometry,
        geometry_source=geometry_source,
        maps_url=build_maps_link(ordered[0], ordered[1:], policy.destination),
        metadata={
            "strategy": payload.strategy.value,
            "pool_size": len(pool),
            "selected_count": len(selected),
            "initial_cost": initial_cost,
            "improvement": initial_cost - total_cost,
            "max_iterations": max_iterations,
            "end_mode": payload.end_mode.value,
        },
    )


def plan_route_response(payload: RoutePlanRequest) -> RoutePlanResponse:
    plan = plan_route(payload)
    return RoutePlanResponse(
        group=plan.group,
        tour=plan.tour,
        stops=[RouteStopModel(**asdict(stop)) for stop in plan.stops],
        total_cost=plan.total_cost,
        cost_unit=plan.cost_unit,
        provider_requested=plan.provider_requested,
        provider_used=plan.provider_used,
        fallback_reason=plan.fallback_reason,
        is_closed=plan.is_closed,
        destination=plan.destination,
        geometry=plan.geometry,
        geometry_source=plan.geometry_source,
        maps_url=plan.maps_url,
        metadata=plan.metadata,
    )
