"""Serializers for routing outputs."""

from __future__ import annotations

import csv
import io

from ..routing.models import RoutePlan, RouteStop

DEPOT_LABEL = "DEPOT"
RETURN_LABEL = "DEPOT (return)"


def stop_label(stop: RouteStop) -> str:
    if stop.unit_id is not None:
        return stop.unit_id
    return RETURN_LABEL if stop.is_return else DEPOT_LABEL


def route_plan_to_csv(plan: RoutePlan) -> str:
    """One row per stop with leg and cumulative cost in the plan's unit."""
    if plan.cost_unit == "min":
        leg_field, cumulative_field, digits = "leg_min", "cumulative_min", 2
    else:
        leg_field, cumulative_field, digits = "leg_km", "cumulative_km", 3

    buffer = io.StringIO()
    fieldnames = ["order", "id", "lat", "lon", "weight", leg_field, cumulative_field]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames, lineterminator="\n")
    writer.writeheader()
    for stop in plan.stops:
        writer.writerow(
            {
                "order": stop.sequence,
                "id": stop_label(stop),
                "lat": stop.latitude,
                "lon": stop.longitude,
                "weight": "" if stop.weight is None else stop.weight,
                leg_field: f"{stop.leg_cost:.{digits}f}",
                cumulative_field: f"{stop.cumulative_cost:.{digits}f}",
            }
        )
    return buffer.getvalue()
