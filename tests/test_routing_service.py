import math

import pytest

from fieldroute.errors import EmptySelectionError
from fieldroute.models.domain import Unit
from fieldroute.schemas.routing import RoutePlanRequest
from fieldroute.services.routing import service as routing_service
from fieldroute.services.routing.models import (
    CostProvider,
    FailureReason,
    MatrixOutcome,
    ProviderFailure,
)
from fieldroute.services.routing.tour import route_length


def _unit(uid: str, weight: float, lat: float, lon: float) -> Unit:
    return Unit(unit_id=uid, group="MARABA", weight=weight, latitude=lat, longitude=lon)


UNITS = [
    _unit("MF001", 40.0, -6.500, -49.800),
    _unit("MF002", 35.0, -6.540, -49.860),
    _unit("MF003", 30.0, -6.510, -49.790),
    _unit("MF004", 25.0, -6.560, -49.840),
    _unit("MF005", 20.0, -6.530, -49.810),
    _unit("MF006", 1.0, -6.900, -50.300),
]


class FailingOSRM:
    def __init__(self):
        self.table_calls = 0
        self.route_calls = 0

    def table(self, coordinates, annotation="distance"):
        self.table_calls += 1
        return MatrixOutcome(failure=ProviderFailure(FailureReason.TRANSPORT, "connection refused"))

    def route_geometry(self, coordinates):
        self.route_calls += 1
        return None


class MinutesOSRM:
    def table(self, coordinates, annotation="distance"):
        assert annotation == "duration"
        n = len(coordinates)
        return MatrixOutcome(matrix=[[0.0 if i == j else 10.0 + abs(i - j) for j in range(n)] for i in range(n)])

    def route_geometry(self, coordinates):
        return [(-6.52, -49.83), (-6.51, -49.82), (-6.50, -49.80)]


@pytest.fixture(autouse=True)
def catalog(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(routing_service, "units_for_group", lambda group: list(UNITS))


def _request(**overrides) -> RoutePlanRequest:
    payload = {"group": "MARABA", "depot": {"latitude": -6.52, "longitude": -49.83}, "top_n": 5}
    payload.update(overrides)
    return RoutePlanRequest(**payload)


def test_geodesic_closed_route():
    plan = routing_service.plan_route(_request())

    assert plan.provider_used is CostProvider.GEODESIC
    assert plan.cost_unit == "km"
    assert plan.is_closed
    assert plan.destination == (-6.52, -49.83)
    assert plan.tour[0] == 0
    assert sorted(plan.tour) == list(range(6))
    # depot, five units, return leg
    assert len(plan.stops) == 7
    assert plan.stops[0].unit_id is None and plan.stops[0].leg_cost == 0.0
    assert plan.stops[-1].is_return
    assert plan.stops[-1].cumulative_cost == pytest.approx(plan.total_cost)
    assert "MF006" not in {stop.unit_id for stop in plan.stops}
    assert plan.geometry_source == "straight"
    assert plan.geometry[0] == plan.geometry[-1] == (-6.52, -49.83)
    assert plan.metadata["improvement"] >= -1e-9
    assert plan.maps_url.startswith("https://www.google.com/maps/dir/?api=1")


def test_open_route_ends_at_last_unit():
    plan = routing_service.plan_route(_request(end_mode="end-at-last"))

    assert not plan.is_closed
    last = plan.stops[-1]
    assert not last.is_return
    assert plan.destination == (last.latitude, last.longitude)
    assert len(plan.geometry) == 6


def test_invalid_custom_destination_falls_back_to_last_unit():
    plan = routing_service.plan_route(
        _request(end_mode="custom", custom_destination={"latitude": 123.0, "longitude": -49.8})
    )
    last = plan.stops[-1]
    assert plan.destination == (last.latitude, last.longitude)

    custom = routing_service.plan_route(
        _request(end_mode="custom", custom_destination={"latitude": -6.6, "longitude": -49.9})
    )
    assert custom.destination == (-6.6, -49.9)
    assert "destination=-6.600000%2C-49.900000" in custom.maps_url


def test_failing_road_provider_falls_back_to_geodesic_kilometers(monkeypatch: pytest.MonkeyPatch):
    dummy = FailingOSRM()
    monkeypatch.setattr(routing_service, "OSRMClient", lambda: dummy)

    for provider in ("road-distance", "road-duration"):
        plan = routing_service.plan_route(_request(provider=provider))
        assert plan.provider_requested is CostProvider(provider)
        assert plan.provider_used is CostProvider.GEODESIC
        assert plan.cost_unit == "km"
        assert plan.fallback_reason == "transport"
        assert math.isfinite(plan.total_cost)
        assert plan.geometry_source == "straight"

    assert dummy.table_calls == 2
    assert dummy.route_calls == 0


def test_road_duration_reports_minutes_and_road_geometry(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(routing_service, "OSRMClient", lambda: MinutesOSRM())

    plan = routing_service.plan_route(_request(provider="road-duration", end_mode="end-at-last"))

    assert plan.provider_used is CostProvider.ROAD_DURATION
    assert plan.cost_unit == "min"
    assert plan.fallback_reason is None
    assert plan.geometry_source == "road"
    assert len(plan.geometry) == 3
    n = len(plan.tour)
    matrix = [[0.0 if i == j else 10.0 + abs(i - j) for j in range(n)] for i in range(n)]
    assert plan.total_cost == pytest.approx(route_length(plan.tour, matrix, closed=False))


def test_density_strategy_and_default_depot():
    plan = routing_service.plan_route(
        RoutePlanRequest(group="MARABA", strategy="density", top_n=3, radius_km=5.0)
    )
    depot = plan.stops[0]
    assert depot.latitude == pytest.approx(sum(u.latitude for u in UNITS) / len(UNITS))
    assert plan.metadata["selected_count"] == 3
    assert "MF006" not in {stop.unit_id for stop in plan.stops}


def test_exclusions_and_empty_pool():
    plan = routing_service.plan_route(_request(exclude_unit_ids=["MF001", "MF002"], top_n=10))
    ids = {stop.unit_id for stop in plan.stops if stop.unit_id}
    assert ids == {"MF003", "MF004", "MF005", "MF006"}

    with pytest.raises(EmptySelectionError):
        routing_service.plan_route(_request(search="does-not-exist"))


def test_response_model_round_trip():
    response = routing_service.plan_route_response(_request(end_mode="end-at-last"))
    payload = response.model_dump(mode="json")
    assert payload["provider_used"] == "geodesic"
    assert payload["cost_unit"] == "km"
    assert payload["stops"][0]["sequence"] == 1
