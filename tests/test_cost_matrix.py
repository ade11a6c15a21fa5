import math

import httpx
import pytest

from fieldroute.services.routing.cost_matrix import compute_cost_matrix
from fieldroute.services.routing.models import CostProvider, FailureReason
from fieldroute.services.routing.osrm_client import OSRMClient

POINTS = [(-6.52, -49.83), (-6.53, -49.85), (-6.50, -49.80)]


def _client(handler, **kwargs) -> OSRMClient:
    return OSRMClient(
        base_url="http://osrm.test",
        max_retries=0,
        backoff_seconds=0.0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _assert_geodesic(result, requested: CostProvider):
    assert result.provider_requested is requested
    assert result.provider_used is CostProvider.GEODESIC
    assert result.provider_used.cost_unit == "km"
    n = len(POINTS)
    assert result.size == n
    for i in range(n):
        assert result.values[i][i] == 0.0
        for j in range(n):
            assert math.isfinite(result.values[i][j])
            assert result.values[i][j] == result.values[j][i]


def test_geodesic_provider_never_touches_the_network():
    def handler(request):
        raise AssertionError("no request expected")

    result = compute_cost_matrix("geodesic", POINTS, client=_client(handler))

    _assert_geodesic(result, CostProvider.GEODESIC)
    assert result.failure is None
    assert not result.fell_back


def test_road_distance_converts_meters_to_kilometers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["annotations"] = request.url.params["annotations"]
        return httpx.Response(
            200,
            json={
                "code": "Ok",
                "distances": [[0, 2500, 4000], [2600, 0, 1500], [3900, 1400, 0]],
            },
        )

    result = compute_cost_matrix(CostProvider.ROAD_DISTANCE, POINTS, client=_client(handler))

    assert result.provider_used is CostProvider.ROAD_DISTANCE
    assert result.values == [[0.0, 2.5, 4.0], [2.6, 0.0, 1.5], [3.9, 1.4, 0.0]]
    # OSRM expects lon,lat pairs.
    assert seen["path"] == "/table/v1/driving/-49.83,-6.52;-49.85,-6.53;-49.8,-6.5"
    assert seen["annotations"] == "distance"


def test_road_duration_converts_seconds_to_minutes():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["annotations"] == "duration"
        return httpx.Response(200, json={"durations": [[0, 120, 300], [90, 0, 60], [330, 30, 0]]})

    result = compute_cost_matrix("road-duration", POINTS, client=_client(handler))

    assert result.provider_used is CostProvider.ROAD_DURATION
    assert result.provider_used.cost_unit == "min"
    assert result.values == [[0.0, 2.0, 5.0], [1.5, 0.0, 1.0], [5.5, 0.5, 0.0]]


@pytest.mark.parametrize(
    "response, reason",
    [
        (httpx.Response(503, text="busy"), FailureReason.HTTP_STATUS),
        (httpx.Response(200, text="not json"), FailureReason.MALFORMED_RESPONSE),
        (httpx.Response(200, json={"code": "Ok"}), FailureReason.MALFORMED_RESPONSE),
        (httpx.Response(200, json={"distances": [[0, 1], [1, 0]]}), FailureReason.MALFORMED_RESPONSE),
        (
            httpx.Response(200, json={"distances": [[0, None, 1], [1, 0, 1], [1, 1, 0]]}),
            FailureReason.NON_FINITE,
        ),
    ],
)
def test_remote_failures_fall_back_to_geodesic(response, reason):
    result = compute_cost_matrix("road-distance", POINTS, client=_client(lambda request: response))

    _assert_geodesic(result, CostProvider.ROAD_DISTANCE)
    assert result.fell_back
    assert result.failure.reason is reason


def test_transport_error_falls_back_to_geodesic():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = compute_cost_matrix("road-duration", POINTS, client=_client(handler))

    _assert_geodesic(result, CostProvider.ROAD_DURATION)
    assert result.failure.reason is FailureReason.TRANSPORT


def test_too_many_points_skips_the_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    result = compute_cost_matrix("road-distance", POINTS, client=_client(handler, max_points=2))

    assert calls == []
    _assert_geodesic(result, CostProvider.ROAD_DISTANCE)
    assert result.failure.reason is FailureReason.TOO_MANY_POINTS


def test_server_errors_are_retried_before_failing():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(502)
        return httpx.Response(200, json={"distances": [[0, 1000, 1000], [1000, 0, 1000], [1000, 1000, 0]]})

    client = OSRMClient(
        base_url="http://osrm.test",
        max_retries=1,
        backoff_seconds=0.0,
        transport=httpx.MockTransport(handler),
    )
    result = compute_cost_matrix("road-distance", POINTS, client=client)

    assert len(calls) == 2
    assert result.provider_used is CostProvider.ROAD_DISTANCE
    assert result.values[0][1] == 1.0


def test_always_failing_provider_reports_geodesic_every_time():
    def handler(request):
        return httpx.Response(500)

    client = _client(handler)
    for provider in ("road-distance", "road-duration", "road-distance"):
        result = compute_cost_matrix(provider, POINTS, client=client)
        assert result.provider_used is CostProvider.GEODESIC
        assert result.provider_used.cost_unit == "km"


def test_route_geometry_swaps_back_to_lat_lon():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.startswith("/route/v1/driving/")
        return httpx.Response(
            200,
            json={"code": "Ok", "routes": [{"geometry": {"coordinates": [[-49.83, -6.52], [-49.84, -6.525]]}}]},
        )

    geometry = _client(handler).route_geometry(POINTS[:2])

    assert geometry == [(-6.52, -49.83), (-6.525, -49.84)]


def test_route_geometry_failure_returns_none():
    def handler(request):
        return httpx.Response(200, json={"code": "NoRoute", "routes": []})

    assert _client(handler).route_geometry(POINTS) is None
    assert _client(handler).route_geometry(POINTS[:1]) is None
