"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Literal, Sequence

import httpx

from ...config import settings
from .models import FailureReason, MatrixOutcome, ProviderFailure

logger = logging.getLogger(__name__)

Annotation = Literal["distance", "duration"]

# OSRM reports meters and seconds; the planner works in kilometers and minutes.
_UNIT_DIVISORS: dict[str, float] = {"distance": 1000.0, "duration": 60.0}


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        max_points: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url).rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self.max_points = max_points if max_points is not None else settings.osrm_table_max_points
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        # One client per call keeps concurrent requests from sharing connection state.
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            transport=self._transport,
        )

    def _get_json(self, url: str, params: dict[str, str]) -> Any:
        """GET ``url`` with retries on timeouts, network errors and 5xx responses."""
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    return response.json()
                except httpx.HTTPStatusError as e:
                    attempt += 1
                    if e.response.status_code < 500 or attempt > self.max_retries:
                        raise
                    time.sleep(self.backoff_seconds * attempt)
                except (httpx.TimeoutException, httpx.NetworkError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"OSRM request failed after {attempt} attempts: {e}")
                        raise
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM transport error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
        finally:
            client.close()

    def table(self, coordinates: Sequence[tuple[float, float]], annotation: Annotation = "distance") -> MatrixOutcome:
        """Request a pairwise cost table for ``(lat, lon)`` coordinates.

        Distances come back in kilometers, durations in minutes. Any failure is
        returned as a :class:`ProviderFailure` instead of being raised.
        """
        if annotation not in _UNIT_DIVISORS:
            raise ValueError(f"Unsupported OSRM table annotation: {annotation!r}")
        if not coordinates:
            raise ValueError("At least one coordinate is required for OSRM table.")
        if len(coordinates) > self.max_points:
            return MatrixOutcome(
                failure=ProviderFailure(
                    FailureReason.TOO_MANY_POINTS,
                    f"{len(coordinates)} points exceeds the table limit of {self.max_points}",
                )
            )

        coordinate_str = ";".join(f"{lon},{lat}" for lat, lon in coordinates)
        url = f"{self.base_url}/table/v1/{self.profile}/{coordinate_str}"

        try:
            data = self._get_json(url, {"annotations": annotation})
        except httpx.HTTPStatusError as e:
            return MatrixOutcome(
                failure=ProviderFailure(FailureReason.HTTP_STATUS, f"OSRM table returned {e.response.status_code}")
            )
        except httpx.HTTPError as e:
            return MatrixOutcome(failure=ProviderFailure(FailureReason.TRANSPORT, str(e) or type(e).__name__))
        except ValueError as e:
            return MatrixOutcome(failure=ProviderFailure(FailureReason.MALFORMED_RESPONSE, f"Invalid JSON: {e}"))

        return _parse_table(data, annotation, len(coordinates))

    def route_geometry(self, coordinates: Sequence[tuple[float, float]]) -> list[tuple[float, float]] | None:
        """Road-following path through ``(lat, lon)`` waypoints, or ``None`` on failure."""
        if len(coordinates) < 2:
            return None

        coordinate_str = ";".join(f"{lon},{lat}" for lat, lon in coordinates)
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"
        params = {"overview": "full", "geometries": "geojson", "steps": "false"}

        try:
            data = self._get_json(url, params)
        except (httpx.HTTPError, ValueError) as e:
            logger.info(f"OSRM route geometry unavailable: {e}")
            return None

        try:
            line = data["routes"][0]["geometry"]["coordinates"]
            return [(float(point[1]), float(point[0])) for point in line]
        except (KeyError, IndexError, TypeError, ValueError):
            logger.info("OSRM route response carried no usable geometry")
            return None


def _parse_table(data: Any, annotation: Annotation, size: int) -> MatrixOutcome:
    key = "distances" if annotation == "distance" else "durations"
    raw = data.get(key) if isinstance(data, dict) else None
    if not isinstance(raw, list) or len(raw) != size:
        return MatrixOutcome(
            failure=ProviderFailure(FailureReason.MALFORMED_RESPONSE, f"OSRM response missing a {size}x{size} '{key}' matrix")
        )

    divisor = _UNIT_DIVISORS[annotation]
    matrix: list[list[float]] = []
    for i, row in enumerate(raw):
        if not isinstance(row, list) or len(row) != size:
            return MatrixOutcome(
                failure=ProviderFailure(FailureReason.MALFORMED_RESPONSE, f"Row {i} of '{key}' has the wrong shape")
            )
        converted: list[float] = []
        for j, value in enumerate(row):
            if i == j:
                converted.append(0.0)
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                # OSRM uses null for unreachable pairs.
                return MatrixOutcome(
                    failure=ProviderFailure(FailureReason.NON_FINITE, f"No {annotation} between points {i} and {j}")
                )
            cost = value / divisor
            if not math.isfinite(cost) or cost < 0:
                return MatrixOutcome(
                    failure=ProviderFailure(FailureReason.NON_FINITE, f"Invalid {annotation} {value!r} at [{i}][{j}]")
                )
            converted.append(cost)
        matrix.append(converted)
    return MatrixOutcome(matrix=matrix)


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health with a minimal two-point table request."""
    base = (base_url or settings.osrm_base_url).rstrip("/")
    if not base:
        return False
    test_coords = "13.388860,52.517037;13.385983,52.496891"
    url = f"{base}/table/v1/{settings.osrm_profile}/{test_coords}"
    try:
        response = httpx.get(url, params={"annotations": "duration"}, timeout=5.0)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError):
        return False
    return isinstance(data, dict) and isinstance(data.get("durations"), list)
