"""Navigation links for exporting a planned route to a phone."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import quote

from ...config import settings

GOOGLE_MAPS_DIRECTIONS = "https://www.google.com/maps/dir/?api=1"


def _fmt(point: tuple[float, float]) -> str:
    return f"{point[0]:.6f},{point[1]:.6f}"


def build_maps_link(
    origin: tuple[float, float],
    waypoints: Sequence[tuple[float, float]],
    destination: tuple[float, float],
    max_waypoints: int | None = None,
) -> str:
    """Google Maps driving directions URL; waypoints past the cap are dropped."""
    limit = settings.maps_max_waypoints if max_waypoints is None else max_waypoints
    url = (
        f"{GOOGLE_MAPS_DIRECTIONS}&origin={quote(_fmt(origin), safe='')}"
        f"&destination={quote(_fmt(destination), safe='')}&travelmode=driving"
    )
    stops = "|".join(_fmt(point) for point in list(waypoints)[:limit])
    if stops:
        url += f"&waypoints={quote(stops, safe='')}"
    return url
