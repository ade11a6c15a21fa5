"""Tour-end policy: where the route finishes and which objective is optimized."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..geospatial import is_valid_coordinate
from .models import TourEndMode, TourPolicyResult

logger = logging.getLogger(__name__)


def is_closed_tour(mode: TourEndMode | str) -> bool:
    """Only returning to the depot counts the last -> depot edge."""
    return TourEndMode(mode) is TourEndMode.RETURN_TO_DEPOT


def resolve_destination(
    mode: TourEndMode | str,
    ordered_points: Sequence[tuple[float, float]],
    custom: Optional[tuple[object, object]] = None,
) -> tuple[float, float]:
    """Pick the reported endpoint of an already optimized route.

    ``ordered_points`` are the route coordinates in visiting order, depot
    first. A custom destination that is missing, non-finite or out of range
    falls back to the last visited point.
    """
    mode = TourEndMode(mode)
    if not ordered_points:
        raise ValueError("Cannot resolve a destination for an empty route.")

    if mode is TourEndMode.RETURN_TO_DEPOT:
        return tuple(ordered_points[0])
    if mode is TourEndMode.CUSTOM:
        if custom is not None and is_valid_coordinate(custom[0], custom[1]):
            return (float(custom[0]), float(custom[1]))
        logger.warning(f"Invalid custom destination {custom!r}; ending at the last visited unit")
    return tuple(ordered_points[-1])


def apply_policy(
    mode: TourEndMode | str,
    ordered_points: Sequence[tuple[float, float]],
    custom: Optional[tuple[object, object]] = None,
) -> TourPolicyResult:
    return TourPolicyResult(
        destination=resolve_destination(mode, ordered_points, custom),
        is_closed=is_closed_tour(mode),
    )
