"""Candidate selection: reduce a unit catalog to a bounded working set."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Sequence

import numpy as np

from ...errors import EmptySelectionError
from ...models.domain import Unit
from ..geospatial import haversine_rows_km

logger = logging.getLogger(__name__)

DENSITY_BLOCK_ROWS = 512


class SelectionStrategy(str, Enum):
    PRIORITY = "priority"
    DENSITY = "density"


def by_weight(units: Iterable[Unit]) -> list[Unit]:
    """Weight descending; ``sorted`` is stable so ties keep catalog order."""
    return sorted(units, key=lambda unit: unit.weight, reverse=True)


def filter_pool(
    units: Sequence[Unit],
    *,
    search: str | None = None,
    exclude_ids: Iterable[str] | None = None,
) -> list[Unit]:
    """Working pool for selection: id search, completed-unit exclusion, weight order."""
    query = (search or "").strip().lower()
    excluded = {uid.strip() for uid in exclude_ids or ()}
    pool = [
        unit
        for unit in units
        if (not query or query in unit.unit_id.lower()) and unit.unit_id not in excluded
    ]
    return by_weight(pool)


def select_by_priority(units: Sequence[Unit], top_n: int) -> list[Unit]:
    if not units:
        raise EmptySelectionError("No units available for selection with the current filters.")
    return by_weight(units)[:top_n]


def densest_neighbors(
    points: Sequence[tuple[float, float]],
    radius_km: float,
    count: int,
    block_size: int = DENSITY_BLOCK_ROWS,
) -> list[int]:
    """Indices of the ``count`` points nearest to the densest point.

    The densest point is the one with the most other points within
    ``radius_km``; ties (including the all-zero case when the radius is not
    positive) resolve to the lowest index. Neighbour counts are taken
    ``block_size`` rows at a time so memory stays linear in the pool size.
    """
    n = len(points)
    if n == 0 or count <= 0:
        return []

    coords = np.asarray(points, dtype=float).reshape(n, 2)
    counts = np.zeros(n, dtype=int)
    if radius_km > 0:
        for start in range(0, n, block_size):
            block = haversine_rows_km(coords[start : start + block_size], coords)
            # Each row includes the point itself at distance zero.
            counts[start : start + len(block)] = (block <= radius_km).sum(axis=1) - 1

    center = int(np.argmax(counts))
    distances = haversine_rows_km(coords[center : center + 1], coords)[0]
    order = np.argsort(distances, kind="stable")
    logger.debug(f"Density center at index {center} with {int(counts[center])} neighbors within {radius_km} km")
    return [int(idx) for idx in order[:count]]


def select_by_density(units: Sequence[Unit], top_n: int, radius_km: float) -> list[Unit]:
    if not units:
        raise EmptySelectionError("No units available for selection with the current filters.")

    points = [(unit.latitude, unit.longitude) for unit in units]
    indices = densest_neighbors(points, radius_km, min(top_n, len(units)))
    cluster = [units[i] for i in indices]
    if len(cluster) > top_n:
        cluster = by_weight(cluster)[:top_n]
    return cluster


def select_units(
    units: Sequence[Unit],
    strategy: SelectionStrategy | str,
    *,
    top_n: int,
    radius_km: float = 1.0,
) -> list[Unit]:
    """Apply ``strategy`` and return at most ``top_n`` units."""
    if top_n < 1:
        raise ValueError(f"Requested unit count must be at least 1, got {top_n}")
    strategy = SelectionStrategy(strategy)
    if strategy is SelectionStrategy.PRIORITY:
        selected = select_by_priority(units, top_n)
    else:
        selected = select_by_density(units, top_n, radius_km)
    logger.info(f"Selected {len(selected)} of {len(units)} units using {strategy.value} strategy")
    return selected
