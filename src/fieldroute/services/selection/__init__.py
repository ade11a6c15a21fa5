"""Candidate selection helpers."""

from .service import (
    SelectionStrategy,
    densest_neighbors,
    filter_pool,
    select_by_density,
    select_by_priority,
    select_units,
)

__all__ = [
    "SelectionStrategy",
    "densest_neighbors",
    "filter_pool",
    "select_by_density",
    "select_by_priority",
    "select_units",
]
