"""Domain models for catalog units."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Unit:
    """A maintainable asset from the catalog, visited by the field crew.

    ``weight`` is the business priority (for example an energy loss figure);
    higher weights are visited first under the priority strategy.
    """

    unit_id: str
    group: str
    weight: float
    latitude: float
    longitude: float
