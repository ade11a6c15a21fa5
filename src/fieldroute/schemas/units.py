"""Unit catalog schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel


class UnitModel(BaseModel):
    unit_id: str
    group: str
    weight: float
    latitude: float
    longitude: float


class UnitListResponse(BaseModel):
    group: str
    count: int
    units: List[UnitModel]
