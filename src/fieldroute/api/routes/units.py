"""Unit catalog endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from ...data.units_repository import list_groups, units_for_group
from ...errors import UnknownGroupError
from ...schemas.units import UnitListResponse, UnitModel
from ...services.selection import filter_pool

router = APIRouter(prefix="/units", tags=["units"])


@router.get("/groups", response_model=list[str], status_code=status.HTTP_200_OK)
def groups() -> list[str]:
    try:
        return list_groups()
    except FileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("", response_model=UnitListResponse, status_code=status.HTTP_200_OK)
def list_units(
    group: str = Query(..., description="Group key to list units for"),
    search: str | None = Query(default=None, description="Case-insensitive unit id filter"),
) -> UnitListResponse:
    """Units of a group ordered by weight, highest first."""
    try:
        matched = filter_pool(units_for_group(group), search=search)
    except UnknownGroupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except FileNotFoundError as exc:
        logging.error(f"Unit catalog unavailable: {exc}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return UnitListResponse(
        group=group,
        count=len(matched),
        units=[
            UnitModel(
                unit_id=unit.unit_id,
                group=unit.group,
                weight=unit.weight,
                latitude=unit.latitude,
                longitude=unit.longitude,
            )
            for unit in matched
        ],
    )
