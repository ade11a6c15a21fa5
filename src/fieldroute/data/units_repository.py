"""Data access helpers for loading the unit catalog."""

from __future__ import annotations

import csv
import functools
import logging
import math
from pathlib import Path
from typing import Optional

from ..config import settings
from ..errors import UnknownGroupError
from ..models.domain import Unit
from ..services.geospatial import centroid, is_valid_coordinate

logger = logging.getLogger(__name__)

HEADER_ALIASES: dict[str, str] = {
    "BASE": "group",
    "CIDADE": "group",
    "REGIAO": "group",
    "REGIÃO": "group",
    "GROUP": "group",
    "MFINSTALLA": "unit_id",
    "MEDIDOR FISCAL (TRAFO)": "unit_id",
    "MEDIDOR FISCAL": "unit_id",
    "TRAFO": "unit_id",
    "MF": "unit_id",
    "ID": "unit_id",
    "PERDA": "weight",
    "PERDAS": "weight",
    "LOSS": "weight",
    "WEIGHT": "weight",
    "LAT": "latitude",
    "LATI": "latitude",
    "LATITUDE": "latitude",
    "LON": "longitude",
    "LONG": "longitude",
    "LNG": "longitude",
    "LONGITUDE": "longitude",
}
REQUIRED_FIELDS = ("unit_id", "group", "weight", "latitude", "longitude")


def parse_decimal(value: Optional[str]) -> Optional[float]:
    """Parse numbers written as ``1.234,56`` or ``1234.56``; ``None`` when unparseable."""
    text = "".join((value or "").split())
    if not text:
        return None
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _header_index(header: list[str]) -> dict[str, int]:
    columns: dict[str, int] = {}
    for position, name in enumerate(header):
        field = HEADER_ALIASES.get(name.replace("\ufeff", "").strip().upper())
        if field and field not in columns:
            columns[field] = position
    return columns


@functools.lru_cache(maxsize=1)
def load_units(source: Optional[Path] = None, delimiter: Optional[str] = None) -> tuple[Unit, ...]:
    """Load units from the configured catalog file."""

    path = source or settings.unit_catalog_file
    sep = delimiter or settings.catalog_delimiter
    if not path.exists():
        raise FileNotFoundError(f"Unit catalog not found: {path}")

    with path.open(mode="r", encoding="utf-8-sig", newline="") as handle:
        rows = [row for row in csv.reader(handle, delimiter=sep) if any(cell.strip() for cell in row)]

    # Title rows may precede the header; take the first row naming every required column.
    header_at = next(
        (i for i, row in enumerate(rows) if all(name in _header_index(row) for name in REQUIRED_FIELDS)),
        None,
    )
    if header_at is None:
        header_at = next((i for i, row in enumerate(rows) if len(row) >= 3), None)
    if header_at is None:
        raise ValueError(f"Unit catalog '{path}' is missing a header row.")
    columns = _header_index(rows[header_at])
    missing = [name for name in REQUIRED_FIELDS if name not in columns]
    if missing:
        raise ValueError(f"Unit catalog '{path}' is missing columns: {', '.join(missing)}")

    units: list[Unit] = []
    skipped = 0
    for row in rows[header_at + 1 :]:
        if len(row) < len(rows[header_at]):
            skipped += 1
            continue
        weight = parse_decimal(row[columns["weight"]])
        lat = parse_decimal(row[columns["latitude"]])
        lon = parse_decimal(row[columns["longitude"]])
        if weight is None or weight < 0 or lat is None or lon is None or not is_valid_coordinate(lat, lon):
            skipped += 1
            continue
        units.append(
            Unit(
                unit_id=row[columns["unit_id"]].strip(),
                group=row[columns["group"]].strip(),
                weight=weight,
                latitude=lat,
                longitude=lon,
            )
        )
    if skipped:
        logger.info(f"Skipped {skipped} catalog rows with missing or invalid values in {path.name}")
    return tuple(units)


def list_groups(units: Optional[tuple[Unit, ...]] = None) -> list[str]:
    catalog = units if units is not None else load_units()
    return sorted({unit.group for unit in catalog})


def units_for_group(group: str, units: Optional[tuple[Unit, ...]] = None) -> list[Unit]:
    catalog = units if units is not None else load_units()
    matched = [unit for unit in catalog if unit.group == group]
    if not matched:
        raise UnknownGroupError(group)
    return matched


def group_centroid(group: str, units: Optional[tuple[Unit, ...]] = None) -> tuple[float, float]:
    """Mean coordinate of a group's units, used as the default depot."""
    return centroid([(unit.latitude, unit.longitude) for unit in units_for_group(group, units)])
