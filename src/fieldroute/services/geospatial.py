"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

# Mean Earth radius (IUGG).
EARTH_RADIUS_KM = 6371.0088


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.asin(min(1.0, math.sqrt(a)))


def haversine_rows_km(
    origins: Sequence[tuple[float, float]],
    coordinates: Sequence[tuple[float, float]],
) -> np.ndarray:
    """Great-circle distances from each origin to every coordinate, shape ``(len(origins), len(coordinates))``."""
    if len(origins) == 0 or len(coordinates) == 0:
        return np.zeros((len(origins), len(coordinates)), dtype=float)

    src = np.radians(np.asarray(origins, dtype=float).reshape(len(origins), 2))
    dst = np.radians(np.asarray(coordinates, dtype=float).reshape(len(coordinates), 2))
    lat1 = src[:, 0][:, np.newaxis]
    lon1 = src[:, 1][:, np.newaxis]
    lat2 = dst[:, 0][np.newaxis, :]
    lon2 = dst[:, 1][np.newaxis, :]

    a = np.sin((lat2 - lat1) / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2) ** 2
    return EARTH_RADIUS_KM * 2 * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def haversine_matrix_km(coordinates: Sequence[tuple[float, float]]) -> np.ndarray:
    """Pairwise great-circle distances for ``(lat, lon)`` pairs.

    The result is exactly symmetric with a zero diagonal: only the upper
    triangle is kept and mirrored.
    """
    n = len(coordinates)
    if n == 0:
        return np.zeros((0, 0), dtype=float)

    upper = np.triu(haversine_rows_km(coordinates, coordinates), k=1)
    return upper + upper.T


def is_valid_coordinate(latitude: object, longitude: object) -> bool:
    """True when both components are finite numbers within geographic ranges."""

    if isinstance(latitude, bool) or isinstance(longitude, bool):
        return False
    if not isinstance(latitude, (int, float)) or not isinstance(longitude, (int, float)):
        return False
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return False
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


def centroid(coordinates: Sequence[tuple[float, float]]) -> tuple[float, float]:
    """Arithmetic mean of ``(lat, lon)`` pairs."""

    if not coordinates:
        raise ValueError("Cannot compute the centroid of an empty coordinate list.")
    lat = sum(point[0] for point in coordinates) / len(coordinates)
    lon = sum(point[1] for point in coordinates) / len(coordinates)
    return lat, lon
