"""Cost-matrix construction with remote provider fallback."""

from __future__ import annotations

import logging
from typing import Sequence

from ..geospatial import haversine_matrix_km
from .models import CostMatrix, CostProvider, FailureReason, MatrixOutcome, ProviderFailure
from .osrm_client import OSRMClient

logger = logging.getLogger(__name__)


def geodesic_matrix(points: Sequence[tuple[float, float]]) -> list[list[float]]:
    """Symmetric great-circle distance matrix in kilometers."""
    return haversine_matrix_km(points).tolist()


def compute_cost_matrix(
    provider: CostProvider | str,
    points: Sequence[tuple[float, float]],
    client: OSRMClient | None = None,
) -> CostMatrix:
    """Build the cost matrix for ``points`` (index 0 is the depot).

    Road providers are attempted first; any failure falls back to the geodesic
    matrix. ``CostMatrix.provider_used`` always reflects the matrix actually
    returned so that totals are reported in the right unit.
    """
    provider = CostProvider(provider)
    if not points:
        raise ValueError("At least one point (the depot) is required to build a cost matrix.")

    if not provider.is_remote:
        return CostMatrix(
            values=geodesic_matrix(points),
            provider_requested=provider,
            provider_used=CostProvider.GEODESIC,
        )

    annotation = "duration" if provider is CostProvider.ROAD_DURATION else "distance"
    try:
        client = client or OSRMClient()
    except ValueError as e:
        outcome = MatrixOutcome(failure=ProviderFailure(FailureReason.NOT_CONFIGURED, str(e)))
    else:
        outcome = client.table(points, annotation)

    if outcome.ok:
        logger.info(f"Using {provider.value} matrix for {len(points)} points")
        return CostMatrix(values=outcome.matrix, provider_requested=provider, provider_used=provider)

    failure = outcome.failure
    logger.warning(
        f"{provider.value} provider failed ({failure.reason.value}: {failure.detail}). "
        f"Using geodesic fallback for {len(points)} points."
    )
    return CostMatrix(
        values=geodesic_matrix(points),
        provider_requested=provider,
        provider_used=CostProvider.GEODESIC,
        failure=failure,
    )
