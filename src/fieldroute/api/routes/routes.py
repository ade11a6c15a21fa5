"""Route planning endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status

from ...schemas.routing import RoutePlanRequest, RoutePlanResponse
from ...services.outputs.routing_formatter import route_plan_to_csv
from ...services.routing.service import plan_route, plan_route_response

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/plan", response_model=RoutePlanResponse, status_code=status.HTTP_200_OK)
def plan(payload: RoutePlanRequest) -> RoutePlanResponse:
    try:
        return plan_route_response(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error planning route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to plan route: {str(exc)}"
        ) from exc


@router.post("/plan.csv", status_code=status.HTTP_200_OK)
def plan_csv(payload: RoutePlanRequest) -> Response:
    """Plan a route and return it as a CSV attachment."""
    try:
        route = plan_route(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error exporting route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to export route: {str(exc)}"
        ) from exc
    return Response(
        content=route_plan_to_csv(route),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="route_{route.group}.csv"'},
    )
