"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...config import settings
from ...models.domain import DateRange
from ...schemas.routing import (
    BatchOptimizationRequest,
    BatchOptimizationResponse,
    CapacityGroupModel,
    CapacityOptimizationRequest,
    CapacityOptimizationResponse,
    CapacityStatisticsModel,
    OptimizationScoresResponse,
    RouteOptimizationRequest,
    RouteOptimizationResponse,
)
from ...services.batch.service import BatchResult, batch_optimize
from ...services.capacity.service import group_by_capacity, summarize_groups
from ...services.routing.service import optimize_route

router = APIRouter(prefix="/routes", tags=["routes"])


def _server_error(action: str, exc: Exception) -> HTTPException:
    logging.exception(f"Error {action}: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed {action}: {str(exc)}",
    )


def _run_batch(payload: BatchOptimizationRequest) -> BatchResult:
    date_range = DateRange(start=payload.start_date, end=payload.end_date)
    return batch_optimize(
        [trip.to_domain() for trip in payload.trips],
        [driver.to_domain() for driver in payload.drivers],
        date_range,
        include_capacity=payload.include_capacity,
    )


@router.post("/optimize", response_model=RouteOptimizationResponse, status_code=status.HTTP_200_OK)
def optimize(payload: RouteOptimizationRequest) -> RouteOptimizationResponse:
    """Re-sequence one driver's trips for a day."""
    try:
        trips = [trip.to_domain() for trip in payload.trips]
        result = optimize_route(trips, payload.driver_id, payload.date)
        return RouteOptimizationResponse.from_result(result, payload.driver_id, payload.date)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("optimizing route", exc) from exc


@router.post("/optimization-scores", response_model=OptimizationScoresResponse, status_code=status.HTTP_200_OK)
def optimization_scores(payload: BatchOptimizationRequest) -> OptimizationScoresResponse:
    """Efficiency score for every driver/day in the range."""
    try:
        result = _run_batch(payload)
        response = BatchOptimizationResponse.from_result(result, metadata={})
        return OptimizationScoresResponse(scores=response.scores)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("calculating optimization scores", exc) from exc


@router.post("/batch-optimize", response_model=BatchOptimizationResponse, status_code=status.HTTP_200_OK)
def batch(payload: BatchOptimizationRequest) -> BatchOptimizationResponse:
    """Optimise every driver/day in the range and total the potential savings."""
    try:
        result = _run_batch(payload)
        metadata = {
            "start_date": payload.start_date.isoformat(),
            "end_date": payload.end_date.isoformat(),
            "trip_count": len(payload.trips),
            "driver_count": len({entry.driver_id for entry in result.per_driver_per_day}),
            "minutes_per_mile": settings.minutes_per_mile,
        }
        return BatchOptimizationResponse.from_result(result, metadata=metadata)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("batch optimizing routes", exc) from exc


@router.post("/capacity-optimize", response_model=CapacityOptimizationResponse, status_code=status.HTTP_200_OK)
def capacity_optimize(payload: CapacityOptimizationRequest) -> CapacityOptimizationResponse:
    """Pack a day's trips into as few vehicles as the capacity allows."""
    try:
        trips = [trip.to_domain() for trip in payload.trips]
        if payload.date is not None:
            trips = [trip for trip in trips if trip.trip_date in (None, payload.date)]
        groups = group_by_capacity(
            trips,
            payload.vehicle_capacity,
            share_window_minutes=payload.share_window_minutes,
        )
        return CapacityOptimizationResponse(
            date=payload.date,
            groups=[CapacityGroupModel.from_group(group) for group in groups],
            statistics=CapacityStatisticsModel.from_statistics(summarize_groups(trips, groups)),
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("optimizing capacity", exc) from exc
