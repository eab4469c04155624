"""Carpool matching endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.carpool import (
    CompatibilityRequest,
    CompatibilityResponse,
    DetourRequest,
    DetourResponse,
    RecommendationRequest,
    RecommendationResponse,
)
from ...services.carpool.compatibility import score_compatibility
from ...services.carpool.detour import DetourCalculator
from ...services.carpool.recommendations import recommend_passengers

router = APIRouter(prefix="/carpool", tags=["carpool"])


@router.post("/recommend-passengers", response_model=RecommendationResponse, status_code=status.HTTP_200_OK)
def recommend(payload: RecommendationRequest) -> RecommendationResponse:
    """Rank candidate passengers for a driver's trip."""
    try:
        driver_trip = payload.driver_trip.to_domain()
        result = recommend_passengers(
            driver_trip,
            [candidate.to_domain() for candidate in payload.candidates],
            use_precise_routing=payload.use_precise_routing,
            limit=payload.limit,
            min_score=payload.min_score,
        )
        return RecommendationResponse.from_result(driver_trip.trip_id, result)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error generating recommendations: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate recommendations: {str(exc)}",
        ) from exc


@router.post("/compatibility", response_model=CompatibilityResponse, status_code=status.HTTP_200_OK)
def compatibility(payload: CompatibilityRequest) -> CompatibilityResponse:
    """Score a single driver/passenger pair without precise routing."""
    try:
        result = score_compatibility(
            payload.driver_trip.to_domain(),
            payload.candidate_trip.to_domain(),
            proximity=payload.proximity,
        )
        return CompatibilityResponse.from_score(result)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error scoring compatibility: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to score compatibility: {str(exc)}",
        ) from exc


@router.post("/detour", response_model=DetourResponse, status_code=status.HTTP_200_OK)
def detour(payload: DetourRequest) -> DetourResponse:
    """Precise detour for collecting one passenger; ``available`` is false without routing."""
    calculator = DetourCalculator()
    route = calculator.route_with_waypoint(
        payload.driver_location.to_domain(),
        payload.passenger_location.to_domain(),
        payload.destination.to_domain(),
    )
    return DetourResponse.from_route(route)
