from __future__ import annotations

from dataclasses import replace
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from src.user_knn.domain.errors import RecommendationError, UnknownUserError
from src.user_knn.service.recommender_service import RecommenderService

from ..error_codes import ErrorCode
from ..errors import error_example
from ..schemas.recommendations import (
    RecommendationOut,
    RecommendationQueryParams,
    RecommendationsResponse,
)

router = APIRouter(tags=["recommendations"])

_LIMIT = RecommendationQueryParams.model_fields["limit"]


def _error_response_doc(code: ErrorCode, message: str, description: str) -> dict:
    return {
        "description": description,
        "content": {"application/json": {"example": error_example(code.value, message)}},
    }


def _get_service(request: Request) -> RecommenderService:
    service = getattr(request.app.state, "recommender_service", None)
    if service is None:
        # readiness gate normally answers before this point
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service is warming up.")
    return service


@router.get(
    "/recommendations/{user_id}",
    response_model=RecommendationsResponse,
    summary="Recommend items for a user",
    description=(
        "Top items the user has not rated yet, predicted from the ratings of "
        "the most similar users and smoothed toward a prior."
    ),
    responses={
        400: _error_response_doc(ErrorCode.BAD_REQUEST, "Invalid recommendation request", "Bad request"),
        404: _error_response_doc(ErrorCode.NOT_FOUND, "user_id=999999 not found in rating store", "Unknown user"),
        422: _error_response_doc(ErrorCode.VALIDATION_ERROR, "Request validation failed", "Validation error"),
        500: _error_response_doc(ErrorCode.INTERNAL_ERROR, "Internal Server Error", "Internal error"),
    },
)
def get_recommendations(
    request: Request,
    user_id: int,
    limit: int = Query(default=10, ge=0, le=100, description=_LIMIT.description),
    neighbors_k: Optional[int] = Query(default=None, ge=0, le=500),
    min_overlap: Optional[int] = Query(default=None, ge=0, le=1000),
    prior: Optional[float] = Query(default=None, ge=0.0, le=10.0),
) -> RecommendationsResponse:
    service = _get_service(request)
    query = RecommendationQueryParams(
        limit=limit,
        neighbors_k=neighbors_k,
        min_overlap=min_overlap,
        prior=prior,
    )

    overrides = {
        name: value
        for name, value in (
            ("neighbors_k", query.neighbors_k),
            ("min_overlap", query.min_overlap),
            ("prior", query.prior),
        )
        if value is not None
    }
    params = replace(service.default_params, **overrides)

    try:
        recs = service.get_recommendations_for_user(user_id, limit=query.limit, params=params)
    except UnknownUserError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RecommendationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return RecommendationsResponse(
        user_id=user_id,
        items=[
            RecommendationOut(
                item_id=int(rec.item_id),
                title=rec.title,
                score=rec.score,
                support=rec.support,
            )
            for rec in recs
        ],
    )
