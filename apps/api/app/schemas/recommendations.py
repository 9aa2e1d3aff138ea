"""
Pydantic schemas for the recommendations endpoint.

- RecommendationOut: one recommended item.
- RecommendationsResponse: response envelope for GET /v1/recommendations/{user_id}.
- RecommendationQueryParams: validated query parameters; Swagger/OpenAPI
  shows the allowed ranges.

Notes:
- ``score`` is a smoothed predicted rating: neighbour average pulled toward
  the prior, so thinly-supported items sit near the prior.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class RecommendationOut(BaseModel):
    """
    API response model for a single recommended item.

    Attributes
    ----------
    item_id:
        Item identifier.
    title:
        Display title, or null if the catalog does not know the item.
    score:
        Smoothed predicted rating (higher is better).
    support:
        Number of neighbours who rated the item.
    """

    item_id: int = Field(
        ...,
        description="Item identifier.",
        examples=[50],
    )

    title: Optional[str] = Field(
        default=None,
        description="Item title, if known.",
        examples=["Star Wars (1977)"],
    )

    score: float = Field(
        ...,
        description="Smoothed predicted rating (higher is better).",
        examples=[4.62],
    )

    support: int = Field(
        ...,
        ge=0,
        description="Number of neighbours who rated the item.",
        examples=[12],
    )


class RecommendationsResponse(BaseModel):
    user_id: int
    items: List[RecommendationOut]


class RecommendationQueryParams(BaseModel):
    """
    Query params for the recommendations endpoint.

    Unset optional fields fall back to the service's configured defaults.
    """

    limit: int = Field(
        default=10,
        ge=0,
        le=100,
        description="How many results to return (0 to 100).",
        examples=[10],
    )

    neighbors_k: Optional[int] = Field(
        default=None,
        ge=0,
        le=500,
        description="Number of nearest users to consider (0 to 500).",
        examples=[30],
    )

    min_overlap: Optional[int] = Field(
        default=None,
        ge=0,
        le=1000,
        description="Co-rated items needed to compare two users (0 to 1000).",
        examples=[3],
    )

    prior: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=10.0,
        description="Score that thinly-supported items are pulled toward.",
        examples=[3.5],
    )
