"""
Service layer for the user-kNN recommender.

This module defines the high-level service interface consumed by upper
layers such as the FastAPI app, the CLI, or batch scripts.

Important:
    - This module does NOT perform any I/O (no DB, no files, no config loading).
    - This module does NOT own the CF logic; it orchestrates the domain layer.
    - The rating store and item catalog are injected by the caller
      (see ``bootstrap.py``), never read from globals.
"""

import threading
from dataclasses import dataclass, replace
from typing import Hashable, List, Optional, Tuple

from ..domain.rating_store import ItemCatalog, RatingStore
from ..domain.recommend_for_user import RecommendParams, recommend_with_neighbors
from ..logging_utils import configure_logger

logger = configure_logger(__name__)


# ---------------------------------------------------------------------
# Typed Return Models
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class Recommendation:
    """
    Typed model representing a recommended item for a user.

    Attributes
    ----------
    item_id:
        Item identifier as used in the rating store.
    score:
        Smoothed predicted rating. Higher means better.
    support:
        Number of neighbours who rated the item.
    title:
        Optional display title, if the item catalog knows the item.
    """
    item_id: Hashable
    score: float
    support: int = 0
    title: Optional[str] = None


# ---------------------------------------------------------------------
# Service Layer
# ---------------------------------------------------------------------


class RecommenderService:
    """
    High-level service for user-facing recommendation use cases.

    The service holds one ``(RatingStore, ItemCatalog)`` snapshot. Readers
    take the current snapshot once per call; ``reload`` swaps it under a
    lock, so a call never sees half of an old snapshot and half of a new one.
    """

    def __init__(
        self,
        store: RatingStore,
        catalog: Optional[ItemCatalog] = None,
        default_params: Optional[RecommendParams] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._snapshot: Tuple[RatingStore, ItemCatalog] = (store, catalog or ItemCatalog())
        self._default_params = default_params

    # ------------------------------------------------------------------
    # Snapshot management
    # ------------------------------------------------------------------

    def _current(self) -> Tuple[RatingStore, ItemCatalog]:
        with self._lock:
            return self._snapshot

    def reload(self, store: RatingStore, catalog: Optional[ItemCatalog] = None) -> None:
        """Replace the data snapshot used by subsequent calls."""
        with self._lock:
            self._snapshot = (store, catalog or ItemCatalog())
        logger.info(
            "Rating snapshot replaced",
            extra={"event": "service.reload", "users": len(store), "items": len(catalog or ())},
        )

    @property
    def store(self) -> RatingStore:
        return self._current()[0]

    @property
    def catalog(self) -> ItemCatalog:
        return self._current()[1]

    @property
    def default_params(self) -> RecommendParams:
        return self._default_params or RecommendParams()

    def has_user(self, user_id: Hashable) -> bool:
        return self.store.has_user(user_id)

    # ------------------------------------------------------------------
    # Public API - Recommendations
    # ------------------------------------------------------------------

    def get_recommendations_for_user(
        self,
        user_id: Hashable,
        limit: int = 10,
        min_score: Optional[float] = None,
        params: Optional[RecommendParams] = None,
    ) -> List[Recommendation]:
        """
        Retrieve scored recommendations for a given user.

        Parameters
        ----------
        user_id:
            User identifier in the rating store.
        limit:
            Maximum number of recommendations to return.
        min_score:
            Optional score threshold; lower-scored items are dropped.
        params:
            Optional per-call parameters. Falls back to the service's
            default_params, then to the domain defaults.

        Returns
        -------
        List[Recommendation]
            At most ``limit`` items, highest score first.

        Raises
        ------
        UnknownUserError
            If the user is not in the rating store.
        RecommendationError
            If ``limit`` or a parameter is negative.
        """
        store, catalog = self._current()

        effective_params = params or self.default_params
        if effective_params.top_k != limit:
            effective_params = replace(effective_params, top_k=limit)

        neighbors, predictions = recommend_with_neighbors(user_id, store, effective_params)

        if min_score is not None:
            predictions = [p for p in predictions if p.score >= min_score]

        recommendations = [
            Recommendation(
                item_id=p.item_id,
                score=float(p.score),
                support=int(p.support),
                title=catalog.title_for(p.item_id),
            )
            for p in predictions
        ]

        logger.info(
            "Recommendations computed",
            extra={
                "event": "recommend.completed",
                "user_id": user_id,
                "limit": limit,
                "neighbors": len(neighbors),
                "results": len(recommendations),
            },
        )
        return recommendations[:limit]

    def recommend(self, user_id: Hashable, r: int) -> List[Hashable]:
        """Top-``r`` item identifiers for ``user_id``, best first."""
        return [rec.item_id for rec in self.get_recommendations_for_user(user_id, limit=r)]
