from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, List, Optional, Tuple

from .errors import RecommendationError, UnknownUserError
from .neighbors import k_nearest
from .predict import DEFAULT_PRIOR, Prediction, aggregate_unseen, top_predictions
from .rating_store import RatingStore


@dataclass(frozen=True)
class RecommendParams:
    """
    Hyperparameters for user-based kNN recommendations.

    This dataclass is part of the pure *Domain / Code Layer*:
    it only carries configuration values and has no side effects.
    """
    top_k: int = 10
    neighbors_k: int = 30              # how many similar users to consider
    min_overlap: int = 3               # co-rated items needed to compare two users
    prior: float = DEFAULT_PRIOR       # smoothing target for thinly-supported items
    drop_incomparable: bool = True     # skip users below min_overlap entirely


def _validate_inputs(
    user_id: Hashable,
    store: RatingStore,
    params: RecommendParams,
) -> None:
    """
    Validate inputs for the recommendation algorithm.

    Pure validation logic: raises RecommendationError on invalid inputs,
    but performs no I/O or logging.
    """
    if params.top_k < 0:
        raise RecommendationError("top_k must be >= 0")
    if params.neighbors_k < 0:
        raise RecommendationError("neighbors_k must be >= 0")
    if params.min_overlap < 0:
        raise RecommendationError("min_overlap must be >= 0")

    if not store.has_user(user_id):
        raise UnknownUserError(user_id)


def recommend_for_user(
    user_id: Hashable,
    store: RatingStore,
    params: Optional[RecommendParams] = None,
) -> List[Prediction]:
    """
    Compute top-N item predictions for a user with user-based kNN.

    This function belongs to the pure *Domain / Code Layer*:
    - It performs in-memory computations only.
    - It does NOT read/write files, touch databases, log or print.

    Steps: every user in the store is a neighbour candidate; the
    ``neighbors_k`` nearest (by angular distance over co-rated items) are
    kept; their ratings of items ``user_id`` has not rated are aggregated
    and smoothed toward ``params.prior``.

    Parameters
    ----------
    user_id:
        Target user identifier. Must be present in ``store``.
    store:
        Ratings of every user.
    params:
        Recommendation hyperparameters. If None, defaults are used.

    Returns
    -------
    List[Prediction]
        Up to ``params.top_k`` predictions, highest score first. Empty if
        no neighbour qualifies or neighbours rated nothing new.

    Raises
    ------
    UnknownUserError
        If ``user_id`` is not in ``store``.
    RecommendationError
        If a parameter is negative.
    """
    _, predictions = recommend_with_neighbors(user_id, store, params)
    return predictions


def recommend_with_neighbors(
    user_id: Hashable,
    store: RatingStore,
    params: Optional[RecommendParams] = None,
) -> Tuple[List[Hashable], List[Prediction]]:
    """Same as :func:`recommend_for_user`, also returning the neighbour ids used."""
    params = params or RecommendParams()
    _validate_inputs(user_id, store, params)

    neighbors = k_nearest(
        store,
        user_id,
        store.users(),
        params.min_overlap,
        params.neighbors_k,
        drop_incomparable=params.drop_incomparable,
    )
    aggregates = aggregate_unseen(store, user_id, neighbors)
    return neighbors, top_predictions(aggregates, params.top_k, params.prior)
