from __future__ import annotations

from typing import Hashable, Mapping, Sequence

import numpy as np

from .errors import RecommendationError, VectorLengthMismatchError
from .rating_store import RatingStore


# Distance assigned to pairs that cannot be compared (too little overlap,
# zero-magnitude vectors). Sorts after every comparable pair.
MAX_DISTANCE = 1.0


def angular_distance(ratings_a: Sequence[float], ratings_b: Sequence[float]) -> float:
    """
    Angular distance ``1 - cosine(a, b)`` between two rating vectors.

    Parameters
    ----------
    ratings_a, ratings_b:
        Equal-length rating vectors over the same item ordering.

    Returns
    -------
    float
        A value in [0, 2]. ``MAX_DISTANCE`` when either vector has zero
        magnitude (cosine is undefined there).

    Raises
    ------
    VectorLengthMismatchError
        If the vectors differ in length.
    """
    if len(ratings_a) != len(ratings_b):
        raise VectorLengthMismatchError(
            f"rating vectors differ in length: {len(ratings_a)} != {len(ratings_b)}"
        )

    a = np.asarray(ratings_a, dtype=float)
    b = np.asarray(ratings_b, dtype=float)

    # Squared magnitudes are exact for integer ratings, so the result does
    # not depend on argument order.
    squared_norms = float(np.dot(a, a)) * float(np.dot(b, b))
    if squared_norms == 0.0:
        return MAX_DISTANCE

    cosine = float(np.dot(a, b)) / float(np.sqrt(squared_norms))
    return 1.0 - cosine


def content_rating_distance(
    store: RatingStore,
    user_a: Hashable,
    user_b: Hashable,
    min_overlap: int,
) -> float:
    """
    Distance between two users over the items both of them rated.

    Pairs sharing fewer than ``min_overlap`` items get ``MAX_DISTANCE``
    regardless of their ratings. Pure function of the store contents.
    """
    if min_overlap < 0:
        raise RecommendationError("min_overlap must be >= 0")

    common = store.common_items(user_a, user_b)
    return distance_over_items(store.ratings_for(user_a), store.ratings_for(user_b), common, min_overlap)


def distance_over_items(
    profile_a: Mapping[Hashable, float],
    profile_b: Mapping[Hashable, float],
    common: Sequence[Hashable],
    min_overlap: int,
) -> float:
    """Angular distance over the already computed co-rated items ``common``."""
    if len(common) < min_overlap:
        return MAX_DISTANCE
    return angular_distance(
        [profile_a[item_id] for item_id in common],
        [profile_b[item_id] for item_id in common],
    )
