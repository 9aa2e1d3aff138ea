from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Iterable, List

from .errors import RecommendationError
from .rating_store import RatingStore
from .similarity import distance_over_items


@dataclass(frozen=True)
class Neighbor:
    """
    A user selected as similar to the query user.

    Attributes
    ----------
    distance:
        Angular distance to the query user (lower = more similar).
    user_id:
        Identifier of the neighbouring user.
    """
    distance: float
    user_id: Hashable


def _distinct_candidates(query_user: Hashable, candidate_users: Iterable[Hashable]) -> List[Hashable]:
    """Candidates in input order, without the query user and without repeats."""
    seen = {query_user}
    out: List[Hashable] = []
    for user_id in candidate_users:
        if user_id in seen:
            continue
        seen.add(user_id)
        out.append(user_id)
    return out


def nearest_neighbors(
    store: RatingStore,
    query_user: Hashable,
    candidate_users: Iterable[Hashable],
    min_overlap: int,
    k: int,
    *,
    drop_incomparable: bool = True,
) -> List[Neighbor]:
    """
    The ``k`` candidates closest to ``query_user``, nearest first.

    Parameters
    ----------
    store:
        Rating store holding every user involved.
    query_user:
        User to find neighbours for. Never part of the result.
    candidate_users:
        Users to choose from. May contain ``query_user``.
    min_overlap:
        Minimum number of co-rated items for a meaningful comparison.
    k:
        Maximum number of neighbours to return.
    drop_incomparable:
        If True, candidates sharing fewer than ``min_overlap`` items with
        the query user are not neighbours at all. If False they are kept
        at the maximal distance, after every comparable candidate.

    Returns
    -------
    List[Neighbor]
        At most ``k`` neighbours sorted by non-decreasing distance. Ties keep
        the candidates' input order.
    """
    if k < 0:
        raise RecommendationError("k must be >= 0")
    if min_overlap < 0:
        raise RecommendationError("min_overlap must be >= 0")

    query_items = store.ratings_for(query_user)
    if k == 0:
        return []

    scored: List[Neighbor] = []
    for user_id in _distinct_candidates(query_user, candidate_users):
        common = store.common_items(user_id, query_user)
        if drop_incomparable and len(common) < min_overlap:
            continue
        distance = distance_over_items(store.ratings_for(user_id), query_items, common, min_overlap)
        scored.append(Neighbor(distance=distance, user_id=user_id))

    # list.sort is stable, so equal distances keep input order
    scored.sort(key=lambda n: n.distance)
    return scored[:k]


def k_nearest(
    store: RatingStore,
    query_user: Hashable,
    candidate_users: Iterable[Hashable],
    min_overlap: int,
    k: int,
    *,
    drop_incomparable: bool = True,
) -> List[Hashable]:
    """User ids of :func:`nearest_neighbors`, nearest first."""
    neighbors = nearest_neighbors(
        store,
        query_user,
        candidate_users,
        min_overlap,
        k,
        drop_incomparable=drop_incomparable,
    )
    return [n.user_id for n in neighbors]
