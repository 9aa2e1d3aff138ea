from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Mapping

from .errors import RecommendationError
from .rating_store import RatingStore


# Midpoint of a 1-5 rating scale.
DEFAULT_PRIOR = 3.5


@dataclass(frozen=True)
class ItemAggregate:
    """Neighbour evidence collected for one unseen item."""
    count: int
    rating_sum: int

    @property
    def average(self) -> float:
        return self.rating_sum / self.count if self.count else 0.0


@dataclass(frozen=True)
class Prediction:
    """
    A smoothed predicted score for an item the query user has not rated.

    Attributes
    ----------
    score:
        Smoothed predicted rating (higher = better).
    item_id:
        Identifier of the predicted item.
    support:
        Number of neighbours whose ratings back the score.
    """
    score: float
    item_id: Hashable
    support: int = 0


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def aggregate_unseen(
    store: RatingStore,
    query_user: Hashable,
    neighbors: Iterable[Hashable],
) -> Dict[Hashable, ItemAggregate]:
    """
    Collect neighbour ratings for every item ``query_user`` has not rated.

    Returns a mapping ``item_id -> ItemAggregate(count, rating_sum)``.
    Items already rated by the query user never appear.
    """
    seen = store.ratings_for(query_user)

    counts: Dict[Hashable, int] = {}
    sums: Dict[Hashable, int] = {}
    for neighbor_id in neighbors:
        for item_id, rating in store.ratings_for(neighbor_id).items():
            if item_id in seen:
                continue
            counts[item_id] = counts.get(item_id, 0) + 1
            sums[item_id] = sums.get(item_id, 0) + rating

    return {
        item_id: ItemAggregate(count=count, rating_sum=sums[item_id])
        for item_id, count in counts.items()
    }


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def smoothed_score(prior: float, count: int, average_rating: float) -> float:
    """
    Pull an observed average toward ``prior``, weighted by evidence.

        score = (prior + count * average_rating) / (1 + count)

    With no neighbours the score is the prior; with many it approaches the
    observed average.
    """
    if count < 0:
        raise RecommendationError("count must be >= 0")
    return (prior + count * average_rating) / (1 + count)


def score_aggregates(
    aggregates: Mapping[Hashable, ItemAggregate],
    prior: float = DEFAULT_PRIOR,
) -> List[Prediction]:
    """Smoothed prediction for every aggregated item, in aggregation order."""
    return [
        Prediction(
            score=smoothed_score(prior, agg.count, agg.average),
            item_id=item_id,
            support=agg.count,
        )
        for item_id, agg in aggregates.items()
    ]


def _rank_key(prediction: Prediction):
    # score desc, support desc, item id asc
    return (-prediction.score, -prediction.support, prediction.item_id)


def top_predictions(
    aggregates: Mapping[Hashable, ItemAggregate],
    r: int,
    prior: float = DEFAULT_PRIOR,
) -> List[Prediction]:
    """
    The ``r`` best predictions, highest score first.

    If fewer than ``r`` items are available, all of them are returned; the
    result is never padded.
    """
    if r < 0:
        raise RecommendationError("r must be >= 0")

    predictions = score_aggregates(aggregates, prior)
    predictions.sort(key=_rank_key)
    return predictions[:r]
