from __future__ import annotations

import pytest

from src.user_knn.domain.rating_store import ItemCatalog, RatingStore
from src.user_knn.service.recommender_service import RecommenderService


@pytest.fixture
def three_user_store() -> RatingStore:
    """
    A and B agree closely on items 1 and 2; C shares nothing with A.
    B and C each rated items A has not seen.
    """
    return RatingStore(
        {
            "A": {1: 5, 2: 5},
            "B": {1: 4, 2: 5, 3: 4, 4: 2},
            "C": {5: 5, 6: 1},
        }
    )


@pytest.fixture
def small_store() -> RatingStore:
    return RatingStore(
        {
            1: {10: 5, 20: 4, 30: 1, 40: 4},
            2: {10: 5, 20: 5, 30: 1, 50: 5, 60: 2},
            3: {10: 1, 20: 2, 30: 5, 50: 1, 70: 4},
            4: {10: 4, 20: 4, 30: 2, 50: 4, 60: 3, 80: 5},
            5: {90: 3},
        }
    )


@pytest.fixture
def small_catalog() -> ItemCatalog:
    return ItemCatalog(
        {
            10: "Toy Story (1995)",
            20: "GoldenEye (1995)",
            30: "Four Rooms (1995)",
            40: "Get Shorty (1995)",
            50: "Star Wars (1977)",
            60: "Copycat (1995)",
            70: "Twelve Monkeys (1995)",
        }
    )


@pytest.fixture
def small_service(small_store, small_catalog) -> RecommenderService:
    return RecommenderService(store=small_store, catalog=small_catalog)
