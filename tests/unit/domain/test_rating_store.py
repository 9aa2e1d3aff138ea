from __future__ import annotations

import pandas as pd
import pytest

from src.user_knn.domain.errors import UnknownUserError
from src.user_knn.domain.rating_store import ItemCatalog, RatingStore


def test_from_dataframe_groups_by_user_and_last_rating_wins():
    df = pd.DataFrame(
        {
            "userId": [1, 1, 2, 1],
            "movieId": [10, 20, 10, 10],
            "rating": [3, 4, 5, 1],
        }
    )
    store = RatingStore.from_dataframe(df)
    assert store.users() == [1, 2]
    assert dict(store.ratings_for(1)) == {10: 1, 20: 4}
    assert store.num_ratings == 3


@pytest.mark.parametrize(
    "build,frame",
    [
        (RatingStore.from_dataframe, pd.DataFrame({"userId": [1]})),
        (ItemCatalog.from_dataframe, pd.DataFrame({"movieId": [1]})),
    ],
)
def test_from_dataframe_missing_columns_is_a_plain_value_error(build, frame):
    with pytest.raises(ValueError, match="missing required columns") as excinfo:
        build(frame)
    assert type(excinfo.value) is ValueError


def test_store_is_read_only_and_copies_input():
    source = {1: {10: 5}}
    store = RatingStore(source)
    source[1][20] = 3
    assert dict(store.ratings_for(1)) == {10: 5}
    with pytest.raises(TypeError):
        store.ratings_for(1)[30] = 4  # type: ignore[index]


def test_common_items_follow_second_users_order():
    store = RatingStore({"a": {1: 5, 2: 4, 3: 3}, "b": {3: 1, 9: 2, 1: 2}})
    assert store.common_items("a", "b") == [3, 1]
    assert store.common_items("b", "a") == [1, 3]


def test_unknown_user():
    store = RatingStore({"a": {1: 5}})
    assert "a" in store and store.has_user("a")
    assert "z" not in store
    with pytest.raises(UnknownUserError):
        store.ratings_for("z")


def test_item_catalog_lookup():
    catalog = ItemCatalog.from_dataframe(
        pd.DataFrame({"movieId": [1, 2, 2], "title": ["One", "Two", "Two (fixed)"]})
    )
    assert len(catalog) == 2
    assert catalog.title_for(2) == "Two (fixed)"
    assert catalog.title_for(3) is None
