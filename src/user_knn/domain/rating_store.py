from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Hashable, Iterator, List, Mapping, Optional

import pandas as pd

from .errors import UnknownUserError


# ---------------------------------------------------------------------------
# Rating Store
# ---------------------------------------------------------------------------


class RatingStore:
    """
    Immutable in-memory mapping ``user_id -> {item_id: rating}``.

    This class belongs to the pure *Domain / Code Layer*: it is built once
    by an ingestion collaborator and only read afterwards. Each user holds
    at most one rating per item.

    Parameters
    ----------
    ratings:
        Mapping from user identifier to a mapping of item identifier to
        integer rating. The mapping is copied; later changes to the
        argument are not visible through the store.
    """

    def __init__(self, ratings: Mapping[Hashable, Mapping[Hashable, int]]) -> None:
        self._ratings: Dict[Hashable, Mapping[Hashable, int]] = {
            user_id: MappingProxyType(dict(profile))
            for user_id, profile in ratings.items()
        }

    @classmethod
    def from_dataframe(
        cls,
        ratings_df: pd.DataFrame,
        *,
        user_col: str = "userId",
        item_col: str = "movieId",
        rating_col: str = "rating",
    ) -> "RatingStore":
        """
        Build a store from long-form ratings.

        Rows are applied in order, so a repeated (user, item) pair keeps
        the last rating seen.
        """
        required = {user_col, item_col, rating_col}
        missing = required - set(ratings_df.columns)
        if missing:
            raise ValueError(f"ratings_df missing required columns: {sorted(missing)}")

        ratings: Dict[Hashable, Dict[Hashable, int]] = {}
        for user_id, item_id, rating in zip(
            ratings_df[user_col].tolist(),
            ratings_df[item_col].tolist(),
            ratings_df[rating_col].tolist(),
        ):
            ratings.setdefault(user_id, {})[item_id] = int(rating)
        return cls(ratings)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._ratings

    def __len__(self) -> int:
        return len(self._ratings)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._ratings)

    def has_user(self, user_id: Hashable) -> bool:
        return user_id in self._ratings

    def users(self) -> List[Hashable]:
        """All known user ids, in load order."""
        return list(self._ratings)

    def ratings_for(self, user_id: Hashable) -> Mapping[Hashable, int]:
        try:
            return self._ratings[user_id]
        except KeyError:
            raise UnknownUserError(user_id) from None

    def common_items(self, user_a: Hashable, user_b: Hashable) -> List[Hashable]:
        """
        Items rated by both users, in the order of ``user_b``'s profile.
        """
        profile_a = self.ratings_for(user_a)
        profile_b = self.ratings_for(user_b)
        return [item_id for item_id in profile_b if item_id in profile_a]

    @property
    def num_ratings(self) -> int:
        return sum(len(profile) for profile in self._ratings.values())


# ---------------------------------------------------------------------------
# Item Catalog
# ---------------------------------------------------------------------------


class ItemCatalog:
    """Read-only lookup ``item_id -> title``, used for presentation only."""

    def __init__(self, titles: Optional[Mapping[Hashable, str]] = None) -> None:
        self._titles: Dict[Hashable, str] = dict(titles or {})

    @classmethod
    def from_dataframe(
        cls,
        items_df: pd.DataFrame,
        *,
        item_col: str = "movieId",
        title_col: str = "title",
    ) -> "ItemCatalog":
        missing = {item_col, title_col} - set(items_df.columns)
        if missing:
            raise ValueError(f"items_df missing required columns: {sorted(missing)}")

        deduped = items_df.drop_duplicates(item_col, keep="last")
        return cls(dict(zip(deduped[item_col].tolist(), deduped[title_col].astype(str).tolist())))

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._titles

    def __len__(self) -> int:
        return len(self._titles)

    def title_for(self, item_id: Hashable) -> Optional[str]:
        return self._titles.get(item_id)
