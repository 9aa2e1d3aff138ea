from __future__ import annotations

from typing import Hashable


class RecommendationError(ValueError):
    """
    Raised when recommendation inputs are invalid.

    This exception class belongs to the pure *Domain / Code Layer*.
    Data sparsity (low overlap, zero-magnitude vectors, too few candidates)
    never raises; only precondition violations do.
    """


class UnknownUserError(RecommendationError):
    """Raised when a user id is absent from the rating store."""

    def __init__(self, user_id: Hashable) -> None:
        super().__init__(f"user_id={user_id} not found in rating store")
        self.user_id = user_id


class VectorLengthMismatchError(RecommendationError):
    """Raised when two rating vectors of different lengths are compared."""
