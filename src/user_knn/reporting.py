"""
Presentation helpers for ranked recommendations.

Kept apart from the ranking code: nothing here changes which items are
recommended or in which order.
"""

from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from .service.recommender_service import Recommendation


def _display_title(rec: Recommendation) -> str:
    return rec.title if rec.title is not None else f"item {rec.item_id}"


def format_recommendations(recommendations: Iterable[Recommendation]) -> List[str]:
    """One ``"<title> - Predicted Score: <score>"`` line per recommendation."""
    return [
        f"{_display_title(rec)} - Predicted Score: {rec.score:.4f}"
        for rec in recommendations
    ]


def recommendations_to_frame(recommendations: Iterable[Recommendation]) -> pd.DataFrame:
    rows = [
        {
            "item_id": rec.item_id,
            "title": _display_title(rec),
            "score": rec.score,
            "support": rec.support,
        }
        for rec in recommendations
    ]
    return pd.DataFrame(rows, columns=["item_id", "title", "score", "support"])
