"""
Loaders for the flat-file rating and catalog formats.

- Ratings: header-less comma-separated ``user_id,item_id,rating`` lines.
- Catalog: pipe-delimited ``item_id|title|...`` lines; extra fields are
  ignored and lines with fewer than two fields are skipped.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Tuple, Union

import pandas as pd

from ...domain.rating_store import ItemCatalog, RatingStore
from ...logging_utils import configure_logger

logger = configure_logger(__name__)

PathLike = Union[str, Path]

RATING_COLUMNS = ("userId", "movieId", "rating")
CATALOG_COLUMNS = ("movieId", "title")


def _require_file(path: PathLike) -> Path:
    p = Path(path)
    if not p.is_file():
        logger.error(
            "input_file_missing",
            extra={"event": "input_file_missing", "path": str(p)},
        )
        raise FileNotFoundError(f"Input file not found: {p}")
    return p


def to_integer_columns(df: pd.DataFrame, columns: Sequence[str], source: str) -> pd.DataFrame:
    """
    Return a copy of ``df`` with ``columns`` cast to int.

    Values must already be whole numbers (``4`` or ``4.0``). Anything else,
    such as ``3.9`` or ``"x"``, raises ValueError instead of being truncated.
    """
    out = df.copy()
    for column in columns:
        values = pd.to_numeric(out[column], errors="coerce")
        invalid = values.isna() | values.isin([float("inf"), float("-inf")]) | (values != values.round())
        if invalid.any():
            logger.error(
                "non_integer_values",
                extra={
                    "event": "non_integer_values",
                    "source": source,
                    "column": column,
                    "rows": int(invalid.sum()),
                },
            )
            raise ValueError(f"'{source}' has non-integer values in column '{column}'.")
        out[column] = values.astype(int)
    return out


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------


def read_ratings_csv(path: PathLike) -> pd.DataFrame:
    """
    Read ``user_id,item_id,rating`` triples into a DataFrame with columns
    ``userId``, ``movieId``, ``rating`` (all integers).
    """
    p = _require_file(path)

    try:
        raw = pd.read_csv(p, header=None)
    except pd.errors.EmptyDataError:
        raw = pd.DataFrame()

    if raw.empty:
        logger.error(
            "empty_ratings_file",
            extra={"event": "empty_ratings_file", "path": str(p)},
        )
        raise ValueError(f"Ratings file '{p}' contains no ratings.")

    if raw.shape[1] < len(RATING_COLUMNS):
        raise ValueError(f"Ratings file '{p}' needs user_id,item_id,rating columns, got {raw.shape[1]}.")

    # trailing fields (e.g. timestamps) are ignored
    df = raw.iloc[:, : len(RATING_COLUMNS)].copy()
    df.columns = list(RATING_COLUMNS)

    if df.isna().any().any():
        raise ValueError(f"Ratings file '{p}' has incomplete rows.")

    df = to_integer_columns(df, RATING_COLUMNS, str(p))

    logger.info(
        "ratings_loaded",
        extra={"event": "ratings_loaded", "path": str(p), "rows": df.shape[0]},
    )
    return df


def load_rating_store(path: PathLike) -> RatingStore:
    return RatingStore.from_dataframe(read_ratings_csv(path))


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


def read_catalog(path: PathLike, encoding: str = "utf-8") -> pd.DataFrame:
    """
    Read ``item_id|title|...`` lines into a DataFrame with columns
    ``movieId`` and ``title``.

    Lines are split by hand because catalog rows may carry a varying number
    of trailing fields.
    """
    p = _require_file(path)

    rows: List[Tuple[int, str]] = []
    skipped = 0
    with p.open("r", encoding=encoding) as f:
        for line in f:
            parts = line.rstrip("\r\n").split("|")
            if len(parts) < 2:
                skipped += 1
                continue
            try:
                item_id = int(parts[0])
            except ValueError:
                skipped += 1
                continue
            rows.append((item_id, parts[1]))

    df = pd.DataFrame(rows, columns=list(CATALOG_COLUMNS))

    logger.info(
        "catalog_loaded",
        extra={"event": "catalog_loaded", "path": str(p), "rows": df.shape[0], "skipped": skipped},
    )
    return df


def load_item_catalog(path: PathLike, encoding: str = "utf-8") -> ItemCatalog:
    return ItemCatalog.from_dataframe(read_catalog(path, encoding=encoding))
