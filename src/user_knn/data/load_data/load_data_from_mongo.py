"""
Utilities for loading ratings and item titles from MongoDB into pandas
DataFrames, and from there into a RatingStore / ItemCatalog.
"""

from __future__ import annotations

import os
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple

import pandas as pd
from dotenv import load_dotenv
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from ...domain.rating_store import ItemCatalog, RatingStore
from ...logging_utils import configure_logger
from .load_from_files import to_integer_columns

logger = configure_logger(__name__)


# ---------------------------------------------------------------------------
# Mongo Config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MongoConfig:
    uri: str
    db_name: str
    ratings_collection: str
    items_collection: str


def load_mongo_config(env_prefix: str = "MONGO_") -> MongoConfig:
    # Tests control the environment explicitly
    if "PYTEST_CURRENT_TEST" not in os.environ:
        load_dotenv()

    uri_var = env_prefix + "URI"
    uri = os.getenv(uri_var)

    if not uri:
        logger.error(
            "config_error: MongoDB URI is missing.",
            extra={"event": "config_error", "env_var": uri_var},
        )
        raise RuntimeError(f"Required environment variable '{uri_var}' is not set.")

    db_name = os.getenv(env_prefix + "DB_NAME", "user_knn")
    ratings_collection = os.getenv(env_prefix + "RATINGS_COLLECTION", "ratings")
    items_collection = os.getenv(env_prefix + "ITEMS_COLLECTION", "items")

    logger.info(
        "config_loaded",
        extra={"event": "config_loaded", "db_name": db_name, "source": "mongo"},
    )

    return MongoConfig(uri, db_name, ratings_collection, items_collection)


# ---------------------------------------------------------------------------
# MongoClient context manager with retry
# ---------------------------------------------------------------------------


@contextmanager
def mongo_client_with_retry(
    uri: str,
    max_retries: int = 3,
    base_delay_seconds: float = 0.5,
    timeout_ms: int = 5000,
) -> Iterator[MongoClient]:
    """
    Context manager that yields a pinged MongoClient, retrying on failure.

    - ``max_retries + 1`` connection attempts in total.
    - Each failed attempt sleeps ``base_delay_seconds`` before the next one.
    - After the last failed attempt a RuntimeError is raised.
    - The client is closed on exit.
    """
    client: Optional[MongoClient] = None
    max_attempts = max_retries + 1

    try:
        for attempt in range(1, max_attempts + 1):
            logger.info(
                "mongo_connect_attempt",
                extra={"event": "mongo_connect_attempt", "attempt": attempt},
            )

            try:
                client = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
                client.admin.command("ping")

                logger.info(
                    "mongo_connect_success",
                    extra={"event": "mongo_connect_success", "attempt": attempt},
                )
                break

            except PyMongoError as exc:
                logger.error(
                    "mongo_connect_failure",
                    extra={
                        "event": "mongo_connect_failure",
                        "attempt": attempt,
                        "error_type": type(exc).__name__,
                    },
                )

                if client is not None:
                    client.close()
                client = None

                if attempt == max_attempts:
                    logger.error(
                        "mongo_connect_give_up",
                        extra={"event": "mongo_connect_give_up", "max_retries": max_retries},
                    )
                    raise RuntimeError("MongoDB connection failed after retries.") from exc

                time.sleep(base_delay_seconds)

        yield client

    finally:
        if client is not None:
            client.close()
            logger.info(
                "mongo_connection_closed",
                extra={"event": "mongo_connection_closed"},
            )


# ---------------------------------------------------------------------------
# Schema validation
# ---------------------------------------------------------------------------


def validate_schema(
    df: pd.DataFrame,
    required_columns: Sequence[str],
    collection_name: str,
) -> None:
    missing = [c for c in required_columns if c not in df.columns]

    if missing:
        logger.error(
            "schema_validation_failed: Missing required columns.",
            extra={
                "event": "schema_validation_failed",
                "collection": collection_name,
                "missing_columns": missing,
            },
        )
        raise ValueError(f"Missing required columns in '{collection_name}': {missing}")


# ---------------------------------------------------------------------------
# Collection to DataFrame
# ---------------------------------------------------------------------------


def collection_to_dataframe(
    collection: Collection,
    collection_name: str,
    required_columns: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    docs = list(collection.find({}, {"_id": 0}))
    df = pd.DataFrame(docs)

    if df.empty:
        logger.error(
            "empty_collection: Collection returned no documents.",
            extra={"event": "empty_collection", "collection": collection_name},
        )
        raise ValueError(f"Collection '{collection_name}' returned an empty DataFrame.")

    if required_columns:
        validate_schema(df, required_columns, collection_name)

    logger.info(
        "collection_loaded",
        extra={
            "event": "collection_loaded",
            "collection": collection_name,
            "rows": df.shape[0],
            "columns": df.shape[1],
        },
    )
    return df


# ---------------------------------------------------------------------------
# Loader Functions
# ---------------------------------------------------------------------------


def load_ratings_and_items_from_db(
    db: Database,
    config: MongoConfig,
) -> Tuple[RatingStore, ItemCatalog]:
    ratings_df = collection_to_dataframe(
        db[config.ratings_collection], config.ratings_collection, ("userId", "movieId", "rating")
    )
    items_df = collection_to_dataframe(
        db[config.items_collection], config.items_collection, ("movieId", "title")
    )

    ratings_df = to_integer_columns(ratings_df, ("userId", "movieId", "rating"), config.ratings_collection)
    items_df = to_integer_columns(items_df, ("movieId",), config.items_collection)

    return RatingStore.from_dataframe(ratings_df), ItemCatalog.from_dataframe(items_df)


def load_ratings_and_items(
    config: Optional[MongoConfig] = None,
    db: Optional[Database] = None,
) -> Tuple[RatingStore, ItemCatalog]:
    if config is None:
        config = load_mongo_config()

    if db is not None:
        return load_ratings_and_items_from_db(db, config)

    with mongo_client_with_retry(config.uri) as client:
        return load_ratings_and_items_from_db(client[config.db_name], config)
