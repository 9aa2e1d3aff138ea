from __future__ import annotations

import json
import logging
from io import StringIO
from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import PyMongoError, ServerSelectionTimeoutError

import src.user_knn.data.load_data.load_data_from_mongo as mod
from src.user_knn.data.load_data.load_data_from_mongo import (
    MongoConfig,
    load_mongo_config,
    load_ratings_and_items,
    load_ratings_and_items_from_db,
    mongo_client_with_retry,
)
from src.user_knn.logging_utils import JsonFormatter, configure_logger

MODULE = "src.user_knn.data.load_data.load_data_from_mongo"
CONFIG = MongoConfig("mongodb://x", "user_knn", "ratings", "items")

RATING_DOCS = [
    {"_id": "r1", "userId": 10, "movieId": 1, "rating": 4},
    {"_id": "r2", "userId": 10, "movieId": 2, "rating": 5.0},
    {"_id": "r3", "userId": 20, "movieId": 1, "rating": 3},
]
ITEM_DOCS = [
    {"_id": "i1", "movieId": 1, "title": "Toy Story (1995)"},
    {"_id": "i2", "movieId": 2, "title": "GoldenEye (1995)"},
]


class FakeCollection:
    def __init__(self, documents):
        self._documents = documents

    def find(self, query, projection):
        assert projection == {"_id": 0}
        return [{k: v for k, v in doc.items() if k != "_id"} for doc in self._documents]


def _db(ratings=RATING_DOCS, items=ITEM_DOCS):
    return {"ratings": FakeCollection(ratings), "items": FakeCollection(items)}


@pytest.fixture
def mongo_events(caplog):
    """Event names logged by the loader (its logger does not propagate)."""
    caplog.set_level(logging.INFO)
    mod.logger.addHandler(caplog.handler)
    yield lambda: [getattr(r, "event", None) for r in caplog.records]
    mod.logger.removeHandler(caplog.handler)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def test_json_formatter_keeps_only_whitelisted_extras():
    stream = StringIO()
    logger = configure_logger("json_formatter_test")
    logger.handlers[0].setStream(stream)

    logger.info("hello", extra={"event": "test_event", "user_id": 55, "unlisted": "x"})
    payload = json.loads(stream.getvalue())

    assert (payload["message"], payload["level"], payload["event"], payload["user_id"]) == (
        "hello", "INFO", "test_event", 55,
    )
    assert "unlisted" not in payload
    assert isinstance(logger.handlers[0].formatter, JsonFormatter)
    assert logger.propagate is False


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

def test_load_mongo_config_defaults_collection_names(monkeypatch):
    monkeypatch.setenv("MONGO_URI", "mongodb://test")
    monkeypatch.setenv("MONGO_ITEMS_COLLECTION", "films")
    for name in ("MONGO_DB_NAME", "MONGO_RATINGS_COLLECTION"):
        monkeypatch.delenv(name, raising=False)

    assert load_mongo_config() == MongoConfig("mongodb://test", "user_knn", "ratings", "films")


def test_load_mongo_config_missing_uri_raises(monkeypatch, mongo_events):
    monkeypatch.delenv("MONGO_URI", raising=False)

    with pytest.raises(RuntimeError):
        load_mongo_config()
    assert "config_error" in mongo_events()


# ---------------------------------------------------------------------------
# Connection retry
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "outcomes,sleeps",
    [
        ([{"ok": 1}], 0),
        ([ServerSelectionTimeoutError("down"), {"ok": 1}], 1),
    ],
)
def test_mongo_client_connects_after_retries(outcomes, sleeps):
    client = MagicMock()
    client.admin.command.side_effect = outcomes

    with patch(f"{MODULE}.MongoClient", return_value=client), \
         patch(f"{MODULE}.time.sleep") as sleep:
        with mongo_client_with_retry("mongodb://x") as connected:
            assert connected is client

    assert sleep.call_count == sleeps
    assert client.close.called


def test_mongo_client_gives_up_after_max_retries(mongo_events):
    client = MagicMock()
    client.admin.command.side_effect = [ServerSelectionTimeoutError("f1"), PyMongoError("f2")]

    with patch(f"{MODULE}.MongoClient", return_value=client), \
         patch(f"{MODULE}.time.sleep") as sleep:
        with pytest.raises(RuntimeError):
            with mongo_client_with_retry("mongodb://x", max_retries=1):
                pass

    sleep.assert_called_once_with(0.5)
    assert "mongo_connect_give_up" in mongo_events()


# ---------------------------------------------------------------------------
# Store / catalog building
# ---------------------------------------------------------------------------

def test_builds_store_and_catalog_from_collections():
    store, catalog = load_ratings_and_items_from_db(_db(), CONFIG)

    assert store.users() == [10, 20]
    assert dict(store.ratings_for(10)) == {1: 4, 2: 5}
    assert catalog.title_for(2) == "GoldenEye (1995)"


def test_missing_rating_field_fails_schema_check(mongo_events):
    with pytest.raises(ValueError):
        load_ratings_and_items_from_db(_db(ratings=[{"userId": 1, "movieId": 1}]), CONFIG)
    assert "schema_validation_failed" in mongo_events()


def test_empty_ratings_collection_raises(mongo_events):
    with pytest.raises(ValueError):
        load_ratings_and_items_from_db(_db(ratings=[]), CONFIG)
    assert "empty_collection" in mongo_events()


def test_fractional_rating_document_is_rejected():
    docs = RATING_DOCS + [{"userId": 20, "movieId": 2, "rating": 3.9}]

    with pytest.raises(ValueError, match="rating"):
        load_ratings_and_items_from_db(_db(ratings=docs), CONFIG)


def test_injected_database_skips_connection():
    with patch(f"{MODULE}.mongo_client_with_retry") as connect:
        store, catalog = load_ratings_and_items(config=CONFIG, db=_db())

    assert (len(store), len(catalog)) == (2, 2)
    connect.assert_not_called()


def test_connects_with_configured_uri_and_database():
    client = MagicMock()
    client.__getitem__.return_value = _db()

    with patch(f"{MODULE}.mongo_client_with_retry") as connect:
        connect.return_value.__enter__.return_value = client
        store, _ = load_ratings_and_items(config=CONFIG)

    assert len(store) == 2
    connect.assert_called_once_with("mongodb://x")
    client.__getitem__.assert_called_once_with("user_knn")
