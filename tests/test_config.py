from __future__ import annotations

from pathlib import Path

import pytest

from src.user_knn.config import AppConfig, load_app_config

_VARS = (
    "DATA_SOURCE",
    "RATINGS_PATH",
    "CATALOG_PATH",
    "CATALOG_ENCODING",
    "TOP_K",
    "NEIGHBORS_K",
    "MIN_OVERLAP",
    "PRIOR",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv("USER_KNN_" + name, raising=False)


def test_defaults():
    cfg = load_app_config()

    assert cfg == AppConfig()
    assert cfg.params.neighbors_k == 30
    assert cfg.params.min_overlap == 3
    assert cfg.params.prior == 3.5


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("USER_KNN_DATA_SOURCE", "Mongo")
    monkeypatch.setenv("USER_KNN_RATINGS_PATH", "/data/r.csv")
    monkeypatch.setenv("USER_KNN_CATALOG_PATH", "/data/items.txt")
    monkeypatch.setenv("USER_KNN_CATALOG_ENCODING", "latin-1")
    monkeypatch.setenv("USER_KNN_NEIGHBORS_K", "15")
    monkeypatch.setenv("USER_KNN_MIN_OVERLAP", "5")
    monkeypatch.setenv("USER_KNN_PRIOR", "3.0")
    monkeypatch.setenv("USER_KNN_TOP_K", "20")
    monkeypatch.setenv("USER_KNN_LOG_LEVEL", "debug")

    cfg = load_app_config()

    assert cfg.data_source == "mongo"
    assert cfg.ratings_path == Path("/data/r.csv")
    assert cfg.catalog_path == Path("/data/items.txt")
    assert cfg.catalog_encoding == "latin-1"
    assert (cfg.params.neighbors_k, cfg.params.min_overlap, cfg.params.prior, cfg.params.top_k) == (15, 5, 3.0, 20)
    assert cfg.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name,value",
    [
        ("DATA_SOURCE", "sqlite"),
        ("NEIGHBORS_K", "many"),
        ("MIN_OVERLAP", "-2"),
        ("PRIOR", "high"),
        ("LOG_LEVEL", "chatty"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv("USER_KNN_" + name, value)

    with pytest.raises(ValueError):
        load_app_config()
