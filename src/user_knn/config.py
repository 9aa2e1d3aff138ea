"""
Application configuration loaded from environment variables.

Every variable is prefixed with ``USER_KNN_``; a ``.env`` file is honoured
outside of pytest runs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

from .domain.recommend_for_user import RecommendParams
from .logging_utils import configure_logger

logger = configure_logger(__name__)

ENV_PREFIX = "USER_KNN_"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
DATA_SOURCES = ("files", "mongo")

T = TypeVar("T")


@dataclass(frozen=True)
class AppConfig:
    data_source: str = "files"
    ratings_path: Path = Path("data/ratings.csv")
    catalog_path: Optional[Path] = Path("data/movies.txt")
    catalog_encoding: str = "utf-8"
    params: RecommendParams = field(default_factory=RecommendParams)
    log_level: str = "INFO"


def _env(name: str, prefix: str) -> Optional[str]:
    value = os.getenv(prefix + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse(name: str, prefix: str, cast: Callable[[str], T], default: T) -> T:
    raw = _env(name, prefix)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        logger.error(
            "config_error: invalid value.",
            extra={"event": "config_error", "env_var": prefix + name},
        )
        raise ValueError(f"Invalid value for {prefix + name}: {raw!r}") from exc


def load_app_config(env_prefix: str = ENV_PREFIX) -> AppConfig:
    """Build an AppConfig from the environment, falling back to defaults."""
    if "PYTEST_CURRENT_TEST" not in os.environ:
        load_dotenv()

    defaults = AppConfig()
    default_params = defaults.params

    data_source = (_env("DATA_SOURCE", env_prefix) or defaults.data_source).lower()
    if data_source not in DATA_SOURCES:
        logger.error(
            "config_error: unknown data source.",
            extra={"event": "config_error", "env_var": env_prefix + "DATA_SOURCE"},
        )
        raise ValueError(f"{env_prefix}DATA_SOURCE must be one of {DATA_SOURCES}, got {data_source!r}")

    log_level = (_env("LOG_LEVEL", env_prefix) or defaults.log_level).upper()
    if log_level not in LOG_LEVELS:
        logger.error(
            "config_error: unknown log level.",
            extra={"event": "config_error", "env_var": env_prefix + "LOG_LEVEL"},
        )
        raise ValueError(f"{env_prefix}LOG_LEVEL must be one of {LOG_LEVELS}, got {log_level!r}")

    catalog_raw = _env("CATALOG_PATH", env_prefix)

    params = RecommendParams(
        top_k=_parse("TOP_K", env_prefix, int, default_params.top_k),
        neighbors_k=_parse("NEIGHBORS_K", env_prefix, int, default_params.neighbors_k),
        min_overlap=_parse("MIN_OVERLAP", env_prefix, int, default_params.min_overlap),
        prior=_parse("PRIOR", env_prefix, float, default_params.prior),
    )
    for name in ("top_k", "neighbors_k", "min_overlap"):
        if getattr(params, name) < 0:
            raise ValueError(f"{env_prefix}{name.upper()} must be >= 0")

    config = AppConfig(
        data_source=data_source,
        ratings_path=Path(_env("RATINGS_PATH", env_prefix) or defaults.ratings_path),
        catalog_path=Path(catalog_raw) if catalog_raw else defaults.catalog_path,
        catalog_encoding=_env("CATALOG_ENCODING", env_prefix) or defaults.catalog_encoding,
        params=params,
        log_level=log_level,
    )

    logger.info(
        "config_loaded",
        extra={"event": "config_loaded", "source": config.data_source},
    )
    return config
