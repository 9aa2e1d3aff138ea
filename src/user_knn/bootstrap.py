from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from src.user_knn.config import AppConfig, load_app_config
from src.user_knn.data.load_data.load_data_from_mongo import load_ratings_and_items
from src.user_knn.data.load_data.load_from_files import load_item_catalog, load_rating_store
from src.user_knn.domain.rating_store import ItemCatalog, RatingStore
from src.user_knn.logging_utils import configure_logger, set_package_log_level
from src.user_knn.service.recommender_service import RecommenderService

logger = configure_logger(__name__)


def _repo_root() -> Path:
    # .../src/user_knn/bootstrap.py -> parents[2] = repo root
    return Path(__file__).resolve().parents[2]


def _resolve(path: Path) -> Path:
    return path if path.is_absolute() else (_repo_root() / path)


def load_data(config: AppConfig) -> Tuple[RatingStore, ItemCatalog]:
    """Read the rating store and item catalog from the configured source."""
    if config.data_source == "mongo":
        return load_ratings_and_items()

    store = load_rating_store(_resolve(config.ratings_path))

    catalog = ItemCatalog()
    if config.catalog_path is not None:
        catalog_path = _resolve(config.catalog_path)
        if catalog_path.is_file():
            catalog = load_item_catalog(catalog_path, encoding=config.catalog_encoding)
        else:
            logger.warning(
                "Item catalog not found; titles will be missing",
                extra={"event": "bootstrap.catalog_missing", "path": str(catalog_path)},
            )
    return store, catalog


def bootstrap_service(config: Optional[AppConfig] = None) -> RecommenderService:
    """
    Build and return a fully initialized RecommenderService.

    This function performs I/O (file or Mongo reads) and is intended to be
    called once at startup.
    """
    config = config or load_app_config()
    set_package_log_level(config.log_level)

    logger.info(
        "Bootstrapping RecommenderService",
        extra={"event": "bootstrap.start"},
    )

    store, catalog = load_data(config)

    service = RecommenderService(
        store=store,
        catalog=catalog,
        default_params=config.params,
    )

    logger.info(
        "RecommenderService initialized successfully",
        extra={
            "event": "bootstrap.ready",
            "source": config.data_source,
            "users": len(store),
            "items": len(catalog),
        },
    )
    return service


@lru_cache(maxsize=1)
def get_recommender_service() -> RecommenderService:
    """
    Cached service getter for scripts.

    The API prefers its startup bootstrap (app.state) over this getter.
    """
    return bootstrap_service()
