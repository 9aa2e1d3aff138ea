from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .bootstrap import bootstrap_service
from .config import load_app_config
from .domain.errors import RecommendationError, UnknownUserError
from .reporting import format_recommendations


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="User-based kNN recommendations for one user")
    p.add_argument("--user-id", type=int, required=True, help="User id as it appears in the ratings file")
    p.add_argument("--top", type=int, default=None, help="How many items to recommend")
    p.add_argument("--neighbors-k", type=int, default=None, help="How many similar users to consider")
    p.add_argument("--min-overlap", type=int, default=None, help="Co-rated items needed to compare two users")
    p.add_argument("--prior", type=float, default=None, help="Score that thinly-supported items are pulled toward")
    p.add_argument("--ratings", type=Path, default=None, help="user_id,item_id,rating file")
    p.add_argument("--catalog", type=Path, default=None, help="item_id|title|... file")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    config = load_app_config()
    if args.ratings is not None:
        config = replace(config, data_source="files", ratings_path=args.ratings)
    if args.catalog is not None:
        config = replace(config, catalog_path=args.catalog)

    overrides = {
        name: value
        for name, value in (
            ("top_k", args.top),
            ("neighbors_k", args.neighbors_k),
            ("min_overlap", args.min_overlap),
            ("prior", args.prior),
        )
        if value is not None
    }
    params = replace(config.params, **overrides)

    service = bootstrap_service(replace(config, params=params))

    try:
        recs = service.get_recommendations_for_user(args.user_id, limit=params.top_k, params=params)
    except UnknownUserError as exc:
        print(f"Unknown user: {exc.user_id}", file=sys.stderr)
        return 2
    except RecommendationError as exc:
        print(f"Invalid request: {exc}", file=sys.stderr)
        return 2

    if not recs:
        print("No recommendations found (try lowering --min-overlap).")
        return 0

    for line in format_recommendations(recs):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
