"""
Run an observer for a fixed wall-clock duration.

Usage:
    python -m mongo_to_elastic --database orders --collection orders --index orders --duration 60
"""

import argparse
import sys
import time
from typing import List, Optional

from .errors import ConfigurationError
from .observer import MongoToElasticObserver
from .utils.logging import get_logger

logger = get_logger("mongo_to_elastic")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mongo_to_elastic",
        description="Mirror a MongoDB collection into an Elasticsearch index."
    )
    parser.add_argument("--database", required=True, help="MongoDB database name")
    parser.add_argument("--collection", required=True, help="MongoDB collection name")
    parser.add_argument("--index", required=True, help="Elasticsearch index name")
    parser.add_argument(
        "--duration",
        type=float,
        default=60.0,
        help="Seconds to run before stopping (default: 60)"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        observer = MongoToElasticObserver(args.database, args.collection, args.index)
    except ConfigurationError as e:
        logger.error(str(e))
        return 2

    observer.start()
    try:
        time.sleep(args.duration)
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping observer")
    finally:
        observer.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
