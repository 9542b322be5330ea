"""
Warm the classification cache for a lat/lon rectangle.

Every cell of the rectangle (up to --limit) is classified with the area
variant; successes land in hexCache.json, upstream failures are skipped so the
cache never holds fallback zones.

Usage:
    python -m tools.precompute_cache --south 32.06 --west 34.75 --north 32.10 --east 34.79
"""

import logging
from collections import Counter
from typing import Dict

from core.cache import ClassificationCache
from core.classifier import ZoneClassifier
from core.coast_buffer import CoastalBuffer
from core.config import GameSettings
from core.errors import UpstreamUnavailable
from core.grid import HexGrid
from loaders.overpass import build_overpass_service

log = logging.getLogger("precompute")

# Tel Aviv shoreline: sea, coast, urban and main roads in one small box
DEFAULT_BOX = (32.06, 34.75, 32.10, 34.79)
DEFAULT_LIMIT = 600
PROGRESS_EVERY = 50


def precompute(
    classifier: ZoneClassifier,
    grid: HexGrid,
    south: float,
    west: float,
    north: float,
    east: float,
    limit: int = DEFAULT_LIMIT,
    skip_cached: bool = True,
) -> Dict:
    """
    Classify the cells of a rectangle into the cache.

    Returns:
        {"total": cells in box, "classified": n, "skipped": n, "failed": n,
         "zones": {zone: count}}
    """
    cells = sorted(grid.cells_in_box(south, west, north, east))
    selected = cells[:limit] if limit else cells
    log.info(f"{len(cells)} cells in box, processing {len(selected)}")

    zones = Counter()
    stats = {"total": len(cells), "classified": 0, "skipped": 0, "failed": 0}

    for i, cell in enumerate(selected, start=1):
        if skip_cached and cell in classifier.cache:
            stats["skipped"] += 1
        else:
            try:
                result = classifier.classify_area(cell)
            except UpstreamUnavailable as e:
                log.error(f"Failed to classify {cell}: {e}")
                stats["failed"] += 1
            else:
                stats["classified"] += 1
                zones[result.zone.value] += 1

        if i % PROGRESS_EVERY == 0:
            log.info(f"Processed {i}/{len(selected)} cells...")

    stats["zones"] = dict(zones)
    return stats


def main():
    """CLI interface for cache precomputation."""
    import argparse

    south, west, north, east = DEFAULT_BOX
    parser = argparse.ArgumentParser(description="Precompute cell classifications for a bounding box")
    parser.add_argument("--south", type=float, default=south)
    parser.add_argument("--west", type=float, default=west)
    parser.add_argument("--north", type=float, default=north)
    parser.add_argument("--east", type=float, default=east)
    parser.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help="Maximum cells to process (0 = all)")
    parser.add_argument("--refresh", action="store_true", help="Reclassify cells already in the cache")
    parser.add_argument("--data-dir", help="Override HEXMINER_DATA_DIR")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s │ %(name)-20s │ %(levelname)-8s │ %(message)s',
        datefmt='%H:%M:%S',
    )

    settings = GameSettings.from_env()
    data_dir = args.data_dir or settings.data_dir

    grid = HexGrid()
    cache = ClassificationCache(data_dir)
    buffer = CoastalBuffer(data_dir, grid, cache)
    service = build_overpass_service(
        settings.overpass_endpoints,
        timeout=settings.overpass_timeout,
        max_attempts=settings.overpass_max_attempts,
        backoff_seconds=settings.overpass_backoff_seconds,
    )
    classifier = ZoneClassifier(grid, service, cache, buffer)

    stats = precompute(
        classifier, grid,
        args.south, args.west, args.north, args.east,
        limit=args.limit,
        skip_cached=not args.refresh,
    )
    log.info(
        f"Done: {stats['classified']} classified, {stats['skipped']} already cached, "
        f"{stats['failed']} failed; zones {stats['zones']}"
    )


if __name__ == "__main__":
    main()
