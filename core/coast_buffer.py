"""
Coastal Safety Buffer.

A persisted, append-only set of cells where mining is forbidden because they
lie near a detected coastline or beach. The set only ever grows.

Also provides the read-only display widening used when serving a cell's
zone: nearby cached COAST cells turn an overridable zone into COAST for that
response, without writing anything back.
"""

import logging
import threading
from pathlib import Path
from typing import List, Set

from core.cache import ClassificationCache
from core.grid import HexGrid
from core.models import ClassificationResult, ZoneType
from core.store import JsonDocument

log = logging.getLogger(__name__)

COAST_BUFFER_FILE = "coastBuffer.json"
BUFFER_RADIUS = 4
DISPLAY_RADIUS = 3
NON_OVERRIDABLE = {
    ZoneType.MILITARY,
    ZoneType.PRISON,
    ZoneType.GOVERNMENT,
    ZoneType.HOSPITAL,
    ZoneType.MAIN_ROAD,
    ZoneType.CLIFF,
}


class CoastalBuffer:
    """
    Monotonically growing exclusion set around observed coastlines.

    Usage:
        buffer = CoastalBuffer(data_dir, grid, cache)
        buffer.mark_coast_and_expand("8b3f4dc1e26dfff")
        buffer.contains(cell)
    """

    def __init__(
        self,
        data_dir: str,
        grid: HexGrid,
        cache: ClassificationCache,
        buffer_radius: int = BUFFER_RADIUS,
        display_radius: int = DISPLAY_RADIUS,
    ):
        self.grid = grid
        self.cache = cache
        self.buffer_radius = buffer_radius
        self.display_radius = display_radius
        self._doc = JsonDocument(Path(data_dir) / COAST_BUFFER_FILE, lambda: {"cells": []})
        self._lock = threading.Lock()

        raw = self._doc.load()
        cells = []
        if isinstance(raw, dict):
            cells = raw.get("cells") or raw.get("hexes") or []
        self._cells: Set[str] = {c for c in cells if isinstance(c, str)}
        log.info(f"Coastal buffer loaded: {len(self._cells)} cells")

    def mark_coast_and_expand(self, cell: str) -> int:
        """
        Union the disk of `buffer_radius` rings around `cell` into the set.

        Idempotent. Persists only when the set actually grew.

        Returns:
            Number of newly added cells
        """
        disk = self.grid.disk(cell, self.buffer_radius)
        with self._lock:
            added = [c for c in disk if c not in self._cells]
            if not added:
                return 0
            self._cells.update(added)
            snapshot = sorted(self._cells)
            # Save under the lock so an older snapshot never lands last
            self._doc.save({"cells": snapshot})
        log.info(f"Coastal buffer grew by {len(added)} cells around {cell} (total {len(snapshot)})")
        return len(added)

    def widen_for_display(self, cell: str, base: ClassificationResult) -> ClassificationResult:
        """Pure read: COAST override when a cached coastline cell is nearby."""
        if base.zone in NON_OVERRIDABLE or base.zone == ZoneType.COAST:
            return base
        nearby = self.grid.disk(cell, self.display_radius)
        if self.cache.any_with_zone(nearby, ZoneType.COAST):
            return base.with_zone(
                ZoneType.COAST,
                f"Coast buffer: within {self.display_radius} hexes of cached coastline",
            )
        return base

    def contains(self, cell: str) -> bool:
        with self._lock:
            return cell in self._cells

    def snapshot(self) -> List[str]:
        with self._lock:
            return sorted(self._cells)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cells)
