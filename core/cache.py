"""
Classification Cache: cell -> upstream-confirmed ClassificationResult.

Consulted before any Overpass query. Never holds fallback results.
"""

import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, Optional

from core.models import ClassificationResult, ZoneType
from core.store import JsonDocument

log = logging.getLogger(__name__)

HEX_CACHE_FILE = "hexCache.json"


class ClassificationCache:
    """JSON-backed cache of successful classifications. Last write wins per cell."""

    def __init__(self, data_dir: str):
        self._doc = JsonDocument(Path(data_dir) / HEX_CACHE_FILE, dict)
        self._lock = threading.Lock()
        self._entries: Dict[str, ClassificationResult] = {}
        self._load()

    def _load(self) -> None:
        raw = self._doc.load()
        if not isinstance(raw, dict):
            return
        for cell, entry in raw.items():
            try:
                self._entries[cell] = ClassificationResult.from_dict(entry)
            except (KeyError, TypeError, ValueError):
                log.debug(f"Dropping unreadable cache entry for {cell}")
        log.info(f"Classification cache loaded: {len(self._entries)} cells")

    def get(self, cell: str) -> Optional[ClassificationResult]:
        with self._lock:
            return self._entries.get(cell)

    def put(self, cell: str, result: ClassificationResult) -> None:
        if result.from_fallback:
            raise ValueError("Fallback classifications must not be cached")
        with self._lock:
            self._entries[cell] = result
            snapshot = {c: r.to_dict() for c, r in self._entries.items()}
            self._doc.save(snapshot)

    def zone_of(self, cell: str) -> Optional[ZoneType]:
        entry = self.get(cell)
        return entry.zone if entry else None

    def any_with_zone(self, cells: Iterable[str], zone: ZoneType) -> bool:
        with self._lock:
            for c in cells:
                entry = self._entries.get(c)
                if entry is not None and entry.zone == zone:
                    return True
        return False

    def __contains__(self, cell: str) -> bool:
        with self._lock:
            return cell in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
