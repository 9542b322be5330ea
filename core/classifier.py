"""
Zone Classifier: H3 cell -> ZoneType using OpenStreetMap tags.

Two query variants share the rule table in core.zone_rules:
- area:  everything inside the cell's bounding box (cached, drives the map)
- local: a small circle around the cell centroid (used by Drive Mode)
"""

import logging
from typing import List, Optional

from core.cache import ClassificationCache
from core.coast_buffer import CoastalBuffer
from core.errors import UpstreamUnavailable
from core.grid import HexGrid
from core.models import ClassificationResult, ZoneType
from core.zone_rules import AREA, LOCAL, Variant, resolve_zone, scan_features
from loaders.overpass import BoundingBox, Circle, FeatureQueryService, QueryRegion

log = logging.getLogger(__name__)

LOCAL_RADIUS_METERS = 60
POLAR_LATITUDE = 73.0

# Selectors shared by both variants
_COMMON_SELECTORS = [
    'way["highway"]',
    'way["landuse"="military"]',
    'node["military"]',
    'node["amenity"="prison"]',
    'way["amenity"="prison"]',
    'node["building"="government"]',
    'way["building"="government"]',
    'node["amenity"="hospital"]',
    'way["amenity"="hospital"]',
    'way["leisure"="park"]',
    'way["landuse"="forest"]',
    'way["natural"="wood"]',
    'way["building"]',
    'way["landuse"="residential"]',
    'way["landuse"="commercial"]',
    'way["landuse"="industrial"]',
    'node["place"="city"]',
    'node["place"="town"]',
    'node["place"="village"]',
    'way["natural"="sea"]',
    'relation["natural"="sea"]',
    'way["natural"="water"]',
    'relation["natural"="water"]',
    'way["place"="sea"]',
    'relation["place"="sea"]',
    'way["water"]',
    'relation["water"]',
]

AREA_SELECTORS = _COMMON_SELECTORS + [
    'way["leisure"="nature_reserve"]',
    'relation["leisure"="nature_reserve"]',
    'way["boundary"="protected_area"]',
    'relation["boundary"="protected_area"]',
    'relation["leisure"="park"]',
    'relation["landuse"="forest"]',
    'relation["natural"="wood"]',
    'relation["building"]',
    'relation["landuse"="residential"]',
    'relation["landuse"="commercial"]',
    'relation["landuse"="industrial"]',
    'way["natural"="coastline"]',
    'way["natural"="beach"]',
    'way["leisure"="beach"]',
    'way["natural"="cliff"]',
]

LOCAL_SELECTORS = list(_COMMON_SELECTORS)


def fallback_zone(grid: HexGrid, cell: str) -> ZoneType:
    """Deterministic latitude heuristic for when Overpass is unreachable."""
    lat, _ = grid.center(cell)
    if lat > POLAR_LATITUDE or lat < -POLAR_LATITUDE:
        return ZoneType.SEA
    return ZoneType.INTERURBAN


class ZoneClassifier:
    """
    Classifies cells via a FeatureQueryService.

    The query service is expected to handle retries itself (see
    loaders.overpass.RetryingQueryService) and to raise UpstreamUnavailable
    once it gives up.
    """

    def __init__(
        self,
        grid: HexGrid,
        query_service: FeatureQueryService,
        cache: ClassificationCache,
        coast_buffer: CoastalBuffer,
        local_radius_m: int = LOCAL_RADIUS_METERS,
    ):
        self.grid = grid
        self.query_service = query_service
        self.cache = cache
        self.coast_buffer = coast_buffer
        self.local_radius_m = local_radius_m

    # ───────────────────────────────────────────────────────────────────
    # Variants
    # ───────────────────────────────────────────────────────────────────
    def classify_area(self, cell: str) -> ClassificationResult:
        """
        Bounding-box classification. Writes the cache on success.

        Raises:
            UpstreamUnavailable: when the query service gives up
        """
        south, west, north, east = self.grid.bounds(cell)
        region = BoundingBox(south, west, north, east)
        result = self._classify(cell, region, AREA_SELECTORS, AREA)
        self.cache.put(cell, result)
        return result

    def classify_local(self, cell: str) -> ClassificationResult:
        """
        Centroid-circle classification. Not cached.

        Raises:
            UpstreamUnavailable: when the query service gives up
        """
        lat, lon = self.grid.center(cell)
        region = Circle(lat, lon, self.local_radius_m)
        return self._classify(cell, region, LOCAL_SELECTORS, LOCAL)

    def _classify(
        self,
        cell: str,
        region: QueryRegion,
        selectors: List[str],
        variant: Variant,
    ) -> ClassificationResult:
        elements = self.query_service.query(region, selectors)
        flags = scan_features(elements)
        zone, note, rule = resolve_zone(flags, variant)

        if rule is not None and rule.marks_coast:
            self.coast_buffer.mark_coast_and_expand(cell)

        log.debug(f"{variant.name} classification {cell}: {zone.value} ({len(elements)} elements)")
        return ClassificationResult(
            zone=zone,
            evidence=[note],
            road_present=flags.road,
            road_class=flags.road_class,
        )

    # ───────────────────────────────────────────────────────────────────
    # Fallback-aware entry points
    # ───────────────────────────────────────────────────────────────────
    def fallback(self, cell: str, error: Optional[Exception] = None) -> ClassificationResult:
        zone = fallback_zone(self.grid, cell)
        reason = str(error) if error else "unavailable"
        log.warning(f"Overpass failed for {cell}, using fallback {zone.value}: {reason}")
        return ClassificationResult(
            zone=zone,
            evidence=[f"Overpass failed: {reason}", "Using latitude-based fallback"],
            from_fallback=True,
        )

    def classify_area_or_fallback(self, cell: str) -> ClassificationResult:
        try:
            return self.classify_area(cell)
        except UpstreamUnavailable as e:
            return self.fallback(cell, e)

    def classify_local_or_fallback(self, cell: str) -> ClassificationResult:
        try:
            return self.classify_local(cell)
        except UpstreamUnavailable as e:
            return self.fallback(cell, e)

    def lookup(self, cell: str) -> ClassificationResult:
        """
        Cache-first zone for map rendering, widened by nearby coastline.

        Cache misses are classified (area variant) and cached on success; on
        upstream failure the fallback is returned and nothing is cached.
        """
        base = self.cache.get(cell)
        if base is None:
            base = self.classify_area_or_fallback(cell)
        return self.coast_buffer.widen_for_display(cell, base)
