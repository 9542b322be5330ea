"""
Data loaders for the hex mining backend.

Includes:
- Overpass feature queries (OpenStreetMap tags for a cell)
"""

from loaders.overpass import (
    BoundingBox,
    Circle,
    FeatureQueryService,
    OverpassHTTPError,
    OverpassService,
    QueryRegion,
    RetryingQueryService,
    UpstreamUnavailable,
    build_overpass_service,
    build_query,
    DEFAULT_ENDPOINTS,
)

__all__ = [
    "BoundingBox",
    "Circle",
    "FeatureQueryService",
    "OverpassHTTPError",
    "OverpassService",
    "QueryRegion",
    "RetryingQueryService",
    "UpstreamUnavailable",
    "build_overpass_service",
    "build_query",
    "DEFAULT_ENDPOINTS",
]
