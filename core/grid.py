"""
Grid Engine for hexagonal cell addressing.
Wraps the H3 library at the game's fixed resolution.
"""

import logging
from typing import List, Tuple

import h3

from core.errors import ValidationError

log = logging.getLogger(__name__)

GAME_RESOLUTION = 11


class HexGrid:
    """
    Converts coordinates to H3 cells and provides the grid algebra used by the
    classifier and the mining engine (disks, paths, bounds).
    """

    def __init__(self, resolution: int = GAME_RESOLUTION):
        self.resolution = resolution

    def validate(self, cell) -> str:
        """Return `cell` if it is a valid H3 index, else raise ValidationError."""
        if not isinstance(cell, str) or not cell or not h3.is_valid_cell(cell):
            raise ValidationError("INVALID_H3_INDEX", f"Not a valid cell: {cell!r}")
        return cell

    def cell_at(self, lat: float, lon: float) -> str:
        """Cell containing a coordinate at the game resolution."""
        return h3.latlng_to_cell(lat, lon, self.resolution)

    def center(self, cell: str) -> Tuple[float, float]:
        """Return (lat, lon) of the cell centroid."""
        return h3.cell_to_latlng(cell)

    def bounds(self, cell: str) -> Tuple[float, float, float, float]:
        """Return (south, west, north, east) of the cell boundary."""
        boundary = h3.cell_to_boundary(cell)
        lats = [lat for lat, _ in boundary]
        lons = [lon for _, lon in boundary]
        return (min(lats), min(lons), max(lats), max(lons))

    def disk(self, cell: str, k: int) -> List[str]:
        """All cells within `k` rings of `cell`, including `cell` itself."""
        return list(h3.grid_disk(cell, k))

    def path(self, start: str, end: str) -> List[str]:
        """
        Shortest grid path between two cells, both endpoints included.

        Falls back to just `end` when H3 cannot build a path (e.g. across
        pentagons or very distant cells).
        """
        try:
            return list(h3.grid_path_cells(start, end))
        except Exception as e:
            log.debug(f"No grid path {start} -> {end}: {e}")
            return [end]

    def cells_in_box(self, south: float, west: float, north: float, east: float) -> List[str]:
        """All cells whose centers fall inside a lat/lon rectangle."""
        poly = h3.LatLngPoly([
            (south, west),
            (south, east),
            (north, east),
            (north, west),
        ])
        return list(h3.polygon_to_cells(poly, self.resolution))
