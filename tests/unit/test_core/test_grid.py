import h3
import pytest

from core.errors import ValidationError
from core.grid import HexGrid, GAME_RESOLUTION
from conftest import START_CELL


def test_validate_accepts_real_cells(grid):
    assert grid.validate(START_CELL) == START_CELL


@pytest.mark.parametrize("bad", ["", "not-a-cell", "ffffffffffffffff", None, 12345])
def test_validate_rejects_garbage(grid, bad):
    with pytest.raises(ValidationError) as exc:
        grid.validate(bad)
    assert exc.value.code == "INVALID_H3_INDEX"


def test_cell_at_uses_game_resolution(grid):
    """Verify coordinate lookup round-trips through the cell centroid."""
    lat, lon = grid.center(START_CELL)
    cell = grid.cell_at(lat, lon)
    assert cell == START_CELL
    assert h3.get_resolution(cell) == GAME_RESOLUTION


def test_bounds_contain_center(grid):
    south, west, north, east = grid.bounds(START_CELL)
    lat, lon = grid.center(START_CELL)
    assert south < lat < north
    assert west < lon < east


def test_disk_sizes(grid):
    assert grid.disk(START_CELL, 0) == [START_CELL]
    assert len(grid.disk(START_CELL, 3)) == 37
    assert len(grid.disk(START_CELL, 4)) == 61


def test_path_includes_both_endpoints(grid):
    end = sorted(h3.grid_ring(START_CELL, 5))[0]
    path = grid.path(START_CELL, end)
    assert path[0] == START_CELL
    assert path[-1] == end
    assert len(path) == 6


def test_path_falls_back_to_destination(grid):
    """Cells on different continents have no grid path."""
    far = grid.cell_at(-33.86, 151.21)
    assert grid.path(START_CELL, far) == [far]


def test_cells_in_box(grid):
    cells = grid.cells_in_box(32.079, 34.769, 32.081, 34.771)
    assert cells
    assert all(h3.get_resolution(c) == GAME_RESOLUTION for c in cells)


def test_custom_resolution():
    grid = HexGrid(resolution=9)
    assert h3.get_resolution(grid.cell_at(32.08, 34.77)) == 9
