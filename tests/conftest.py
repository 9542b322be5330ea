import os
import sys

import h3
import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from core.cache import ClassificationCache  # noqa: E402
from core.classifier import ZoneClassifier  # noqa: E402
from core.coast_buffer import CoastalBuffer  # noqa: E402
from core.config import GameSettings  # noqa: E402
from core.errors import UpstreamUnavailable  # noqa: E402
from core.grid import HexGrid  # noqa: E402
from core.mining import MiningEngine  # noqa: E402
from core.models import GpsFix, UserAccount  # noqa: E402
from core.store import GameStore  # noqa: E402
from loaders.overpass import Circle, FeatureQueryService  # noqa: E402

# Tel Aviv shoreline, resolution 11
START_CELL = "8b3f4dc1e26dfff"
NOW = 1_700_000_000.0
NOW_MS = int(NOW * 1000)


class FakeQueryService(FeatureQueryService):
    """
    In-memory stand-in for Overpass.

    `elements` is returned for every query unless `responder(region, selectors)`
    is given. `fail=True` makes every query raise UpstreamUnavailable.
    """

    def __init__(self, elements=None, responder=None, fail=False):
        self.elements = elements or []
        self.responder = responder
        self.fail = fail
        self.calls = []

    def query(self, region, selectors):
        self.calls.append((region, list(selectors)))
        if self.fail:
            raise UpstreamUnavailable("Overpass error: 504", attempts=4)
        if self.responder is not None:
            return self.responder(region, selectors)
        return list(self.elements)


def road_responder(grid, road_cells, highway="residential"):
    """Local (circle) queries centred on a cell in `road_cells` see a road."""
    road_cells = set(road_cells)

    def respond(region, selectors):
        if isinstance(region, Circle) and grid.cell_at(region.lat, region.lon) in road_cells:
            return [{"type": "way", "id": 1, "tags": {"highway": highway}}]
        return []

    return respond


def fix_for(cell, accuracy=10.0, age_ms=0):
    lat, lon = h3.cell_to_latlng(cell)
    return GpsFix(lat=lat, lon=lon, accuracy_m=accuracy, timestamp_ms=NOW_MS - age_ms)


@pytest.fixture
def grid():
    return HexGrid()


@pytest.fixture
def fake_service():
    return FakeQueryService()


@pytest.fixture
def store(tmp_path):
    return GameStore.open(str(tmp_path))


@pytest.fixture
def cache(tmp_path):
    return ClassificationCache(str(tmp_path))


@pytest.fixture
def coast_buffer(tmp_path, grid, cache):
    return CoastalBuffer(str(tmp_path), grid, cache)


@pytest.fixture
def classifier(grid, fake_service, cache, coast_buffer):
    return ZoneClassifier(grid, fake_service, cache, coast_buffer)


@pytest.fixture
def settings(tmp_path):
    return GameSettings(data_dir=str(tmp_path), secret="test-secret")


@pytest.fixture
def engine(store, grid, classifier, coast_buffer, settings):
    return MiningEngine(store, grid, classifier, coast_buffer, settings, clock=lambda: NOW)


@pytest.fixture
def make_user(store):
    def _make(user_id="alice", balance=100):
        user = UserAccount(
            id=user_id,
            email=f"{user_id}@example.com",
            password_hash="not-a-real-hash",
            balance=balance,
        )
        store.add_user(user)
        return user

    return _make
