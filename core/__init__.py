"""
Core module for the hex mining backend.
Contains domain models, the zone classifier, coastal buffer and mining engine.
"""

from core.models import (
    ZoneType,
    ClassificationResult,
    GpsFix,
    UserAccount,
    MiningEvent,
    ClaimOutcome,
    ClaimReason,
)
from core.errors import HexMinerError, UpstreamUnavailable, ValidationError, UnknownUser
from core.grid import HexGrid, GAME_RESOLUTION
from core.config import GameSettings
from core.store import GameStore, JsonDocument
from core.cache import ClassificationCache
from core.coast_buffer import CoastalBuffer
from core.classifier import ZoneClassifier
from core.mining import MiningEngine
from core.accounts import AccountService

__all__ = [
    # Models
    "ZoneType",
    "ClassificationResult",
    "GpsFix",
    "UserAccount",
    "MiningEvent",
    "ClaimOutcome",
    "ClaimReason",
    # Errors
    "HexMinerError",
    "UpstreamUnavailable",
    "ValidationError",
    "UnknownUser",
    # Engines
    "HexGrid",
    "GAME_RESOLUTION",
    "GameSettings",
    "GameStore",
    "JsonDocument",
    "ClassificationCache",
    "CoastalBuffer",
    "ZoneClassifier",
    "MiningEngine",
    "AccountService",
]
