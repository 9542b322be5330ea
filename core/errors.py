"""
Exception types shared across the classification and mining layers.

Expected game-flow refusals (ownership conflicts, GPS checks, balance) are not
exceptions; see `core.models.ClaimOutcome`.
"""

from typing import Optional

# Raised by the query layer, re-exported so callers only need core.errors
from loaders.overpass import UpstreamUnavailable


class HexMinerError(Exception):
    """Base class for errors raised by the core engines."""


class ValidationError(HexMinerError):
    """Malformed cell identifier or request body."""

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(message or code)
        self.code = code


class UnknownUser(HexMinerError):
    """No account exists for the given user id, or the token is invalid."""


__all__ = ["HexMinerError", "UpstreamUnavailable", "ValidationError", "UnknownUser"]
