"""
Core data models for the hex mining backend.
"""

from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Dict, List, Optional, Set, Any


class ZoneType(str, Enum):
    """Semantic zone category assigned to a grid cell."""
    SEA = "SEA"
    MAIN_ROAD = "MAIN_ROAD"
    URBAN = "URBAN"
    INTERURBAN = "INTERURBAN"
    MILITARY = "MILITARY"
    HOSPITAL = "HOSPITAL"
    CLIFF = "CLIFF"
    COAST = "COAST"
    NATURE_RESERVE = "NATURE_RESERVE"
    RIVER = "RIVER"  # Only found in cache documents from older classifier versions
    PRISON = "PRISON"
    GOVERNMENT = "GOVERNMENT"


@dataclass
class ClassificationResult:
    """
    Outcome of classifying one cell.

    Only results backed by a successful upstream query are ever written to the
    classification cache; `from_fallback` marks the ones that are not.
    """
    zone: ZoneType
    evidence: List[str] = field(default_factory=list)
    road_present: Optional[bool] = None
    road_class: Optional[str] = None
    from_fallback: bool = False

    def with_zone(self, zone: ZoneType, note: str) -> "ClassificationResult":
        """Copy of this result with a different zone and one more evidence line."""
        return replace(self, zone=zone, evidence=[*self.evidence, note])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.zone.value,
            "evidence": list(self.evidence),
            "road_present": self.road_present,
            "road_class": self.road_class,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ClassificationResult":
        # Older documents used zoneType/debug
        zone = data.get("category") or data.get("zoneType")
        return cls(
            zone=ZoneType(zone),
            evidence=list(data.get("evidence") or data.get("debug") or []),
            road_present=data.get("road_present"),
            road_class=data.get("road_class"),
        )


@dataclass
class GpsFix:
    """A device geolocation sample offered as proof of presence."""
    lat: Optional[float]
    lon: Optional[float]
    accuracy_m: Optional[float]
    timestamp_ms: Optional[float]


@dataclass
class UserAccount:
    """A player account with its wallet and claimed cells."""
    id: str
    email: str
    password_hash: str
    balance: int = 0
    usdt_balance: float = 1000.0
    owned_cells: Set[str] = field(default_factory=set)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "email": self.email,
            "password_hash": self.password_hash,
            "balance": self.balance,
            "usdt_balance": self.usdt_balance,
            "owned_cells": sorted(self.owned_cells),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "UserAccount":
        balance = data.get("balance")
        usdt = data.get("usdt_balance")
        return cls(
            id=data["id"],
            email=data["email"],
            password_hash=data["password_hash"],
            balance=balance if isinstance(balance, (int, float)) else 0,
            usdt_balance=usdt if isinstance(usdt, (int, float)) else 1000.0,
            owned_cells=set(data.get("owned_cells") or []),
        )

    def summary(self) -> Dict:
        return {
            "id": self.id,
            "email": self.email,
            "balance": self.balance,
            "owned_count": len(self.owned_cells),
        }


@dataclass
class MiningEvent:
    """Append-only audit record of one claimed cell."""
    timestamp_ms: int
    user_id: str
    cell: str

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "MiningEvent":
        return cls(
            timestamp_ms=int(data["timestamp_ms"]),
            user_id=data.get("user_id", "demo-user"),
            cell=data["cell"],
        )


# ═══════════════════════════════════════════════════════════════════════════
# CLAIM OUTCOMES
# ═══════════════════════════════════════════════════════════════════════════
class ClaimReason:
    """Machine-readable reason codes for refused claims."""
    ALREADY_MINED = "ALREADY_MINED"
    ALREADY_OWNED = "ALREADY_OWNED"
    ALREADY_OWNED_BY_OTHER = "ALREADY_OWNED_BY_OTHER"
    FORBIDDEN_ZONE = "FORBIDDEN_ZONE"
    GPS_REQUIRED = "GPS_REQUIRED"
    GPS_STALE = "GPS_STALE"
    GPS_ACCURACY_LOW = "GPS_ACCURACY_LOW"
    GPS_MISMATCH = "GPS_MISMATCH"
    INSUFFICIENT_GHX = "INSUFFICIENT_GHX"
    NO_ROAD_HEXES = "NO_ROAD_HEXES"
    SAME_HEX = "SAME_HEX"


@dataclass
class ClaimOutcome:
    """
    Result of a claim operation.

    Refusals are ordinary values with a reason code, not exceptions, so the
    HTTP layer can hand them straight to game clients.
    """
    ok: bool
    balance: int
    reason: Optional[str] = None
    claimed_cells: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def refused(cls, reason: str, balance: int, **details) -> "ClaimOutcome":
        return cls(ok=False, balance=balance, reason=reason, details=details)
