"""
Mining Ownership Engine.

State machine per (user, cell): Unclaimed -> Claimed, no way back. Four claim
operations share the same discipline:

1. Validate inputs and read-only preconditions.
2. Do any slow Overpass classification WITHOUT holding the store lock.
3. Under the lock, re-check ownership / balance, then apply every balance,
   ownership, treasury and event mutation together and persist.

Refusals come back as ClaimOutcome values with a reason code.
"""

import logging
import math
import time
from typing import Callable, Iterable, List, Optional, Set

from core.classifier import ZoneClassifier
from core.coast_buffer import CoastalBuffer
from core.config import GameSettings
from core.errors import UpstreamUnavailable, ValidationError
from core.grid import HexGrid
from core.models import (
    ClaimOutcome,
    ClaimReason,
    GpsFix,
    MiningEvent,
    UserAccount,
    ZoneType,
)
from core.store import GameStore

log = logging.getLogger(__name__)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


class MiningEngine:
    """
    Claims cells for users and applies the economic effects.

    Usage:
        engine = MiningEngine(store, grid, classifier, coast_buffer, settings)
        outcome = engine.mine(user_id, cell, GpsFix(lat, lon, 12.0, now_ms))
        if not outcome.ok:
            print(outcome.reason)
    """

    def __init__(
        self,
        store: GameStore,
        grid: HexGrid,
        classifier: ZoneClassifier,
        coast_buffer: CoastalBuffer,
        settings: Optional[GameSettings] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.grid = grid
        self.classifier = classifier
        self.coast_buffer = coast_buffer
        self.settings = settings or GameSettings()
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    # ═══════════════════════════════════════════════════════════════════
    # GPS PROOF
    # ═══════════════════════════════════════════════════════════════════
    def check_gps(self, cell: str, fix: Optional[GpsFix]) -> Optional[str]:
        """
        Validate a geolocation proof for `cell`.

        Returns:
            None when the proof is acceptable, else a GPS_* reason code
        """
        if fix is None or not all(
            _is_number(v) for v in (fix.lat, fix.lon, fix.accuracy_m, fix.timestamp_ms)
        ):
            return ClaimReason.GPS_REQUIRED

        if self._now_ms() - fix.timestamp_ms > self.settings.gps_max_age_ms:
            return ClaimReason.GPS_STALE

        if fix.accuracy_m > self.settings.gps_accuracy_threshold_m:
            return ClaimReason.GPS_ACCURACY_LOW

        try:
            gps_cell = self.grid.cell_at(fix.lat, fix.lon)
        except Exception as e:
            log.debug(f"GPS fix ({fix.lat}, {fix.lon}) does not map to a cell: {e}")
            return ClaimReason.GPS_REQUIRED

        if gps_cell != cell:
            return ClaimReason.GPS_MISMATCH
        return None

    def _gps_refusal(self, reason: str, user: UserAccount) -> ClaimOutcome:
        details = {"owned": False}
        if reason == ClaimReason.GPS_ACCURACY_LOW:
            details["threshold_m"] = self.settings.gps_accuracy_threshold_m
        return ClaimOutcome.refused(reason, user.balance, **details)

    # ═══════════════════════════════════════════════════════════════════
    # HELPERS (call with store.lock held)
    # ═══════════════════════════════════════════════════════════════════
    def _all_owned(self) -> Set[str]:
        owned: Set[str] = set()
        for user in self.store.users.values():
            owned.update(user.owned_cells)
        return owned

    def _claimable(self, cells: Iterable[str]) -> List[str]:
        """Cells nobody owns and that are outside the coastal buffer, order kept."""
        owned = self._all_owned()
        seen: Set[str] = set()
        result = []
        for cell in cells:
            if cell in seen or cell in owned or self.coast_buffer.contains(cell):
                continue
            seen.add(cell)
            result.append(cell)
        return result

    def _claim(self, user: UserAccount, cells: List[str]) -> None:
        now = self._now_ms()
        for cell in cells:
            user.owned_cells.add(cell)
            self.store.record_event(MiningEvent(timestamp_ms=now, user_id=user.id, cell=cell))

    def _persist(self, treasury: bool = False) -> None:
        self.store.save_events()
        self.store.save_users()
        if treasury:
            self.store.save_treasury()

    def _road_cells(self, cells: List[str]) -> List[str]:
        """Local-variant classification of each cell; keeps the road ones."""
        roads = []
        for cell in cells:
            try:
                result = self.classifier.classify_local(cell)
            except UpstreamUnavailable as e:
                log.warning(f"Skipping {cell} in drive mode, classification failed: {e}")
                continue
            if result.zone == ZoneType.MAIN_ROAD or result.road_present:
                roads.append(cell)
        return roads

    # ═══════════════════════════════════════════════════════════════════
    # MINE / SPAWN
    # ═══════════════════════════════════════════════════════════════════
    def mine(self, user_id: str, cell: str, fix: Optional[GpsFix]) -> ClaimOutcome:
        """Claim the cell the user is standing in for a fixed reward."""
        self.grid.validate(cell)
        with self.store.lock:
            user = self.store.get_user(user_id)

            reason = self.check_gps(cell, fix)
            if reason:
                return self._gps_refusal(reason, user)
            if cell in user.owned_cells:
                return ClaimOutcome.refused(ClaimReason.ALREADY_MINED, user.balance, owned=True)
            if self.store.owner_of(cell) is not None:
                return ClaimOutcome.refused(ClaimReason.ALREADY_OWNED_BY_OTHER, user.balance, owned=False)
            if self.coast_buffer.contains(cell):
                return ClaimOutcome.refused(
                    ClaimReason.FORBIDDEN_ZONE, user.balance,
                    owned=False, zone=ZoneType.COAST.value,
                )

            self._claim(user, [cell])
            user.balance += self.settings.mine_reward
            self._persist()
            log.info(f"{user.id} mined {cell}, balance now {user.balance}")
            return ClaimOutcome(ok=True, balance=user.balance, claimed_cells=[cell], details={"owned": True})

    def spawn(self, user_id: str, cell: str, fix: Optional[GpsFix]) -> ClaimOutcome:
        """
        Pay spawn_cost to claim a cell anywhere, opening a disconnected area.

        Same GPS and ownership checks as mine(); the cost goes to the treasury
        and no reward is paid.
        """
        self.grid.validate(cell)
        with self.store.lock:
            user = self.store.get_user(user_id)

            reason = self.check_gps(cell, fix)
            if reason:
                return self._gps_refusal(reason, user)
            if cell in user.owned_cells:
                return ClaimOutcome.refused(ClaimReason.ALREADY_OWNED, user.balance, owned=True)
            if self.store.owner_of(cell) is not None:
                return ClaimOutcome.refused(ClaimReason.ALREADY_OWNED_BY_OTHER, user.balance, owned=False)
            if self.coast_buffer.contains(cell):
                return ClaimOutcome.refused(
                    ClaimReason.FORBIDDEN_ZONE, user.balance,
                    owned=False, zone=ZoneType.COAST.value,
                )
            if user.balance < self.settings.spawn_cost:
                return ClaimOutcome.refused(ClaimReason.INSUFFICIENT_GHX, user.balance, owned=False)

            user.balance -= self.settings.spawn_cost
            self.store.credit_treasury(self.settings.spawn_cost)
            self._claim(user, [cell])
            self._persist(treasury=True)
            log.info(f"{user.id} spawned at {cell} for {self.settings.spawn_cost} GHX")
            return ClaimOutcome(
                ok=True,
                balance=user.balance,
                claimed_cells=[cell],
                details={"owned": True, "spawn_cost": self.settings.spawn_cost},
            )

    # ═══════════════════════════════════════════════════════════════════
    # DRIVE MODE
    # ═══════════════════════════════════════════════════════════════════
    def drive_simulate(self, user_id: str, center: str) -> ClaimOutcome:
        """
        Pay drive_cost once and claim every unowned road cell within
        drive_disk_radius rings of `center`, earning mine_reward per cell.
        """
        self.grid.validate(center)
        cost = self.settings.drive_cost

        with self.store.lock:
            user = self.store.get_user(user_id)
            if user.balance < cost:
                return ClaimOutcome.refused(ClaimReason.INSUFFICIENT_GHX, user.balance)
            candidates = self._claimable(self.grid.disk(center, self.settings.drive_disk_radius))

        roads = self._road_cells(candidates)

        with self.store.lock:
            user = self.store.get_user(user_id)
            if user.balance < cost:
                return ClaimOutcome.refused(ClaimReason.INSUFFICIENT_GHX, user.balance)
            claimed = self._claimable(roads)
            if not claimed:
                return ClaimOutcome.refused(ClaimReason.NO_ROAD_HEXES, user.balance)

            user.balance -= cost
            self.store.credit_treasury(cost)
            self._claim(user, claimed)
            user.balance += self.settings.mine_reward * len(claimed)
            self._persist(treasury=True)
            log.info(f"{user.id} drive simulation at {center}: {len(claimed)} cells, balance {user.balance}")
            return ClaimOutcome(
                ok=True,
                balance=user.balance,
                claimed_cells=claimed,
                details={
                    "added_cells": len(claimed),
                    "cost": cost,
                    "new_balance": user.balance,
                },
            )

    def drive_step(self, user_id: str, from_cell: str, to_cell: str) -> ClaimOutcome:
        """
        Claim the road cells on the grid path from `from_cell` to `to_cell`.

        When no path cell reads as a road, the destination alone is claimed if
        it is still free (sparsely tagged rural roads). Reward is mine_reward
        per cell minus a floored drive_step_fee_rate fee paid to the treasury.
        """
        self.grid.validate(from_cell)
        self.grid.validate(to_cell)

        with self.store.lock:
            user = self.store.get_user(user_id)
            if from_cell == to_cell:
                return ClaimOutcome.refused(ClaimReason.SAME_HEX, user.balance)
            candidates = self._claimable(self.grid.path(from_cell, to_cell))

        roads = self._road_cells(candidates)

        with self.store.lock:
            user = self.store.get_user(user_id)
            claimed = self._claimable(roads)
            if not claimed:
                claimed = self._claimable([to_cell])
            if not claimed:
                return ClaimOutcome.refused(ClaimReason.NO_ROAD_HEXES, user.balance)

            count = len(claimed)
            gross = self.settings.mine_reward * count
            fee = math.floor(round(self.settings.drive_step_fee_rate * count, 9))
            net = gross - fee

            user.balance += net
            self.store.credit_treasury(fee)
            self._claim(user, claimed)
            self._persist(treasury=fee > 0)
            log.info(f"{user.id} drive step {from_cell} -> {to_cell}: {count} cells, fee {fee}")
            return ClaimOutcome(
                ok=True,
                balance=user.balance,
                claimed_cells=claimed,
                details={
                    "count": count,
                    "gross_reward": gross,
                    "fee": fee,
                    "net_delta": net,
                    "new_balance": user.balance,
                },
            )

    # ═══════════════════════════════════════════════════════════════════
    # FEES
    # ═══════════════════════════════════════════════════════════════════
    def charge_fee(self, user_id: str, fee, hex_count, is_upfront: bool = False) -> ClaimOutcome:
        """
        Debit a client-computed auto-mine fee and credit it to the treasury.

        Raises:
            ValidationError: INVALID_FEE or INVALID_HEX_COUNT for negative or
                non-numeric values
        """
        if not _is_number(fee) or fee < 0:
            raise ValidationError("INVALID_FEE")
        if not _is_number(hex_count) or hex_count < 0:
            raise ValidationError("INVALID_HEX_COUNT")

        with self.store.lock:
            user = self.store.get_user(user_id)
            if user.balance < fee:
                return ClaimOutcome.refused(ClaimReason.INSUFFICIENT_GHX, user.balance, required_fee=fee)

            user.balance -= fee
            self.store.credit_treasury(fee)
            self.store.save_users()
            self.store.save_treasury()
            log.info(f"{user.id} paid auto-mine fee {fee} for {hex_count} cells")
            return ClaimOutcome(
                ok=True,
                balance=user.balance,
                details={
                    "new_balance": user.balance,
                    "fee": fee,
                    "hex_count": hex_count,
                    "is_upfront": bool(is_upfront),
                },
            )
