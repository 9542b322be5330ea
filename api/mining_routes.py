"""
Claim endpoints (mine, spawn, drive mode), the auto-mine fee and ownership /
economy reads.

Refused claims are answered with HTTP 200 and `{"ok": false, "reason": ...}`;
only malformed input (400) and missing auth (401) are HTTP errors.
"""

from flask import Blueprint, g, jsonify, request

from api import camel_keys, services
from api.auth_routes import login_required
from core.models import ClaimOutcome, GpsFix
from core.stats import mined_per_day

bp_mining = Blueprint("mining", __name__, url_prefix="/api")


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _gps_fix(body: dict) -> GpsFix:
    return GpsFix(
        lat=body.get("lat"),
        lon=body.get("lon"),
        accuracy_m=body.get("accuracyMeters"),
        timestamp_ms=body.get("gpsTimestamp"),
    )


def _outcome_json(outcome: ClaimOutcome, include_cells: bool = False) -> dict:
    payload = {"ok": outcome.ok, "balance": outcome.balance}
    if outcome.reason:
        payload["reason"] = outcome.reason
    payload.update(camel_keys(outcome.details))
    if include_cells:
        payload["claimedCells"] = list(outcome.claimed_cells)
    return payload


# ═══════════════════════════════════════════════════════════════════════════
# CLAIMS
# ═══════════════════════════════════════════════════════════════════════════
@bp_mining.post("/mine")
@login_required
def mine():
    body = _json_body()
    outcome = services().mining.mine(g.user.id, body.get("cell"), _gps_fix(body))
    return jsonify(_outcome_json(outcome))


@bp_mining.post("/spawn")
@login_required
def spawn():
    body = _json_body()
    outcome = services().mining.spawn(g.user.id, body.get("cell"), _gps_fix(body))
    return jsonify(_outcome_json(outcome))


@bp_mining.post("/drive/simulate")
@login_required
def drive_simulate():
    body = _json_body()
    outcome = services().mining.drive_simulate(g.user.id, body.get("centerCell"))
    return jsonify(_outcome_json(outcome, include_cells=True))


@bp_mining.post("/drive/step")
@login_required
def drive_step():
    body = _json_body()
    outcome = services().mining.drive_step(g.user.id, body.get("fromCell"), body.get("toCell"))
    return jsonify(_outcome_json(outcome, include_cells=True))


@bp_mining.post("/auto-mine-fee")
@login_required
def auto_mine_fee():
    body = _json_body()
    outcome = services().mining.charge_fee(
        g.user.id, body.get("fee"), body.get("hexCount"), body.get("isUpfront", False)
    )
    return jsonify(_outcome_json(outcome))


# ═══════════════════════════════════════════════════════════════════════════
# READS
# ═══════════════════════════════════════════════════════════════════════════
@bp_mining.get("/owned-cells")
@login_required
def owned_cells():
    with services().store.lock:
        cells = sorted(g.user.owned_cells)
    return jsonify({"cells": cells})


@bp_mining.get("/owned-cells/global")
@login_required
def owned_cells_global():
    store = services().store
    with store.lock:
        mine_cells = sorted(g.user.owned_cells)
        others = sorted(store.cells_owned_by_others(g.user.id))
    return jsonify({"mine": mine_cells, "others": others})


@bp_mining.get("/treasury")
@login_required
def treasury():
    store = services().store
    with store.lock:
        balance = store.treasury_balance
    return jsonify({"ghx_balance": balance})


@bp_mining.get("/stats/mined")
def stats_mined():
    store = services().store
    with store.lock:
        events = list(store.events)
    return jsonify(mined_per_day(events))
