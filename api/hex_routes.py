"""
Cell classification endpoints.

`/api/hex/<cell>` is what the map renders: cache first, classified and cached
on a miss, widened by nearby coastline. The `classify*` routes always hit the
upstream (falling back on failure) and are mostly useful for debugging tags.
"""

from flask import Blueprint, g, jsonify

from api import camel_keys, services
from api.auth_routes import login_required
from core.models import ClassificationResult

bp_hex = Blueprint("hex", __name__, url_prefix="/api/hex")


def _classification_json(cell: str, result: ClassificationResult) -> dict:
    payload = {"cell": cell, **camel_keys(result.to_dict())}
    if result.from_fallback:
        payload["fallback"] = True
    return payload


@bp_hex.get("/<cell>")
def get_hex(cell):
    svc = services()
    svc.grid.validate(cell)
    result = svc.classifier.lookup(cell)
    return jsonify({"cell": cell, "category": result.zone.value, "evidence": result.evidence})


@bp_hex.get("/<cell>/classify")
def classify_area(cell):
    svc = services()
    svc.grid.validate(cell)
    result = svc.classifier.classify_area_or_fallback(cell)
    if not result.from_fallback:
        result = svc.coast_buffer.widen_for_display(cell, result)
    return jsonify(_classification_json(cell, result))


@bp_hex.get("/<cell>/classify-local")
def classify_local(cell):
    svc = services()
    svc.grid.validate(cell)
    result = svc.classifier.classify_local_or_fallback(cell)
    return jsonify(_classification_json(cell, result))


@bp_hex.get("/<cell>/owned")
@login_required
def owned(cell):
    svc = services()
    svc.grid.validate(cell)
    with svc.store.lock:
        is_owned = cell in g.user.owned_cells
    return jsonify({"cell": cell, "owned": is_owned})
