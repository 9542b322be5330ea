"""
Account endpoints and bearer-token authentication.

Clients send `Authorization: Bearer <token>`; `login_required` resolves it to
the caller's UserAccount in `g.user`.
"""

from functools import wraps

from flask import Blueprint, g, jsonify, request

from api import services
from core.errors import UnknownUser

bp_auth = Blueprint("auth", __name__, url_prefix="/api")


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise UnknownUser("missing bearer token")
        g.user = services().accounts.verify_token(token.strip())
        return view(*args, **kwargs)

    return wrapped


def _session_payload(user):
    return {
        "ok": True,
        "token": services().accounts.issue_token(user),
        "user": user.summary(),
    }


@bp_auth.post("/auth/register")
def register():
    body = request.get_json(silent=True) or {}
    user = services().accounts.register(body.get("email"), body.get("password"))
    return jsonify(_session_payload(user))


@bp_auth.post("/auth/login")
def login():
    body = request.get_json(silent=True) or {}
    user = services().accounts.login(body.get("email"), body.get("password"))
    return jsonify(_session_payload(user))


@bp_auth.get("/me")
@login_required
def me():
    with services().store.lock:
        user = g.user
        payload = user.summary()
        payload["usdt_balance"] = user.usdt_balance
        payload["owned_cells"] = sorted(user.owned_cells)
    return jsonify({"ok": True, "user": payload})
