"""
HTTP layer for the hex mining backend.

`create_app()` wires the explicit store / service objects once and hangs them
on `app.extensions["hexminer"]`; blueprints reach them through `services()`.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from flask import Flask, current_app, jsonify

from core.accounts import AccountService
from core.cache import ClassificationCache
from core.classifier import ZoneClassifier
from core.coast_buffer import CoastalBuffer
from core.config import GameSettings
from core.errors import UnknownUser, ValidationError
from core.grid import HexGrid
from core.mining import MiningEngine
from core.store import GameStore
from loaders.overpass import FeatureQueryService, build_overpass_service

log = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler may touch."""
    settings: GameSettings
    store: GameStore
    grid: HexGrid
    cache: ClassificationCache
    coast_buffer: CoastalBuffer
    classifier: ZoneClassifier
    mining: MiningEngine
    accounts: AccountService


def services() -> Services:
    return current_app.extensions["hexminer"]


def camel_keys(data: dict) -> dict:
    """snake_case keys to the camelCase the game client expects."""
    out = {}
    for key, value in data.items():
        head, *rest = key.split("_")
        out[head + "".join(part.title() for part in rest)] = value
    return out


def build_services(
    settings: GameSettings,
    query_service: Optional[FeatureQueryService] = None,
    clock=None,
) -> Services:
    """Load persisted state from settings.data_dir and wire the engines."""
    if query_service is None:
        query_service = build_overpass_service(
            settings.overpass_endpoints,
            timeout=settings.overpass_timeout,
            max_attempts=settings.overpass_max_attempts,
            backoff_seconds=settings.overpass_backoff_seconds,
        )

    store = GameStore.open(settings.data_dir)
    grid = HexGrid()
    cache = ClassificationCache(settings.data_dir)
    coast_buffer = CoastalBuffer(settings.data_dir, grid, cache)
    classifier = ZoneClassifier(grid, query_service, cache, coast_buffer)

    engine_kwargs = {"clock": clock} if clock is not None else {}
    mining = MiningEngine(store, grid, classifier, coast_buffer, settings, **engine_kwargs)
    accounts = AccountService(store, settings)

    return Services(
        settings=settings,
        store=store,
        grid=grid,
        cache=cache,
        coast_buffer=coast_buffer,
        classifier=classifier,
        mining=mining,
        accounts=accounts,
    )


def create_app(
    settings: Optional[GameSettings] = None,
    query_service: Optional[FeatureQueryService] = None,
    clock=None,
) -> Flask:
    """
    Application factory.

    Args:
        settings: Defaults to GameSettings.from_env()
        query_service: Overpass access; defaults to the retrying multi-endpoint
            service built from settings
        clock: Seconds-since-epoch callable used for GPS freshness and events
    """
    settings = settings or GameSettings.from_env()

    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.secret
    app.extensions["hexminer"] = build_services(settings, query_service, clock)

    from api.auth_routes import bp_auth
    from api.hex_routes import bp_hex
    from api.mining_routes import bp_mining

    app.register_blueprint(bp_auth)
    app.register_blueprint(bp_hex)
    app.register_blueprint(bp_mining)

    @app.errorhandler(ValidationError)
    def _validation_error(e: ValidationError):
        return jsonify({"ok": False, "error": e.code}), 400

    @app.errorhandler(UnknownUser)
    def _unknown_user(e: UnknownUser):
        log.debug(f"Rejected request: {e}")
        return jsonify({"ok": False, "error": "UNAUTHENTICATED"}), 401

    @app.get("/")
    def index():
        return jsonify({"ok": True, "service": "hexminer"})

    log.info(f"API ready, data in {settings.data_dir}")
    return app
