"""
Runtime settings for the hex mining backend.

Environment variables (a local .env file is honoured):
    HEXMINER_DATA_DIR            Directory holding the JSON documents (./data)
    PORT                         HTTP listen port (4000)
    JWT_SECRET / HEXMINER_SECRET Shared secret for session tokens
    HEXMINER_OVERPASS_ENDPOINTS  Comma separated interpreter URLs
    HEXMINER_OVERPASS_TIMEOUT    Per-request timeout in seconds (10)
    HEXMINER_LOG_LEVEL           Logging level name (INFO)
"""

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

from loaders.overpass import DEFAULT_ENDPOINTS


@dataclass
class GameSettings:
    """
    All tunables in one place. Every value has an explicit meaning.
    """

    data_dir: str = "data"
    """Directory for users.json, hexCache.json, coastBuffer.json, etc."""

    port: int = 4000
    secret: str = "dev-secret-change-me"
    log_level: str = "INFO"

    # Overpass
    overpass_endpoints: List[str] = field(default_factory=lambda: list(DEFAULT_ENDPOINTS))
    overpass_timeout: int = 10
    overpass_max_attempts: int = 4
    overpass_backoff_seconds: float = 0.4
    """Base delay; doubles after every failed attempt."""

    # Economy
    mine_reward: int = 1
    spawn_cost: int = 5
    drive_cost: int = 5
    drive_disk_radius: int = 3
    """Rings around the centre cell considered by a Drive Mode simulation."""
    drive_step_fee_rate: float = 0.1
    """Fraction of claimed cells charged per drive step, floored, no minimum."""
    starting_balance: int = 100
    starting_usdt: float = 1000.0

    # GPS proof
    gps_max_age_ms: int = 15_000
    gps_accuracy_threshold_m: float = 35.0

    # Accounts
    token_max_age_seconds: int = 30 * 24 * 60 * 60

    @classmethod
    def from_env(cls) -> "GameSettings":
        load_dotenv()
        settings = cls()
        settings.data_dir = os.path.abspath(os.getenv("HEXMINER_DATA_DIR", settings.data_dir))
        settings.port = int(os.getenv("PORT", settings.port))
        settings.secret = os.getenv("JWT_SECRET") or os.getenv("HEXMINER_SECRET") or settings.secret
        settings.log_level = os.getenv("HEXMINER_LOG_LEVEL", settings.log_level).upper()
        endpoints = os.getenv("HEXMINER_OVERPASS_ENDPOINTS")
        if endpoints:
            settings.overpass_endpoints = [e.strip() for e in endpoints.split(",") if e.strip()]
        settings.overpass_timeout = int(os.getenv("HEXMINER_OVERPASS_TIMEOUT", settings.overpass_timeout))
        return settings
