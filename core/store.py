"""
Game Store: JSON-document persistence for users, mining events and treasury.

Each concern lives in its own JSON file inside the data directory. A missing
file means "empty". Write failures are logged and swallowed: in-memory state
stays authoritative and the next successful save catches the file up.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from core.errors import UnknownUser
from core.models import MiningEvent, UserAccount

log = logging.getLogger(__name__)

USERS_FILE = "users.json"
MINING_EVENTS_FILE = "miningEvents.json"
TREASURY_FILE = "treasury.json"


class JsonDocument:
    """One JSON file with load-or-default and atomic best-effort save."""

    def __init__(self, path: Path, default: Callable[[], Any]):
        self.path = Path(path)
        self._default = default

    def load(self) -> Any:
        if not self.path.exists():
            return self._default()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            log.error(f"Could not read {self.path}, starting empty: {e}")
            return self._default()

    def save(self, data: Any) -> bool:
        """
        Write the document via a temp file + rename.

        Returns:
            True on success, False if the write failed (already logged)
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
            return True
        except (OSError, TypeError, ValueError) as e:
            log.error(f"Failed to persist {self.path}: {e}")
            return False


class GameStore:
    """
    In-memory users / events / treasury backed by JSON documents.

    Lifecycle: `GameStore.open(data_dir)` loads the durable snapshot, callers
    mutate state while holding `lock`, then call the matching `save_*`.
    The lock is the single writer lock for ownership and balances.
    """

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self.lock = threading.RLock()

        self._users_doc = JsonDocument(self.data_dir / USERS_FILE, lambda: {"users": []})
        self._events_doc = JsonDocument(self.data_dir / MINING_EVENTS_FILE, list)
        self._treasury_doc = JsonDocument(self.data_dir / TREASURY_FILE, lambda: {"ghx_balance": 0})

        self.users: Dict[str, UserAccount] = {}
        self.events: List[MiningEvent] = []
        self.treasury_balance: int = 0

    @classmethod
    def open(cls, data_dir: str) -> "GameStore":
        store = cls(data_dir)
        store.load()
        return store

    def load(self) -> None:
        with self.lock:
            raw_users = self._users_doc.load()
            self.users = {}
            for entry in raw_users.get("users", []) if isinstance(raw_users, dict) else []:
                try:
                    user = UserAccount.from_dict(entry)
                except (KeyError, TypeError) as e:
                    log.warning(f"Skipping malformed user record: {e}")
                    continue
                self.users[user.id] = user

            self.events = []
            raw_events = self._events_doc.load()
            for entry in raw_events if isinstance(raw_events, list) else []:
                try:
                    self.events.append(MiningEvent.from_dict(entry))
                except (KeyError, TypeError, ValueError):
                    continue

            raw_treasury = self._treasury_doc.load()
            balance = raw_treasury.get("ghx_balance") if isinstance(raw_treasury, dict) else 0
            self.treasury_balance = balance if isinstance(balance, (int, float)) else 0

        log.info(
            f"GameStore loaded from {self.data_dir}: {len(self.users)} users, "
            f"{len(self.events)} mining events, treasury={self.treasury_balance}"
        )

    # ───────────────────────────────────────────────────────────────────
    # Users
    # ───────────────────────────────────────────────────────────────────
    def get_user(self, user_id: str) -> UserAccount:
        user = self.users.get(user_id)
        if user is None:
            raise UnknownUser(user_id)
        return user

    def find_user_by_email(self, email: str) -> Optional[UserAccount]:
        wanted = email.strip().lower()
        for user in self.users.values():
            if user.email.lower() == wanted:
                return user
        return None

    def add_user(self, user: UserAccount) -> None:
        with self.lock:
            self.users[user.id] = user
            self.save_users()

    def owner_of(self, cell: str) -> Optional[str]:
        """Global ownership index lookup, derived from every owned set."""
        for user in self.users.values():
            if cell in user.owned_cells:
                return user.id
        return None

    def cells_owned_by_others(self, user_id: str) -> set:
        others = set()
        for user in self.users.values():
            if user.id != user_id:
                others.update(user.owned_cells)
        return others

    # ───────────────────────────────────────────────────────────────────
    # Events / treasury
    # ───────────────────────────────────────────────────────────────────
    def record_event(self, event: MiningEvent) -> None:
        self.events.append(event)

    def credit_treasury(self, amount: int) -> None:
        if amount > 0:
            self.treasury_balance += amount

    # ───────────────────────────────────────────────────────────────────
    # Persistence
    # ───────────────────────────────────────────────────────────────────
    def save_users(self) -> bool:
        with self.lock:
            data = {"users": [u.to_dict() for u in self.users.values()]}
        return self._users_doc.save(data)

    def save_events(self) -> bool:
        with self.lock:
            data = [e.to_dict() for e in self.events]
        return self._events_doc.save(data)

    def save_treasury(self) -> bool:
        with self.lock:
            data = {"ghx_balance": self.treasury_balance}
        return self._treasury_doc.save(data)

    def save_all(self) -> bool:
        results = [self.save_users(), self.save_events(), self.save_treasury()]
        return all(results)
