import json
from unittest.mock import patch

from core.models import MiningEvent, UserAccount
from core.store import GameStore, JsonDocument, USERS_FILE, TREASURY_FILE
from conftest import START_CELL


def _user(user_id="alice", cells=()):
    return UserAccount(
        id=user_id,
        email=f"{user_id}@example.com",
        password_hash="h",
        balance=10,
        owned_cells=set(cells),
    )


def test_empty_directory_loads_empty(tmp_path):
    store = GameStore.open(str(tmp_path / "fresh"))
    assert store.users == {}
    assert store.events == []
    assert store.treasury_balance == 0


def test_round_trip(tmp_path):
    """Verify every document reloads into the same state."""
    store = GameStore.open(str(tmp_path))
    store.add_user(_user("alice", [START_CELL]))
    store.record_event(MiningEvent(timestamp_ms=1, user_id="alice", cell=START_CELL))
    store.credit_treasury(5)
    assert store.save_all()

    reloaded = GameStore.open(str(tmp_path))

    assert reloaded.get_user("alice").owned_cells == {START_CELL}
    assert reloaded.events == [MiningEvent(timestamp_ms=1, user_id="alice", cell=START_CELL)]
    assert reloaded.treasury_balance == 5

    with open(tmp_path / USERS_FILE) as f:
        assert json.load(f)["users"][0]["owned_cells"] == [START_CELL]
    with open(tmp_path / TREASURY_FILE) as f:
        assert json.load(f) == {"ghx_balance": 5}


def test_corrupt_document_starts_empty(tmp_path):
    (tmp_path / USERS_FILE).write_text("{not json")
    store = GameStore.open(str(tmp_path))
    assert store.users == {}


def test_malformed_user_records_skipped(tmp_path):
    (tmp_path / USERS_FILE).write_text(json.dumps({"users": [
        {"id": "alice", "email": "a@x.io", "password_hash": "h", "balance": "lots"},
        {"email": "missing-id@x.io"},
    ]}))
    store = GameStore.open(str(tmp_path))
    assert list(store.users) == ["alice"]
    assert store.users["alice"].balance == 0


def test_save_failure_is_swallowed(tmp_path):
    """In-memory state stays authoritative when the disk write fails."""
    store = GameStore.open(str(tmp_path))
    with patch("core.store.os.replace", side_effect=OSError("disk full")):
        store.add_user(_user())
        assert store.save_users() is False
    assert "alice" in store.users
    assert list(tmp_path.glob(".users.json.*")) == []


def test_owner_lookup(tmp_path):
    store = GameStore.open(str(tmp_path))
    store.add_user(_user("alice", [START_CELL]))
    store.add_user(_user("bob", ["8b3f4dc1e26cfff"]))
    assert store.owner_of(START_CELL) == "alice"
    assert store.owner_of("8b3f4dc1e2000ff") is None
    assert store.cells_owned_by_others("alice") == {"8b3f4dc1e26cfff"}


def test_find_user_by_email_ignores_case(tmp_path):
    store = GameStore.open(str(tmp_path))
    store.add_user(_user("alice"))
    assert store.find_user_by_email("  ALICE@example.com ").id == "alice"
    assert store.find_user_by_email("nobody@example.com") is None


def test_json_document_default_is_fresh(tmp_path):
    doc = JsonDocument(tmp_path / "x.json", list)
    first = doc.load()
    first.append(1)
    assert doc.load() == []
