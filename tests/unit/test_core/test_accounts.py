import pytest
from unittest.mock import patch

from core.accounts import AccountService
from core.config import GameSettings
from core.errors import UnknownUser, ValidationError


@pytest.fixture
def accounts(store, settings):
    return AccountService(store, settings)


def test_register_grants_starting_balances(accounts, store):
    user = accounts.register("Alice@Example.com", "hunter22")

    assert user.email == "alice@example.com"
    assert user.balance == 100
    assert user.usdt_balance == 1000.0
    assert user.owned_cells == set()
    assert user.password_hash != "hunter22"
    assert store.get_user(user.id) is user


@pytest.mark.parametrize("email,password,code", [
    ("no-at-sign", "hunter22", "INVALID_EMAIL"),
    (None, "hunter22", "INVALID_EMAIL"),
    ("a@x.io", "short", "INVALID_PASSWORD"),
    ("a@x.io", None, "INVALID_PASSWORD"),
])
def test_register_validation(accounts, email, password, code):
    with pytest.raises(ValidationError) as exc:
        accounts.register(email, password)
    assert exc.value.code == code


def test_register_duplicate_email(accounts):
    accounts.register("a@x.io", "hunter22")
    with pytest.raises(ValidationError) as exc:
        accounts.register("A@X.IO", "different1")
    assert exc.value.code == "EMAIL_IN_USE"


def test_login(accounts):
    user = accounts.register("a@x.io", "hunter22")
    assert accounts.login("a@x.io", "hunter22") is user

    with pytest.raises(ValidationError) as exc:
        accounts.login("a@x.io", "wrong-password")
    assert exc.value.code == "INVALID_CREDENTIALS"

    with pytest.raises(ValidationError):
        accounts.login("nobody@x.io", "hunter22")


def test_token_round_trip(accounts):
    user = accounts.register("a@x.io", "hunter22")
    token = accounts.issue_token(user)
    assert accounts.verify_token(token) is user


def test_tampered_token_rejected(accounts):
    token = accounts.issue_token(accounts.register("a@x.io", "hunter22"))
    with pytest.raises(UnknownUser):
        accounts.verify_token(token[:-2] + "xx")


def test_token_from_other_secret_rejected(accounts, store):
    user = accounts.register("a@x.io", "hunter22")
    other = AccountService(store, GameSettings(secret="another-secret"))
    with pytest.raises(UnknownUser):
        accounts.verify_token(other.issue_token(user))


def test_expired_token_rejected(store):
    accounts = AccountService(store, GameSettings(token_max_age_seconds=-1))
    token = accounts.issue_token(accounts.register("a@x.io", "hunter22"))
    with pytest.raises(UnknownUser):
        accounts.verify_token(token)


def test_token_for_deleted_user(accounts, store):
    user = accounts.register("a@x.io", "hunter22")
    token = accounts.issue_token(user)
    del store.users[user.id]
    with pytest.raises(UnknownUser):
        accounts.verify_token(token)


def test_login_holds_store_lock(accounts, store):
    accounts.register("a@x.io", "hunter22")
    with patch.object(store, "lock") as lock:
        accounts.login("a@x.io", "hunter22")
    lock.__enter__.assert_called()
