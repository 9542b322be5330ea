import pytest

from core.models import (
    ClassificationResult,
    ClaimOutcome,
    ClaimReason,
    MiningEvent,
    UserAccount,
    ZoneType,
)


def test_zone_type_is_closed_set():
    assert {z.value for z in ZoneType} == {
        "SEA", "MAIN_ROAD", "URBAN", "INTERURBAN", "MILITARY", "HOSPITAL",
        "CLIFF", "COAST", "NATURE_RESERVE", "RIVER", "PRISON", "GOVERNMENT",
    }
    with pytest.raises(ValueError):
        ZoneType("VOLCANO")


def test_classification_with_zone_copies():
    """Verify with_zone leaves the original untouched."""
    base = ClassificationResult(zone=ZoneType.URBAN, evidence=["a"], road_present=True)
    widened = base.with_zone(ZoneType.COAST, "b")
    assert widened.zone == ZoneType.COAST
    assert widened.evidence == ["a", "b"]
    assert widened.road_present is True
    assert base.evidence == ["a"]


def test_classification_dict_shape():
    result = ClassificationResult(zone=ZoneType.MAIN_ROAD, evidence=["x"], road_present=True, road_class="trunk")
    assert result.to_dict() == {
        "category": "MAIN_ROAD",
        "evidence": ["x"],
        "road_present": True,
        "road_class": "trunk",
    }
    assert ClassificationResult.from_dict(result.to_dict()) == result


def test_user_account_defaults():
    user = UserAccount(id="u", email="u@x.io", password_hash="h")
    assert user.balance == 0
    assert user.usdt_balance == 1000.0
    assert user.owned_cells == set()
    assert user.summary() == {"id": "u", "email": "u@x.io", "balance": 0, "owned_count": 0}


def test_user_account_sorts_cells_on_save():
    user = UserAccount(id="u", email="u@x.io", password_hash="h", owned_cells={"b", "a"})
    assert user.to_dict()["owned_cells"] == ["a", "b"]
    assert UserAccount.from_dict(user.to_dict()) == user


def test_mining_event_defaults_user():
    event = MiningEvent.from_dict({"timestamp_ms": "12", "cell": "c"})
    assert event == MiningEvent(timestamp_ms=12, user_id="demo-user", cell="c")


def test_claim_outcome_refused():
    outcome = ClaimOutcome.refused(ClaimReason.GPS_STALE, 4, owned=False)
    assert not outcome.ok
    assert outcome.reason == "GPS_STALE"
    assert outcome.balance == 4
    assert outcome.details == {"owned": False}
    assert outcome.claimed_cells == []
