from core.models import MiningEvent
from core.stats import mined_per_day

DAY_MS = 24 * 60 * 60 * 1000
# 2023-11-14T00:00:00Z
MIDNIGHT = 1_699_920_000_000


def _event(ts):
    return MiningEvent(timestamp_ms=ts, user_id="alice", cell="c")


def test_no_events():
    assert mined_per_day([]) == {"points": [], "total": 0}


def test_daily_and_cumulative_counts():
    events = [
        _event(MIDNIGHT + 1),
        _event(MIDNIGHT + DAY_MS - 1),
        _event(MIDNIGHT + DAY_MS),
        _event(MIDNIGHT + 3 * DAY_MS + 5),
    ]

    stats = mined_per_day(events)

    assert stats["total"] == 4
    assert stats["points"] == [
        {"day": "2023-11-14", "daily": 2, "cumulative": 2},
        {"day": "2023-11-15", "daily": 1, "cumulative": 3},
        {"day": "2023-11-17", "daily": 1, "cumulative": 4},
    ]


def test_unordered_events():
    stats = mined_per_day([_event(MIDNIGHT + DAY_MS), _event(MIDNIGHT)])
    assert [p["day"] for p in stats["points"]] == ["2023-11-14", "2023-11-15"]
