"""
Mining statistics: claimed cells per UTC day.
"""

from typing import Dict, Iterable

import pandas as pd

from core.models import MiningEvent


def mined_per_day(events: Iterable[MiningEvent]) -> Dict:
    """
    Bucket mining events by UTC day.

    Returns:
        {"points": [{"day": "YYYY-MM-DD", "daily": n, "cumulative": m}, ...],
         "total": m}
    """
    timestamps = [e.timestamp_ms for e in events]
    if not timestamps:
        return {"points": [], "total": 0}

    days = pd.to_datetime(pd.Series(timestamps), unit="ms", utc=True).dt.strftime("%Y-%m-%d")
    daily = days.value_counts().sort_index()
    cumulative = daily.cumsum()

    points = [
        {"day": day, "daily": int(daily[day]), "cumulative": int(cumulative[day])}
        for day in daily.index
    ]
    return {"points": points, "total": int(cumulative.iloc[-1])}
