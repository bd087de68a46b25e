"""Deterministic bar builders shared by the test modules."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List

from intraday_direction.models import Bar

SESSION_OPEN = datetime(2024, 3, 4, 9, 30)


def make_bar(timestamp: datetime, close: float, spread: float = 0.25) -> Bar:
    return Bar(timestamp=timestamp, open=close, high=close + spread, low=close - spread, close=close)


def trending_bars(
    num_bars: int,
    start_price: float = 100.0,
    step: float = 0.5,
    start_time: datetime = SESSION_OPEN,
    interval_minutes: int = 1,
) -> List[Bar]:
    """Straight-line price path: every bar makes a higher high (step > 0) or lower low (step < 0)."""
    return [
        make_bar(start_time + timedelta(minutes=i * interval_minutes), start_price + i * step)
        for i in range(num_bars)
    ]


def feed(strategy, bars: List[Bar], first_of_session: bool = True) -> list:
    """Process ``bars`` with the first one opening a session; returns the per-bar results."""
    results = []
    for i, bar in enumerate(bars):
        results.append(strategy.process_bar(bar, first_of_session=first_of_session and i == 0))
    return results
