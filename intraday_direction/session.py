"""
Session helpers.

The calendar itself is external: callers say which bar opens a session and
what time the session closes. These helpers only do the arithmetic.
"""

from __future__ import annotations

from datetime import datetime, time
from typing import Iterable, Iterator, Optional, Tuple

from intraday_direction.models import Bar


def minutes_to_close(timestamp: datetime, session_close: time) -> float:
    """Minutes from ``timestamp`` to ``session_close`` on the same date (negative once past)."""
    close_at = datetime.combine(timestamp.date(), session_close, tzinfo=timestamp.tzinfo)
    return (close_at - timestamp).total_seconds() / 60.0


def mark_sessions(bars: Iterable[Bar]) -> Iterator[Tuple[Bar, bool]]:
    """
    Pair each bar with a first-of-session flag, starting a new session on
    every calendar date change. For feeds that do not carry their own marker.
    """
    current_date: Optional[object] = None
    for bar in bars:
        day = bar.timestamp.date()
        first = day != current_date
        current_date = day
        yield bar, first
