"""Higher-high / lower-low breakout detection over a short window."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from intraday_direction.indicators import RollingWindow


TREND_BARS = 3


@dataclass(frozen=True)
class SwingBreakout:
    higher_high: bool
    lower_low: bool


class SwingTracker:
    """
    Rolling windows of the last ``TREND_BARS`` highs and lows.

    The new value is inserted first and then compared against the window
    contents that came before it, so a value never competes with itself.
    """

    def __init__(self, capacity: int = TREND_BARS):
        self.highs = RollingWindow(capacity)
        self.lows = RollingWindow(capacity)

    def update(self, high: float, low: float) -> SwingBreakout:
        self.highs.push(high)
        self.lows.push(low)

        if len(self.highs) < 2:
            return SwingBreakout(higher_high=False, lower_low=False)

        prior_highs = self.highs.values()[:-1]
        prior_lows = self.lows.values()[:-1]
        return SwingBreakout(
            higher_high=high > max(prior_highs),
            lower_low=low < min(prior_lows),
        )

    def reset(self) -> None:
        self.highs.clear()
        self.lows.clear()

    def to_dict(self) -> Dict[str, Any]:
        return {"highs": self.highs.to_dict(), "lows": self.lows.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SwingTracker":
        tracker = cls()
        tracker.highs = RollingWindow.from_dict(data["highs"])
        tracker.lows = RollingWindow.from_dict(data["lows"])
        return tracker
