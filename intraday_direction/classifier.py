"""
Sticky intraday direction classifier.

Breakout counters confirm EMA alignment: a direction is only adopted when
the stack is aligned AND at least two consecutive breakouts agree. Once
adopted it holds until the opposite direction is confirmed or the session
resets.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict

from intraday_direction.indicators import MovingAverages
from intraday_direction.models import Direction
from intraday_direction.swings import SwingBreakout


CONFIRMING_BREAKOUTS = 2


@dataclass(frozen=True)
class DirectionState:
    direction: Direction = Direction.NEUTRAL
    higher_highs: int = 0
    lower_lows: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.value,
            "higher_highs": self.higher_highs,
            "lower_lows": self.lower_lows,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DirectionState":
        return cls(
            direction=Direction(data["direction"]),
            higher_highs=int(data["higher_highs"]),
            lower_lows=int(data["lower_lows"]),
        )


@dataclass(frozen=True)
class Classification:
    """Result of one classifier step."""
    state: DirectionState
    up_trend: bool
    down_trend: bool


def classify(
    state: DirectionState,
    breakout: SwingBreakout,
    averages: MovingAverages,
    close: float,
) -> Classification:
    """Advance ``state`` by one bar. Pure function."""
    if breakout.higher_high:
        state = replace(state, higher_highs=state.higher_highs + 1, lower_lows=0)
    elif breakout.lower_low:
        state = replace(state, lower_lows=state.lower_lows + 1, higher_highs=0)

    up_trend = averages.up_trend(close)
    down_trend = averages.down_trend(close)

    if up_trend and state.higher_highs >= CONFIRMING_BREAKOUTS:
        state = replace(state, direction=Direction.UP)
    elif down_trend and state.lower_lows >= CONFIRMING_BREAKOUTS:
        state = replace(state, direction=Direction.DOWN)

    return Classification(state=state, up_trend=up_trend, down_trend=down_trend)


class DirectionClassifier:
    """Owns the session's DirectionState and advances it once per bar."""

    def __init__(self, state: DirectionState | None = None):
        self.state = state or DirectionState()

    def update(self, breakout: SwingBreakout, averages: MovingAverages, close: float) -> Classification:
        result = classify(self.state, breakout, averages, close)
        self.state = result.state
        return result

    def reset(self) -> None:
        self.state = DirectionState()
