"""
Momentum / volatility estimator.

Keeps a rolling window of bar-over-bar percent changes and derives:
    momentum   = mean(window)
    volatility = population std(window)
    strength   = momentum / volatility
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np

from intraday_direction.indicators import RollingWindow
from intraday_direction.models import TrendMetrics


DEFAULT_MOMENTUM_PERIOD = 20
EPSILON = 1e-10  # volatility at or below this counts as zero


def percent_change(previous_close: float, close: float) -> float:
    return (close - previous_close) / previous_close * 100.0


class MomentumEstimator:
    """Rolling mean/std of percent changes with a guarded strength ratio."""

    def __init__(self, period: int = DEFAULT_MOMENTUM_PERIOD):
        self.period = period
        self.window = RollingWindow(period)
        self.current: Optional[TrendMetrics] = None

    def update(self, pct_change: float) -> TrendMetrics:
        self.window.push(pct_change)
        changes = np.asarray(self.window.values(), dtype=np.float64)

        momentum = float(np.mean(changes))
        volatility = float(np.std(changes, ddof=0))
        strength = momentum / volatility if volatility > EPSILON else None

        self.current = TrendMetrics(momentum=momentum, volatility=volatility, strength=strength)
        return self.current

    def reset(self) -> None:
        self.window.clear()
        self.current = None

    def to_dict(self) -> Dict[str, Any]:
        return {"period": self.period, "window": self.window.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MomentumEstimator":
        estimator = cls(int(data["period"]))
        estimator.window = RollingWindow.from_dict(data["window"])
        return estimator
