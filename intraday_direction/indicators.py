"""
Incremental indicators over the closing-price series.

Each indicator advances one observation at a time and keeps only the
state it needs, so a strategy can be snapshotted and resumed between bars.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional


FAST_PERIOD = 5
MEDIUM_PERIOD = 13
SLOW_PERIOD = 30

NEUTRAL_OSCILLATOR = 50.0


class RollingWindow:
    """Bounded FIFO of the most recent values, oldest first."""

    def __init__(self, capacity: int, values: Optional[List[float]] = None):
        if capacity < 1:
            raise ValueError("RollingWindow capacity must be at least 1")
        self.capacity = capacity
        self._values: Deque[float] = deque(values or [], maxlen=capacity)

    def push(self, value: float) -> Optional[float]:
        """Append a value, returning the evicted one when over capacity."""
        evicted = self._values[0] if len(self._values) == self.capacity else None
        self._values.append(value)
        return evicted

    def values(self) -> List[float]:
        return list(self._values)

    def clear(self) -> None:
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self):
        return iter(self._values)

    def to_dict(self) -> Dict[str, Any]:
        return {"capacity": self.capacity, "values": list(self._values)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RollingWindow":
        return cls(int(data["capacity"]), [float(v) for v in data["values"]])


class ExponentialMovingAverage:
    """EMA seeded with the first observation, alpha = 2 / (period + 1)."""

    def __init__(self, period: int):
        self.period = period
        self.alpha = 2.0 / (period + 1)
        self.value: Optional[float] = None
        self.count = 0

    def update(self, price: float) -> float:
        if self.value is None:
            self.value = price
        else:
            self.value = self.alpha * price + (1.0 - self.alpha) * self.value
        self.count += 1
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        return {"period": self.period, "value": self.value, "count": self.count}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExponentialMovingAverage":
        ema = cls(int(data["period"]))
        ema.value = data["value"]
        ema.count = int(data["count"])
        return ema


class SmoothedRSI:
    """
    Relative Strength Index (Wilder 1978) with an EMA smoothing line.

    RSI = 100 - 100 / (1 + avg_gain / avg_loss)

    The first averages are the simple means of the first ``period``
    gains/losses; afterwards Wilder's recurrence is used. The published
    value is the EMA(``smooth``) of the raw RSI and reads 50 until the
    first RSI exists.
    """

    def __init__(self, period: int = 14, smooth: int = 3):
        self.period = period
        self.smooth = smooth
        self._k = 2.0 / (1 + smooth)
        self._prev_close: Optional[float] = None
        self._changes = 0
        self._gain_sum = 0.0
        self._loss_sum = 0.0
        self._avg_gain: Optional[float] = None
        self._avg_loss: Optional[float] = None
        self.raw: Optional[float] = None
        self._smoothed: Optional[float] = None

    @property
    def value(self) -> float:
        return NEUTRAL_OSCILLATOR if self._smoothed is None else self._smoothed

    @property
    def is_ready(self) -> bool:
        return self._avg_gain is not None

    def update(self, close: float) -> float:
        if self._prev_close is None:
            self._prev_close = close
            return self.value

        change = close - self._prev_close
        self._prev_close = close
        gain = max(change, 0.0)
        loss = max(-change, 0.0)
        self._changes += 1

        if self._avg_gain is None or self._avg_loss is None:
            self._gain_sum += gain
            self._loss_sum += loss
            if self._changes < self.period:
                return self.value
            self._avg_gain = self._gain_sum / self.period
            self._avg_loss = self._loss_sum / self.period
        else:
            self._avg_gain = (self._avg_gain * (self.period - 1) + gain) / self.period
            self._avg_loss = (self._avg_loss * (self.period - 1) + loss) / self.period

        self.raw = _rsi(self._avg_gain, self._avg_loss)
        if self._smoothed is None:
            self._smoothed = self.raw
        else:
            self._smoothed = self._k * self.raw + (1.0 - self._k) * self._smoothed
        return self._smoothed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "smooth": self.smooth,
            "prev_close": self._prev_close,
            "changes": self._changes,
            "gain_sum": self._gain_sum,
            "loss_sum": self._loss_sum,
            "avg_gain": self._avg_gain,
            "avg_loss": self._avg_loss,
            "raw": self.raw,
            "smoothed": self._smoothed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SmoothedRSI":
        rsi = cls(int(data["period"]), int(data["smooth"]))
        rsi._prev_close = data["prev_close"]
        rsi._changes = int(data["changes"])
        rsi._gain_sum = float(data["gain_sum"])
        rsi._loss_sum = float(data["loss_sum"])
        rsi._avg_gain = data["avg_gain"]
        rsi._avg_loss = data["avg_loss"]
        rsi.raw = data["raw"]
        rsi._smoothed = data["smoothed"]
        return rsi


def _rsi(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        # Flat window reads neutral, a window without losses reads 100.
        return NEUTRAL_OSCILLATOR if avg_gain == 0 else 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


@dataclass(frozen=True)
class MovingAverages:
    """One bar's reading of the moving-average stack."""
    fast: float
    medium: float
    slow: float
    oscillator: float

    def up_trend(self, close: float) -> bool:
        return self.fast > self.medium and self.medium > self.slow and close > self.fast

    def down_trend(self, close: float) -> bool:
        return self.fast < self.medium and self.medium < self.slow and close < self.fast


class MovingAverageStack:
    """Fast/medium/slow EMAs plus the smoothed RSI, fed with closes."""

    def __init__(
        self,
        rsi_period: int = 14,
        rsi_smooth: int = 3,
        fast_period: int = FAST_PERIOD,
        medium_period: int = MEDIUM_PERIOD,
        slow_period: int = SLOW_PERIOD,
    ):
        if not fast_period < medium_period < slow_period:
            raise ValueError("EMA periods must satisfy fast < medium < slow")
        self.fast = ExponentialMovingAverage(fast_period)
        self.medium = ExponentialMovingAverage(medium_period)
        self.slow = ExponentialMovingAverage(slow_period)
        self.rsi = SmoothedRSI(rsi_period, rsi_smooth)
        self.count = 0
        self.current: Optional[MovingAverages] = None

    @property
    def warmup_period(self) -> int:
        return max(self.slow.period, self.rsi.period)

    @property
    def is_ready(self) -> bool:
        return self.count >= self.warmup_period

    def update(self, close: float) -> MovingAverages:
        self.count += 1
        self.current = MovingAverages(
            fast=self.fast.update(close),
            medium=self.medium.update(close),
            slow=self.slow.update(close),
            oscillator=self.rsi.update(close),
        )
        return self.current

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fast": self.fast.to_dict(),
            "medium": self.medium.to_dict(),
            "slow": self.slow.to_dict(),
            "rsi": self.rsi.to_dict(),
            "count": self.count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MovingAverageStack":
        rsi = SmoothedRSI.from_dict(data["rsi"])
        fast = ExponentialMovingAverage.from_dict(data["fast"])
        medium = ExponentialMovingAverage.from_dict(data["medium"])
        slow = ExponentialMovingAverage.from_dict(data["slow"])
        stack = cls(rsi.period, rsi.smooth, fast.period, medium.period, slow.period)
        stack.fast, stack.medium, stack.slow, stack.rsi = fast, medium, slow, rsi
        stack.count = int(data["count"])
        if fast.value is not None and medium.value is not None and slow.value is not None:
            stack.current = MovingAverages(fast.value, medium.value, slow.value, rsi.value)
        return stack
