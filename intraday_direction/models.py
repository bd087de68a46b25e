"""
Core types for the intraday direction engine.

Bars come in from an external feed, signals go out to external execution
and charting collaborators. Everything in between is plain state.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class BarValidationError(ValueError):
    """Raised at the ingestion boundary for malformed bars."""


class Direction(Enum):
    """Prevailing intraday direction."""
    NEUTRAL = "NEUTRAL"
    UP = "UP"
    DOWN = "DOWN"


class PositionSide(Enum):
    """Single-position state held by the controller."""
    FLAT = "FLAT"
    LONG = "LONG"
    SHORT = "SHORT"


class SignalType(Enum):
    """Intent emitted to the execution side."""
    ENTER_LONG = "ENTER_LONG"
    ENTER_SHORT = "ENTER_SHORT"
    EXIT_LONG = "EXIT_LONG"
    EXIT_SHORT = "EXIT_SHORT"

    @property
    def is_entry(self) -> bool:
        return self in (SignalType.ENTER_LONG, SignalType.ENTER_SHORT)

    @property
    def is_exit(self) -> bool:
        return not self.is_entry


# Tags carried on emitted signals
TAG_LONG_ENTRY = "Long Entry"
TAG_SHORT_ENTRY = "Short Entry"
TAG_REVERSAL_EXIT = "Reversal Exit"
TAG_SESSION_CLOSE = "Session Close"


@dataclass(frozen=True)
class Bar:
    """A single OHLC bar."""
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bar":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            open=float(data["open"]),
            high=float(data["high"]),
            low=float(data["low"]),
            close=float(data["close"]),
        )


@dataclass(frozen=True)
class TrendMetrics:
    """
    Momentum/volatility summary of the recent percent changes.

    ``strength`` is None when volatility is zero (a flat run), in which
    case the metrics must not be used to gate anything.
    """
    momentum: float
    volatility: float
    strength: Optional[float]

    @property
    def is_actionable(self) -> bool:
        return self.strength is not None and self.volatility > 0


@dataclass(frozen=True)
class SignalEvent:
    """A discrete trading intent tied to the bar that produced it."""
    signal_type: SignalType
    timestamp: datetime
    price: float
    tag: str
    direction: Direction = Direction.NEUTRAL
    strength: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signal_type": self.signal_type.value,
            "timestamp": self.timestamp.isoformat(),
            "price": self.price,
            "tag": self.tag,
            "direction": self.direction.value,
            "strength": self.strength,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignalEvent":
        return cls(
            signal_type=SignalType(data["signal_type"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            price=float(data["price"]),
            tag=str(data["tag"]),
            direction=Direction(data.get("direction", Direction.NEUTRAL.value)),
            strength=data.get("strength"),
        )


def validate_bar(bar: Bar, previous: Optional[datetime] = None) -> Bar:
    """
    Check a bar before it reaches any rolling statistic.

    ``previous`` is the timestamp of the last accepted bar, if any; the new
    bar must be strictly later.
    """
    if not isinstance(bar.timestamp, datetime):
        raise BarValidationError(f"Bar timestamp must be a datetime, got {type(bar.timestamp).__name__}")

    for name in ("open", "high", "low", "close"):
        value = getattr(bar, name)
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise BarValidationError(f"Bar {bar.timestamp.isoformat()} has non-numeric {name}: {value!r}")
        if not math.isfinite(value):
            raise BarValidationError(f"Bar {bar.timestamp.isoformat()} has non-finite {name}: {value!r}")
        if value <= 0:
            raise BarValidationError(f"Bar {bar.timestamp.isoformat()} has non-positive {name}: {value!r}")

    if bar.high < bar.low:
        raise BarValidationError(f"Bar {bar.timestamp.isoformat()} has high {bar.high} below low {bar.low}")
    for name in ("open", "close"):
        value = getattr(bar, name)
        if value < bar.low or value > bar.high:
            raise BarValidationError(
                f"Bar {bar.timestamp.isoformat()} has {name} {value} outside [{bar.low}, {bar.high}]"
            )

    if previous is not None and bar.timestamp <= previous:
        raise BarValidationError(
            f"Bar timestamps must increase: {bar.timestamp.isoformat()} after {previous.isoformat()}"
        )
    return bar
