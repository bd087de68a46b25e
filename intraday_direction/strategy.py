"""
Intraday direction strategy: the per-instrument decision core.

Per bar, strictly in this order:
    1. Moving-average stack and swing tracker take the bar
    2. Direction classifier advances
    3. Momentum estimator takes the bar-over-bar percent change
    4. Position controller decides (after the warm-up gate)

Usage::

    strategy = IntradayDirectionStrategy(StrategyConfig())
    for bar, first in mark_sessions(bars):
        signal = strategy.process_bar(bar, first_of_session=first)
        if signal is not None:
            execution.on_signal(symbol, signal)

All state lives on the instance and can be captured with ``snapshot()``
and rebuilt with ``restore()``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from intraday_direction.classifier import DirectionClassifier, DirectionState
from intraday_direction.config import ConfigError, StrategyConfig
from intraday_direction.controller import PositionController
from intraday_direction.diagnostics import HourlyStats
from intraday_direction.indicators import MovingAverages, MovingAverageStack
from intraday_direction.models import (
    Bar,
    PositionSide,
    SignalEvent,
    TrendMetrics,
    validate_bar,
)
from intraday_direction.momentum import MomentumEstimator, percent_change
from intraday_direction.session import minutes_to_close
from intraday_direction.swings import SwingBreakout, SwingTracker

log = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

# Persisted windows and the RSI are sized by these; a resume cannot change them.
WINDOW_FIELDS = ("momentum_period", "rsi_period", "rsi_smooth")


@dataclass(frozen=True)
class BarEvaluation:
    """Everything the strategy computed for one bar."""
    bar: Bar
    bar_index: int
    first_of_session: bool
    averages: MovingAverages
    breakout: SwingBreakout
    state: DirectionState
    up_trend: bool
    down_trend: bool
    metrics: Optional[TrendMetrics]
    minutes_to_close: float
    position: PositionSide
    signal: Optional[SignalEvent]


class IntradayDirectionStrategy:
    def __init__(self, config: StrategyConfig | None = None, hourly: HourlyStats | None = None):
        self.config = (config or StrategyConfig()).validate()
        self.hourly = hourly

        self.averages = MovingAverageStack(self.config.rsi_period, self.config.rsi_smooth)
        self.swings = SwingTracker()
        self.classifier = DirectionClassifier()
        self.momentum = MomentumEstimator(self.config.momentum_period)
        self.controller = PositionController(self.config)

        self.bars_seen = 0
        self._prev_close: Optional[float] = None
        self._last_bar: Optional[Bar] = None
        self._last_signal: Optional[SignalEvent] = None
        self.last_evaluation: Optional[BarEvaluation] = None

    @property
    def position(self) -> PositionSide:
        return self.controller.position

    @property
    def direction_state(self) -> DirectionState:
        return self.classifier.state

    @property
    def last_processed_bar(self) -> Optional[Bar]:
        return self._last_bar

    def process_bar(self, bar: Bar, first_of_session: bool = False) -> Optional[SignalEvent]:
        """
        Advance all state by one bar and return the signal for it, if any.

        Re-submitting the last accepted bar returns the signal it already
        produced without touching any window. Any other bar that does not
        move time forward raises ``BarValidationError``.
        """
        if self._last_bar is not None and bar == self._last_bar:
            log.warning("Replayed bar %s ignored", bar.timestamp.isoformat())
            return self._last_signal

        validate_bar(bar, self._last_bar.timestamp if self._last_bar is not None else None)

        carried: Optional[SignalEvent] = None
        if first_of_session:
            carried = self.controller.force_exit(bar)
            self._reset_session(bar)

        averages = self.averages.update(bar.close)
        breakout = self.swings.update(bar.high, bar.low)
        classification = self.classifier.update(breakout, averages, bar.close)

        metrics: Optional[TrendMetrics] = None
        if self._prev_close is not None:
            change = percent_change(self._prev_close, bar.close)
            metrics = self.momentum.update(change)
            if self.hourly is not None:
                self.hourly.record(bar.timestamp, change)
        self._prev_close = bar.close

        bar_index = self.bars_seen
        self.bars_seen += 1
        to_close = minutes_to_close(bar.timestamp, self.config.session_close)

        signal = carried
        if signal is None and bar_index >= self.config.warmup_bars and self.averages.is_ready:
            signal = self.controller.on_bar(
                bar,
                classification.state,
                classification.up_trend,
                classification.down_trend,
                averages,
                to_close,
                metrics,
            )

        self._last_bar = bar
        self._last_signal = signal
        self.last_evaluation = BarEvaluation(
            bar=bar,
            bar_index=bar_index,
            first_of_session=first_of_session,
            averages=averages,
            breakout=breakout,
            state=classification.state,
            up_trend=classification.up_trend,
            down_trend=classification.down_trend,
            metrics=metrics,
            minutes_to_close=to_close,
            position=self.controller.position,
            signal=signal,
        )
        return signal

    def _reset_session(self, bar: Bar) -> None:
        log.debug("Session start at %s; resetting direction state and windows", bar.timestamp.isoformat())
        self.swings.reset()
        self.classifier.reset()
        self.momentum.reset()

    # ------------------------------------------------------------------
    # Snapshot / restore
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe copy of the full decision state."""
        return {
            "version": SNAPSHOT_VERSION,
            "config": self.config.to_dict(),
            "bars_seen": self.bars_seen,
            "prev_close": self._prev_close,
            "averages": self.averages.to_dict(),
            "swings": self.swings.to_dict(),
            "direction": self.classifier.state.to_dict(),
            "momentum": self.momentum.to_dict(),
            "position": self.controller.position.value,
            "last_bar": self._last_bar.to_dict() if self._last_bar is not None else None,
            "last_signal": self._last_signal.to_dict() if self._last_signal is not None else None,
            "hourly": self.hourly.to_dict() if self.hourly is not None else None,
        }

    @classmethod
    def restore(cls, state: Dict[str, Any], config: StrategyConfig | None = None) -> "IntradayDirectionStrategy":
        if state.get("version") != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported snapshot version: {state.get('version')!r}")

        persisted = StrategyConfig.from_dict(state["config"])
        if config is None:
            config = persisted
        else:
            mismatched = [name for name in WINDOW_FIELDS if getattr(config, name) != getattr(persisted, name)]
            if mismatched:
                details = ", ".join(
                    f"{name}={getattr(config, name)} (persisted {getattr(persisted, name)})" for name in mismatched
                )
                raise ConfigError(f"Cannot resume with different window settings: {details}")
        hourly = HourlyStats.from_dict(state["hourly"]) if state.get("hourly") is not None else None
        strategy = cls(config, hourly=hourly)

        strategy.bars_seen = int(state["bars_seen"])
        strategy._prev_close = state["prev_close"]
        strategy.averages = MovingAverageStack.from_dict(state["averages"])
        strategy.swings = SwingTracker.from_dict(state["swings"])
        strategy.classifier = DirectionClassifier(DirectionState.from_dict(state["direction"]))
        strategy.momentum = MomentumEstimator.from_dict(state["momentum"])
        strategy.controller.position = PositionSide(state["position"])
        if state.get("last_bar") is not None:
            strategy._last_bar = Bar.from_dict(state["last_bar"])
        if state.get("last_signal") is not None:
            strategy._last_signal = SignalEvent.from_dict(state["last_signal"])
        return strategy
