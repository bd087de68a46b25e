"""
Single-position signal controller.

FLAT:
    ENTER_LONG  if direction UP, EMA stack aligned up, >= 2 higher highs, oscillator > 45
    ENTER_SHORT if direction DOWN, EMA stack aligned down, >= 2 lower lows, oscillator < 55

LONG / SHORT:
    Session close: minutes to close <= buffer -> forced exit (wins)
    Reversal:      LONG exits on close < fast or fast < medium,
                   SHORT exits on close > fast or fast > medium

At most one signal per bar. The position only changes when a signal is
emitted.
"""

from __future__ import annotations

import logging
from typing import Optional

from intraday_direction.classifier import CONFIRMING_BREAKOUTS, DirectionState
from intraday_direction.config import StrategyConfig
from intraday_direction.indicators import MovingAverages
from intraday_direction.models import (
    TAG_LONG_ENTRY,
    TAG_REVERSAL_EXIT,
    TAG_SESSION_CLOSE,
    TAG_SHORT_ENTRY,
    Bar,
    Direction,
    PositionSide,
    SignalEvent,
    SignalType,
    TrendMetrics,
)

log = logging.getLogger(__name__)


class PositionController:
    def __init__(self, config: StrategyConfig | None = None, position: PositionSide = PositionSide.FLAT):
        self.config = config or StrategyConfig()
        self.position = position

    def on_bar(
        self,
        bar: Bar,
        state: DirectionState,
        up_trend: bool,
        down_trend: bool,
        averages: MovingAverages,
        minutes_to_close: float,
        metrics: Optional[TrendMetrics] = None,
    ) -> Optional[SignalEvent]:
        if self.position is PositionSide.FLAT:
            return self._check_entry(bar, state, up_trend, down_trend, averages, metrics)
        return self._check_exit(bar, state, averages, minutes_to_close, metrics)

    def force_exit(self, bar: Bar, tag: str = TAG_SESSION_CLOSE) -> Optional[SignalEvent]:
        """Flatten whatever is open, e.g. when a session ends without a close-window bar."""
        if self.position is PositionSide.FLAT:
            return None
        return self._exit(bar, tag, Direction.NEUTRAL, None)

    def _check_entry(
        self,
        bar: Bar,
        state: DirectionState,
        up_trend: bool,
        down_trend: bool,
        averages: MovingAverages,
        metrics: Optional[TrendMetrics],
    ) -> Optional[SignalEvent]:
        cfg = self.config
        strength = metrics.strength if metrics is not None else None

        if (
            state.direction is Direction.UP
            and up_trend
            and state.higher_highs >= CONFIRMING_BREAKOUTS
            and averages.oscillator > cfg.long_oscillator_min
            and self._strength_allows(metrics, 1)
        ):
            return self._enter(SignalType.ENTER_LONG, PositionSide.LONG, bar, TAG_LONG_ENTRY, state, strength)

        if (
            state.direction is Direction.DOWN
            and down_trend
            and state.lower_lows >= CONFIRMING_BREAKOUTS
            and averages.oscillator < cfg.short_oscillator_max
            and self._strength_allows(metrics, -1)
        ):
            return self._enter(SignalType.ENTER_SHORT, PositionSide.SHORT, bar, TAG_SHORT_ENTRY, state, strength)

        return None

    def _strength_allows(self, metrics: Optional[TrendMetrics], sign: int) -> bool:
        if not self.config.strength_gate:
            return True
        if metrics is None or not metrics.is_actionable or metrics.strength is None:
            return False
        return sign * metrics.strength >= self.config.min_strength

    def _check_exit(
        self,
        bar: Bar,
        state: DirectionState,
        averages: MovingAverages,
        minutes_to_close: float,
        metrics: Optional[TrendMetrics],
    ) -> Optional[SignalEvent]:
        strength = metrics.strength if metrics is not None else None

        if minutes_to_close <= self.config.close_buffer_minutes:
            return self._exit(bar, TAG_SESSION_CLOSE, state.direction, strength)

        if self.position is PositionSide.LONG:
            reversed_ = bar.close < averages.fast or averages.fast < averages.medium
        else:
            reversed_ = bar.close > averages.fast or averages.fast > averages.medium
        if reversed_:
            return self._exit(bar, TAG_REVERSAL_EXIT, state.direction, strength)
        return None

    def _enter(
        self,
        signal_type: SignalType,
        side: PositionSide,
        bar: Bar,
        tag: str,
        state: DirectionState,
        strength: Optional[float],
    ) -> SignalEvent:
        self.position = side
        log.info("%s at %s close=%.4f direction=%s", signal_type.value, bar.timestamp.isoformat(), bar.close, state.direction.value)
        return SignalEvent(
            signal_type=signal_type,
            timestamp=bar.timestamp,
            price=bar.close,
            tag=tag,
            direction=state.direction,
            strength=strength,
        )

    def _exit(self, bar: Bar, tag: str, direction: Direction, strength: Optional[float]) -> SignalEvent:
        signal_type = SignalType.EXIT_LONG if self.position is PositionSide.LONG else SignalType.EXIT_SHORT
        self.position = PositionSide.FLAT
        log.info("%s (%s) at %s close=%.4f", signal_type.value, tag, bar.timestamp.isoformat(), bar.close)
        return SignalEvent(
            signal_type=signal_type,
            timestamp=bar.timestamp,
            price=bar.close,
            tag=tag,
            direction=direction,
            strength=strength,
        )
