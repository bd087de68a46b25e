"""
Intraday trend-direction decision engine.

Classifies the prevailing intraday direction of a single instrument from a
stream of OHLC bars and emits entry/exit intents for one position at a time.
"""

from intraday_direction.config import ConfigError, RunConfig, StrategyConfig
from intraday_direction.models import (
    Bar,
    BarValidationError,
    Direction,
    PositionSide,
    SignalEvent,
    SignalType,
    TrendMetrics,
)
from intraday_direction.strategy import BarEvaluation, IntradayDirectionStrategy

__all__ = [
    # Core
    "IntradayDirectionStrategy",
    "BarEvaluation",
    # Config
    "StrategyConfig",
    "RunConfig",
    "ConfigError",
    # Types
    "Bar",
    "BarValidationError",
    "Direction",
    "PositionSide",
    "SignalEvent",
    "SignalType",
    "TrendMetrics",
]
