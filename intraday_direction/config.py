from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import time


class ConfigError(ValueError):
    """Raised when a configuration value is outside its allowed range."""


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None or value == "" else value


def _get_env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _get_env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc


def _get_env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_time_of_day(value: str) -> time:
    """Parse ``HH:MM`` (or ``HH:MM:SS``) into a time."""
    try:
        return time.fromisoformat(value.strip())
    except ValueError as exc:
        raise ConfigError(f"Invalid time of day {value!r}; expected HH:MM") from exc


def _check_range(name: str, value: float, low: float, high: float) -> None:
    if value < low or value > high:
        raise ConfigError(f"{name}={value} outside allowed range [{low}, {high}]")


@dataclass(frozen=True)
class StrategyConfig:
    momentum_period: int = 20
    rsi_period: int = 14
    rsi_smooth: int = 3
    # Inert unless strength_gate is enabled.
    min_strength: float = 0.3
    strength_gate: bool = False
    session_close: time = time(16, 0)
    close_buffer_minutes: float = 15.0
    warmup_bars: int = 30
    long_oscillator_min: float = 45.0
    short_oscillator_max: float = 55.0

    def validate(self) -> "StrategyConfig":
        _check_range("momentum_period", self.momentum_period, 10, 50)
        _check_range("rsi_period", self.rsi_period, 2, 30)
        _check_range("rsi_smooth", self.rsi_smooth, 1, 10)
        _check_range("min_strength", self.min_strength, 0.1, 1.0)
        if self.close_buffer_minutes < 0:
            raise ConfigError("close_buffer_minutes must be non-negative")
        if self.warmup_bars < 0:
            raise ConfigError("warmup_bars must be non-negative")
        return self

    @staticmethod
    def from_env() -> "StrategyConfig":
        return StrategyConfig(
            momentum_period=_get_env_int("INTRADAY_MOMENTUM_PERIOD", 20),
            rsi_period=_get_env_int("INTRADAY_RSI_PERIOD", 14),
            rsi_smooth=_get_env_int("INTRADAY_RSI_SMOOTH", 3),
            min_strength=_get_env_float("INTRADAY_MIN_STRENGTH", 0.3),
            strength_gate=_get_env_bool("INTRADAY_STRENGTH_GATE", False),
            session_close=parse_time_of_day(_get_env("INTRADAY_SESSION_CLOSE", "16:00")),
            close_buffer_minutes=_get_env_float("INTRADAY_CLOSE_BUFFER_MINUTES", 15.0),
        ).validate()

    def to_dict(self) -> dict:
        return {
            "momentum_period": self.momentum_period,
            "rsi_period": self.rsi_period,
            "rsi_smooth": self.rsi_smooth,
            "min_strength": self.min_strength,
            "strength_gate": self.strength_gate,
            "session_close": self.session_close.isoformat(timespec="minutes"),
            "close_buffer_minutes": self.close_buffer_minutes,
            "warmup_bars": self.warmup_bars,
            "long_oscillator_min": self.long_oscillator_min,
            "short_oscillator_max": self.short_oscillator_max,
        }

    @staticmethod
    def from_dict(data: dict) -> "StrategyConfig":
        values = dict(data)
        if isinstance(values.get("session_close"), str):
            values["session_close"] = parse_time_of_day(values["session_close"])
        return StrategyConfig(**values).validate()


@dataclass(frozen=True)
class RunConfig:
    symbol: str = "UNKNOWN"
    db_path: str | None = None
    strategy: StrategyConfig = field(default_factory=StrategyConfig)

    @staticmethod
    def from_env(symbol: str = "UNKNOWN") -> "RunConfig":
        return RunConfig(
            symbol=symbol,
            db_path=(_get_env("INTRADAY_DB_PATH", "").strip() or None),
            strategy=StrategyConfig.from_env(),
        )
