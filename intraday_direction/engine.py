from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Protocol

from intraday_direction.config import RunConfig
from intraday_direction.diagnostics import HourlyStats
from intraday_direction.models import Bar, BarValidationError, Direction, PositionSide, SignalEvent
from intraday_direction.persistence import SqliteStore
from intraday_direction.strategy import IntradayDirectionStrategy

log = logging.getLogger(__name__)


class SignalSink(Protocol):
    """External consumer of signals (order execution, charting, alerts)."""

    def on_signal(self, symbol: str, event: SignalEvent) -> None: ...


class LoggingSink:
    def on_signal(self, symbol: str, event: SignalEvent) -> None:
        log.info(
            "SIGNAL symbol=%s type=%s tag=%s ts=%s price=%.4f",
            symbol,
            event.signal_type.value,
            event.tag,
            event.timestamp.isoformat(),
            event.price,
        )


@dataclass
class CollectingSink:
    events: list[tuple[str, SignalEvent]] = field(default_factory=list)

    def on_signal(self, symbol: str, event: SignalEvent) -> None:
        self.events.append((symbol, event))


@dataclass
class RunSummary:
    symbol: str
    bars_processed: int
    bars_skipped: int
    signals: list[SignalEvent]
    position: PositionSide
    direction: Direction
    resumed: bool = False


@dataclass
class Engine:
    """
    Drives a session-marked bar stream through one strategy instance.

    With ``config.db_path`` set, every signal is recorded and the strategy
    snapshot is checkpointed, so a later run over the same feed resumes
    after the last processed bar instead of starting over.
    """

    config: RunConfig
    strategy: IntradayDirectionStrategy | None = None
    sinks: list[SignalSink] = field(default_factory=list)
    hourly: HourlyStats | None = None
    checkpoint_every: int = 1
    _store: SqliteStore | None = None
    _run_id: int | None = None

    def run(self, bars: Iterable[tuple[Bar, bool]]) -> RunSummary:
        symbol = self.config.symbol
        if self.config.db_path:
            self._store = SqliteStore(self.config.db_path)
            self._run_id = self._store.start_run(self.config)

        processed = 0
        skipped = 0
        signals: list[SignalEvent] = []
        try:
            strategy, resumed = self._ensure_strategy()
            resume_after = self._resume_point(strategy) if resumed else None

            for bar, first_of_session in bars:
                if resume_after is not None and bar.timestamp < resume_after:
                    skipped += 1
                    continue
                try:
                    event = strategy.process_bar(bar, first_of_session=first_of_session)
                except BarValidationError as exc:
                    log.error("Rejected bar symbol=%s ts=%s err=%s", symbol, bar.timestamp.isoformat(), exc)
                    self._persist_error("process_bar", str(exc))
                    raise
                processed += 1

                if event is not None and self._record_signal(event):
                    signals.append(event)
                    self._dispatch(event)

                if self._store is not None and processed % max(1, self.checkpoint_every) == 0:
                    self._store.save_state(symbol, strategy.snapshot())

            if self._store is not None:
                self._store.save_state(symbol, strategy.snapshot())

            if skipped:
                log.info("Resumed %s: skipped %d already processed bars", symbol, skipped)
            return RunSummary(
                symbol=symbol,
                bars_processed=processed,
                bars_skipped=skipped,
                signals=signals,
                position=strategy.position,
                direction=strategy.direction_state.direction,
                resumed=resumed,
            )
        finally:
            if self._store is not None:
                if self._run_id is not None:
                    self._store.end_run(self._run_id, bars_processed=processed)
                self._store.close()
            self._store = None
            self._run_id = None

    def _ensure_strategy(self) -> tuple[IntradayDirectionStrategy, bool]:
        """Create or restore the strategy; the flag is True when restored from the store."""
        if self.strategy is not None:
            return self.strategy, False
        if self._store is not None:
            state = self._store.load_state(self.config.symbol)
            if state is not None:
                self.strategy = IntradayDirectionStrategy.restore(state, self.config.strategy)
                if self.hourly is not None and self.strategy.hourly is None:
                    self.strategy.hourly = self.hourly
                self.hourly = self.strategy.hourly
                log.info(
                    "Restored %s strategy after %d bars (position=%s)",
                    self.config.symbol,
                    self.strategy.bars_seen,
                    self.strategy.position.value,
                )
                return self.strategy, True
        self.strategy = IntradayDirectionStrategy(self.config.strategy, hourly=self.hourly)
        return self.strategy, False

    @staticmethod
    def _resume_point(strategy: IntradayDirectionStrategy) -> datetime | None:
        # The last processed bar itself is let through: the strategy
        # recognises the replay and returns its recorded signal.
        last = strategy.last_processed_bar
        return last.timestamp if last is not None else None

    def _record_signal(self, event: SignalEvent) -> bool:
        if self._store is None or self._run_id is None:
            return True
        recorded = self._store.log_signal(self._run_id, self.config.symbol, event)
        if not recorded:
            log.debug("Signal already recorded: %s at %s", event.signal_type.value, event.timestamp.isoformat())
        return recorded

    def _dispatch(self, event: SignalEvent) -> None:
        for sink in self.sinks:
            try:
                sink.on_signal(self.config.symbol, event)
            except Exception as exc:
                log.error(
                    "Signal sink failed sink=%s type=%s ts=%s err=%s",
                    type(sink).__name__,
                    event.signal_type.value,
                    event.timestamp.isoformat(),
                    exc,
                )
                self._persist_error("dispatch", str(exc))

    def _persist_error(self, where: str, message: str) -> None:
        if self._store is None or self._run_id is None:
            return
        self._store.log_error(self._run_id, where=where, message=message)
