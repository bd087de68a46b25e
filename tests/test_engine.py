import logging
import os
import tempfile
import unittest
from datetime import time

from intraday_direction.config import ConfigError, RunConfig, StrategyConfig
from intraday_direction.diagnostics import HourlyStats
from intraday_direction.engine import CollectingSink, Engine
from intraday_direction.models import BarValidationError, Direction, PositionSide, SignalType
from intraday_direction.persistence import SqliteStore
from intraday_direction.session import mark_sessions
from tests.helpers import make_bar, trending_bars

logging.disable(logging.CRITICAL)


class _ExplodingSink:
    def on_signal(self, symbol, event):
        raise RuntimeError("execution offline")


class TestEngine(unittest.TestCase):
    def setUp(self):
        fd, self.db_path = tempfile.mkstemp(suffix=".sqlite3")
        os.close(fd)

    def tearDown(self):
        for suffix in ("", "-wal", "-shm"):
            try:
                os.remove(self.db_path + suffix)
            except OSError:
                pass

    def test_run_dispatches_signals_to_sinks(self):
        sink = CollectingSink()
        engine = Engine(config=RunConfig(symbol="ES"), sinks=[sink])
        summary = engine.run(mark_sessions(trending_bars(40, step=0.5)))

        self.assertEqual(summary.bars_processed, 40)
        self.assertEqual(summary.position, PositionSide.LONG)
        self.assertEqual(summary.direction, Direction.UP)
        self.assertEqual(len(sink.events), 1)
        symbol, event = sink.events[0]
        self.assertEqual(symbol, "ES")
        self.assertEqual(event.signal_type, SignalType.ENTER_LONG)
        self.assertFalse(summary.resumed)

    def test_failing_sink_does_not_stop_the_run(self):
        collecting = CollectingSink()
        engine = Engine(config=RunConfig(symbol="ES", db_path=self.db_path), sinks=[_ExplodingSink(), collecting])
        summary = engine.run(mark_sessions(trending_bars(32, step=0.5)))
        self.assertEqual(summary.bars_processed, 32)
        self.assertEqual(len(collecting.events), 1)

    def test_bad_bar_propagates(self):
        bars = trending_bars(5)
        bars.append(make_bar(bars[1].timestamp, 100.0))
        engine = Engine(config=RunConfig(symbol="ES", db_path=self.db_path))
        with self.assertRaises(BarValidationError):
            engine.run(mark_sessions(bars))

    def test_resume_from_store_skips_processed_bars(self):
        bars = trending_bars(40, step=0.5)
        cfg = RunConfig(symbol="ES", db_path=self.db_path)

        first_sink = CollectingSink()
        first = Engine(config=cfg, sinks=[first_sink]).run(mark_sessions(bars[:31]))
        self.assertEqual(len(first.signals), 1)
        self.assertEqual(first.position, PositionSide.LONG)

        second_sink = CollectingSink()
        second = Engine(config=cfg, sinks=[second_sink]).run(mark_sessions(bars))

        self.assertTrue(second.resumed)
        self.assertEqual(second.bars_skipped, 30)
        self.assertEqual(second.bars_processed, 10)
        self.assertEqual(second.position, PositionSide.LONG)
        # The entry was already delivered by the first run
        self.assertEqual(second_sink.events, [])

        store = SqliteStore(self.db_path)
        try:
            recorded = store.list_signals("ES")
        finally:
            store.close()
        self.assertEqual([s.signal_type for s in recorded], [SignalType.ENTER_LONG])

    def test_resume_keeps_hourly_diagnostics(self):
        bars = trending_bars(20, step=0.5)
        cfg = RunConfig(symbol="NQ", db_path=self.db_path, strategy=StrategyConfig())
        Engine(config=cfg, hourly=HourlyStats()).run(mark_sessions(bars[:10]))

        engine = Engine(config=cfg)
        engine.run(mark_sessions(bars))
        self.assertIsNotNone(engine.hourly)
        self.assertEqual(engine.hourly.get(9).count, 19)


    def test_resume_with_different_window_settings_is_rejected(self):
        bars = trending_bars(30, step=0.5)
        Engine(config=RunConfig(symbol="ES", db_path=self.db_path)).run(mark_sessions(bars[:20]))

        changed = RunConfig(
            symbol="ES",
            db_path=self.db_path,
            strategy=StrategyConfig(momentum_period=40, rsi_period=5),
        )
        with self.assertRaises(ConfigError) as ctx:
            Engine(config=changed).run(mark_sessions(bars))
        self.assertIn("momentum_period=40", str(ctx.exception))
        self.assertIn("rsi_period=5", str(ctx.exception))

        # The persisted state is left as the first run saved it
        store = SqliteStore(self.db_path)
        try:
            state = store.load_state("ES")
        finally:
            store.close()
        self.assertEqual(state["config"]["momentum_period"], 20)
        self.assertEqual(state["bars_seen"], 20)

    def test_resume_may_change_session_close(self):
        bars = trending_bars(30, step=0.5)
        Engine(config=RunConfig(symbol="ES", db_path=self.db_path)).run(mark_sessions(bars[:20]))

        later_close = StrategyConfig(session_close=time(15, 0))
        engine = Engine(config=RunConfig(symbol="ES", db_path=self.db_path, strategy=later_close))
        summary = engine.run(mark_sessions(bars))

        self.assertTrue(summary.resumed)
        self.assertEqual(engine.strategy.config.session_close, time(15, 0))
        self.assertEqual(engine.strategy.momentum.period, 20)
        self.assertEqual(engine.strategy.averages.rsi.period, 14)


if __name__ == "__main__":
    unittest.main()
