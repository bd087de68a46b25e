"""Tests for configuration loading and validation."""

import os
import unittest
from datetime import time
from unittest import mock

from intraday_direction.config import ConfigError, RunConfig, StrategyConfig, parse_time_of_day


class TestStrategyConfig(unittest.TestCase):
    def test_default_values(self):
        config = StrategyConfig()
        self.assertEqual(config.momentum_period, 20)
        self.assertEqual(config.rsi_period, 14)
        self.assertEqual(config.rsi_smooth, 3)
        self.assertAlmostEqual(config.min_strength, 0.3)
        self.assertFalse(config.strength_gate)
        self.assertEqual(config.session_close, time(16, 0))
        self.assertEqual(config.close_buffer_minutes, 15.0)
        self.assertEqual(config.warmup_bars, 30)

    def test_frozen(self):
        config = StrategyConfig()
        with self.assertRaises(Exception):
            config.momentum_period = 30

    def test_range_validation(self):
        for kwargs in (
            {"momentum_period": 9},
            {"momentum_period": 51},
            {"rsi_period": 1},
            {"rsi_period": 31},
            {"rsi_smooth": 0},
            {"rsi_smooth": 11},
            {"min_strength": 0.05},
            {"min_strength": 1.5},
            {"close_buffer_minutes": -1},
        ):
            with self.subTest(**kwargs):
                with self.assertRaises(ConfigError):
                    StrategyConfig(**kwargs).validate()

    def test_bounds_are_inclusive(self):
        StrategyConfig(momentum_period=10, rsi_period=2, rsi_smooth=1, min_strength=0.1).validate()
        StrategyConfig(momentum_period=50, rsi_period=30, rsi_smooth=10, min_strength=1.0).validate()

    def test_from_env(self):
        env = {
            "INTRADAY_MOMENTUM_PERIOD": "30",
            "INTRADAY_RSI_PERIOD": "10",
            "INTRADAY_STRENGTH_GATE": "yes",
            "INTRADAY_SESSION_CLOSE": "15:15",
            "INTRADAY_DB_PATH": "/tmp/signals.sqlite3",
        }
        with mock.patch.dict(os.environ, env, clear=False):
            run = RunConfig.from_env(symbol="ES")

        self.assertEqual(run.symbol, "ES")
        self.assertEqual(run.db_path, "/tmp/signals.sqlite3")
        self.assertEqual(run.strategy.momentum_period, 30)
        self.assertEqual(run.strategy.rsi_period, 10)
        self.assertTrue(run.strategy.strength_gate)
        self.assertEqual(run.strategy.session_close, time(15, 15))

    def test_from_env_rejects_out_of_range(self):
        with mock.patch.dict(os.environ, {"INTRADAY_RSI_SMOOTH": "20"}, clear=False):
            with self.assertRaises(ConfigError):
                StrategyConfig.from_env()

    def test_from_env_rejects_non_numeric_values(self):
        for name in ("INTRADAY_RSI_PERIOD", "INTRADAY_CLOSE_BUFFER_MINUTES"):
            with self.subTest(name=name):
                with mock.patch.dict(os.environ, {name: "abc"}, clear=False):
                    with self.assertRaises(ConfigError) as ctx:
                        StrategyConfig.from_env()
                self.assertIn(name, str(ctx.exception))

    def test_dict_round_trip(self):
        config = StrategyConfig(momentum_period=25, session_close=time(15, 0), strength_gate=True)
        self.assertEqual(StrategyConfig.from_dict(config.to_dict()), config)

    def test_parse_time_of_day(self):
        self.assertEqual(parse_time_of_day("09:45"), time(9, 45))
        with self.assertRaises(ConfigError):
            parse_time_of_day("4pm")


if __name__ == "__main__":
    unittest.main()
