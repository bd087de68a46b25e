"""Tests for the swing tracker and the momentum/volatility estimator."""

import logging
import math
import unittest

from intraday_direction.momentum import MomentumEstimator, percent_change
from intraday_direction.swings import SwingTracker

logging.disable(logging.CRITICAL)


class TestSwingTracker(unittest.TestCase):
    def test_no_breakout_without_history(self):
        tracker = SwingTracker()
        result = tracker.update(10.0, 9.0)
        self.assertFalse(result.higher_high)
        self.assertFalse(result.lower_low)

    def test_compares_against_window_before_insertion(self):
        tracker = SwingTracker()
        tracker.update(10.0, 9.0)
        self.assertTrue(tracker.update(12.0, 11.0).higher_high)
        tracker.update(9.0, 8.0)

        result = tracker.update(15.0, 14.0)

        self.assertEqual(tracker.highs.values(), [12.0, 9.0, 15.0])
        self.assertTrue(result.higher_high)  # 15 > max(12, 9)
        self.assertFalse(result.lower_low)   # 14 is not below min(11, 8)

    def test_fires_with_a_single_prior_entry(self):
        tracker = SwingTracker()
        tracker.update(10.0, 9.0)
        result = tracker.update(10.5, 8.5)
        self.assertEqual(len(tracker.highs), 2)
        self.assertTrue(result.higher_high)
        self.assertTrue(result.lower_low)

    def test_equal_high_is_not_a_breakout(self):
        tracker = SwingTracker()
        tracker.update(10.0, 9.0)
        result = tracker.update(10.0, 9.0)
        self.assertFalse(result.higher_high)
        self.assertFalse(result.lower_low)

    def test_lower_low(self):
        tracker = SwingTracker()
        tracker.update(10.0, 9.0)
        tracker.update(10.5, 9.5)
        result = tracker.update(9.8, 8.5)
        self.assertTrue(result.lower_low)
        self.assertFalse(result.higher_high)

    def test_window_is_bounded(self):
        tracker = SwingTracker()
        for i in range(10):
            tracker.update(100.0 + i, 99.0 + i)
        self.assertEqual(len(tracker.highs), 3)
        self.assertEqual(len(tracker.lows), 3)

    def test_reset_clears_windows(self):
        tracker = SwingTracker()
        tracker.update(10.0, 9.0)
        tracker.update(11.0, 10.0)
        tracker.reset()
        self.assertEqual(len(tracker.highs), 0)
        self.assertFalse(tracker.update(50.0, 1.0).higher_high)


class TestMomentumEstimator(unittest.TestCase):
    def test_percent_change(self):
        self.assertAlmostEqual(percent_change(100.0, 101.0), 1.0)
        self.assertAlmostEqual(percent_change(200.0, 190.0), -5.0)

    def test_constant_changes_are_not_actionable(self):
        estimator = MomentumEstimator()
        for change in (1.0, 1.0, 1.0):
            metrics = estimator.update(change)

        self.assertAlmostEqual(metrics.momentum, 1.0)
        self.assertEqual(metrics.volatility, 0.0)
        self.assertIsNone(metrics.strength)
        self.assertFalse(metrics.is_actionable)

    def test_population_std(self):
        estimator = MomentumEstimator()
        for change in (1.0, 2.0, 3.0):
            metrics = estimator.update(change)

        expected_vol = math.sqrt(2.0 / 3.0)
        self.assertAlmostEqual(metrics.momentum, 2.0)
        self.assertAlmostEqual(metrics.volatility, expected_vol)
        self.assertAlmostEqual(metrics.strength, 2.0 / expected_vol)
        self.assertTrue(metrics.is_actionable)

    def test_window_capacity(self):
        estimator = MomentumEstimator(period=10)
        for i in range(12):
            estimator.update(float(i))
        self.assertEqual(estimator.window.values(), [float(i) for i in range(2, 12)])
        self.assertAlmostEqual(estimator.current.momentum, 6.5)

    def test_negative_momentum_gives_negative_strength(self):
        estimator = MomentumEstimator()
        for change in (-1.0, -2.0, -1.5):
            metrics = estimator.update(change)
        self.assertLess(metrics.strength, 0)


if __name__ == "__main__":
    unittest.main()
