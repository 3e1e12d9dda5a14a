"""
Tests for telemetry aggregation
"""

import unittest
import sys
import os

# Add package root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nr_multicell.telemetry.aggregator import TelemetryAggregator, HandoverCounters, sinr_db


class TestTelemetryAggregator(unittest.TestCase):
    """Test cases for TelemetryAggregator"""

    def setUp(self):
        self.aggregator = TelemetryAggregator()

    def test_sinr_conversion(self):
        self.assertAlmostEqual(sinr_db(1.0), 0.0)
        self.assertAlmostEqual(sinr_db(100.0), 20.0)

    def test_sinr_accumulation(self):
        for value in (10.0, 100.0, 1000.0):
            self.aggregator.on_sinr_sample(1, value)

        metrics = self.aggregator.get_channel_metrics(1)
        self.assertEqual(metrics.samples, 3)
        self.assertAlmostEqual(metrics.avg_sinr, 20.0)
        self.assertAlmostEqual(metrics.min_sinr, 10.0)
        self.assertAlmostEqual(metrics.max_sinr, 30.0)
        self.assertAlmostEqual(metrics.sinr_range, 20.0)

    def test_non_positive_sinr_ignored(self):
        self.aggregator.on_sinr_sample(1, 0.0)
        self.aggregator.on_sinr_sample(1, -5.0)
        self.assertEqual(self.aggregator.get_channel_metrics(1).samples, 0)
        self.assertEqual(len(self.aggregator.get_sinr_history(1)), 0)

    def test_unknown_ue_is_empty(self):
        metrics = self.aggregator.get_channel_metrics(42)
        self.assertEqual(metrics.samples, 0)
        self.assertEqual(metrics.avg_sinr, 0.0)
        self.assertEqual(metrics.sinr_range, 0.0)
        self.assertNotIn(42, self.aggregator.channel_metrics)

    def test_ues_are_independent(self):
        self.aggregator.on_sinr_sample(1, 10.0)
        self.aggregator.on_sinr_sample(2, 1000.0)
        self.assertAlmostEqual(self.aggregator.get_channel_metrics(1).avg_sinr, 10.0)
        self.assertAlmostEqual(self.aggregator.get_channel_metrics(2).avg_sinr, 30.0)

    def test_history_is_bounded(self):
        aggregator = TelemetryAggregator(history_size=3)
        for value in (10.0, 100.0, 1000.0, 10000.0):
            aggregator.on_sinr_sample(1, value)

        history = list(aggregator.get_sinr_history(1))
        self.assertEqual(len(history), 3)
        self.assertAlmostEqual(history[0], 20.0)
        self.assertAlmostEqual(history[-1], 40.0)
        # All-time accumulators are not windowed
        self.assertEqual(aggregator.get_channel_metrics(1).samples, 4)

    def test_default_history_size(self):
        for _ in range(1500):
            self.aggregator.on_sinr_sample(1, 10.0)
        self.assertEqual(len(self.aggregator.get_sinr_history(1)), 1000)
        self.assertEqual(self.aggregator.get_channel_metrics(1).samples, 1500)

    def test_std_dev(self):
        for value in (10.0, 100.0, 1000.0):
            self.aggregator.on_sinr_sample(1, value)
        # dB values 10, 20, 30 around mean 20
        self.assertAlmostEqual(self.aggregator.sinr_std_dev(1), 10.0)

    def test_std_dev_uses_all_time_mean(self):
        aggregator = TelemetryAggregator(history_size=2)
        for value in (10.0, 100.0, 1000.0):
            aggregator.on_sinr_sample(1, value)
        # Window holds 20 and 30 dB, mean over all samples is 20 dB
        self.assertAlmostEqual(aggregator.sinr_std_dev(1), 10.0)

    def test_std_dev_few_samples(self):
        self.assertEqual(self.aggregator.sinr_std_dev(1), 0.0)
        self.aggregator.on_sinr_sample(1, 100.0)
        self.assertEqual(self.aggregator.sinr_std_dev(1), 0.0)

    def test_rsrp_rsrq(self):
        self.aggregator.on_rsrp_sample(1, 0, -80.0)
        self.aggregator.on_rsrp_sample(1, 1, -90.0)
        self.aggregator.on_rsrq_sample(1, 0, -10.0)

        metrics = self.aggregator.get_channel_metrics(1)
        self.assertAlmostEqual(metrics.avg_rsrp, -85.0)
        self.assertEqual(metrics.rsrp_samples, 2)
        self.assertAlmostEqual(metrics.avg_rsrq, -10.0)
        # SINR accumulators are untouched
        self.assertEqual(metrics.samples, 0)

    def test_handover_counters(self):
        self.aggregator.on_handover_start(1, 0, 1)
        self.aggregator.on_handover_start(2, 1, 2)
        self.aggregator.on_handover_success(1, 0, 1)
        self.aggregator.on_handover_failure(2, 1, 2)

        handovers = self.aggregator.handovers
        self.assertEqual(handovers.attempts, 2)
        self.assertEqual(handovers.successes, 1)
        self.assertEqual(handovers.failures, 1)
        self.assertAlmostEqual(handovers.success_rate, 50.0)

    def test_success_rate_without_attempts(self):
        self.assertEqual(HandoverCounters().success_rate, 0.0)


if __name__ == '__main__':
    unittest.main()
