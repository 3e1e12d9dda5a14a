"""
Tests for traffic classes, profiles and eMBB rate allocation
"""

import unittest
import sys
import os

import numpy as np

# Add package root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nr_multicell.traffic.allocation import allocate_embb_rate
from nr_multicell.traffic.profiles import (
    TrafficClass, classify_traffic, embb_profile, urllc_profile, schedule_start_times
)


class TestEmbbRateAllocation(unittest.TestCase):
    """Test allocate_embb_rate"""

    def test_fair_share(self):
        self.assertEqual(allocate_embb_rate(2e8, 20), 10000000)
        self.assertEqual(allocate_embb_rate(3e8, 30), 10000000)

    def test_floor(self):
        self.assertEqual(allocate_embb_rate(2e8, 50), 5000000)
        self.assertEqual(allocate_embb_rate(2e8, 1000), 5000000)

    def test_ceiling(self):
        self.assertEqual(allocate_embb_rate(2e8, 1), 20000000)
        self.assertEqual(allocate_embb_rate(3e8, 6), 20000000)

    def test_no_embb_ues(self):
        self.assertEqual(allocate_embb_rate(2e8, 0), 10000000)

    def test_truncated_to_integer(self):
        rate = allocate_embb_rate(2e8, 15)
        self.assertIsInstance(rate, int)
        self.assertEqual(rate, 13333333)

    def test_always_in_range(self):
        for count in range(0, 200):
            rate = allocate_embb_rate(3e8, count)
            self.assertGreaterEqual(rate, 5000000)
            self.assertLessEqual(rate, 20000000)


class TestTrafficClassification(unittest.TestCase):
    """Test classify_traffic"""

    def test_embb_prefix(self):
        classes = classify_traffic(10, 0.6)
        self.assertEqual(classes[:6], [TrafficClass.EMBB] * 6)
        self.assertEqual(classes[6:], [TrafficClass.URLLC] * 4)

    def test_floor_of_ratio(self):
        classes = classify_traffic(7, 0.5)
        self.assertEqual(classes.count(TrafficClass.EMBB), 3)

    def test_extreme_ratios(self):
        self.assertEqual(classify_traffic(5, 0.0), [TrafficClass.URLLC] * 5)
        self.assertEqual(classify_traffic(5, 1.0), [TrafficClass.EMBB] * 5)
        self.assertEqual(classify_traffic(0, 0.6), [])


class TestTrafficProfiles(unittest.TestCase):
    """Test application profiles"""

    def test_embb_profile(self):
        profile = embb_profile(7000, 10000000)
        self.assertEqual(profile.traffic_class, TrafficClass.EMBB)
        self.assertEqual(profile.port, 7000)
        self.assertEqual(profile.packet_size, 1400)
        self.assertEqual(profile.data_rate_bps, 10000000)
        self.assertIsNone(profile.packet_interval)
        self.assertEqual(profile.five_qi, 9)

    def test_urllc_interval_by_scenario(self):
        dense = urllc_profile(7001, dense=True)
        sparse = urllc_profile(7001, dense=False)
        self.assertEqual(dense.packet_interval, 0.0005)
        self.assertEqual(sparse.packet_interval, 0.001)
        self.assertEqual(dense.packet_size, 100)
        self.assertEqual(dense.five_qi, 80)

    def test_start_times(self):
        starts = schedule_start_times(np.random.RandomState(1), 50, 5.0)
        self.assertEqual(len(starts), 50)
        for start in starts:
            self.assertGreaterEqual(start, 5.0)
            self.assertLess(start, 5.5)


if __name__ == '__main__':
    unittest.main()
