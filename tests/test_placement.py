"""
Tests for UE placement, cell association and deployment building
"""

import unittest
import sys
import os
import math

import numpy as np

# Add package root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nr_multicell.core.config import SimulationConfig, Scenario
from nr_multicell.network.topology import Position, generate_cell_layout
from nr_multicell.network.placement import (
    compute_cell_quotas, coverage_annulus, place_users, attach_to_closest_cell
)
from nr_multicell.simulation.deployment import build_deployment, build_cell_sites
from nr_multicell.traffic.profiles import TrafficClass


def planar_distance(a, b):
    return math.hypot(a.x - b.x, a.y - b.y)


class TestCellQuotas(unittest.TestCase):
    """Test compute_cell_quotas"""

    def test_remainder_to_lowest_indices(self):
        self.assertEqual(compute_cell_quotas(10, 3, Scenario.SPARSE), [4, 3, 3])
        self.assertEqual(compute_cell_quotas(9, 3, Scenario.SPARSE), [3, 3, 3])

    def test_dense_hotspots(self):
        """Cells 0 and num_cells // 2 get 1.5x, truncated"""
        self.assertEqual(compute_cell_quotas(30, 3, Scenario.DENSE), [15, 15, 10])
        self.assertEqual(compute_cell_quotas(11, 5, Scenario.DENSE), [4, 2, 3, 2, 2])

    def test_dense_single_cell_scaled_once(self):
        self.assertEqual(compute_cell_quotas(30, 1, Scenario.DENSE), [45])


class TestPlaceUsers(unittest.TestCase):
    """Test place_users"""

    def test_exact_count(self):
        for scenario in Scenario:
            for num_cells in (1, 3, 5, 7, 9):
                layout = generate_cell_layout(num_cells, 200.0, 25.0, scenario)
                rng = np.random.RandomState(1)
                positions = place_users(45, layout, scenario, 200.0, 1.5, rng)
                self.assertEqual(len(positions), 45)
                for position in positions:
                    self.assertEqual(position.z, 1.5)

    def test_zero_ues(self):
        layout = generate_cell_layout(3, 200.0, 25.0, Scenario.SPARSE)
        self.assertEqual(place_users(0, layout, Scenario.SPARSE, 200.0, 1.5,
                                     np.random.RandomState(1)), [])

    def test_deterministic_for_seed(self):
        layout = generate_cell_layout(5, 200.0, 25.0, Scenario.DENSE)
        first = place_users(30, layout, Scenario.DENSE, 200.0, 1.5, np.random.RandomState(7))
        second = place_users(30, layout, Scenario.DENSE, 200.0, 1.5, np.random.RandomState(7))
        self.assertEqual(first, second)

        third = place_users(30, layout, Scenario.DENSE, 200.0, 1.5, np.random.RandomState(8))
        self.assertNotEqual(first, third)

    def test_sparse_annulus(self):
        layout = generate_cell_layout(1, 200.0, 25.0, Scenario.SPARSE)
        min_radius, max_radius = coverage_annulus(Scenario.SPARSE, 200.0)
        self.assertEqual((min_radius, max_radius), (50.0, 160.0))

        positions = place_users(200, layout, Scenario.SPARSE, 200.0, 1.5, np.random.RandomState(3))
        for position in positions:
            r = planar_distance(position, layout[0])
            self.assertGreaterEqual(r, min_radius - 1e-9)
            self.assertLessEqual(r, max_radius + 1e-9)

    def test_dense_annulus(self):
        layout = generate_cell_layout(1, 200.0, 25.0, Scenario.DENSE)
        min_radius, max_radius = coverage_annulus(Scenario.DENSE, 200.0)
        self.assertEqual((min_radius, max_radius), (10.0, 80.0))

        positions = place_users(200, layout, Scenario.DENSE, 200.0, 1.5, np.random.RandomState(3))
        for position in positions:
            r = planar_distance(position, layout[0])
            self.assertGreaterEqual(r, min_radius - 1e-9)
            self.assertLessEqual(r, max_radius + 1e-9)

    def test_dense_quotas_stop_early(self):
        """With 30 UEs over 3 dense cells the third cell gets none"""
        layout = generate_cell_layout(3, 200.0, 25.0, Scenario.DENSE)
        _, max_radius = coverage_annulus(Scenario.DENSE, 200.0)
        positions = place_users(30, layout, Scenario.DENSE, 200.0, 1.5, np.random.RandomState(1))

        for position in positions[:15]:
            self.assertLessEqual(planar_distance(position, layout[0]), max_radius + 1e-9)
        for position in positions[15:]:
            self.assertLessEqual(planar_distance(position, layout[1]), max_radius + 1e-9)

    def test_scatter_without_cells(self):
        positions = place_users(5, [], Scenario.SPARSE, 200.0, 1.5, np.random.RandomState(1))
        self.assertEqual(len(positions), 5)
        for position in positions:
            self.assertLessEqual(abs(position.x), 300.0)
            self.assertLessEqual(abs(position.y), 300.0)


class TestAttachToClosestCell(unittest.TestCase):
    """Test attach_to_closest_cell"""

    def test_nearest_cell(self):
        cells = [Position(0, 0, 25.0), Position(100, 0, 25.0)]
        ues = [Position(10, 0, 1.5), Position(90, 5, 1.5)]
        associations = attach_to_closest_cell(ues, cells)
        self.assertEqual([cell for cell, _ in associations], [0, 1])
        self.assertAlmostEqual(associations[0][1], math.sqrt(10 ** 2 + 23.5 ** 2))

    def test_tie_keeps_lowest_index(self):
        cells = [Position(-10, 0, 25.0), Position(10, 0, 25.0)]
        associations = attach_to_closest_cell([Position(0, 0, 1.5)], cells)
        self.assertEqual(associations[0][0], 0)


class TestBuildDeployment(unittest.TestCase):
    """Test build_deployment"""

    def setUp(self):
        self.config = SimulationConfig(num_cells=3, num_ues=10, embb_ratio=0.6)

    def test_ues_and_classes(self):
        deployment = build_deployment(self.config, np.random.RandomState(1))
        self.assertEqual(len(deployment.cells), 3)
        self.assertEqual(len(deployment.ues), 10)
        self.assertEqual([ue.index for ue in deployment.ues], list(range(10)))
        self.assertEqual(len(deployment.ues_of_class(TrafficClass.EMBB)), 6)
        self.assertEqual(len(deployment.ues_of_class(TrafficClass.URLLC)), 4)
        self.assertTrue(all(ue.traffic_class == TrafficClass.EMBB for ue in deployment.ues[:6]))

    def test_embb_rate_clamped(self):
        # 200 Mb/s over 6 UEs exceeds the 20 Mb/s ceiling
        deployment = build_deployment(self.config, np.random.RandomState(1))
        self.assertEqual(deployment.embb_rate_bps, 20000000)

    def test_cell_ue_counts_cover_every_cell(self):
        deployment = build_deployment(self.config, np.random.RandomState(1))
        counts = deployment.cell_ue_counts()
        self.assertEqual(sorted(counts.keys()), [0, 1, 2])
        self.assertEqual(sum(counts.values()), 10)

    def test_applications(self):
        deployment = build_deployment(self.config, np.random.RandomState(1))
        self.assertEqual(len(deployment.applications), 20)
        self.assertEqual([a.role for a in deployment.applications[:10]], ["server"] * 10)
        self.assertEqual([a.role for a in deployment.applications[10:]], ["client"] * 10)
        for app in deployment.applications:
            self.assertGreaterEqual(app.start_time, 5.0)
            self.assertLess(app.start_time, 5.5)
            self.assertEqual(app.stop_time, 15.0)

        embb_app = deployment.applications[0]
        self.assertEqual(embb_app.profile.port, 7000)
        self.assertEqual(embb_app.profile.data_rate_bps, 20000000)
        urllc_app = deployment.applications[9]
        self.assertEqual(urllc_app.profile.port, 7001)
        self.assertEqual(urllc_app.profile.packet_interval, 0.001)

    def test_deterministic_for_seed(self):
        first = build_deployment(self.config, np.random.RandomState(4))
        second = build_deployment(self.config, np.random.RandomState(4))
        self.assertEqual(first.ues, second.ues)
        self.assertEqual(first.applications, second.applications)

    def test_sites_wrap_for_large_counts(self):
        config = SimulationConfig(num_cells=12)
        sites = build_cell_sites(config)
        self.assertEqual(len(sites), 12)
        self.assertEqual(sites[9].position, sites[0].position)
        self.assertEqual(sites[11].cell_id, 11)


if __name__ == '__main__':
    unittest.main()
