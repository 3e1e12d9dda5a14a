"""
Tests for cell layout generation.
"""

import unittest
import sys
import os
import math

# Add package root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nr_multicell.core.config import Scenario
from nr_multicell.network.topology import (
    Position, generate_cell_layout, create_cell_sites, effective_isd, SUPPORTED_CELL_COUNTS
)


class TestPosition(unittest.TestCase):
    """Test Position class."""

    def test_distance_includes_height(self):
        """Distance is 3D."""
        gnb = Position(0, 0, 25.0)
        ue = Position(3, 4, 25.0)
        self.assertAlmostEqual(gnb.distance_to(ue), 5.0, places=9)

        ue_low = Position(0, 0, 1.5)
        self.assertAlmostEqual(gnb.distance_to(ue_low), 23.5, places=9)


class TestCellLayout(unittest.TestCase):
    """Test generate_cell_layout."""

    def test_supported_counts(self):
        """Every supported count yields that many cells at the requested height."""
        for scenario in Scenario:
            for num_cells in SUPPORTED_CELL_COUNTS:
                layout = generate_cell_layout(num_cells, 200.0, 25.0, scenario)
                self.assertEqual(len(layout), num_cells)
                for position in layout:
                    self.assertEqual(position.z, 25.0)

    def test_center_point(self):
        """Templates with a center start at the origin."""
        for num_cells in (1, 5, 7, 9):
            layout = generate_cell_layout(num_cells, 200.0, 30.0, Scenario.SPARSE)
            self.assertEqual(layout[0], Position(0.0, 0.0, 30.0))

    def test_triangle(self):
        """3 cells form a triangle with circumradius 0.577 * effective ISD."""
        layout = generate_cell_layout(3, 200.0, 25.0, Scenario.SPARSE)
        r = 200.0 * 1.3 * 0.577
        self.assertAlmostEqual(layout[0].x, 0.0)
        self.assertAlmostEqual(layout[0].y, r)
        self.assertAlmostEqual(layout[1].x, -r * 0.866)
        self.assertAlmostEqual(layout[1].y, -r * 0.5)
        self.assertAlmostEqual(layout[2].x, r * 0.866)
        self.assertAlmostEqual(layout[2].y, -r * 0.5)

    def test_cross(self):
        """5 cells: center plus +x, -x, +y, -y."""
        layout = generate_cell_layout(5, 100.0, 25.0, Scenario.DENSE)
        offset = 100.0 * 0.7 * 0.7
        expected = [(0, 0), (offset, 0), (-offset, 0), (0, offset), (0, -offset)]
        for position, (x, y) in zip(layout, expected):
            self.assertAlmostEqual(position.x, x)
            self.assertAlmostEqual(position.y, y)

    def test_hexagon_radius(self):
        """7 cells: ring sites at 0.6 * effective ISD, 60 degrees apart."""
        layout = generate_cell_layout(7, 200.0, 25.0, Scenario.DENSE)
        r = 200.0 * 0.7 * 0.6
        for i, position in enumerate(layout[1:]):
            self.assertAlmostEqual(math.hypot(position.x, position.y), r)
            self.assertAlmostEqual(math.atan2(position.y, position.x) % (2 * math.pi),
                                   (i * math.pi / 3) % (2 * math.pi), places=9)

    def test_nine_cell_radius(self):
        layout = generate_cell_layout(9, 200.0, 25.0, Scenario.SPARSE)
        r = 200.0 * 1.3 * 0.65
        self.assertAlmostEqual(layout[1].x, r)
        self.assertAlmostEqual(layout[1].y, 0.0)
        for position in layout[1:]:
            self.assertAlmostEqual(math.hypot(position.x, position.y), r)

    def test_unsupported_count_falls_back(self):
        """Unsupported counts use the 9-cell template without raising."""
        expected = generate_cell_layout(9, 200.0, 25.0, Scenario.DENSE)
        for num_cells in (2, 4, 12):
            layout = generate_cell_layout(num_cells, 200.0, 25.0, Scenario.DENSE)
            self.assertEqual(layout, expected)

    def test_deterministic(self):
        first = generate_cell_layout(7, 250.0, 25.0, Scenario.SPARSE)
        second = generate_cell_layout(7, 250.0, 25.0, Scenario.SPARSE)
        self.assertEqual(first, second)

    def test_effective_isd(self):
        self.assertAlmostEqual(effective_isd(200.0, Scenario.DENSE), 140.0)
        self.assertAlmostEqual(effective_isd(200.0, Scenario.SPARSE), 260.0)

    def test_cell_sites_indexed(self):
        layout = generate_cell_layout(5, 200.0, 25.0, Scenario.SPARSE)
        sites = create_cell_sites(layout)
        self.assertEqual([s.cell_id for s in sites], [0, 1, 2, 3, 4])
        self.assertEqual(sites[3].position, layout[3])


if __name__ == '__main__':
    unittest.main()
