"""
Cell topology generation for multi-cell 5G NR deployments.

This module places gNB sites on fixed geometric templates keyed by the
number of cells. Layouts are deterministic: no random draws are consumed.
"""

import math
import logging
from typing import Callable, Dict, List
from dataclasses import dataclass

from ..core.config import Scenario

logger = logging.getLogger(__name__)


# Real deployments are denser in urban areas and sparser in suburban ones
ISD_SCALE = {
    Scenario.DENSE: 0.7,
    Scenario.SPARSE: 1.3,
}

SUPPORTED_CELL_COUNTS = (1, 3, 5, 7, 9)
DEFAULT_CELL_COUNT = 9


@dataclass(frozen=True)
class Position:
    """3D position in meters."""
    x: float
    y: float
    z: float = 0.0

    def distance_to(self, other: 'Position') -> float:
        """Euclidean distance, height included."""
        return math.sqrt((self.x - other.x)**2 + (self.y - other.y)**2 + (self.z - other.z)**2)


@dataclass(frozen=True)
class CellSite:
    """A gNB site: 0-based index and antenna position."""
    cell_id: int
    position: Position


def effective_isd(isd: float, scenario: Scenario) -> float:
    """Scale the nominal inter-site distance for the scenario."""
    return isd * ISD_SCALE[scenario]


def _single(d: float) -> List[tuple]:
    return [(0.0, 0.0)]


def _triangle(d: float) -> List[tuple]:
    r = d * 0.577  # circumradius
    return [
        (0.0, r),
        (-r * 0.866, -r * 0.5),
        (r * 0.866, -r * 0.5),
    ]


def _cross(d: float) -> List[tuple]:
    offset = d * 0.7
    return [
        (0.0, 0.0),
        (offset, 0.0),
        (-offset, 0.0),
        (0.0, offset),
        (0.0, -offset),
    ]


def _ring(num_points: int, radius_factor: float) -> Callable[[float], List[tuple]]:
    """Center site plus num_points sites evenly spaced on a circle."""
    def template(d: float) -> List[tuple]:
        r = d * radius_factor
        points = [(0.0, 0.0)]
        for i in range(num_points):
            angle = i * math.pi / (num_points / 2)
            points.append((r * math.cos(angle), r * math.sin(angle)))
        return points
    return template


CELL_LAYOUT_TEMPLATES: Dict[int, Callable[[float], List[tuple]]] = {
    1: _single,
    3: _triangle,
    5: _cross,
    7: _ring(6, 0.6),   # hexagon with center
    9: _ring(8, 0.65),  # center + 8 directions
}


def generate_cell_layout(num_cells: int, isd: float, height: float,
                         scenario: Scenario) -> List[Position]:
    """
    Generate gNB positions for a supported cell count.

    Args:
        num_cells: Number of cells (1, 3, 5, 7 or 9)
        isd: Nominal inter-site distance in meters
        height: Antenna height in meters
        scenario: Deployment scenario

    Returns:
        Ordered list of positions, one per cell

    Any other count uses the 9-cell template, so the number of returned
    positions then differs from num_cells.
    """
    template = CELL_LAYOUT_TEMPLATES.get(num_cells)
    if template is None:
        logger.warning(f"Unsupported cell count {num_cells}, "
                       f"falling back to the {DEFAULT_CELL_COUNT}-cell template")
        template = CELL_LAYOUT_TEMPLATES[DEFAULT_CELL_COUNT]

    d = effective_isd(isd, scenario)
    positions = [Position(x, y, height) for x, y in template(d)]

    logger.info(f"Generated {len(positions)}-cell layout for {scenario.value} scenario "
                f"(effective ISD {d:.1f} m)")
    return positions


def create_cell_sites(positions: List[Position]) -> List[CellSite]:
    """Wrap layout positions into indexed cell sites."""
    return [CellSite(cell_id=i, position=p) for i, p in enumerate(positions)]
