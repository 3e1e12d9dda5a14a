"""
UE placement and cell association.

UEs are dropped around their cell on a scenario-dependent annulus. All draws
come from the RandomState passed in by the caller, in UE index order:
per UE a radius draw then an angle draw, and for UEs left over after every
cell quota is exhausted an x draw then a y draw.
"""

import math
import logging
from typing import List, Tuple

import numpy as np

from ..core.config import Scenario
from .topology import Position

logger = logging.getLogger(__name__)


# Hotspot cells in the dense scenario carry 50% more users
DENSE_HOTSPOT_FACTOR = 1.5

# (min radius in m, max radius as a fraction of ISD)
COVERAGE_ANNULUS = {
    Scenario.DENSE: (10.0, 0.4),
    Scenario.SPARSE: (50.0, 0.8),
}

# Dense radii are drawn into the inner 30% of the annulus width
DENSE_RADIUS_SPREAD = 0.3

# Half-width of the square used for UEs left over after all quotas, in ISDs
SCATTER_HALF_WIDTH = 1.5


def compute_cell_quotas(num_ues: int, num_cells: int, scenario: Scenario) -> List[int]:
    """
    Nominal number of UEs per cell.

    The remainder of num_ues / num_cells goes one UE each to the lowest
    indices. In the dense scenario cells 0 and num_cells // 2 are scaled by
    1.5 (truncated), so the quotas may add up to more than num_ues; placement
    then stops early and later cells receive fewer users than nominal.
    """
    base = num_ues // num_cells
    remainder = num_ues % num_cells

    quotas = []
    for i in range(num_cells):
        quota = base + (1 if i < remainder else 0)
        if scenario == Scenario.DENSE and (i == 0 or i == num_cells // 2):
            quota = int(quota * DENSE_HOTSPOT_FACTOR)
        quotas.append(quota)

    if sum(quotas) > num_ues:
        logger.debug(f"Cell quotas {quotas} exceed {num_ues} UEs, "
                     f"higher-index cells will be under-filled")
    return quotas


def coverage_annulus(scenario: Scenario, isd: float) -> Tuple[float, float]:
    """(min_radius, max_radius) around a cell for the scenario."""
    min_radius, max_factor = COVERAGE_ANNULUS[scenario]
    return min_radius, isd * max_factor


def _sample_radius(rng: np.random.RandomState, scenario: Scenario,
                   min_radius: float, max_radius: float) -> float:
    if scenario == Scenario.DENSE:
        # Concentrated near the cell center
        radius = min_radius + rng.exponential(1.0) * (max_radius - min_radius) * DENSE_RADIUS_SPREAD
        return min(radius, max_radius)
    return rng.uniform(min_radius, max_radius)


def place_users(num_ues: int, cell_layout: List[Position], scenario: Scenario,
                isd: float, ue_height: float,
                rng: np.random.RandomState) -> List[Position]:
    """
    Sample one position per UE.

    Args:
        num_ues: Number of UEs to place
        cell_layout: Cell positions from generate_cell_layout
        scenario: Deployment scenario
        isd: Nominal inter-site distance in meters
        ue_height: UE antenna height in meters
        rng: Shared random source

    Returns:
        List of num_ues positions in UE index order
    """
    num_cells = len(cell_layout)
    quotas = compute_cell_quotas(num_ues, num_cells, scenario) if num_cells else []
    min_radius, max_radius = coverage_annulus(scenario, isd)

    positions: List[Position] = []
    for cell_id, cell_pos in enumerate(cell_layout):
        if len(positions) >= num_ues:
            break
        for _ in range(quotas[cell_id]):
            if len(positions) >= num_ues:
                break
            radius = _sample_radius(rng, scenario, min_radius, max_radius)
            angle = rng.uniform(0.0, 2 * math.pi)
            positions.append(Position(
                cell_pos.x + radius * math.cos(angle),
                cell_pos.y + radius * math.sin(angle),
                ue_height
            ))

    scattered = num_ues - len(positions)
    if scattered > 0:
        logger.info(f"Scattering {scattered} UEs uniformly outside cell quotas")
    area_size = isd * SCATTER_HALF_WIDTH
    while len(positions) < num_ues:
        x = rng.uniform(-area_size, area_size)
        y = rng.uniform(-area_size, area_size)
        positions.append(Position(x, y, ue_height))

    logger.info(f"Placed {num_ues} UEs over {num_cells} cells ({scenario.value})")
    return positions


def attach_to_closest_cell(ue_positions: List[Position],
                           cell_layout: List[Position]) -> List[Tuple[int, float]]:
    """
    Associate each UE with its nearest cell.

    Returns:
        (cell_id, distance) per UE. Ties keep the lowest cell index.
    """
    associations = []
    for ue_pos in ue_positions:
        closest_cell = 0
        min_distance = float('inf')
        for cell_id, cell_pos in enumerate(cell_layout):
            distance = ue_pos.distance_to(cell_pos)
            if distance < min_distance:
                min_distance = distance
                closest_cell = cell_id
        associations.append((closest_cell, min_distance))
    return associations
