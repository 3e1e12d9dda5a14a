"""
Deployment description handed to the radio engine.

A deployment is the full static setup of one run: cell sites, UE positions,
serving-cell association, traffic classes and application schedules. It is
built from the configuration and one seeded random source.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from ..core.config import SimulationConfig
from ..network.topology import Position, CellSite, generate_cell_layout, create_cell_sites
from ..network.placement import place_users, attach_to_closest_cell
from ..traffic.allocation import allocate_embb_rate
from ..traffic.profiles import (
    TrafficClass, TrafficProfile, classify_traffic, embb_profile, urllc_profile,
    schedule_start_times
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UeDeployment:
    """Static placement of one UE"""
    index: int
    position: Position
    traffic_class: TrafficClass
    serving_cell: int  # fixed for the whole run
    distance: float    # to the serving cell, meters


@dataclass(frozen=True)
class ApplicationSchedule:
    """One traffic application (sink on the UE or source on the remote host)"""
    ue_index: int
    role: str  # "server" or "client"
    profile: TrafficProfile
    start_time: float
    stop_time: float


@dataclass(frozen=True)
class AttachedUe:
    """A deployed UE together with the identity the radio engine gave it"""
    ue: UeDeployment
    imsi: int
    address: str

    @property
    def serving_cell(self) -> int:
        return self.ue.serving_cell

    @property
    def distance(self) -> float:
        return self.ue.distance

    @property
    def traffic_class(self) -> TrafficClass:
        return self.ue.traffic_class


@dataclass
class Deployment:
    """Everything the radio engine needs to set up a run"""
    cells: List[CellSite]
    ues: List[UeDeployment]
    applications: List[ApplicationSchedule]
    embb_rate_bps: int

    def cell_ue_counts(self) -> Dict[int, int]:
        """Number of UEs served by each cell, every cell included"""
        counts = Counter(ue.serving_cell for ue in self.ues)
        return {cell.cell_id: counts.get(cell.cell_id, 0) for cell in self.cells}

    def ues_of_class(self, traffic_class: TrafficClass) -> List[UeDeployment]:
        return [ue for ue in self.ues if ue.traffic_class == traffic_class]


def build_cell_sites(config: SimulationConfig) -> List[CellSite]:
    """
    One site per configured cell.

    Sites take template positions in order, wrapping around when the
    template has fewer points than num_cells (unsupported counts above 9).
    """
    layout = generate_cell_layout(config.num_cells, config.inter_site_distance,
                                  config.gnb_height, config.scenario)
    positions = [layout[i % len(layout)] for i in range(config.num_cells)]
    return create_cell_sites(positions)


def build_deployment(config: SimulationConfig, rng: np.random.RandomState) -> Deployment:
    """
    Build the deployment for a run.

    Random draws happen in this order: UE placement, then application start
    times (all servers, then all clients, in UE index order).
    """
    cells = build_cell_sites(config)
    cell_positions = [cell.position for cell in cells]

    ue_positions = place_users(config.num_ues, cell_positions, config.scenario,
                               config.inter_site_distance, config.ue_height, rng)
    associations = attach_to_closest_cell(ue_positions, cell_positions)
    classes = classify_traffic(config.num_ues, config.embb_ratio)

    ues = [
        UeDeployment(index=i, position=pos, traffic_class=cls,
                     serving_cell=cell_id, distance=distance)
        for i, (pos, cls, (cell_id, distance)) in enumerate(zip(ue_positions, classes, associations))
    ]

    num_embb = sum(1 for cls in classes if cls == TrafficClass.EMBB)
    embb_rate = allocate_embb_rate(config.embb_budget_bps, num_embb)
    profiles = {
        TrafficClass.EMBB: embb_profile(config.embb_port, embb_rate),
        TrafficClass.URLLC: urllc_profile(config.urllc_port, config.dense_scenario),
    }

    server_starts = schedule_start_times(rng, len(ues), config.app_start_time)
    client_starts = schedule_start_times(rng, len(ues), config.app_start_time)

    applications = []
    for role, starts in (("server", server_starts), ("client", client_starts)):
        for ue, start in zip(ues, starts):
            applications.append(ApplicationSchedule(
                ue_index=ue.index,
                role=role,
                profile=profiles[ue.traffic_class],
                start_time=start,
                stop_time=config.simulation_time
            ))

    logger.info(f"Deployment built: {len(cells)} cells, {len(ues)} UEs "
                f"({num_embb} eMBB at {embb_rate / 1e6:.2f} Mb/s, {len(ues) - num_embb} URLLC)")
    return Deployment(cells=cells, ues=ues, applications=applications, embb_rate_bps=embb_rate)
