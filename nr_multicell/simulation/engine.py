"""
Experiment driver for multi-cell 5G NR runs.

The radio physics, scheduler, handover decisions and event loop belong to an
external radio-network engine. This module builds the deployment, wires a
fresh telemetry aggregator into that engine, runs it to the stop time and
reduces what it reports.
"""

import time
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import numpy as np

from ..core.config import SimulationConfig
from ..telemetry.aggregator import TelemetryAggregator
from .deployment import AttachedUe, Deployment, build_deployment
from .metrics import FlowStats, SimulationResults, StatisticsEngine

logger = logging.getLogger(__name__)


class RadioNetworkEngine(ABC):
    """
    Interface to the external radio-network engine.

    Implementations run a single-threaded event loop and call the aggregator
    handlers synchronously, in simulated time order.
    """

    @abstractmethod
    def deploy(self, deployment: Deployment) -> List[Tuple[int, str]]:
        """
        Install cells, UEs and applications and attach every UE.

        Returns:
            (imsi, ipv4 address) per UE, in UE index order
        """

    @abstractmethod
    def connect_telemetry(self, aggregator: TelemetryAggregator):
        """Route telemetry callbacks of the next run to the aggregator"""

    def disconnect_telemetry(self):
        """Stop routing telemetry callbacks"""

    @abstractmethod
    def run(self, until: float):
        """Run the event loop until the stop time; all earlier events fire"""

    @abstractmethod
    def flow_stats(self) -> List[FlowStats]:
        """Final counters of every flow, available once run() returned"""


class SimulationEngine:
    """
    Coordinates one experiment run
    """

    def __init__(self, config: SimulationConfig, radio_engine: RadioNetworkEngine):
        self.config = config
        self.radio_engine = radio_engine

        self.rng: Optional[np.random.RandomState] = None

        self.deployment: Optional[Deployment] = None
        self.attached_ues: List[AttachedUe] = []
        self.aggregator: Optional[TelemetryAggregator] = None

        logger.info(f"Simulation engine initialized with {config.num_cells} cells and "
                    f"{config.num_ues} UEs ({config.scenario_name} scenario, seed {config.random_seed})")

    def setup_network(self) -> Deployment:
        """Generate the cell layout, place UEs and plan the traffic"""
        logger.info("Setting up network topology")
        # One random source per run, shared by every sampler
        self.rng = np.random.RandomState(self.config.random_seed)
        self.deployment = build_deployment(self.config, self.rng)
        return self.deployment

    def attach_ues(self) -> List[AttachedUe]:
        """Hand the deployment to the radio engine and record UE identities"""
        identities = self.radio_engine.deploy(self.deployment)
        if len(identities) != len(self.deployment.ues):
            raise ValueError(f"Radio engine attached {len(identities)} UEs, "
                             f"expected {len(self.deployment.ues)}")

        self.attached_ues = [
            AttachedUe(ue=ue, imsi=imsi, address=address)
            for ue, (imsi, address) in zip(self.deployment.ues, identities)
        ]
        for attached in self.attached_ues:
            logger.debug(f"UE {attached.ue.index} (IMSI {attached.imsi}, {attached.address}) "
                         f"served by cell {attached.serving_cell} at {attached.distance:.1f} m")
        return self.attached_ues

    def run(self) -> SimulationResults:
        """
        Run the experiment

        Returns:
            Flow, cell and system records of the run
        """
        start = time.time()
        logger.info(f"Starting simulation for {self.config.simulation_time} seconds")

        self.setup_network()
        self.attach_ues()

        self.aggregator = TelemetryAggregator()
        self.radio_engine.connect_telemetry(self.aggregator)
        try:
            self.radio_engine.run(until=self.config.simulation_time)
        except Exception as e:
            logger.error(f"Simulation error: {e}")
            raise
        finally:
            self.radio_engine.disconnect_telemetry()

        logger.info("Simulation completed")

        results = self._collect_results()
        results.execution_time = time.time() - start
        return results

    def _collect_results(self) -> SimulationResults:
        statistics = StatisticsEngine(self.config, self.aggregator, self.attached_ues)
        return statistics.generate_results(self.radio_engine.flow_stats(),
                                           self.deployment.cell_ue_counts())

    def save_results(self, results: SimulationResults, output_directory: Optional[str] = None) -> List[str]:
        """Write the per-run output files"""
        from ..utils.export import ResultsWriter

        writer = ResultsWriter(output_directory or self.config.output_directory)
        return writer.write_all(results, self.config, self.deployment)
