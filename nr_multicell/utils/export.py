"""
Result file export for multi-cell 5G NR experiments.

Every run produces four files named after the cell count. Numeric columns
use fixed-point notation with a per-column precision so files from
different runs and tools compare textually.
"""

import os
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import pandas as pd

from ..core.config import SimulationConfig
from ..simulation.deployment import Deployment
from ..simulation.metrics import CellSummary, FlowRecord, SimulationResults, SystemSummary

logger = logging.getLogger(__name__)


FLOW_HEADER = [
    "FlowId", "TrafficType", "UeImsi", "ServingCell", "Distance(m)", "DstAddr",
    "AvgSinr(dB)", "MinSinr(dB)", "MaxSinr(dB)", "SinrStdDev(dB)",
    "TxPackets", "RxPackets", "LostPackets", "PacketLossRatio(%)",
    "Throughput(Mbps)", "MeanDelay(ms)", "MeanJitter(ms)",
    "QoEScore", "ReliabilityScore", "Numerology",
]

CELL_HEADER = [
    "CellId", "NumUEs", "TotalThroughput(Mbps)", "SpectralEfficiency(bps/Hz)",
    "TxPackets", "RxPackets", "LostPackets", "PacketLossRatio(%)",
    "AvgSINR(dB)", "AvgDelay(ms)", "AvgJitter(ms)",
    "CellQoEScore", "CellReliability(%)", "LoadBalance(%)",
]

SYSTEM_HEADER = ["Metric", "Value", "Unit"]

DEPLOYMENT_HEADER = ["NodeType", "Id", "X(m)", "Y(m)", "Z(m)", "TrafficType", "ServingCell", "Distance(m)"]


def fixed(value: float, precision: int) -> str:
    return f"{value:.{precision}f}"


def output_filenames(num_cells: int) -> Dict[str, str]:
    return {
        'flows': f"flow_stats_optimized_{num_cells}cell.csv",
        'cells': f"cell_stats_optimized_{num_cells}cell.csv",
        'system': f"system_stats_optimized_{num_cells}cell.csv",
        'config': f"simulation_config_optimized_{num_cells}cell.txt",
    }


def format_flow_row(record: FlowRecord) -> List[str]:
    return [
        str(record.flow_id),
        record.traffic_class.value,
        str(record.imsi),
        str(record.serving_cell),
        fixed(record.distance, 2),
        record.address,
        fixed(record.avg_sinr, 2),
        fixed(record.min_sinr, 2),
        fixed(record.max_sinr, 2),
        fixed(record.sinr_std_dev, 2),
        str(record.tx_packets),
        str(record.rx_packets),
        str(record.lost_packets),
        fixed(record.loss_ratio, 4),
        fixed(record.throughput_mbps, 3),
        fixed(record.mean_delay_ms, 3),
        fixed(record.mean_jitter_ms, 3),
        fixed(record.qoe_score, 1),
        fixed(record.reliability_score, 1),
        str(record.numerology),
    ]


def format_cell_row(summary: CellSummary) -> List[str]:
    return [
        str(summary.cell_id),
        str(summary.num_ues),
        fixed(summary.total_throughput, 3),
        fixed(summary.spectral_efficiency, 2),
        str(summary.total_tx),
        str(summary.total_rx),
        str(summary.total_lost),
        fixed(summary.loss_ratio, 4),
        fixed(summary.avg_sinr, 2),
        fixed(summary.avg_delay, 3),
        fixed(summary.avg_jitter, 3),
        fixed(summary.qoe_score, 1),
        fixed(summary.reliability, 1),
        fixed(summary.load_balance, 1),
    ]


def format_system_rows(system: SystemSummary) -> List[List[str]]:
    return [
        ["TotalSystemThroughput", fixed(system.total_throughput, 3), "Mbps"],
        ["AvgThroughputPerCell", fixed(system.avg_throughput_per_cell, 3), "Mbps"],
        ["AvgThroughputPerUE", fixed(system.avg_throughput_per_ue, 3), "Mbps"],
        ["AvgURLLCDelay", fixed(system.avg_urllc_delay, 3), "ms"],
        ["AvgEmbbDelay", fixed(system.avg_embb_delay, 3), "ms"],
        ["HandoverAttempts", str(system.handover_attempts), "count"],
        ["HandoverSuccess", str(system.handover_successes), "count"],
        ["HandoverFailures", str(system.handover_failures), "count"],
        ["HandoverSuccessRate", fixed(system.handover_success_rate, 2), "%"],
        ["SystemSpectralEfficiency", fixed(system.spectral_efficiency, 3), "bps/Hz/cell"],
        ["UserDensity", fixed(system.user_density, 1), "UE/km2"],
        ["ScenarioType", system.scenario_name, "type"],
        ["NumCells", str(system.num_cells), "count"],
        ["NumUEs", str(system.num_ues), "count"],
        ["InterSiteDistance", fixed(system.inter_site_distance, 1), "m"],
        ["SimulationTime", fixed(system.simulation_time, 1), "s"],
        ["Numerology", str(system.numerology), "30kHz_SCS"],
        ["UeTxPower", fixed(system.ue_tx_power, 1), "dBm"],
        ["PropagationModel", system.propagation_model, "type"],
    ]


def format_config_lines(config: SimulationConfig, embb_rate_bps: Optional[int] = None) -> List[str]:
    """Human-readable echo of the effective configuration"""
    scenario_label = "Dense urban" if config.dense_scenario else "Sparse suburban"
    urllc_interval_ms = 0.5 if config.dense_scenario else 1.0
    lines = [
        "=== RADIO CONFIGURATION ===",
        f"Numerology: {config.numerology} (30 kHz SCS)",
        f"UE Tx power: {config.ue_tx_power:g} dBm",
        f"URLLC send interval: {urllc_interval_ms:g} ms",
        f"Propagation model: {config.propagation_model}",
        f"Handover: {config.handover_algorithm} (ServingCellThreshold 15, NeighbourCellOffset 3)",
        "",
        "=== EXPERIMENT PARAMETERS ===",
        f"Number of cells: {config.num_cells}",
        f"Number of UEs: {config.num_ues}",
        f"eMBB ratio: {config.embb_ratio:g}",
        f"URLLC ratio: {1.0 - config.embb_ratio:g}",
        f"Scenario: {scenario_label}",
        f"Inter-site distance: {config.inter_site_distance:g} m",
        f"gNB height: {config.gnb_height:g} m",
        f"UE height: {config.ue_height:g} m",
        f"gNB Tx power: {config.gnb_tx_power:g} dBm",
        f"Frequency: {config.carrier_frequency / 1e9:g} GHz (FR1)",
        f"Bandwidth: {config.bandwidth / 1e6:g} MHz",
        f"Scheduler: {config.scheduler}",
        f"Handover algorithm: {config.handover_algorithm}",
        f"Simulation time: {config.simulation_time:g} s",
        f"Application start time: {config.app_start_time:g} s",
        f"RNG seed: {config.random_seed}",
    ]
    if embb_rate_bps is not None:
        lines.append(f"eMBB rate per UE: {embb_rate_bps / 1e6:g} Mb/s")
    return lines


class ResultsWriter:
    """Writes the output files of one run into a directory"""

    def __init__(self, output_directory: str):
        self.output_directory = output_directory

    def ensure_directory(self):
        try:
            os.makedirs(self.output_directory, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create output directory {self.output_directory}: {e}")
            raise

    def _path(self, filename: str) -> str:
        return os.path.join(self.output_directory, filename)

    def _write_table(self, filename: str, header: Sequence[str], rows: List[List[str]]) -> str:
        path = self._path(filename)
        df = pd.DataFrame(rows, columns=list(header))
        try:
            df.to_csv(path, index=False, lineterminator="\n")
        except OSError as e:
            logger.error(f"Cannot write {path}: {e}")
            raise
        logger.info(f"Wrote {len(rows)} rows to {path}")
        return path

    def _write_lines(self, filename: str, lines: List[str]) -> str:
        path = self._path(filename)
        try:
            with open(path, 'w') as f:
                f.write("\n".join(lines) + "\n")
        except OSError as e:
            logger.error(f"Cannot write {path}: {e}")
            raise
        logger.info(f"Configuration saved to {path}")
        return path

    def write_flow_stats(self, flows: List[FlowRecord], num_cells: int) -> str:
        return self._write_table(output_filenames(num_cells)['flows'], FLOW_HEADER,
                                 [format_flow_row(r) for r in flows])

    def write_cell_stats(self, cells: List[CellSummary], num_cells: int) -> str:
        return self._write_table(output_filenames(num_cells)['cells'], CELL_HEADER,
                                 [format_cell_row(c) for c in cells])

    def write_system_stats(self, system: SystemSummary, num_cells: int) -> str:
        return self._write_table(output_filenames(num_cells)['system'], SYSTEM_HEADER,
                                 format_system_rows(system))

    def write_config(self, config: SimulationConfig, embb_rate_bps: Optional[int] = None) -> str:
        return self._write_lines(output_filenames(config.num_cells)['config'],
                                 format_config_lines(config, embb_rate_bps))

    def write_deployment(self, deployment: Deployment, num_cells: int) -> str:
        """Cell and UE positions for consumption by an external radio engine"""
        rows = []
        for cell in deployment.cells:
            p = cell.position
            rows.append(["gNB", str(cell.cell_id), fixed(p.x, 2), fixed(p.y, 2), fixed(p.z, 2), "", "", ""])
        for ue in deployment.ues:
            p = ue.position
            rows.append(["UE", str(ue.index), fixed(p.x, 2), fixed(p.y, 2), fixed(p.z, 2),
                         ue.traffic_class.value, str(ue.serving_cell), fixed(ue.distance, 2)])
        return self._write_table(f"deployment_{num_cells}cell.csv", DEPLOYMENT_HEADER, rows)

    def write_all(self, results: SimulationResults, config: SimulationConfig,
                  deployment: Optional[Deployment] = None) -> List[str]:
        """
        Write flow, cell, system and configuration files

        Raises:
            OSError: If the directory or a file cannot be created
        """
        self.ensure_directory()
        num_cells = config.num_cells
        paths = [
            self.write_flow_stats(results.flows, num_cells),
            self.write_cell_stats(results.cells, num_cells),
            self.write_system_stats(results.system, num_cells),
            self.write_config(config, deployment.embb_rate_bps if deployment else None),
        ]
        if deployment is not None:
            paths.append(self.write_deployment(deployment, num_cells))
        return paths
