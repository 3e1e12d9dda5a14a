"""
Statistics and scoring for multi-cell 5G NR experiments.

This module joins the radio engine's final flow counters with the telemetry
accumulated during the run and derives flow, cell and system level records
with QoE and reliability scores.
"""

import math
import logging
from dataclasses import dataclass
from typing import Dict, List, Iterable, Optional

import numpy as np

from ..core.config import SimulationConfig
from ..telemetry.aggregator import TelemetryAggregator, HandoverCounters
from ..traffic.profiles import TrafficClass
from .deployment import AttachedUe

logger = logging.getLogger(__name__)


SCORE_MAX = 100.0

# eMBB QoE thresholds
EMBB_MIN_THROUGHPUT_MBPS = 25.0
EMBB_MAX_DELAY_MS = 20.0
EMBB_MAX_LOSS_PCT = 1.0

# URLLC QoE thresholds
URLLC_MAX_DELAY_MS = 5.0
URLLC_MAX_LOSS_PCT = 0.1
URLLC_MAX_JITTER_MS = 2.0

# Reliability thresholds (dB)
RELIABILITY_MAX_SINR_RANGE = 20.0
RELIABILITY_MIN_SINR = 10.0

# Cell QoE thresholds
CELL_MAX_DELAY_MS = 10.0
CELL_MAX_LOSS_PCT = 1.0
CELL_MIN_SINR = 15.0
CELL_LOSS_RELIABILITY_WEIGHT = 10.0

# Area served by one cell is approximated by a disc of 1.2 ISD
CELL_AREA_RADIUS_FACTOR = 1.2


def clamp_score(score: float) -> float:
    return max(0.0, min(SCORE_MAX, score))


@dataclass
class FlowStats:
    """Final counters of one transport flow, as reported by the radio engine"""
    flow_id: int
    tx_packets: int
    rx_packets: int
    delay_sum: float   # seconds
    jitter_sum: float  # seconds
    rx_bytes: int
    time_first_tx: float  # seconds
    time_last_rx: float   # seconds
    destination_address: str
    destination_port: int


@dataclass
class FlowRecord:
    """Derived per-flow statistics"""
    flow_id: int
    traffic_class: TrafficClass
    imsi: int
    serving_cell: int
    distance: float
    address: str
    avg_sinr: float
    min_sinr: float
    max_sinr: float
    sinr_std_dev: float
    tx_packets: int
    rx_packets: int
    lost_packets: int
    loss_ratio: float  # percent
    throughput_mbps: float
    mean_delay_ms: float
    mean_jitter_ms: float
    qoe_score: float
    reliability_score: float
    numerology: int = 2


@dataclass
class CellSummary:
    """Per-cell fold of the flow records served by that cell"""
    cell_id: int
    num_ues: int = 0
    total_throughput: float = 0.0  # Mbps
    total_tx: int = 0
    total_rx: int = 0
    total_lost: int = 0
    total_sinr: float = 0.0
    sinr_samples: int = 0
    total_delay: float = 0.0
    total_jitter: float = 0.0
    total_rx_packets: int = 0
    flows: int = 0
    load_balance: float = 0.0
    bandwidth: float = 100e6  # Hz

    def add_flow(self, record: FlowRecord):
        self.total_throughput += record.throughput_mbps
        self.total_tx += record.tx_packets
        self.total_rx += record.rx_packets
        self.total_lost += record.lost_packets
        self.total_sinr += record.avg_sinr
        self.sinr_samples += 1
        self.total_delay += record.mean_delay_ms
        self.total_jitter += record.mean_jitter_ms
        self.total_rx_packets += record.rx_packets
        self.flows += 1

    @property
    def loss_ratio(self) -> float:
        return 100.0 * self.total_lost / self.total_tx if self.total_tx > 0 else 0.0

    @property
    def avg_sinr(self) -> float:
        return self.total_sinr / self.sinr_samples if self.sinr_samples > 0 else 0.0

    @property
    def avg_delay(self) -> float:
        return self.total_delay / self.flows if self.flows > 0 else 0.0

    @property
    def avg_jitter(self) -> float:
        return self.total_jitter / self.flows if self.flows > 0 else 0.0

    @property
    def spectral_efficiency(self) -> float:
        """bps/Hz over the carrier bandwidth"""
        return self.total_throughput * 1e6 / self.bandwidth

    @property
    def qoe_score(self) -> float:
        return compute_cell_qoe_score(self.avg_delay, self.loss_ratio, self.avg_sinr)

    @property
    def reliability(self) -> float:
        return compute_cell_reliability(self.loss_ratio, self.avg_sinr)


@dataclass
class SystemSummary:
    """Run-wide figures plus the configuration they were obtained with"""
    total_throughput: float
    avg_throughput_per_cell: float
    avg_throughput_per_ue: float
    avg_urllc_delay: float
    avg_embb_delay: float
    handover_attempts: int
    handover_successes: int
    handover_failures: int
    handover_success_rate: float
    spectral_efficiency: float  # bps/Hz/cell
    user_density: float         # UE/km2
    scenario_name: str
    num_cells: int
    num_ues: int
    inter_site_distance: float
    simulation_time: float
    numerology: int
    ue_tx_power: float
    propagation_model: str


@dataclass
class SimulationResults:
    """Container for the records of one run."""
    flows: List[FlowRecord]
    cells: List[CellSummary]
    system: SystemSummary
    config: Optional[SimulationConfig] = None
    execution_time: float = 0.0
    discarded_flows: int = 0


def compute_qoe_score(traffic_class: TrafficClass, throughput_mbps: float,
                      mean_delay_ms: float, loss_ratio: float, mean_jitter_ms: float) -> float:
    """
    Class-specific QoE on a 0-100 scale.

    Each violated threshold multiplies the score by threshold/value (or
    value/threshold for throughput). Penalties compound and boundaries are
    exclusive.
    """
    score = SCORE_MAX
    if traffic_class == TrafficClass.EMBB:
        if throughput_mbps < EMBB_MIN_THROUGHPUT_MBPS:
            score *= throughput_mbps / EMBB_MIN_THROUGHPUT_MBPS
        if mean_delay_ms > EMBB_MAX_DELAY_MS:
            score *= EMBB_MAX_DELAY_MS / mean_delay_ms
        if loss_ratio > EMBB_MAX_LOSS_PCT:
            score *= EMBB_MAX_LOSS_PCT / loss_ratio
    else:
        if mean_delay_ms > URLLC_MAX_DELAY_MS:
            score *= URLLC_MAX_DELAY_MS / mean_delay_ms
        if loss_ratio > URLLC_MAX_LOSS_PCT:
            score *= URLLC_MAX_LOSS_PCT / loss_ratio
        if mean_jitter_ms > URLLC_MAX_JITTER_MS:
            score *= URLLC_MAX_JITTER_MS / mean_jitter_ms
    return clamp_score(score)


def compute_reliability_score(avg_sinr: float, sinr_range: float, has_samples: bool = True) -> float:
    """
    Channel consistency score on a 0-100 scale.

    Penalizes a wide SINR spread and a low average SINR. A UE that never
    reported SINR keeps the full score.
    """
    score = SCORE_MAX
    if has_samples:
        if sinr_range > RELIABILITY_MAX_SINR_RANGE:
            score *= RELIABILITY_MAX_SINR_RANGE / sinr_range
        if avg_sinr < RELIABILITY_MIN_SINR:
            # Negative for a negative average SINR, clamped below
            score *= avg_sinr / RELIABILITY_MIN_SINR
    return clamp_score(score)


def compute_cell_qoe_score(avg_delay_ms: float, loss_ratio: float, avg_sinr: float) -> float:
    score = SCORE_MAX
    if avg_delay_ms > CELL_MAX_DELAY_MS:
        score *= CELL_MAX_DELAY_MS / avg_delay_ms
    if loss_ratio > CELL_MAX_LOSS_PCT:
        score *= CELL_MAX_LOSS_PCT / loss_ratio
    if avg_sinr < CELL_MIN_SINR:
        score *= avg_sinr / CELL_MIN_SINR
    return clamp_score(score)


def compute_cell_reliability(loss_ratio: float, avg_sinr: float) -> float:
    reliability = SCORE_MAX - loss_ratio * CELL_LOSS_RELIABILITY_WEIGHT
    if avg_sinr < RELIABILITY_MIN_SINR:
        reliability *= avg_sinr / RELIABILITY_MIN_SINR
    return clamp_score(reliability)


def compute_user_density(num_ues: int, isd: float, num_cells: int) -> float:
    """UEs per km2 over num_cells discs of radius 1.2 ISD"""
    area_m2 = math.pi * (isd * CELL_AREA_RADIUS_FACTOR) ** 2 * num_cells
    return num_ues / (area_m2 * 1e-6) if area_m2 > 0 else 0.0


class StatisticsEngine:
    """
    Post-run reduction of flow counters and telemetry.

    Flows are matched to a traffic class by destination port and to a UE by
    destination address; flows matching neither are discarded.
    """

    def __init__(self, config: SimulationConfig, aggregator: TelemetryAggregator,
                 attached_ues: Iterable[AttachedUe]):
        self.config = config
        self.aggregator = aggregator
        self.attached_ues = list(attached_ues)
        self.ues_by_address: Dict[str, AttachedUe] = {ue.address: ue for ue in self.attached_ues}
        self.port_classes = {
            config.embb_port: TrafficClass.EMBB,
            config.urllc_port: TrafficClass.URLLC,
        }
        self.discarded_flows = 0

    def classify_flow(self, stats: FlowStats) -> Optional[TrafficClass]:
        return self.port_classes.get(stats.destination_port)

    def compute_flow_record(self, stats: FlowStats, traffic_class: TrafficClass,
                            ue: AttachedUe) -> FlowRecord:
        """Derive per-flow statistics and scores"""
        channel = self.aggregator.get_channel_metrics(ue.imsi)
        avg_sinr = channel.avg_sinr
        sinr_std_dev = self.aggregator.sinr_std_dev(ue.imsi, mean=avg_sinr)

        lost_packets = stats.tx_packets - stats.rx_packets
        loss_ratio = 100.0 * lost_packets / stats.tx_packets if stats.tx_packets > 0 else 0.0

        throughput = 0.0
        mean_delay = 0.0
        mean_jitter = 0.0
        if stats.rx_packets > 0:
            duration = stats.time_last_rx - stats.time_first_tx
            if duration > 0:
                throughput = (stats.rx_bytes * 8.0) / (duration * 1e6)
            mean_delay = (stats.delay_sum / stats.rx_packets) * 1000.0
            if stats.rx_packets > 1:
                mean_jitter = (stats.jitter_sum / (stats.rx_packets - 1)) * 1000.0

        has_samples = channel.samples > 0
        return FlowRecord(
            flow_id=stats.flow_id,
            traffic_class=traffic_class,
            imsi=ue.imsi,
            serving_cell=ue.serving_cell,
            distance=ue.distance,
            address=ue.address,
            avg_sinr=avg_sinr,
            min_sinr=channel.min_sinr,
            max_sinr=channel.max_sinr,
            sinr_std_dev=sinr_std_dev,
            tx_packets=stats.tx_packets,
            rx_packets=stats.rx_packets,
            lost_packets=lost_packets,
            loss_ratio=loss_ratio,
            throughput_mbps=throughput,
            mean_delay_ms=mean_delay,
            mean_jitter_ms=mean_jitter,
            qoe_score=compute_qoe_score(traffic_class, throughput, mean_delay, loss_ratio, mean_jitter),
            reliability_score=compute_reliability_score(avg_sinr, channel.sinr_range, has_samples),
            numerology=self.config.numerology
        )

    def compute_flow_records(self, flow_stats: Iterable[FlowStats]) -> List[FlowRecord]:
        """Match and score every flow, in flow id order"""
        records = []
        discarded = 0
        for stats in sorted(flow_stats, key=lambda s: s.flow_id):
            traffic_class = self.classify_flow(stats)
            if traffic_class is None:
                discarded += 1
                continue
            ue = self.ues_by_address.get(stats.destination_address)
            if ue is None:
                logger.warning(f"Flow {stats.flow_id} to unknown address "
                               f"{stats.destination_address}, skipped")
                discarded += 1
                continue
            records.append(self.compute_flow_record(stats, traffic_class, ue))

        self.discarded_flows = discarded
        logger.info(f"Scored {len(records)} flows ({discarded} discarded)")
        return records

    def compute_cell_summaries(self, records: List[FlowRecord],
                               cell_ue_counts: Dict[int, int]) -> List[CellSummary]:
        """One summary per cell index, cells without flows included"""
        summaries = [
            CellSummary(cell_id=cell_id, num_ues=cell_ue_counts.get(cell_id, 0),
                        bandwidth=self.config.bandwidth)
            for cell_id in range(self.config.num_cells)
        ]
        by_id = {summary.cell_id: summary for summary in summaries}
        for record in records:
            summary = by_id.get(record.serving_cell)
            if summary is not None:
                summary.add_flow(record)

        max_throughput = max((s.total_throughput for s in summaries), default=0.0)
        for summary in summaries:
            if max_throughput > 0:
                summary.load_balance = summary.total_throughput / max_throughput * 100.0
            else:
                summary.load_balance = 0.0
        return summaries

    def compute_system_summary(self, records: List[FlowRecord],
                               handovers: HandoverCounters) -> SystemSummary:
        config = self.config
        total_throughput = sum(r.throughput_mbps for r in records)

        def average_delay(traffic_class: TrafficClass) -> float:
            delays = [r.mean_delay_ms for r in records if r.traffic_class == traffic_class]
            return float(np.mean(delays)) if delays else 0.0

        num_cells = config.num_cells
        return SystemSummary(
            total_throughput=total_throughput,
            avg_throughput_per_cell=total_throughput / num_cells if num_cells > 0 else 0.0,
            avg_throughput_per_ue=total_throughput / config.num_ues if config.num_ues > 0 else 0.0,
            avg_urllc_delay=average_delay(TrafficClass.URLLC),
            avg_embb_delay=average_delay(TrafficClass.EMBB),
            handover_attempts=handovers.attempts,
            handover_successes=handovers.successes,
            handover_failures=handovers.failures,
            handover_success_rate=handovers.success_rate,
            spectral_efficiency=(total_throughput * 1e6 / (config.bandwidth * num_cells)
                                 if num_cells > 0 else 0.0),
            user_density=compute_user_density(config.num_ues, config.inter_site_distance, num_cells),
            scenario_name=config.scenario_name,
            num_cells=num_cells,
            num_ues=config.num_ues,
            inter_site_distance=config.inter_site_distance,
            simulation_time=config.simulation_time,
            numerology=config.numerology,
            ue_tx_power=config.ue_tx_power,
            propagation_model=config.propagation_model
        )

    def generate_results(self, flow_stats: Iterable[FlowStats],
                         cell_ue_counts: Dict[int, int]) -> SimulationResults:
        """
        Run the full reduction once.

        Args:
            flow_stats: Final counters of every flow seen by the radio engine
            cell_ue_counts: UEs attached to each cell at deployment time

        Returns:
            SimulationResults with flow, cell and system records
        """
        records = self.compute_flow_records(flow_stats)
        cells = self.compute_cell_summaries(records, cell_ue_counts)
        system = self.compute_system_summary(records, self.aggregator.handovers)

        return SimulationResults(
            flows=records,
            cells=cells,
            system=system,
            config=self.config,
            discarded_flows=self.discarded_flows
        )
