"""
Telemetry aggregation for multi-cell 5G NR experiments.

The radio engine calls the handlers below synchronously from its event loop,
possibly thousands of times per simulated second. Each handler is O(1) and
memory per UE is bounded.
"""

import math
import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional

import numpy as np

logger = logging.getLogger(__name__)


SINR_HISTORY_SIZE = 1000


@dataclass
class ChannelMetrics:
    """Running channel-quality accumulators for one UE"""
    sum_sinr_db: float = 0.0
    samples: int = 0
    max_sinr: float = -1000.0  # dB sentinel until the first sample
    min_sinr: float = 1000.0
    sum_rsrp_dbm: float = 0.0
    rsrp_samples: int = 0
    sum_rsrq_db: float = 0.0
    rsrq_samples: int = 0

    @property
    def avg_sinr(self) -> float:
        return self.sum_sinr_db / self.samples if self.samples > 0 else 0.0

    @property
    def sinr_range(self) -> float:
        return self.max_sinr - self.min_sinr if self.samples > 0 else 0.0

    @property
    def avg_rsrp(self) -> float:
        return self.sum_rsrp_dbm / self.rsrp_samples if self.rsrp_samples > 0 else 0.0

    @property
    def avg_rsrq(self) -> float:
        return self.sum_rsrq_db / self.rsrq_samples if self.rsrq_samples > 0 else 0.0


@dataclass
class HandoverCounters:
    """Handover procedure counters for the whole run"""
    attempts: int = 0
    successes: int = 0
    failures: int = 0

    @property
    def success_rate(self) -> float:
        """Percentage of attempts that succeeded"""
        return 100.0 * self.successes / self.attempts if self.attempts > 0 else 0.0


def sinr_db(linear_sinr: float) -> float:
    return 10.0 * math.log10(linear_sinr)


class TelemetryAggregator:
    """
    Accumulates per-UE channel telemetry and handover counts for one run.

    UEs are keyed by IMSI, which is opaque here. Create one instance per run
    and hand it to the radio engine; nothing is shared between instances.
    """

    def __init__(self, history_size: int = SINR_HISTORY_SIZE):
        self.history_size = history_size
        self.channel_metrics: Dict[int, ChannelMetrics] = defaultdict(ChannelMetrics)
        self.sinr_history: Dict[int, Deque[float]] = {}
        self.handovers = HandoverCounters()

        logger.info("Telemetry Aggregator initialized")

    # Channel quality

    def on_sinr_sample(self, imsi: int, linear_sinr: float):
        """Record a linear SINR sample; non-positive values are ignored."""
        if linear_sinr <= 0.0:
            return

        value = sinr_db(linear_sinr)
        metrics = self.channel_metrics[imsi]
        metrics.sum_sinr_db += value
        metrics.samples += 1
        metrics.max_sinr = max(metrics.max_sinr, value)
        metrics.min_sinr = min(metrics.min_sinr, value)

        history = self.sinr_history.get(imsi)
        if history is None:
            history = self.sinr_history[imsi] = deque(maxlen=self.history_size)
        history.append(value)

    def on_rsrp_sample(self, imsi: int, cell_id: int, rsrp_dbm: float):
        metrics = self.channel_metrics[imsi]
        metrics.sum_rsrp_dbm += rsrp_dbm
        metrics.rsrp_samples += 1
        logger.debug(f"RSRP {rsrp_dbm:.1f} dBm for IMSI {imsi} from cell {cell_id}")

    def on_rsrq_sample(self, imsi: int, cell_id: int, rsrq_db: float):
        metrics = self.channel_metrics[imsi]
        metrics.sum_rsrq_db += rsrq_db
        metrics.rsrq_samples += 1
        logger.debug(f"RSRQ {rsrq_db:.1f} dB for IMSI {imsi} from cell {cell_id}")

    # Handover

    def on_handover_start(self, imsi: int, source_cell: int, target_cell: int):
        self.handovers.attempts += 1
        logger.debug(f"Handover start: IMSI {imsi} cell {source_cell} -> {target_cell}")

    def on_handover_success(self, imsi: int, source_cell: int, target_cell: int):
        self.handovers.successes += 1

    def on_handover_failure(self, imsi: int, source_cell: int, target_cell: int):
        self.handovers.failures += 1
        logger.debug(f"Handover failure: IMSI {imsi} cell {source_cell} -> {target_cell}")

    # Queries, used once the run has finished

    def get_channel_metrics(self, imsi: int) -> ChannelMetrics:
        """Accumulators for a UE, empty if it never reported."""
        metrics = self.channel_metrics.get(imsi)
        return metrics if metrics is not None else ChannelMetrics()

    def get_sinr_history(self, imsi: int) -> Deque[float]:
        return self.sinr_history.get(imsi, deque())

    def sinr_std_dev(self, imsi: int, mean: Optional[float] = None) -> float:
        """
        Sample standard deviation of the retained SINR history.

        The mean defaults to the all-time average SINR, not the mean of the
        retained window. Returns 0 with one sample or fewer.
        """
        history = self.get_sinr_history(imsi)
        if len(history) <= 1:
            return 0.0
        if mean is None:
            mean = self.get_channel_metrics(imsi).avg_sinr
        values = np.asarray(history)
        return float(np.sqrt(np.sum((values - mean) ** 2) / (values.size - 1)))
