"""
Traffic classes and application profiles.

UEs are split into an eMBB prefix and a URLLC suffix. Each class maps to a
fixed destination port, packet size and bearer 5QI.
"""

import logging
from enum import Enum
from typing import List, NamedTuple, Optional

import numpy as np

logger = logging.getLogger(__name__)


class TrafficClass(Enum):
    """Service classes carried in the experiment."""
    EMBB = "eMBB"    # Enhanced Mobile Broadband, throughput-sensitive
    URLLC = "URLLC"  # Ultra-Reliable Low-Latency, delay/jitter-sensitive


class TrafficProfile(NamedTuple):
    """Application parameters for one traffic class."""
    traffic_class: TrafficClass
    port: int
    packet_size: int  # bytes
    data_rate_bps: Optional[int]  # constant bitrate sources
    packet_interval: Optional[float]  # seconds, periodic sources
    five_qi: int
    description: str


EMBB_PACKET_SIZE = 1400
URLLC_PACKET_SIZE = 100

# URLLC send interval per scenario, tuned for numerology 2
URLLC_INTERVAL_DENSE = 0.0005
URLLC_INTERVAL_SPARSE = 0.001

EMBB_5QI = 9     # Non-GBR buffered video, TCP-based
URLLC_5QI = 80   # Non-GBR low-latency eMBB

# Start-time jitter added on top of the application start time
START_JITTER_MAX = 0.5


def classify_traffic(num_ues: int, embb_ratio: float) -> List[TrafficClass]:
    """
    Traffic class per UE index.

    The first floor(embb_ratio * num_ues) UEs are eMBB, the rest URLLC.
    """
    num_embb = int(embb_ratio * num_ues)
    return [TrafficClass.EMBB if i < num_embb else TrafficClass.URLLC
            for i in range(num_ues)]


def embb_profile(port: int, rate_bps: int) -> TrafficProfile:
    """Constant bitrate video streaming."""
    return TrafficProfile(
        TrafficClass.EMBB, port, EMBB_PACKET_SIZE, rate_bps, None, EMBB_5QI,
        "Video streaming (UDP on/off, always on)"
    )


def urllc_profile(port: int, dense: bool) -> TrafficProfile:
    """Periodic small-packet critical control."""
    interval = URLLC_INTERVAL_DENSE if dense else URLLC_INTERVAL_SPARSE
    return TrafficProfile(
        TrafficClass.URLLC, port, URLLC_PACKET_SIZE, None, interval, URLLC_5QI,
        "Critical control (UDP periodic client)"
    )


def schedule_start_times(rng: np.random.RandomState, num_apps: int,
                         app_start_time: float) -> List[float]:
    """Draw staggered start times, one per application, in order."""
    return [app_start_time + rng.uniform(0.0, START_JITTER_MAX) for _ in range(num_apps)]
