"""
Trace replay radio engine.

Replays telemetry recorded from a radio-network simulator run through a
SimPy event loop, so the deployment, aggregation and scoring pipeline can be
exercised without the simulator. A trace directory holds:

    telemetry.csv  time,event,imsi,cell_id,target_cell_id,value
    flows.csv      flow_id,tx_packets,rx_packets,delay_sum,jitter_sum,rx_bytes,
                   time_first_tx,time_last_rx,destination_address,destination_port
    ues.csv        imsi,address   (optional, one row per UE in index order)
"""

import logging
import ipaddress
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd
import simpy

from ..telemetry.aggregator import TelemetryAggregator
from .deployment import Deployment
from .engine import RadioNetworkEngine
from .metrics import FlowStats

logger = logging.getLogger(__name__)


TELEMETRY_FILE = "telemetry.csv"
FLOWS_FILE = "flows.csv"
UES_FILE = "ues.csv"

TELEMETRY_COLUMNS = ['time', 'event', 'imsi', 'cell_id', 'target_cell_id', 'value']
FLOW_COLUMNS = ['flow_id', 'tx_packets', 'rx_packets', 'delay_sum', 'jitter_sum', 'rx_bytes',
                'time_first_tx', 'time_last_rx', 'destination_address', 'destination_port']

EVENT_TYPES = ('sinr', 'rsrp', 'rsrq', 'handover_start', 'handover_success', 'handover_failure')

# EPC convention: first UE address is 7.0.0.2, IMSIs start at 1
FIRST_UE_ADDRESS = ipaddress.IPv4Address("7.0.0.2")
FIRST_IMSI = 1


@dataclass
class TelemetryEvent:
    """One recorded telemetry callback"""
    time: float
    event: str
    imsi: int
    cell_id: Optional[int] = None
    target_cell_id: Optional[int] = None
    value: float = 0.0


def default_ue_identities(num_ues: int) -> List[Tuple[int, str]]:
    return [(FIRST_IMSI + i, str(FIRST_UE_ADDRESS + i)) for i in range(num_ues)]


def _optional_int(value) -> Optional[int]:
    return int(value) if pd.notna(value) else None


def _check_columns(df: pd.DataFrame, required: List[str], path: Path):
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{path} is missing columns: {', '.join(missing)}")


def load_telemetry(path: Path) -> List[TelemetryEvent]:
    df = pd.read_csv(path)
    _check_columns(df, ['time', 'event', 'imsi'], path)

    events = []
    for row in df.itertuples(index=False):
        events.append(TelemetryEvent(
            time=float(row.time),
            event=str(row.event).strip().lower(),
            imsi=int(row.imsi),
            cell_id=_optional_int(getattr(row, 'cell_id', None)),
            target_cell_id=_optional_int(getattr(row, 'target_cell_id', None)),
            value=float(row.value) if 'value' in df.columns and pd.notna(row.value) else 0.0
        ))
    return events


def load_flows(path: Path) -> List[FlowStats]:
    df = pd.read_csv(path, dtype={'destination_address': str})
    _check_columns(df, FLOW_COLUMNS, path)

    return [
        FlowStats(
            flow_id=int(row.flow_id),
            tx_packets=int(row.tx_packets),
            rx_packets=int(row.rx_packets),
            delay_sum=float(row.delay_sum),
            jitter_sum=float(row.jitter_sum),
            rx_bytes=int(row.rx_bytes),
            time_first_tx=float(row.time_first_tx),
            time_last_rx=float(row.time_last_rx),
            destination_address=row.destination_address.strip(),
            destination_port=int(row.destination_port)
        )
        for row in df.itertuples(index=False)
    ]


def load_ue_identities(path: Path) -> List[Tuple[int, str]]:
    df = pd.read_csv(path, dtype={'address': str})
    _check_columns(df, ['imsi', 'address'], path)
    return [(int(row.imsi), row.address.strip()) for row in df.itertuples(index=False)]


class TraceReplayEngine(RadioNetworkEngine):
    """
    Radio engine that replays a recorded trace.

    Events fire in time order (stable for equal times); events at or after
    the stop time do not fire.
    """

    def __init__(self, events: List[TelemetryEvent], flows: List[FlowStats],
                 ue_identities: Optional[List[Tuple[int, str]]] = None):
        self.events = sorted(events, key=lambda e: e.time)
        self.flows = list(flows)
        self.ue_identities = ue_identities
        self.env = simpy.Environment()
        self.aggregator: Optional[TelemetryAggregator] = None
        self.deployment: Optional[Deployment] = None
        self.dispatched_events = 0

        logger.info(f"Trace replay engine initialized with {len(self.events)} events "
                    f"and {len(self.flows)} flows")

    @classmethod
    def from_directory(cls, trace_dir: str) -> 'TraceReplayEngine':
        """
        Load a trace directory.

        Raises:
            FileNotFoundError: If the directory or a required file is missing
            ValueError: If a file lacks required columns
        """
        trace_path = Path(trace_dir)
        telemetry_path = trace_path / TELEMETRY_FILE
        flows_path = trace_path / FLOWS_FILE
        for path in (telemetry_path, flows_path):
            if not path.exists():
                raise FileNotFoundError(f"Trace file not found: {path}")

        logger.info(f"Loading trace from {trace_dir}")
        ues_path = trace_path / UES_FILE
        identities = load_ue_identities(ues_path) if ues_path.exists() else None
        return cls(load_telemetry(telemetry_path), load_flows(flows_path), identities)

    def deploy(self, deployment: Deployment) -> List[Tuple[int, str]]:
        self.deployment = deployment
        num_ues = len(deployment.ues)

        if self.ue_identities is None:
            return default_ue_identities(num_ues)
        if len(self.ue_identities) < num_ues:
            raise ValueError(f"Trace identifies {len(self.ue_identities)} UEs, "
                             f"deployment has {num_ues}")
        return self.ue_identities[:num_ues]

    def connect_telemetry(self, aggregator: TelemetryAggregator):
        self.aggregator = aggregator

    def disconnect_telemetry(self):
        self.aggregator = None

    def run(self, until: float):
        self.env = simpy.Environment()
        self.dispatched_events = 0
        self.env.process(self._replay())
        self.env.run(until=until)
        logger.info(f"Replayed {self.dispatched_events} telemetry events up to t={until}s")

    def _replay(self):
        for event in self.events:
            delay = event.time - self.env.now
            if delay > 0:
                yield self.env.timeout(delay)
            self._dispatch(event)

    def _dispatch(self, event: TelemetryEvent):
        if self.aggregator is None:
            return

        kind = event.event
        if kind == 'sinr':
            self.aggregator.on_sinr_sample(event.imsi, event.value)
        elif kind == 'rsrp':
            self.aggregator.on_rsrp_sample(event.imsi, event.cell_id, event.value)
        elif kind == 'rsrq':
            self.aggregator.on_rsrq_sample(event.imsi, event.cell_id, event.value)
        elif kind == 'handover_start':
            self.aggregator.on_handover_start(event.imsi, event.cell_id, event.target_cell_id)
        elif kind == 'handover_success':
            self.aggregator.on_handover_success(event.imsi, event.cell_id, event.target_cell_id)
        elif kind == 'handover_failure':
            self.aggregator.on_handover_failure(event.imsi, event.cell_id, event.target_cell_id)
        else:
            logger.warning(f"Unknown telemetry event '{kind}' at t={event.time}s, ignored")
            return
        self.dispatched_events += 1

    def flow_stats(self) -> List[FlowStats]:
        return list(self.flows)
