"""
Configuration classes for the multi-cell experiment
"""

from dataclasses import dataclass
from enum import Enum


class Scenario(Enum):
    """Deployment scenario"""
    DENSE = "dense"    # Dense urban
    SPARSE = "sparse"  # Sparse suburban


# eMBB aggregate offered load, fixed per scenario
EMBB_BUDGET_BPS = {
    Scenario.DENSE: 3e8,   # 300 Mb/s
    Scenario.SPARSE: 2e8,  # 200 Mb/s
}


@dataclass
class SimulationConfig:
    """Configuration parameters for one experiment run"""
    simulation_time: float = 15.0  # seconds
    app_start_time: float = 5.0    # seconds
    random_seed: int = 1
    log_level: str = "INFO"
    output_directory: str = "./results"

    # Network configuration
    num_cells: int = 1
    inter_site_distance: float = 200.0  # meters
    dense_scenario: bool = False
    gnb_height: float = 25.0  # meters
    gnb_tx_power: float = 46.0  # dBm
    carrier_frequency: float = 3.5e9  # Hz (3.5 GHz, FR1)
    bandwidth: float = 100e6  # Hz (100 MHz)
    numerology: int = 2  # 30 kHz SCS
    scheduler: str = "TdmaQos"
    handover_algorithm: str = "A2A4"

    # UE configuration
    num_ues: int = 30
    embb_ratio: float = 0.6
    ue_height: float = 1.5  # meters
    ue_tx_power: float = 26.0  # dBm

    # Traffic configuration
    embb_port: int = 7000
    urllc_port: int = 7001

    @property
    def scenario(self) -> Scenario:
        return Scenario.DENSE if self.dense_scenario else Scenario.SPARSE

    @property
    def scenario_name(self) -> str:
        return self.scenario.value

    @property
    def propagation_model(self) -> str:
        """3GPP propagation scenario used by the radio engine"""
        return "UMa" if self.dense_scenario else "RMa"

    @property
    def num_embb_ues(self) -> int:
        """Size of the eMBB prefix of the UE list"""
        return int(self.embb_ratio * self.num_ues)

    @property
    def num_urllc_ues(self) -> int:
        return self.num_ues - self.num_embb_ues

    @property
    def embb_budget_bps(self) -> float:
        return EMBB_BUDGET_BPS[self.scenario]

    @property
    def run_name(self) -> str:
        """Directory name used by batch sweeps"""
        return f"{self.num_cells}cell_{self.scenario_name}_seed{self.random_seed}"
