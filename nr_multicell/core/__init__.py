"""Core configuration components."""

from .config import SimulationConfig, Scenario

__all__ = ['SimulationConfig', 'Scenario']
