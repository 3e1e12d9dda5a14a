"""
Simulation module for multi-cell 5G NR experiments.

This module provides the experiment driver, the radio engine interface and
the post-run statistics and scoring.
"""

from .engine import SimulationEngine, RadioNetworkEngine
from .metrics import StatisticsEngine, SimulationResults, FlowStats, FlowRecord, CellSummary, SystemSummary
from .replay import TraceReplayEngine

__all__ = ['SimulationEngine', 'RadioNetworkEngine', 'StatisticsEngine', 'SimulationResults',
           'FlowStats', 'FlowRecord', 'CellSummary', 'SystemSummary', 'TraceReplayEngine']
