"""
5G NR Multi-Cell Experiment Framework

This package generates reproducible multi-cell deployments, aggregates the
telemetry an external radio-network engine emits during a run and reduces it
into flow, cell and system level QoE and reliability scores.
"""

__version__ = "1.0.0"
