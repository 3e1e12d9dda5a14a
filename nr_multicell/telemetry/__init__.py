"""
Telemetry module for multi-cell 5G NR experiments.

This module accumulates the channel-quality and handover events reported by
the radio engine during a run.
"""

from .aggregator import TelemetryAggregator, ChannelMetrics, HandoverCounters

__all__ = ['TelemetryAggregator', 'ChannelMetrics', 'HandoverCounters']
