"""
Traffic module for multi-cell 5G NR experiments.

This module classifies UEs into eMBB/URLLC and shapes their offered load.
"""

from .allocation import allocate_embb_rate
from .profiles import TrafficClass, TrafficProfile, classify_traffic

__all__ = ['allocate_embb_rate', 'TrafficClass', 'TrafficProfile', 'classify_traffic']
