"""
Utility modules for multi-cell 5G NR experiments.

This module provides configuration management, result export and batch sweeps.
"""

from .config import ConfigManager
from .export import ResultsWriter

__all__ = ['ConfigManager', 'ResultsWriter']
