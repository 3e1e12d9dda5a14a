"""
Network module for multi-cell 5G NR experiments.

This module generates cell layouts and places and attaches UEs.
"""

from .topology import Position, CellSite, generate_cell_layout, create_cell_sites
from .placement import place_users, compute_cell_quotas, attach_to_closest_cell

__all__ = ['Position', 'CellSite', 'generate_cell_layout', 'create_cell_sites',
           'place_users', 'compute_cell_quotas', 'attach_to_closest_cell']
