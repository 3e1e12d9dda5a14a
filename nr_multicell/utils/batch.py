"""
Sequential parameter sweeps.

Runs are ordered cell count first, then scenario (sparse before dense), then
seed. Dense runs carry 50% more UEs than the base configuration.
"""

import glob
import logging
import os
from dataclasses import replace
from typing import Iterator, List, Optional, Sequence

import pandas as pd

from ..core.config import SimulationConfig
from .export import output_filenames

logger = logging.getLogger(__name__)


SWEEP_CELL_COUNTS = (1, 3, 5, 7, 9)
SWEEP_DENSE_FLAGS = (False, True)
SWEEP_SEEDS = (1,)

CONSOLIDATED_FILE = "consolidated_system_stats.csv"


def sweep_configs(base_config: SimulationConfig, base_output_dir: str,
                  cell_counts: Sequence[int] = SWEEP_CELL_COUNTS,
                  dense_flags: Sequence[bool] = SWEEP_DENSE_FLAGS,
                  seeds: Sequence[int] = SWEEP_SEEDS) -> Iterator[SimulationConfig]:
    """Yield one configuration per run, each with its own output directory"""
    for num_cells in cell_counts:
        for dense in dense_flags:
            for seed in seeds:
                num_ues = base_config.num_ues * 3 // 2 if dense else base_config.num_ues
                config = replace(base_config, num_cells=num_cells, dense_scenario=dense,
                                 random_seed=seed, num_ues=num_ues)
                config.output_directory = os.path.join(base_output_dir, config.run_name)
                yield config


def verify_output_files(output_dir: str, num_cells: int) -> bool:
    """Check that every per-run output exists and is non-empty"""
    all_files_ok = True
    for filename in output_filenames(num_cells).values():
        path = os.path.join(output_dir, filename)
        if os.path.isfile(path) and os.path.getsize(path) > 0:
            logger.info(f"  {filename} - {os.path.getsize(path)} bytes")
        else:
            logger.error(f"  {filename} - missing or empty")
            all_files_ok = False
    return all_files_ok


def consolidate_system_stats(base_dir: str) -> Optional[str]:
    """
    Concatenate the system statistics of every run under base_dir.

    Run metadata is recovered from the directory name
    (<N>cell_<scenario>_seed<seed>).

    Returns:
        Path of the consolidated CSV, or None if no run was found
    """
    pattern = os.path.join(base_dir, "*", "system_stats_optimized_*cell.csv")
    files = sorted(glob.glob(pattern))

    frames: List[pd.DataFrame] = []
    for file in files:
        parts = os.path.basename(os.path.dirname(file)).split('_')
        if len(parts) < 3:
            logger.warning(f"Skipping {file}: run directory name not recognized")
            continue

        df = pd.read_csv(file, dtype=str)
        df['NumCells'] = parts[0].replace('cell', '')
        df['Scenario'] = parts[1]
        df['Seed'] = parts[2].replace('seed', '')
        df['SourceFile'] = file
        frames.append(df)

    if not frames:
        logger.warning(f"No system statistics found under {base_dir}")
        return None

    consolidated = pd.concat(frames, ignore_index=True)
    output_file = os.path.join(base_dir, CONSOLIDATED_FILE)
    consolidated.to_csv(output_file, index=False)
    logger.info(f"Consolidated {len(frames)} runs ({len(consolidated)} rows) into {output_file}")
    return output_file
