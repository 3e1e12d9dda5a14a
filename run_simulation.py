#!/usr/bin/env python3
"""
Main runner for the 5G NR Multi-Cell Experiment Framework.

This script builds a multi-cell deployment, replays the telemetry recorded by
a radio-network simulator run and writes flow, cell and system statistics.

Usage:
    python run_simulation.py --config scenarios/dense.yaml --trace traces/3cell_dense_seed1
    python run_simulation.py --scenario sparse_baseline --layout-only
    python run_simulation.py --scenario dense_hotspot --sweep traces/ --results-dir sweep_results
    python run_simulation.py --help
"""

import argparse
import logging
import sys
import os
import traceback

import numpy as np

from nr_multicell.simulation.engine import SimulationEngine
from nr_multicell.simulation.replay import TraceReplayEngine
from nr_multicell.simulation.deployment import build_deployment
from nr_multicell.utils.config import ConfigManager
from nr_multicell.utils.export import ResultsWriter
from nr_multicell.utils.batch import sweep_configs, verify_output_files, consolidate_system_stats


def parse_arguments():
    """Parse command line arguments."""
    scenarios = ConfigManager.get_available_scenarios()
    parser = argparse.ArgumentParser(
        description='5G NR Multi-Cell Experiment Framework',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --config scenarios/dense.yaml --trace traces/3cell_dense_seed1
  %(prog)s --scenario sparse_baseline --layout-only
  %(prog)s --scenario dense_hotspot --sweep traces/
  %(prog)s --create-scenario nine_cell_dense --config-output scenarios/nine.json
        """
    )

    # Main execution modes
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--config', '-c', type=str,
                       help='Configuration file path (JSON or YAML)')
    group.add_argument('--scenario', '-s', type=str, choices=scenarios,
                       help='Use predefined scenario')
    group.add_argument('--create-scenario', type=str, choices=scenarios,
                       help='Create a new scenario configuration file')

    # What to do with the configuration
    parser.add_argument('--trace', '-t', type=str,
                        help='Trace directory to replay (telemetry.csv, flows.csv)')
    parser.add_argument('--layout-only', action='store_true',
                        help='Only generate the deployment and configuration files')
    parser.add_argument('--sweep', type=str, metavar='TRACE_ROOT',
                        help='Run every cell count and scenario, replaying TRACE_ROOT/<run>/')

    # Optional parameters
    parser.add_argument('--results-dir', type=str,
                        help='Directory for results (overrides config)')
    parser.add_argument('--config-output', type=str,
                        help='Output path for created scenario (used with --create-scenario)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose output')

    return parser.parse_args()


def setup_logging(level: str, verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )


def load_configuration(args):
    """Load the configuration selected on the command line."""
    if args.config:
        print(f"Loading configuration from: {args.config}")
        config = ConfigManager.load_config(args.config)
    else:
        print(f"Using predefined scenario: {args.scenario}")
        scenario_data = ConfigManager.get_scenario_configs()[args.scenario]
        ConfigManager.validate_config(scenario_data)
        config = ConfigManager.dict_to_config(scenario_data)

    if args.results_dir:
        config.output_directory = args.results_dir
    return config


def print_configuration(config):
    print(f"Configuration:")
    print(f"  Cells: {config.num_cells}")
    print(f"  UEs: {config.num_ues} (eMBB ratio {config.embb_ratio})")
    print(f"  Scenario: {config.scenario_name}")
    print(f"  Inter-site distance: {config.inter_site_distance} m")
    print(f"  Simulation time: {config.simulation_time}s")
    print(f"  RNG seed: {config.random_seed}")
    print()


def run_layout_only(config, args):
    """Generate the deployment without running any radio engine."""
    try:
        deployment = build_deployment(config, np.random.RandomState(config.random_seed))
        writer = ResultsWriter(config.output_directory)
        writer.ensure_directory()
        path = writer.write_deployment(deployment, config.num_cells)
        writer.write_config(config, deployment.embb_rate_bps)
        print(f"Deployment saved to: {path}")
        return True
    except OSError as e:
        print(f"Error writing deployment: {e}")
        return False


def run_single(config, trace_dir: str, args) -> bool:
    """Replay one trace and write its statistics."""
    print("\n" + "="*60)
    print("5G NR MULTI-CELL EXPERIMENT FRAMEWORK")
    print("="*60)

    if args.verbose:
        print_configuration(config)

    try:
        radio_engine = TraceReplayEngine.from_directory(trace_dir)
        engine = SimulationEngine(config, radio_engine)
        results = engine.run()
        paths = engine.save_results(results)
    except KeyboardInterrupt:
        print("\nSimulation interrupted by user")
        return False
    except Exception as e:
        print(f"Error running simulation: {e}")
        if args.verbose:
            traceback.print_exc()
        return False

    system = results.system
    print("\n" + "-"*50)
    print("SIMULATION COMPLETED SUCCESSFULLY")
    print("-"*50)
    print(f"Scenario: {system.num_cells} cells {system.scenario_name}")
    print(f"Total throughput: {system.total_throughput:.2f} Mbps")
    print(f"Average throughput per UE: {system.avg_throughput_per_ue:.2f} Mbps")
    print(f"Average eMBB delay: {system.avg_embb_delay:.3f} ms")
    print(f"Average URLLC delay: {system.avg_urllc_delay:.3f} ms")
    print(f"Spectral efficiency: {system.spectral_efficiency:.3f} bps/Hz/cell")
    print(f"Handover success rate: {system.handover_success_rate:.1f}%")
    print(f"Execution time: {results.execution_time:.2f} seconds")
    print("\nGenerated files:")
    for path in paths:
        print(f"  {path}")
    print("\n" + "="*60)
    return True


def run_sweep(base_config, trace_root: str, args) -> bool:
    """Run every configuration of the sweep in order, one at a time."""
    base_output_dir = base_config.output_directory
    configs = list(sweep_configs(base_config, base_output_dir))
    failed = 0

    for number, config in enumerate(configs, start=1):
        print(f"\n[{number}/{len(configs)}] {config.num_cells} cells - "
              f"{config.scenario_name} - seed {config.random_seed}")
        trace_dir = os.path.join(trace_root, config.run_name)
        if not os.path.isdir(trace_dir):
            logging.getLogger(__name__).warning(f"No trace for {config.run_name}, skipped")
            failed += 1
            continue

        if not run_single(config, trace_dir, args) or \
                not verify_output_files(config.output_directory, config.num_cells):
            failed += 1

    print(f"\nSweep finished: {len(configs) - failed}/{len(configs)} runs succeeded")
    consolidated = consolidate_system_stats(base_output_dir)
    if consolidated:
        print(f"Consolidated system statistics: {consolidated}")
    return failed == 0


def create_scenario_config(scenario: str, args):
    """Create a new scenario configuration file."""
    output_file = args.config_output or f"scenarios/{scenario}.json"

    print(f"Creating {scenario} scenario configuration...")

    try:
        output_dir = os.path.dirname(output_file)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        ConfigManager.create_default_config(output_file, scenario)
        print(f"Configuration created: {output_file}")
        print("You can now modify this file and run it with:")
        print(f"  python run_simulation.py --config {output_file} --trace <trace_dir>")
        return True
    except Exception as e:
        print(f"Error creating configuration: {e}")
        return False


def main():
    """Main entry point."""
    args = parse_arguments()

    if args.create_scenario:
        setup_logging("INFO", args.verbose)
        sys.exit(0 if create_scenario_config(args.create_scenario, args) else 1)

    try:
        config = load_configuration(args)
    except Exception as e:
        print(f"Error loading configuration: {e}")
        sys.exit(1)

    setup_logging(config.log_level, args.verbose)

    if args.sweep:
        success = run_sweep(config, args.sweep, args)
    elif args.layout_only:
        success = run_layout_only(config, args)
    elif args.trace:
        success = run_single(config, args.trace, args)
    else:
        print("Error: one of --trace, --layout-only or --sweep is required")
        success = False

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
