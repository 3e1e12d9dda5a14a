"""
Configuration management for multi-cell 5G NR experiments.

This module provides utilities for loading and validating experiment configurations.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, List

import jsonschema
import yaml

from ..core.config import SimulationConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages experiment configuration loading and validation."""

    # Configuration schema for validation
    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "simulation": {
                "type": "object",
                "properties": {
                    "simulation_time": {"type": "number", "exclusiveMinimum": 0},
                    "app_start_time": {"type": "number", "minimum": 0},
                    "random_seed": {"type": "integer", "minimum": 0},
                    "log_level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR"]},
                    "output_directory": {"type": "string"}
                },
                "required": ["simulation_time"],
                "additionalProperties": False
            },
            "network": {
                "type": "object",
                "properties": {
                    # Counts other than 1, 3, 5, 7, 9 use the 9-cell template
                    "num_cells": {"type": "integer", "minimum": 1},
                    "inter_site_distance": {"type": "number", "exclusiveMinimum": 0},
                    "dense_scenario": {"type": "boolean"},
                    "gnb_height": {"type": "number", "minimum": 0},
                    "gnb_tx_power": {"type": "number"},
                    "carrier_frequency": {"type": "number", "minimum": 1e9},
                    "bandwidth": {"type": "number", "minimum": 1e6},
                    "numerology": {"type": "integer", "minimum": 0, "maximum": 4},
                    "scheduler": {"type": "string", "enum": ["TdmaQos", "OfdmaQos"]},
                    "handover_algorithm": {"type": "string"}
                },
                "required": ["num_cells"],
                "additionalProperties": False
            },
            "ue": {
                "type": "object",
                "properties": {
                    "num_ues": {"type": "integer", "minimum": 0},
                    "embb_ratio": {"type": "number", "minimum": 0, "maximum": 1},
                    "ue_height": {"type": "number", "minimum": 0},
                    "ue_tx_power": {"type": "number"}
                },
                "required": ["num_ues"],
                "additionalProperties": False
            },
            "traffic": {
                "type": "object",
                "properties": {
                    "embb_port": {"type": "integer", "minimum": 1, "maximum": 65535},
                    "urllc_port": {"type": "integer", "minimum": 1, "maximum": 65535}
                },
                "additionalProperties": False
            }
        },
        "required": ["simulation", "network", "ue"],
        "additionalProperties": False
    }

    @classmethod
    def load_config(cls, config_file: str) -> SimulationConfig:
        """
        Load configuration from file.

        Args:
            config_file: Path to configuration file (JSON or YAML)

        Returns:
            SimulationConfig object

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If the file format is not supported
            jsonschema.ValidationError: If config doesn't match schema
        """
        config_path = Path(config_file)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")

        logger.info(f"Loading configuration from {config_file}")

        with open(config_path, 'r') as f:
            if config_path.suffix.lower() in ['.yaml', '.yml']:
                try:
                    config_data = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    logger.error(f"Invalid YAML in configuration file: {e}")
                    raise
            elif config_path.suffix.lower() == '.json':
                try:
                    config_data = json.load(f)
                except json.JSONDecodeError as e:
                    logger.error(f"Invalid JSON in configuration file: {e}")
                    raise
            else:
                raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        cls.validate_config(config_data)
        logger.info("Configuration loaded and validated successfully")

        return cls.dict_to_config(config_data)

    @classmethod
    def validate_config(cls, config_data: Dict[str, Any]):
        """
        Validate configuration against schema.

        Raises:
            jsonschema.ValidationError: If config is invalid
        """
        try:
            jsonschema.validate(config_data, cls.CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            logger.error(f"Configuration validation error: {e.message}")
            raise

    @classmethod
    def dict_to_config(cls, config_data: Dict[str, Any]) -> SimulationConfig:
        """Create SimulationConfig from validated configuration data."""
        defaults = SimulationConfig()
        sim_config = config_data.get('simulation', {})
        net_config = config_data.get('network', {})
        ue_config = config_data.get('ue', {})
        traffic_config = config_data.get('traffic', {})

        return SimulationConfig(
            # Simulation parameters
            simulation_time=sim_config.get('simulation_time', defaults.simulation_time),
            app_start_time=sim_config.get('app_start_time', defaults.app_start_time),
            random_seed=sim_config.get('random_seed', defaults.random_seed),
            log_level=sim_config.get('log_level', defaults.log_level),
            output_directory=sim_config.get('output_directory', defaults.output_directory),

            # Network parameters
            num_cells=net_config.get('num_cells', defaults.num_cells),
            inter_site_distance=net_config.get('inter_site_distance', defaults.inter_site_distance),
            dense_scenario=net_config.get('dense_scenario', defaults.dense_scenario),
            gnb_height=net_config.get('gnb_height', defaults.gnb_height),
            gnb_tx_power=net_config.get('gnb_tx_power', defaults.gnb_tx_power),
            carrier_frequency=net_config.get('carrier_frequency', defaults.carrier_frequency),
            bandwidth=net_config.get('bandwidth', defaults.bandwidth),
            numerology=net_config.get('numerology', defaults.numerology),
            scheduler=net_config.get('scheduler', defaults.scheduler),
            handover_algorithm=net_config.get('handover_algorithm', defaults.handover_algorithm),

            # UE parameters
            num_ues=ue_config.get('num_ues', defaults.num_ues),
            embb_ratio=ue_config.get('embb_ratio', defaults.embb_ratio),
            ue_height=ue_config.get('ue_height', defaults.ue_height),
            ue_tx_power=ue_config.get('ue_tx_power', defaults.ue_tx_power),

            # Traffic parameters
            embb_port=traffic_config.get('embb_port', defaults.embb_port),
            urllc_port=traffic_config.get('urllc_port', defaults.urllc_port)
        )

    @classmethod
    def create_default_config(cls, config_file: str, scenario: str = "sparse_baseline"):
        """
        Create a default configuration file.

        Args:
            config_file: Output configuration file path
            scenario: One of get_available_scenarios()
        """
        scenarios = cls.get_scenario_configs()
        if scenario not in scenarios:
            raise ValueError(f"Unknown scenario: {scenario}")
        config = scenarios[scenario]

        config_path = Path(config_file)
        try:
            with open(config_path, 'w') as f:
                if config_path.suffix.lower() in ['.yaml', '.yml']:
                    yaml.dump(config, f, default_flow_style=False, indent=2)
                else:
                    json.dump(config, f, indent=2)
            logger.info(f"Default configuration template created: {config_file}")
        except IOError as e:
            logger.error(f"Failed to create configuration template: {e}")
            raise

    @classmethod
    def get_scenario_configs(cls) -> Dict[str, Dict]:
        """Get predefined scenario configurations"""
        return {
            "sparse_baseline": {
                "simulation": {
                    "simulation_time": 15.0,
                    "app_start_time": 5.0,
                    "random_seed": 1,
                    "log_level": "INFO",
                    "output_directory": "results/sparse_baseline"
                },
                "network": {
                    "num_cells": 3,
                    "inter_site_distance": 200.0,
                    "dense_scenario": False
                },
                "ue": {
                    "num_ues": 30,
                    "embb_ratio": 0.6
                }
            },
            "dense_hotspot": {
                "simulation": {
                    "simulation_time": 15.0,
                    "app_start_time": 5.0,
                    "random_seed": 1,
                    "log_level": "INFO",
                    "output_directory": "results/dense_hotspot"
                },
                "network": {
                    "num_cells": 3,
                    "inter_site_distance": 200.0,
                    "dense_scenario": True
                },
                "ue": {
                    "num_ues": 45,
                    "embb_ratio": 0.6
                }
            },
            "nine_cell_dense": {
                "simulation": {
                    "simulation_time": 15.0,
                    "app_start_time": 5.0,
                    "random_seed": 1,
                    "log_level": "INFO",
                    "output_directory": "results/nine_cell_dense"
                },
                "network": {
                    "num_cells": 9,
                    "inter_site_distance": 200.0,
                    "dense_scenario": True,
                    "scheduler": "OfdmaQos"
                },
                "ue": {
                    "num_ues": 45,
                    "embb_ratio": 0.6
                },
                "traffic": {
                    "embb_port": 7000,
                    "urllc_port": 7001
                }
            }
        }

    @classmethod
    def get_available_scenarios(cls) -> List[str]:
        """Get list of available predefined scenarios."""
        return list(cls.get_scenario_configs().keys())

    @classmethod
    def merge_configs(cls, base_config: Dict, override_config: Dict) -> Dict:
        """
        Merge two configuration dictionaries

        Args:
            base_config: Base configuration
            override_config: Override values

        Returns:
            Merged configuration
        """
        def deep_merge(base: Dict, override: Dict) -> Dict:
            result = base.copy()

            for key, value in override.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value

            return result

        return deep_merge(base_config, override_config)
