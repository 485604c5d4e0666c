"""
Configuration management for demesh.

This module provides the dataclass configuration record, strict value
coercion, parameter-name bookkeeping and the event-driven YAML parser.
"""

from demesh.config.settings import (
    DemeshConfig,
    DataConfig,
    TriangulationOptions,
    ExtrusionConfig,
    OutputConfig,
    MeshOutput,
    MeshFormat,
    load_config,
)
from demesh.config.coercion import parse_integer, parse_real
from demesh.config.registry import ParameterRegistry, check_parameter_name
from demesh.config.parser import parse_events, parse_config_string, read_config

__all__ = [
    "DemeshConfig",
    "DataConfig",
    "TriangulationOptions",
    "ExtrusionConfig",
    "OutputConfig",
    "MeshOutput",
    "MeshFormat",
    "load_config",
    "parse_integer",
    "parse_real",
    "ParameterRegistry",
    "check_parameter_name",
    "parse_events",
    "parse_config_string",
    "read_config",
]
