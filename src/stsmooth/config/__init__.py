"""
Configuration management for stsmooth.

This module provides Pydantic-based configuration schemas for
the smoothing pipeline, with support for loading from TOML, YAML
and JSON files.
"""

from stsmooth.config.schema import (
    Config,
    DataConfig,
    GridConfig,
    BandwidthConfig,
    ExecutionConfig,
    OutputConfig,
)

__all__ = [
    "Config",
    "DataConfig",
    "GridConfig",
    "BandwidthConfig",
    "ExecutionConfig",
    "OutputConfig",
]
