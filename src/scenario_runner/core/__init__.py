"""Core components shared by the CLI and the library API."""

from .config import (
    Config,
    ExecutionConfig,
    MergeConfig,
    CommandConfig,
    OutputConfig,
    cpu_count,
    parse_bool,
)

__all__ = [
    # Configuration
    "Config",
    "ExecutionConfig",
    "MergeConfig",
    "CommandConfig",
    "OutputConfig",
    "cpu_count",
    "parse_bool",
]
