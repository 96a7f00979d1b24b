"""Core primitives shared by the launch pipeline.

Responsibility: error hierarchy, logging setup and blocking process execution.
"""

from .exceptions import (
    ConfigError,
    DataStagingError,
    EmptyTopologyError,
    FileSystemError,
    LaunchError,
    MaterializationError,
    MissingCredentialError,
    RemoteExecutionError,
    TransferError,
)
from .logging import JsonFormatter, configure_logging, set_correlation_id, step_context
from .process import CommandResult, ProcessRunner

__all__ = [
    "CommandResult",
    "ConfigError",
    "DataStagingError",
    "EmptyTopologyError",
    "FileSystemError",
    "JsonFormatter",
    "LaunchError",
    "MaterializationError",
    "MissingCredentialError",
    "ProcessRunner",
    "RemoteExecutionError",
    "TransferError",
    "configure_logging",
    "set_correlation_id",
    "step_context",
]
