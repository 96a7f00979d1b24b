"""Exception hierarchy raised by the launch pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence

SSH_SETUP_HINT = (
    "Please run the passwordless ssh setup: tools/hdi/setup-ssh-keys.sh\n"
    "  to create a private key.\n"
    "Identity file not found: "
)


@dataclass(eq=False)
class LaunchError(RuntimeError):
    message: str
    code: str = "launch_error"
    metadata: Dict[str, Any] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.metadata is None:
            self.metadata = {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "metadata": self.metadata}


class ConfigError(LaunchError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="config_error")


class EmptyTopologyError(LaunchError):
    def __init__(self, message: str = "No nodes supplied; a distributed run needs at least one node") -> None:
        super().__init__(message, code="empty_topology")


class MaterializationError(LaunchError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Failed to create {path}: {reason}",
            code="materialization_error",
            metadata={"path": path},
        )
        self.path = path


class MissingCredentialError(LaunchError):
    """The SSH private key is absent from distributed storage."""

    def __init__(self, source: str, detail: str = "") -> None:
        message = SSH_SETUP_HINT + source
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, code="missing_credential", metadata={"source": source})
        self.source = source


class TransferError(LaunchError):
    def __init__(self, operation: str, host: str, output: str) -> None:
        super().__init__(
            f"{operation} to/from {host} failed:\n{output}",
            code="transfer_error",
            metadata={"operation": operation, "host": host},
        )
        self.operation = operation
        self.host = host
        self.output = output


class RemoteExecutionError(LaunchError):
    def __init__(self, host: str, command: Sequence[str], exit_code: int, output: str) -> None:
        rendered = " ".join(command)
        super().__init__(
            f"Command on {host} exited with {exit_code}: {rendered}\n{output}",
            code="remote_execution_error",
            metadata={"host": host, "command": rendered, "exit_code": exit_code},
        )
        self.host = host
        self.command = list(command)
        self.exit_code = exit_code
        self.output = output


class DataStagingError(LaunchError):
    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"Input staging failed at '{step}': {message}", code="data_staging_error", metadata={"step": step})
        self.step = step


class FileSystemError(LaunchError):
    """A distributed filesystem command exited non-zero."""

    def __init__(self, command: Sequence[str], exit_code: int, output: str) -> None:
        rendered = " ".join(command)
        super().__init__(
            f"Filesystem command exited with {exit_code}: {rendered}\n{output}",
            code="filesystem_error",
            metadata={"command": rendered, "exit_code": exit_code},
        )
        self.command = list(command)
        self.exit_code = exit_code
        self.output = output


__all__ = [
    "ConfigError",
    "DataStagingError",
    "EmptyTopologyError",
    "FileSystemError",
    "LaunchError",
    "MaterializationError",
    "MissingCredentialError",
    "RemoteExecutionError",
    "TransferError",
]
