"""Secure copy between the local host and cluster nodes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from ..core.exceptions import TransferError
from ..core.process import CommandResult, ProcessRunner
from .credentials import StagedCredential

LOGGER = logging.getLogger(__name__)

HOST_KEY_OPTIONS = ("-o", "StrictHostKeyChecking=no")

__all__ = ["HOST_KEY_OPTIONS", "RemoteTarget", "RemoteTransfer"]


@dataclass(frozen=True)
class RemoteTarget:
    user: str
    host: str

    @property
    def address(self) -> str:
        return f"{self.user}@{self.host}"

    def path(self, remote_path: str) -> str:
        return f"{self.address}:{remote_path}"


class RemoteTransfer:
    """Push and pull files with ``scp``; directories are copied recursively."""

    def __init__(
        self,
        credential: StagedCredential,
        runner: ProcessRunner | None = None,
        *,
        scp_command: str = "scp",
        options: Sequence[str] = HOST_KEY_OPTIONS,
    ) -> None:
        self.credential = credential
        self.runner = runner or ProcessRunner()
        self.scp_command = scp_command
        self.options = list(options)

    def _scp(self, source: str, destination: str) -> list[str]:
        return [self.scp_command, "-i", self.credential.identity, "-r", *self.options, source, destination]

    def push(self, local_path: Path | str, target: RemoteTarget, remote_path: str) -> CommandResult:
        return self._copy("push", target, str(local_path), target.path(remote_path))

    def pull(self, target: RemoteTarget, remote_path: str, local_path: Path | str) -> CommandResult:
        return self._copy("pull", target, target.path(remote_path), str(local_path))

    def _copy(self, operation: str, target: RemoteTarget, source: str, destination: str) -> CommandResult:
        result = self.runner.run(self._scp(source, destination))
        if not result.ok:
            raise TransferError(operation, target.host, result.output)
        LOGGER.info("[transfer] %s %s -> %s succeeded with output: %s", operation, source, destination, result.output)
        return result
