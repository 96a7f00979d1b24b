"""Execute assembled commands locally or on a cluster node over ssh."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from ..core.exceptions import RemoteExecutionError
from ..core.process import CommandResult, ProcessRunner
from .credentials import StagedCredential
from .transfer import HOST_KEY_OPTIONS, RemoteTarget

LOGGER = logging.getLogger(__name__)

LOCALHOST = "localhost"

__all__ = ["CommandInvocation", "LOCALHOST", "RemoteRunner"]


@dataclass(frozen=True)
class CommandInvocation:
    """Final argument vector plus where it runs; ``target=None`` means locally."""

    argv: tuple[str, ...]
    target: Optional[RemoteTarget] = None

    @property
    def is_remote(self) -> bool:
        return self.target is not None

    @property
    def host(self) -> str:
        return self.target.host if self.target else LOCALHOST

    def command_line(self) -> str:
        return " ".join(self.argv)


class RemoteRunner:
    """Run invocations to completion and return their captured output.

    Remote arguments are handed to ``ssh`` unquoted so the remote shell
    expands ``$PATH`` style references. Local arguments run exactly as
    assembled, without a shell, so block text reaches the trainer unchanged.
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        credential: StagedCredential | None = None,
        *,
        ssh_command: str = "ssh",
        options: Sequence[str] = HOST_KEY_OPTIONS,
        cwd: Path | None = None,
    ) -> None:
        self.runner = runner or ProcessRunner()
        self.credential = credential
        self.ssh_command = ssh_command
        self.options = list(options)
        self.cwd = cwd

    def ssh_argv(self, target: RemoteTarget, argv: Sequence[str]) -> list[str]:
        if self.credential is None:
            raise ValueError("Remote execution requires a staged credential")
        return [self.ssh_command, "-i", self.credential.identity, *self.options, target.address, *argv]

    def execute(self, invocation: CommandInvocation) -> str:
        if invocation.target is None:
            result = self.runner.run(invocation.argv, cwd=self.cwd)
        else:
            result = self.runner.run(self.ssh_argv(invocation.target, invocation.argv))
        return self._checked(invocation.host, invocation.argv, result)

    def run_remote(self, target: RemoteTarget, *argv: str) -> str:
        """Run a short housekeeping command such as ``mkdir -p`` on ``target``."""
        return self.execute(CommandInvocation(argv=tuple(argv), target=target))

    def _checked(self, host: str, argv: Sequence[str], result: CommandResult) -> str:
        if not result.ok:
            raise RemoteExecutionError(host, argv, result.returncode, result.output)
        LOGGER.info("[remote] command on %s succeeded with output: %s", host, result.output)
        return result.output
