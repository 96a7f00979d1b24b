"""Blocking execution of external commands with captured output."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

LOGGER = logging.getLogger(__name__)

__all__ = ["CommandResult", "ProcessRunner"]


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command; stdout and stderr are interleaved."""

    command: tuple[str, ...]
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner:
    """Run commands to completion and capture their combined output.

    Non-zero exits are returned, not raised, so each caller can map them to
    its own error type.
    """

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        env_vars = os.environ.copy()
        if env:
            env_vars.update({str(key): str(value) for key, value in env.items()})
        LOGGER.info("[process] running command: %s", " ".join(command))
        try:
            completed = subprocess.run(
                list(command),
                cwd=str(cwd) if cwd else None,
                env=env_vars,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
            )
        except OSError as exc:
            # Shell convention: 127 for a missing executable, 126 when it cannot run
            returncode = 127 if isinstance(exc, FileNotFoundError) else 126
            LOGGER.error("[process] could not start %s: %s", command[0] if command else "", exc)
            return CommandResult(command=tuple(command), returncode=returncode, output=str(exc))
        return CommandResult(
            command=tuple(command),
            returncode=completed.returncode,
            output=completed.stdout or "",
        )
