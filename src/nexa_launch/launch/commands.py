"""Assemble trainer and MPI launcher command lines.

Both invocation shapes render config blocks through
:meth:`Invocation.trainer_command`, so file-based and inline rendering can
never differ between local and distributed runs.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Sequence

from ..config.schema import LauncherConfig, TrainerConfig
from .blocks import ConfigBlock
from .materialize import ConfigMaterializer
from .remote import CommandInvocation, RemoteRunner
from .topology import NodeTopology
from .transfer import RemoteTarget

LOGGER = logging.getLogger(__name__)

__all__ = ["DistributedInvocation", "Invocation", "LocalInvocation"]


class Invocation(ABC):
    def __init__(
        self,
        blocks: Sequence[ConfigBlock],
        materializer: ConfigMaterializer,
        trainer: TrainerConfig | None = None,
        *,
        file_based: bool = True,
    ) -> None:
        self.blocks = list(blocks)
        self.materializer = materializer
        self.trainer = trainer or TrainerConfig()
        self.file_based = file_based

    def render_block(self, block: ConfigBlock) -> str:
        if self.file_based:
            return f"configFile={self.materializer.write(block)}"
        return block.text(" ")

    def trainer_command(self) -> List[str]:
        """Trainer executable followed by one argument per block, in order."""
        return [self.trainer.command, *(self.render_block(block) for block in self.blocks)]

    @abstractmethod
    def assemble(self) -> CommandInvocation:
        """Build the final invocation."""

    def execute(self, runner: RemoteRunner) -> str:
        invocation = self.assemble()
        LOGGER.info("[commands] executing on %s: %s", invocation.host, invocation.command_line())
        return runner.execute(invocation)


class LocalInvocation(Invocation):
    def assemble(self) -> CommandInvocation:
        return CommandInvocation(argv=tuple(self.trainer_command()))


class DistributedInvocation(Invocation):
    """MPI launcher wrapping the trainer, started from the primary node."""

    def __init__(
        self,
        blocks: Sequence[ConfigBlock],
        materializer: ConfigMaterializer,
        topology: NodeTopology,
        username: str,
        trainer: TrainerConfig | None = None,
        launcher: LauncherConfig | None = None,
        *,
        file_based: bool = True,
    ) -> None:
        super().__init__(blocks, materializer, trainer, file_based=file_based)
        self.topology = topology
        self.username = username
        self.launcher = launcher or LauncherConfig()

    @property
    def target(self) -> RemoteTarget:
        return RemoteTarget(user=self.username, host=self.topology.primary)

    def placement_args(self) -> List[str]:
        return [
            self.launcher.count_flag,
            str(self.topology.primary_workers),
            "--npernode",
            str(self.launcher.processes_per_node),
        ]

    def environment_args(self) -> List[str]:
        # The remote login environment does not know where the trainer lives
        library_path = ":".join([*self.trainer.library_dirs, "$LD_LIBRARY_PATH"])
        return [
            "-x",
            f"PATH={self.trainer.bin_dir}:$PATH",
            "-x",
            f"LD_LIBRARY_PATH={library_path}",
        ]

    def assemble(self) -> CommandInvocation:
        argv = [
            self.launcher.command,
            *self.placement_args(),
            *self.environment_args(),
            *self.trainer_command(),
            self.trainer.parallel_flag,
        ]
        return CommandInvocation(argv=tuple(argv), target=self.target)
