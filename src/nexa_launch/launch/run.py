"""End-to-end launch of a local or MPI training run."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..config.loader import save_run_config
from ..config.schema import LaunchConfig
from ..core.exceptions import MaterializationError
from ..core.logging import set_correlation_id, step_context
from ..core.process import ProcessRunner
from .blocks import ConfigBlock, with_base, with_override
from .cleanup import Cleanup, CleanupReport
from .commands import DistributedInvocation, Invocation, LocalInvocation
from .credentials import CredentialStager
from .dfs import HadoopFileSystem
from .materialize import ConfigMaterializer
from .remote import CommandInvocation, RemoteRunner
from .staging import DataStager, DistributedInput, StagedInput
from .topology import NodeTopology, resolve_topology
from .transfer import RemoteTransfer

LOGGER = logging.getLogger(__name__)

MODELS_DIR = "Models"

__all__ = ["LaunchResult", "RunContext", "TrainingLaunch", "launch", "plan"]


@dataclass(frozen=True)
class RunContext:
    """Everything one run needs; never shared between runs."""

    working_dir: Path
    output_dir: str
    dfs: HadoopFileSystem
    blocks: tuple[ConfigBlock, ...]
    topology: Optional[NodeTopology] = None
    distributed_input: Optional[DistributedInput] = None
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    @classmethod
    def from_config(cls, config: LaunchConfig, dfs: HadoopFileSystem) -> "RunContext":
        topology = resolve_topology(config.nodes) if config.distributed else None
        data = None
        if config.distributed_input is not None:
            data = DistributedInput.from_config(config.distributed_input)
            # Fail on an unusable mount path before any I/O happens
            _ = data.mount_dir
        return cls(
            working_dir=config.working_path(),
            output_dir=config.output_dir,
            dfs=dfs,
            blocks=tuple(_blocks(config)),
            topology=topology,
            distributed_input=data,
        )

    @property
    def local_output_dir(self) -> Path:
        return self.working_dir / self.output_dir

    @property
    def model_dir(self) -> Path:
        return self.local_output_dir / MODELS_DIR

    @property
    def remote_working_dir(self) -> str:
        # Nodes mirror the local working directory path
        return self.working_dir.as_posix()

    @property
    def remote_model_dir(self) -> str:
        return self.model_dir.as_posix()

    def merged_input_path(self, data: DistributedInput) -> Path:
        return data.local_path or self.working_dir / data.merged_filename


@dataclass
class LaunchResult:
    run_id: str
    invocation: CommandInvocation
    output: str
    model_dir: Optional[Path] = None
    staged_input: Optional[StagedInput] = None
    cleanup: Optional[CleanupReport] = None


@dataclass
class _StagingState:
    working_dir_pushed: bool = False
    data: Optional[DistributedInput] = None


class TrainingLaunch:
    """Run the launch pipeline for one :class:`LaunchConfig`.

    Steps run strictly in sequence and fail fast; nothing is retried.
    """

    def __init__(self, config: LaunchConfig, runner: ProcessRunner | None = None) -> None:
        self.config = config
        self.runner = runner or ProcessRunner()
        self.dfs = HadoopFileSystem(self.runner, command=config.dfs.command)

    def context(self) -> RunContext:
        return RunContext.from_config(self.config, self.dfs)

    def invocation(self, ctx: RunContext) -> Invocation:
        if ctx.topology is None:
            return LocalInvocation(
                ctx.blocks, self._materializer(ctx), self.config.trainer, file_based=self.config.file_based
            )
        return self._distributed_invocation(ctx, ctx.topology)

    def _materializer(self, ctx: RunContext) -> ConfigMaterializer:
        return ConfigMaterializer(ctx.working_dir, self.config.trainer.config_extension)

    def _distributed_invocation(self, ctx: RunContext, topology: NodeTopology) -> DistributedInvocation:
        return DistributedInvocation(
            ctx.blocks,
            self._materializer(ctx),
            topology,
            self.config.username,
            self.config.trainer,
            self.config.launcher,
            file_based=self.config.file_based,
        )

    def plan(self) -> CommandInvocation:
        """Assemble the command, writing config files but touching no remote host."""
        return self.invocation(self.context()).assemble()

    def run(self) -> LaunchResult:
        ctx = self.context()
        set_correlation_id(ctx.run_id)
        LOGGER.info("[launch] run %s starting in %s", ctx.run_id, ctx.working_dir)
        if ctx.topology is None:
            return self._run_local(ctx)
        return self._run_distributed(ctx, ctx.topology)

    def _run_local(self, ctx: RunContext) -> LaunchResult:
        _ensure_dir(ctx.working_dir)
        invocation = self.invocation(ctx).assemble()
        remote = RemoteRunner(self.runner, cwd=ctx.working_dir)
        output = remote.execute(invocation)
        return LaunchResult(run_id=ctx.run_id, invocation=invocation, output=output)

    def _run_distributed(self, ctx: RunContext, topology: NodeTopology) -> LaunchResult:
        builder = self._distributed_invocation(ctx, topology)
        target = builder.target
        credential_config = self.config.credential
        LOGGER.info(
            "[launch] %d worker(s) across %s; primary %s",
            topology.total_workers(),
            ", ".join(topology.hosts),
            topology.primary,
            extra=step_context("topology", host=topology.primary),
        )

        credential = CredentialStager(
            self.dfs,
            credential_config.source,
            credential_config.local_path(),
            credential_config.permissions,
        ).stage()
        ssh = self.config.ssh
        transfer = RemoteTransfer(credential, self.runner, scp_command=ssh.scp_command, options=ssh.options)
        remote = RemoteRunner(self.runner, credential, ssh_command=ssh.ssh_command, options=ssh.options)
        cleanup = Cleanup(remote, self.dfs)
        state = _StagingState()
        staged: Optional[StagedInput] = None

        try:
            invocation = builder.assemble()
            _ensure_dir(ctx.model_dir)
            save_run_config(self.config, ctx.local_output_dir)

            state.working_dir_pushed = True
            transfer.push(ctx.working_dir, target, ctx.remote_working_dir)

            if ctx.distributed_input is not None:
                state.data = ctx.distributed_input
                staged = DataStager(self.dfs, transfer, remote).stage(
                    ctx.distributed_input, target, ctx.merged_input_path(ctx.distributed_input)
                )
                LOGGER.info(
                    "[launch] input staged at %s",
                    staged.remote_file,
                    extra=step_context("staging", host=target.host, local_file=staged.local_file),
                )

            output = remote.execute(invocation)
            transfer.pull(target, ctx.remote_model_dir, ctx.local_output_dir)
        except Exception as exc:
            LOGGER.error(
                "[launch] run %s failed: %s", ctx.run_id, exc, extra=step_context("launch", host=target.host)
            )
            # Keep the HDFS input so the run can be retried
            cleanup.run(
                target,
                working_dir=ctx.remote_working_dir if state.working_dir_pushed else None,
                data=state.data,
                remove_source=False,
            )
            raise

        report = cleanup.run(target, working_dir=ctx.remote_working_dir, data=state.data)
        LOGGER.info(
            "[launch] run %s finished; models in %s",
            ctx.run_id,
            ctx.model_dir,
            extra=step_context("launch", host=target.host),
        )
        return LaunchResult(
            run_id=ctx.run_id,
            invocation=invocation,
            output=output,
            model_dir=ctx.model_dir,
            staged_input=staged,
            cleanup=report,
        )


def _blocks(config: LaunchConfig) -> list[ConfigBlock]:
    blocks = [ConfigBlock.of(block.name, block.lines) for block in config.blocks]
    if config.base_config is not None:
        blocks = with_base(blocks, config.base_config)
    if config.override_config:
        blocks = with_override(blocks, config.override_config)
    return blocks


def _ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise MaterializationError(str(path), str(exc)) from exc


def launch(config: LaunchConfig, runner: ProcessRunner | None = None) -> LaunchResult:
    return TrainingLaunch(config, runner).run()


def plan(config: LaunchConfig, runner: ProcessRunner | None = None) -> CommandInvocation:
    return TrainingLaunch(config, runner).plan()
