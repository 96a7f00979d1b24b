"""Staging, command assembly and execution of training runs.

Responsibility: turns a :class:`~nexa_launch.config.LaunchConfig` into a
trainer or MPI launcher invocation, stages credentials and input onto the
primary node, runs it and pulls models back.
"""

from .blocks import ConfigBlock, base_config, override_config, with_base, with_override
from .cleanup import Cleanup, CleanupReport
from .commands import DistributedInvocation, Invocation, LocalInvocation
from .credentials import CredentialStager, StagedCredential
from .dfs import HadoopFileSystem
from .materialize import ConfigMaterializer
from .remote import CommandInvocation, RemoteRunner
from .run import LaunchResult, RunContext, TrainingLaunch, launch, plan
from .staging import DataStager, DistributedInput, StagedInput
from .topology import DEFAULT_WORKERS, NodeTopology, resolve_topology
from .transfer import RemoteTarget, RemoteTransfer

__all__ = [
    "Cleanup",
    "CleanupReport",
    "CommandInvocation",
    "ConfigBlock",
    "ConfigMaterializer",
    "CredentialStager",
    "DEFAULT_WORKERS",
    "DataStager",
    "DistributedInput",
    "DistributedInvocation",
    "HadoopFileSystem",
    "Invocation",
    "LaunchResult",
    "LocalInvocation",
    "NodeTopology",
    "RemoteRunner",
    "RemoteTarget",
    "RemoteTransfer",
    "RunContext",
    "StagedCredential",
    "StagedInput",
    "TrainingLaunch",
    "base_config",
    "launch",
    "override_config",
    "plan",
    "resolve_topology",
    "with_base",
    "with_override",
]
