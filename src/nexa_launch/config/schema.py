"""Pydantic schemas describing a training launch."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ConfigBlockConfig(BaseModel):
    name: str
    lines: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not value or "/" in value or value in {".", ".."}:
            raise ValueError(f"Config block name must be a plain file stem, got '{value}'")
        return value


class DistributedInputConfig(BaseModel):
    """Training input that lives in HDFS and must be merged onto the primary node."""

    namenode_uri: str
    source_dir: str
    mounted_dir: str
    merged_filename: str = "merged-input.txt"
    part_glob: str = "*.txt"
    local_path: Optional[str] = None


class TrainerConfig(BaseModel):
    command: str = "cntk"
    config_extension: str = "cntk"
    bin_dir: str = "/usr/bin/cntk/cntk/bin"
    library_dirs: List[str] = Field(
        default_factory=lambda: ["/usr/bin/cntk/cntk/lib", "/usr/bin/cntk/cntk/dependencies/lib"]
    )
    parallel_flag: str = "parallelTrain=true"


class LauncherConfig(BaseModel):
    command: str = "mpirun"
    count_flag: str = "-n"
    processes_per_node: int = 1

    @field_validator("processes_per_node")
    @classmethod
    def _check_per_node(cls, value: int) -> int:
        if value < 1:
            raise ValueError("processes_per_node must be >= 1")
        return value


class CredentialConfig(BaseModel):
    source: str = "wasb:///MML-GPU/identity"
    local_dir: str = "~/.ssh/MML-GPU"
    filename: str = "identity"
    permissions: str = "700"

    def local_path(self) -> Path:
        return Path(self.local_dir).expanduser().resolve() / self.filename


class SshConfig(BaseModel):
    ssh_command: str = "ssh"
    scp_command: str = "scp"
    options: List[str] = Field(default_factory=lambda: ["-o", "StrictHostKeyChecking=no"])


class DfsConfig(BaseModel):
    command: str = "hdfs"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_dir: Optional[str] = None
    json_logs: bool = False


class LaunchConfig(BaseModel):
    nodes: List[str] = Field(default_factory=list)
    distributed: Optional[bool] = None
    working_dir: str = "."
    output_dir: str = "output"
    username: str = "sshuser"
    file_based: bool = True
    blocks: List[ConfigBlockConfig] = Field(default_factory=list)
    # Shorthand for a leading "baseConfig" block and a trailing "overrideConfig" block
    base_config: Optional[str] = None
    override_config: List[str] = Field(default_factory=list)
    distributed_input: Optional[DistributedInputConfig] = None
    trainer: TrainerConfig = Field(default_factory=TrainerConfig)
    launcher: LauncherConfig = Field(default_factory=LauncherConfig)
    credential: CredentialConfig = Field(default_factory=CredentialConfig)
    ssh: SshConfig = Field(default_factory=SshConfig)
    dfs: DfsConfig = Field(default_factory=DfsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "extra": "forbid",
    }

    @model_validator(mode="after")
    def _infer_distributed(self) -> "LaunchConfig":
        # An explicit flag wins; otherwise any declared node implies an MPI run
        if self.distributed is None:
            self.distributed = bool(self.nodes)
        if self.distributed_input is not None and not self.distributed:
            raise ValueError("distributed_input requires a distributed launch")
        return self

    def working_path(self) -> Path:
        return Path(self.working_dir).expanduser().resolve()
