"""Stage HDFS-resident training input onto the primary node."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from ..config.schema import DistributedInputConfig
from ..core.exceptions import DataStagingError, FileSystemError, RemoteExecutionError
from .dfs import HadoopFileSystem
from .remote import RemoteRunner
from .transfer import RemoteTarget, RemoteTransfer

LOGGER = logging.getLogger(__name__)

MERGED_INPUT_NAME = "merged-input.txt"

__all__ = [
    "DataStager",
    "DistributedInput",
    "MERGED_INPUT_NAME",
    "StagedInput",
    "mount_directory",
    "qualified_source",
]


@dataclass(frozen=True)
class DistributedInput:
    namenode_uri: str
    source_dir: str
    mounted_dir: str
    merged_filename: str = MERGED_INPUT_NAME
    part_glob: str = "*.txt"
    local_path: Optional[Path] = None

    @classmethod
    def from_config(cls, config: DistributedInputConfig) -> "DistributedInput":
        return cls(
            namenode_uri=config.namenode_uri,
            source_dir=config.source_dir,
            mounted_dir=config.mounted_dir,
            merged_filename=config.merged_filename,
            part_glob=config.part_glob,
            local_path=Path(config.local_path).expanduser() if config.local_path else None,
        )

    @property
    def mount_dir(self) -> str:
        return mount_directory(self.mounted_dir)

    @property
    def remote_file(self) -> str:
        return posixpath.join(self.mount_dir, self.merged_filename)

    @property
    def source(self) -> str:
        return qualified_source(self.namenode_uri, self.source_dir)


@dataclass(frozen=True)
class StagedInput:
    data: DistributedInput
    local_file: Path

    @property
    def mount_dir(self) -> str:
        return self.data.mount_dir

    @property
    def remote_file(self) -> str:
        return self.data.remote_file


def mount_directory(mounted_dir: str) -> str:
    """Absolute POSIX directory on the node where the merged input lands."""
    parsed = urlparse(mounted_dir)
    path = parsed.path if parsed.scheme else mounted_dir
    if not path.strip():
        raise DataStagingError("mount", f"cannot derive a mount directory from '{mounted_dir}'")
    if not path.startswith("/"):
        path = "/" + path
    return posixpath.normpath(path)


def qualified_source(namenode_uri: str, source_dir: str) -> str:
    if urlparse(source_dir).scheme or not namenode_uri:
        return source_dir.rstrip("/")
    # A trailing slash on the namenode gives an "unknown port" error
    return namenode_uri.rstrip("/") + "/" + source_dir.strip("/")


class DataStager:
    def __init__(self, dfs: HadoopFileSystem, transfer: RemoteTransfer, remote: RemoteRunner) -> None:
        self.dfs = dfs
        self.transfer = transfer
        self.remote = remote

    def stage(self, data: DistributedInput, target: RemoteTarget, local_file: Path) -> StagedInput:
        """Merge every part file and push the result; any failure aborts.

        Part files are concatenated in whatever order the HDFS glob lists
        them. No sorting is applied.
        """
        mount = data.mount_dir
        try:
            self.remote.run_remote(target, "mkdir", "-p", mount)
        except RemoteExecutionError as exc:
            raise DataStagingError("mkdir", exc.message) from exc

        try:
            local_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DataStagingError("local-dir", str(exc)) from exc

        source_glob = posixpath.join(data.source, data.part_glob)
        try:
            self.dfs.get_merge(source_glob, local_file)
        except FileSystemError as exc:
            raise DataStagingError("merge", exc.message) from exc
        LOGGER.info("[staging] merged %s into %s", source_glob, local_file)

        self.transfer.push(local_file, target, data.remote_file)
        return StagedInput(data=data, local_file=local_file)
