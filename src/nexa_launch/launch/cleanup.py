"""Best-effort removal of remote and HDFS state after a run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..core.exceptions import LaunchError
from ..core.logging import step_context
from .dfs import HadoopFileSystem
from .remote import RemoteRunner
from .staging import DistributedInput
from .transfer import RemoteTarget

LOGGER = logging.getLogger(__name__)

__all__ = ["Cleanup", "CleanupReport"]


@dataclass
class CleanupReport:
    attempted: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class Cleanup:
    """Each step runs independently; failures are logged and never raised."""

    def __init__(self, remote: RemoteRunner, dfs: HadoopFileSystem) -> None:
        self.remote = remote
        self.dfs = dfs

    def run(
        self,
        target: RemoteTarget,
        *,
        working_dir: Optional[str] = None,
        data: Optional[DistributedInput] = None,
        remove_source: bool = True,
    ) -> CleanupReport:
        report = CleanupReport()
        if working_dir:
            self._attempt(report, target, f"rm -r {working_dir}", lambda: self.remote.run_remote(target, "rm", "-r", working_dir))
        if data is not None:
            if remove_source:
                self._attempt(report, target, f"hdfs rm -r {data.source}", lambda: self.dfs.remove_recursive(data.source))
            self._attempt(report, target, f"rm -f {data.remote_file}", lambda: self.remote.run_remote(target, "rm", "-f", data.remote_file))
            self._attempt(report, target, f"rmdir {data.mount_dir}", lambda: self.remote.run_remote(target, "rmdir", data.mount_dir))
        return report

    @staticmethod
    def _attempt(report: CleanupReport, target: RemoteTarget, label: str, action) -> None:
        report.attempted.append(label)
        try:
            action()
        except LaunchError as exc:
            LOGGER.warning(
                "[cleanup] %s failed: %s", label, exc.message, extra=step_context("cleanup", host=target.host, action=label)
            )
            report.failed[label] = exc.message
