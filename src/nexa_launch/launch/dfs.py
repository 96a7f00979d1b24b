"""Thin wrapper over the ``hdfs dfs`` command line."""

from __future__ import annotations

from pathlib import Path

from ..core.exceptions import FileSystemError
from ..core.process import CommandResult, ProcessRunner

__all__ = ["HadoopFileSystem", "local_uri"]


def local_uri(path: Path | str) -> str:
    return f"file://{Path(path).absolute().as_posix()}"


class HadoopFileSystem:
    """Distributed filesystem handle.

    Every method is one blocking ``hdfs dfs`` invocation; failures raise
    :class:`FileSystemError` with the captured output.
    """

    def __init__(self, runner: ProcessRunner | None = None, command: str = "hdfs") -> None:
        self.runner = runner or ProcessRunner()
        self.command = command

    def _argv(self, *args: str) -> list[str]:
        return [self.command, "dfs", *args]

    def _call(self, *args: str) -> CommandResult:
        result = self.runner.run(self._argv(*args))
        if not result.ok:
            raise FileSystemError(result.command, result.returncode, result.output)
        return result

    def exists(self, path: str) -> bool:
        # -test exits 1 for a missing path; anything else is a real failure
        result = self.runner.run(self._argv("-test", "-e", path))
        if result.returncode in (0, 1):
            return result.ok
        raise FileSystemError(result.command, result.returncode, result.output)

    def copy_to_local(self, source: str, destination: Path) -> CommandResult:
        return self._call("-copyToLocal", "-f", source, str(destination))

    def get_merge(self, source_glob: str, destination: Path) -> CommandResult:
        return self._call("-getmerge", source_glob, str(destination))

    def chmod(self, mode: str, path: str) -> CommandResult:
        return self._call("-chmod", mode, path)

    def remove_recursive(self, path: str) -> CommandResult:
        return self._call("-rm", "-r", path)
