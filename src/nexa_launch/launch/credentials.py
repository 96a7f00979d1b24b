"""Stage the cluster SSH identity from distributed storage."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..core.exceptions import FileSystemError, MaterializationError, MissingCredentialError
from .dfs import HadoopFileSystem, local_uri

LOGGER = logging.getLogger(__name__)

__all__ = ["CredentialStager", "StagedCredential"]


@dataclass(frozen=True)
class StagedCredential:
    remote_source_path: str
    local_path: Path
    permissions: str

    @property
    def identity(self) -> str:
        return str(self.local_path)


class CredentialStager:
    """Copy the private key to a fixed local path.

    The key is reused across runs and never deleted here.
    """

    def __init__(self, dfs: HadoopFileSystem, source: str, local_path: Path, permissions: str = "700") -> None:
        self.dfs = dfs
        self.source = source
        self.local_path = Path(local_path)
        self.permissions = permissions

    def stage(self) -> StagedCredential:
        identity_dir = self.local_path.parent
        if not identity_dir.exists():
            LOGGER.info("[credentials] creating directory %s", identity_dir)
            try:
                identity_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise MaterializationError(str(identity_dir), str(exc)) from exc

        if not self.dfs.exists(self.source):
            raise MissingCredentialError(self.source)
        try:
            self.dfs.copy_to_local(self.source, self.local_path)
        except FileSystemError as exc:
            # The key can disappear between the existence check and the copy
            if "No such file" in exc.output or "does not exist" in exc.output:
                raise MissingCredentialError(self.source, exc.output.strip()) from exc
            raise

        # Advisory only; ssh still reads the key from local disk
        self.dfs.chmod(self.permissions, local_uri(self.local_path))
        LOGGER.info("[credentials] staged identity at %s", self.local_path)
        return StagedCredential(
            remote_source_path=self.source,
            local_path=self.local_path,
            permissions=self.permissions,
        )
