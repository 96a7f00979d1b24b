"""Render config blocks into files inside the working directory."""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.exceptions import MaterializationError
from .blocks import ConfigBlock

LOGGER = logging.getLogger(__name__)

DEFAULT_EXTENSION = "cntk"


class ConfigMaterializer:
    def __init__(self, working_dir: Path, extension: str = DEFAULT_EXTENSION) -> None:
        self.working_dir = Path(working_dir)
        self.extension = extension.lstrip(".")

    def path_for(self, block: ConfigBlock) -> Path:
        return (self.working_dir / f"{block.name}.{self.extension}").absolute()

    def write(self, block: ConfigBlock) -> Path:
        """Write ``block`` and return the absolute path; existing files are replaced."""
        path = self.path_for(block)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(block.text(), encoding="utf-8")
        except OSError as exc:
            raise MaterializationError(str(path), str(exc)) from exc
        LOGGER.info("[materialize] wrote %s", path.name)
        return path


__all__ = ["ConfigMaterializer", "DEFAULT_EXTENSION"]
