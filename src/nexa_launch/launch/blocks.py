"""Named configuration text blocks passed to the trainer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

BASE_CONFIG_NAME = "baseConfig"
OVERRIDE_CONFIG_NAME = "overrideConfig"


@dataclass(frozen=True)
class ConfigBlock:
    name: str
    lines: tuple[str, ...]

    @classmethod
    def of(cls, name: str, lines: Iterable[str]) -> "ConfigBlock":
        return cls(name=name, lines=tuple(lines))

    def text(self, separator: str = "\n") -> str:
        return separator.join(self.lines)


def base_config(text: str) -> ConfigBlock:
    return ConfigBlock.of(BASE_CONFIG_NAME, [text])


def override_config(lines: Sequence[str]) -> ConfigBlock:
    return ConfigBlock.of(OVERRIDE_CONFIG_NAME, lines)


def with_base(blocks: Sequence[ConfigBlock], text: str) -> List[ConfigBlock]:
    """Return ``blocks`` with a base block inserted first."""
    return [base_config(text), *blocks]


def with_override(blocks: Sequence[ConfigBlock], lines: Sequence[str]) -> List[ConfigBlock]:
    """Return ``blocks`` with an override block appended last."""
    return [*blocks, override_config(lines)]


__all__ = [
    "BASE_CONFIG_NAME",
    "ConfigBlock",
    "OVERRIDE_CONFIG_NAME",
    "base_config",
    "override_config",
    "with_base",
    "with_override",
]
