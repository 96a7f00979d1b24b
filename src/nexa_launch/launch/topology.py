"""Resolution of ``host[,workers]`` node declarations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from ..core.exceptions import EmptyTopologyError

LOGGER = logging.getLogger(__name__)

DEFAULT_WORKERS = 1

__all__ = ["DEFAULT_WORKERS", "NodeTopology", "resolve_topology"]


@dataclass(frozen=True)
class NodeTopology:
    """Ordered host -> worker count mapping; the first host is the primary."""

    workers: Mapping[str, int]

    def __post_init__(self) -> None:
        if not self.workers:
            raise EmptyTopologyError()
        object.__setattr__(self, "workers", MappingProxyType(dict(self.workers)))

    @property
    def primary(self) -> str:
        return next(iter(self.workers))

    @property
    def primary_workers(self) -> int:
        return self.workers[self.primary]

    @property
    def hosts(self) -> list[str]:
        return list(self.workers)

    def total_workers(self) -> int:
        return sum(self.workers.values())

    def __iter__(self) -> Iterator[str]:
        return iter(self.workers)

    def __len__(self) -> int:
        return len(self.workers)

    def __getitem__(self, host: str) -> int:
        return self.workers[host]


def _parse_count(host: str, raw: str) -> int:
    try:
        count = int(raw.strip())
    except ValueError:
        LOGGER.warning("[topology] invalid worker count '%s' for %s; using %d", raw, host, DEFAULT_WORKERS)
        return DEFAULT_WORKERS
    if count < 1:
        LOGGER.warning("[topology] non-positive worker count %d for %s; using %d", count, host, DEFAULT_WORKERS)
        return DEFAULT_WORKERS
    return count


def resolve_topology(nodes: Iterable[str]) -> NodeTopology:
    """Parse node declarations, keeping declaration order.

    A malformed count never aborts resolution; it falls back to
    ``DEFAULT_WORKERS``.
    """
    workers: dict[str, int] = {}
    for raw in nodes:
        parts = raw.split(",")
        host = parts[0].strip()
        if not host:
            continue
        count = _parse_count(host, parts[1]) if len(parts) == 2 else DEFAULT_WORKERS
        workers[host] = count
    if not workers:
        raise EmptyTopologyError()
    return NodeTopology(workers)
