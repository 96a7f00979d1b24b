"""Nexa launch: staging and execution of single-node and MPI training runs."""

__all__ = [
    "cli",
    "config",
    "core",
    "launch",
]
