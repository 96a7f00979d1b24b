"""Typer CLI for launching training runs."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from ..config import load_config
from ..config.schema import LaunchConfig
from ..core.exceptions import LaunchError
from ..core.logging import configure_logging
from ..launch import plan as plan_launch
from ..launch import launch as run_launch
from ..launch import resolve_topology

app = typer.Typer(help="Nexa launch: stage and run single-node or MPI training")


def _load(config: Path, override: Optional[List[str]]) -> LaunchConfig:
    launch_config = load_config(config, override or [])
    log_dir = Path(launch_config.logging.log_dir) if launch_config.logging.log_dir else None
    configure_logging(launch_config.logging.level, log_dir, launch_config.logging.json_logs)
    return launch_config


def _exit_for(exc: LaunchError) -> typer.Exit:
    typer.echo(f"[nexa-launch] {exc.code}: {exc.message}", err=True)
    return typer.Exit(code=1)


@app.command()
def run(
    config: Path = typer.Option(..., exists=True, dir_okay=False, help="Launch YAML config"),
    override: Optional[List[str]] = typer.Option(None, help="Override config values using key=value"),
) -> None:
    """Stage everything the run needs, execute it and pull models back."""
    try:
        result = run_launch(_load(config, override))
    except LaunchError as exc:
        raise _exit_for(exc) from exc
    typer.echo(result.output)
    if result.model_dir is not None:
        typer.echo(f"[nexa-launch] models written to {result.model_dir}")
    if result.cleanup is not None and not result.cleanup.ok:
        typer.echo(f"[nexa-launch] cleanup left {len(result.cleanup.failed)} step(s) unfinished", err=True)


@app.command()
def plan(
    config: Path = typer.Option(..., exists=True, dir_okay=False, help="Launch YAML config"),
    override: Optional[List[str]] = typer.Option(None, help="Override config values using key=value"),
) -> None:
    """Write config files and print the assembled command without running it."""
    try:
        invocation = plan_launch(_load(config, override))
    except LaunchError as exc:
        raise _exit_for(exc) from exc
    typer.echo(f"host: {invocation.host}")
    typer.echo(invocation.command_line())


@app.command()
def topology(nodes: List[str] = typer.Argument(..., help="Node declarations as host[,workers]")) -> None:
    """Print the resolved node topology; the first host is the primary."""
    try:
        resolved = resolve_topology(nodes)
    except LaunchError as exc:
        raise _exit_for(exc) from exc
    for index, host in enumerate(resolved):
        marker = " (primary)" if index == 0 else ""
        typer.echo(f"{host}: {resolved[host]}{marker}")
    typer.echo(f"total: {resolved.total_workers()} worker(s) on {len(resolved.hosts)} host(s)")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
