# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/rigup/cli/app.py
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError

from rigup.config.loader import load_config
from rigup.config.models import WorkstationConfig
from rigup.logging.log import init_logging
from rigup.observers.console import ConsoleObserver
from rigup.observers.dispatcher import EventBus
from rigup.observers.jsonfile import JsonFileObserver
from rigup.observers.logger import LoggerObserver
from rigup.provision.errors import PackageManagerNotFound
from rigup.provision.models import Step
from rigup.provision.playbook import build_steps, resolve_targets, select_steps
from rigup.provision.provisioner import Provisioner
from rigup.utils.execution import ExecutionContext
from rigup.utils.facts import HostFacts, gather_facts
from rigup.utils.pkg import PackageManager, detect_package_manager
from rigup.utils.shell import CommandRunner


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="rigup: idempotent developer workstation provisioner")

EXIT_FAILED = 1
EXIT_USAGE = 2


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------

def _load(config: Optional[Path]) -> WorkstationConfig:
    try:
        return load_config(config)
    except FileNotFoundError:
        typer.echo(f"Config file not found: {config}", err=True)
        raise typer.Exit(EXIT_USAGE)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"Invalid config {config}:\n{exc}", err=True)
        raise typer.Exit(EXIT_USAGE)


def _targets(only: Optional[str]):
    try:
        return resolve_targets(only)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--only")


def _package_manager() -> Optional[PackageManager]:
    """
    A missing package manager only matters once a package step runs, so
    dotfiles-only runs still work on unsupported hosts.
    """
    try:
        return detect_package_manager()
    except PackageManagerNotFound:
        return None


def _steps(cfg: WorkstationConfig, facts: HostFacts, only: Optional[str]) -> List[Step]:
    targets = _targets(only)
    return select_steps(build_steps(cfg, facts, _package_manager()), targets)


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def provision(
    config: Optional[Path] = typer.Argument(None, help="Workstation YAML (defaults built in)"),
    only: Optional[str] = typer.Option(
        None,
        "--only",
        help="Targets to provision: packages,shell,dotfiles,neovim or all",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Evaluate preconditions, do not change the host"),
    debug: bool = typer.Option(False, "--debug"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Where run logs go (default ~/.rigup/logs)"),
):
    """Provision this workstation."""
    cfg = _load(config)
    facts = gather_facts()
    steps = _steps(cfg, facts, only)

    logger, run_id, log_path = init_logging(base_dir=log_dir, verbose=debug)
    typer.echo(f"  Run ID   : {run_id}")
    typer.echo(f"  Logs     : {log_path}")
    typer.echo(f"  Host     : {facts.hostname} ({facts.user})")
    if dry_run:
        typer.echo("  Mode     : dry-run")
    typer.echo("")

    bus = EventBus(
        observers=[
            ConsoleObserver(),
            LoggerObserver(logger),
            JsonFileObserver(log_path.parent / f"{run_id}.jsonl"),
        ]
    )

    runner = CommandRunner(ExecutionContext(dry_run=dry_run), is_root=facts.is_root)
    report = Provisioner(runner, facts, bus=bus, run_id=run_id).run(steps)

    if report.halted_by:
        failed = report.halted_by
        typer.echo(f"\nstep '{failed.step}' failed: {failed.error}", err=True)
        raise typer.Exit(EXIT_FAILED)

    typer.echo(f"\n{report.summary()}")


@app.command()
def plan(
    config: Optional[Path] = typer.Argument(None, help="Workstation YAML (defaults built in)"),
    only: Optional[str] = typer.Option(None, "--only", help="Targets: packages,shell,dotfiles,neovim or all"),
):
    """List the steps a provision run would evaluate, without running anything."""
    cfg = _load(config)
    facts = gather_facts()
    for i, step in enumerate(_steps(cfg, facts, only), start=1):
        flag = "become" if step.become else "user"
        policy = "" if step.failure_policy.value == "fatal" else f" ({step.failure_policy.value} failures)"
        typer.echo(f"{i:>2}. [{','.join(step.tags)}] {step.name} <{flag}>{policy}")


@app.command()
def facts(
    as_json: bool = typer.Option(False, "--json", help="Print facts as JSON"),
):
    """Print the host facts a run would resolve."""
    f = gather_facts()
    if as_json:
        typer.echo(json.dumps(f.dict(), indent=2, sort_keys=True))
        return
    for k, v in f.dict().items():
        typer.echo(f"{k:<9}: {v}")


if __name__ == "__main__":
    app()
