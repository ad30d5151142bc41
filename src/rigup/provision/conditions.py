# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/rigup/provision/conditions.py
"""
Precondition and changed-classifier helpers.

A precondition returns True when the step is already satisfied and its
action should not run. Paths may be given as callables so they can be
resolved against facts registered earlier in the run.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Sequence, Union

from ..utils.execution import ActionResult
from ..utils.facts import login_shell
from .models import ChangedClassifier, Precondition, RunContext, StepContext

PathLike = Union[str, Path, Callable[[RunContext], Path]]


def _resolve(path: PathLike, ctx: RunContext) -> Path:
    if callable(path):
        return Path(path(ctx))
    return Path(path)


# ---------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------

def path_exists(path: PathLike) -> Precondition:
    """Installation marker present (Ansible's `creates:`)."""
    return lambda ctx: _resolve(path, ctx).exists()


def is_directory(path: PathLike) -> Precondition:
    return lambda ctx: _resolve(path, ctx).is_dir()


def symlink_points_to(link: PathLike, target: PathLike) -> Precondition:
    def check(ctx: RunContext) -> bool:
        p = _resolve(link, ctx)
        return p.is_symlink() and os.readlink(p) == str(_resolve(target, ctx))
    return check


def command_output_contains(argv: Sequence[str], expected: str) -> Precondition:
    """Binary discoverable: the command succeeds and prints `expected`."""
    def check(ctx: RunContext) -> bool:
        r = ctx.query(list(argv))
        return r.ok and expected in r.stdout
    return check


def step_changed(name: str) -> Precondition:
    """True when an earlier step in this run reported a change."""
    return lambda ctx: ctx.changed(name)


def login_shell_is(fact: str) -> Precondition:
    """The invoking user's login shell already equals a registered fact."""
    def check(ctx: RunContext) -> bool:
        if not ctx.has_fact(fact):
            return False
        return login_shell(ctx.facts.user) == ctx.fact(fact)
    return check


def negate(pred: Precondition) -> Precondition:
    return lambda ctx: not pred(ctx)


def all_of(*preds: Precondition) -> Precondition:
    return lambda ctx: all(p(ctx) for p in preds)


def any_of(*preds: Precondition) -> Precondition:
    return lambda ctx: any(p(ctx) for p in preds)


# ---------------------------------------------------------------------
# Changed classifiers
# ---------------------------------------------------------------------

def never_changed(result: ActionResult, sctx: StepContext) -> bool:
    return False


def output_lacks(substring: str) -> ChangedClassifier:
    """Substring heuristic, for tools that give no structured signal."""
    return lambda result, sctx: result.ok and substring not in result.stdout


def path_created(path: PathLike) -> ChangedClassifier:
    """
    Marker-based classifier. Meant for steps gated on the marker being
    absent, so its presence after the action means the action created it.
    In dry-run mode nothing is created, so the would-be change is reported.
    """
    def check(result: ActionResult, sctx: StepContext) -> bool:
        if sctx.dry_run:
            return True
        return _resolve(path, sctx.run).exists()
    return check


def both(*classifiers: ChangedClassifier) -> ChangedClassifier:
    return lambda result, sctx: all(c(result, sctx) for c in classifiers)
