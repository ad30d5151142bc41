# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/rigup/provision/build.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from .conditions import never_changed
from .models import FailurePolicy, RunContext, Step, StepContext

log = logging.getLogger("rigup")


@dataclass(frozen=True)
class SourceBuild:
    """
    A make-driven source tree that gets rebuilt when it changes.
    """
    name: str                   # used in step names, e.g. "Neovim"
    source_dir: Path
    binary_path: Path
    clone_step: str             # step whose changed flag means "source updated"
    build_argv: Tuple[str, ...] = ("make",)
    clean_argv: Tuple[str, ...] = ("make", "distclean")
    install_argv: Tuple[str, ...] = ("make", "install")
    build_env: Tuple[Tuple[str, str], ...] = ()


def needs_rebuild(binary_path: Path, source_changed: bool) -> bool:
    return source_changed or not Path(binary_path).exists()


def build_steps(spec: SourceBuild, tags: Tuple[str, ...] = ()) -> List[Step]:
    """
    clean (best effort, only when the source changed) -> build -> install.

    Every step is skipped unless needs_rebuild() holds. Only install is
    elevated.
    """

    def skip_rebuild(ctx: RunContext) -> bool:
        rebuild = needs_rebuild(spec.binary_path, ctx.changed(spec.clone_step))
        if not rebuild:
            log.debug("%s: %s present and source unchanged", spec.name, spec.binary_path)
        return not rebuild

    def skip_clean(ctx: RunContext) -> bool:
        return skip_rebuild(ctx) or not ctx.changed(spec.clone_step)

    env: Dict[str, str] = dict(spec.build_env)

    def clean(sctx: StepContext):
        return sctx.shell.run(list(spec.clean_argv), cwd=spec.source_dir)

    def build(sctx: StepContext):
        return sctx.shell.run(list(spec.build_argv), cwd=spec.source_dir, env=env)

    def install(sctx: StepContext):
        return sctx.shell.run(list(spec.install_argv), cwd=spec.source_dir)

    return [
        Step(
            name=f"Clean previous {spec.name} build artifacts",
            action=clean,
            precondition=skip_clean,
            changed_when=never_changed,
            failure_policy=FailurePolicy.IGNORE,
            tags=tags,
        ),
        Step(
            name=f"Build {spec.name}",
            action=build,
            precondition=skip_rebuild,
            tags=tags,
        ),
        Step(
            name=f"Install {spec.name}",
            action=install,
            precondition=skip_rebuild,
            become=True,
            tags=tags,
        ),
    ]
