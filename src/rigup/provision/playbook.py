# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/rigup/provision/playbook.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set

from ..config.models import WorkstationConfig
from ..utils import pkg
from ..utils.execution import ActionResult
from ..utils.facts import HostFacts, expand_home
from ..utils.git import GitCheckout, clone_or_update
from .build import SourceBuild, build_steps as source_build_steps
from .conditions import (
    any_of,
    both,
    is_directory,
    login_shell_is,
    negate,
    never_changed,
    output_lacks,
    path_created,
    path_exists,
    symlink_points_to,
)
from .errors import MissingExecutableError, PackageManagerNotFound
from .linker import enumerate_dotfiles, link_directory, link_files
from .models import RunContext, Step, StepContext

log = logging.getLogger("rigup")


# ------------------------------------------------------------------------------
# Targets
# ------------------------------------------------------------------------------

ALL_TARGETS: Sequence[str] = ("packages", "shell", "dotfiles", "neovim")

SHELL_PATH_FACT = "shell_path"


def resolve_targets(only: Optional[str]) -> Set[str]:
    """
    Resolve the target set from --only.

    Rules:
    - No --only -> everything
    - --only all -> everything
    - Otherwise -> only the named targets
    """
    if not only:
        return set(ALL_TARGETS)

    items = {i.strip() for i in only.split(",") if i.strip()}
    if "all" in items:
        return set(ALL_TARGETS)

    unknown = items - set(ALL_TARGETS)
    if unknown:
        raise ValueError(
            f"Unknown targets: {', '.join(sorted(unknown))}. "
            f"Valid targets: {', '.join(ALL_TARGETS)}"
        )
    return items


def select_steps(steps: Iterable[Step], targets: Set[str]) -> List[Step]:
    return [s for s in steps if set(s.tags) & targets]


# ------------------------------------------------------------------------------
# Step factories
# ------------------------------------------------------------------------------

def _require_pm(pm: Optional[pkg.PackageManager]) -> pkg.PackageManager:
    if pm is None:
        raise PackageManagerNotFound("no supported package manager found (apt-get, dnf, yum)")
    return pm


def package_step(
    name: str,
    packages: Sequence[str],
    pm: Optional[pkg.PackageManager],
    cfg: WorkstationConfig,
    tags: tuple,
) -> Step:
    def resolved() -> List[str]:
        p = _require_pm(pm)
        return pkg.resolve_names(p, packages, cfg.package_overrides)

    def installed(ctx: RunContext) -> bool:
        return not pkg.missing_packages(ctx.query, _require_pm(pm), resolved())

    def install(sctx: StepContext) -> ActionResult:
        return pkg.install(sctx.shell, _require_pm(pm), resolved())

    return Step(name=name, action=install, precondition=installed, become=True, tags=tags)


def directory_step(name: str, path: Path, tags: tuple, mode: int = 0o755) -> Step:
    def mkdir(sctx: StepContext) -> ActionResult:
        if sctx.dry_run:
            log.info("[dry-run] mkdir -m %o %s", mode, path)
        else:
            path.mkdir(mode=mode, parents=True, exist_ok=True)
        return ActionResult(changed=True)

    return Step(name=name, action=mkdir, precondition=is_directory(path), tags=tags)


def git_step(name: str, checkout: GitCheckout, tags: tuple) -> Step:
    return Step(
        name=name,
        action=lambda sctx: clone_or_update(sctx.shell, checkout),
        tags=tags,
    )


# ------------------------------------------------------------------------------
# Plays
# ------------------------------------------------------------------------------

def _packages_play(cfg: WorkstationConfig, pm) -> List[Step]:
    tags = ("packages",)
    return [
        package_step(
            f"Ensure {', '.join(cfg.packages.install)} installed",
            cfg.packages.install,
            pm,
            cfg,
            tags,
        )
    ]


def _shell_play(cfg: WorkstationConfig, facts: HostFacts, pm) -> List[Step]:
    tags = ("shell",)
    sh = cfg.shell
    steps = [
        package_step(f"Ensure {', '.join(sh.packages)} installed", sh.packages, pm, cfg, tags),
    ]

    if sh.oh_my_zsh:
        omz_dir = expand_home(sh.oh_my_zsh_dir, facts)

        def install_omz(sctx: StepContext) -> ActionResult:
            # a failed download must fail the step instead of running an empty script
            script = 'script="$(curl -fsSL "$1")" || exit 1; sh -c "$script" "" --unattended'
            return sctx.shell.run(["sh", "-c", script, "rigup", sh.oh_my_zsh_installer_url], cwd=facts.home)

        steps.append(
            Step(
                name="Install Oh My Zsh",
                action=install_omz,
                precondition=path_exists(omz_dir),
                changed_when=both(path_created(omz_dir), output_lacks("already installed")),
                tags=tags,
            )
        )

    def resolve_shell(sctx: StepContext) -> ActionResult:
        r = sctx.shell.query(["which", sh.name])
        path = r.stdout.strip()
        if not r.ok or not path or f"/{sh.name}" not in path:
            raise MissingExecutableError(
                f"{sh.name} executable not found after attempting to install. "
                f"Cannot set as default shell."
            )
        sctx.set_fact(SHELL_PATH_FACT, path)
        return ActionResult(returncode=0, stdout=r.stdout, stderr=r.stderr)

    steps.append(
        Step(
            name=f"Get {sh.name} path",
            action=resolve_shell,
            changed_when=never_changed,
            tags=tags,
        )
    )

    if sh.set_default:
        def set_login_shell(sctx: StepContext) -> ActionResult:
            return sctx.shell.run(["usermod", "-s", sctx.fact(SHELL_PATH_FACT), facts.user])

        steps.append(
            Step(
                name=f"Set {sh.name} as default shell for {facts.user}",
                action=set_login_shell,
                precondition=login_shell_is(SHELL_PATH_FACT),
                become=True,
                tags=tags,
            )
        )
    return steps


def _dotfiles_play(cfg: WorkstationConfig, facts: HostFacts, pm) -> List[Step]:
    tags = ("dotfiles",)
    df = cfg.dotfiles
    clone_dir = expand_home(df.clone_dir, facts)
    config_dir = expand_home(df.config_dir, facts)
    nvim_src = clone_dir / df.neovim_config_dir_name
    nvim_link = expand_home(df.neovim_config_link, facts)

    def link_nvim(sctx: StepContext) -> ActionResult:
        outcome = link_directory(nvim_src, nvim_link, dry_run=sctx.dry_run)
        return ActionResult(changed=outcome.changed)

    def link_dotfiles(sctx: StepContext) -> ActionResult:
        if sctx.dry_run and not clone_dir.is_dir():
            log.info("[dry-run] %s not cloned yet, nothing to enumerate", clone_dir)
            return ActionResult(changed=True)
        found = enumerate_dotfiles(clone_dir, exclude=df.exclude, patterns=df.patterns)
        outcomes = link_files(clone_dir, facts.home, found, dry_run=sctx.dry_run)
        changed = [str(o.dest) for o in outcomes if o.changed]
        return ActionResult(
            stdout="\n".join(changed),
            changed=bool(changed),
        )

    return [
        package_step("Ensure git installed", ["git"], pm, cfg, tags),
        git_step(
            "Clone or update dotfiles repo",
            GitCheckout(url=df.repo_url, dest=clone_dir, version=df.version, force=df.force),
            tags,
        ),
        directory_step(f"Ensure {config_dir} exists", config_dir, tags),
        Step(
            name="Symlink Neovim config directory from dotfiles",
            action=link_nvim,
            # only when the clone actually carries the config folder
            precondition=any_of(negate(is_directory(nvim_src)), symlink_points_to(nvim_link, nvim_src)),
            tags=tags,
        ),
        Step(name="Symlink dotfiles to HOME dir", action=link_dotfiles, tags=tags),
    ]


def _neovim_play(cfg: WorkstationConfig, facts: HostFacts, pm) -> List[Step]:
    tags = ("neovim",)
    nv = cfg.neovim
    clone_dir = expand_home(nv.clone_dir, facts)
    clone_step = "Clone or update Neovim repository"

    build = SourceBuild(
        name="Neovim",
        source_dir=clone_dir,
        binary_path=Path(nv.binary_path),
        clone_step=clone_step,
        build_argv=("make", f"CMAKE_BUILD_TYPE={nv.build_type}"),
        build_env=(("CMAKE_BUILD_TYPE", nv.build_type),),
    )

    return [
        package_step("Ensure Neovim build dependencies are installed", nv.build_dependencies, pm, cfg, tags),
        directory_step("Create source directory for Neovim clone", expand_home(nv.src_dir, facts), tags),
        git_step(
            clone_step,
            GitCheckout(url=nv.repo_url, dest=clone_dir, version=nv.version, depth=nv.depth),
            tags,
        ),
        *source_build_steps(build, tags=tags),
    ]


def build_steps(
    cfg: WorkstationConfig,
    facts: HostFacts,
    pm: Optional[pkg.PackageManager],
) -> List[Step]:
    """
    The full workstation step list, in provisioning order.
    """
    steps: List[Step] = []
    steps += _packages_play(cfg, pm)
    steps += _shell_play(cfg, facts, pm)
    if cfg.dotfiles.enabled:
        steps += _dotfiles_play(cfg, facts, pm)
    if cfg.neovim.enabled:
        steps += _neovim_play(cfg, facts, pm)
    return steps
