# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/rigup/utils/pkg.py

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from ..provision.errors import PackageManagerNotFound
from .execution import ActionResult

log = logging.getLogger("rigup")


@dataclass(frozen=True)
class PackageManager:
    name: str                       # apt-get | dnf | yum
    family: str                     # apt | rpm
    install_argv: tuple[str, ...]
    env: tuple[tuple[str, str], ...] = ()

    def query_argv(self, package: str) -> List[str]:
        if self.family == "apt":
            return ["dpkg-query", "-W", "-f=${Status}", package]
        return ["rpm", "-q", "--whatprovides", package]

    def is_installed(self, result: ActionResult) -> bool:
        if self.family == "apt":
            return result.ok and "install ok installed" in result.stdout
        return result.ok


APT = PackageManager(
    name="apt-get",
    family="apt",
    install_argv=("apt-get", "install", "-y", "--no-install-recommends"),
    env=(("DEBIAN_FRONTEND", "noninteractive"),),
)
DNF = PackageManager(name="dnf", family="rpm", install_argv=("dnf", "install", "-y"))
YUM = PackageManager(name="yum", family="rpm", install_argv=("yum", "install", "-y"))

# preference order when several are present (dnf hosts often ship a yum shim)
_KNOWN: Sequence[PackageManager] = (APT, DNF, YUM)


def detect_package_manager(which: Callable[[str], Optional[str]] = shutil.which) -> PackageManager:
    for pm in _KNOWN:
        if which(pm.name):
            log.debug("using package manager %s", pm.name)
            return pm
    raise PackageManagerNotFound(
        "no supported package manager found (looked for: "
        + ", ".join(pm.name for pm in _KNOWN)
        + ")"
    )


def resolve_names(pm: PackageManager, names: Sequence[str], overrides: Dict[str, Dict[str, List[str]]]) -> List[str]:
    """
    Map generic package names to the family's names.

    overrides: {"rpm": {"build-essential": ["gcc", "gcc-c++", "make"]}}
    """
    table = overrides.get(pm.family, {})
    out: List[str] = []
    for n in names:
        for resolved in table.get(n, [n]):
            if resolved not in out:
                out.append(resolved)
    return out


def missing_packages(
    query: Callable[[Sequence[str]], ActionResult],
    pm: PackageManager,
    names: Sequence[str],
) -> List[str]:
    """
    Packages not yet installed. `query` must run unelevated and read-only
    (RunContext.query, StepShell.query) so it also runs in dry-run mode.
    """
    missing = []
    for n in names:
        r = query(pm.query_argv(n))
        if not pm.is_installed(r):
            missing.append(n)
    return missing


def install(shell, pm: PackageManager, names: Sequence[str]) -> ActionResult:
    """
    Install only the packages that are missing, through the step's shell.
    """
    missing = missing_packages(shell.query, pm, names)
    if not missing:
        log.info("packages already present: %s", ", ".join(names))
        return ActionResult(returncode=0, changed=False)

    log.info("installing via %s: %s", pm.name, ", ".join(missing))
    r = shell.run([*pm.install_argv, *missing], env=dict(pm.env))
    return ActionResult(
        returncode=r.returncode,
        stdout=r.stdout,
        stderr=r.stderr,
        changed=r.ok,
    )
