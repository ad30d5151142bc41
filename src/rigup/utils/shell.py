# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/rigup/utils/shell.py

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .execution import ActionResult, ExecutionContext

log = logging.getLogger("rigup")


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(a)) for a in argv)


class CommandRunner:
    """
    Runs local commands with consistent logging.

    - Elevation is requested per call (sudo -H) and never sticks.
    - stdout/stderr are always captured so steps can classify the outcome.
    - In dry-run mode only read_only commands are executed.
    """

    def __init__(self, ctx: Optional[ExecutionContext] = None, *, is_root: Optional[bool] = None):
        self.ctx = ctx or ExecutionContext()
        self.is_root = (os.geteuid() == 0) if is_root is None else is_root

    @property
    def dry_run(self) -> bool:
        return self.ctx.dry_run

    def _argv(self, argv: Sequence[str], *, become: bool, env: Optional[Mapping[str, str]]) -> list[str]:
        final = [str(a) for a in argv]
        if become and not self.is_root:
            # sudo resets the environment, so extra variables go through env(1)
            exports = [f"{k}={v}" for k, v in (env or {}).items()]
            prefix = ["sudo", "-H", "--"]
            if exports:
                prefix += ["env", *exports]
            final = prefix + final
        return final

    def run(
        self,
        argv: Sequence[str],
        *,
        become: bool = False,
        cwd: Optional[Path | str] = None,
        env: Optional[Mapping[str, str]] = None,
        read_only: bool = False,
    ) -> ActionResult:
        final = self._argv(argv, become=become, env=env)
        tag = "become" if become else "user"

        if self.dry_run and not read_only:
            log.info("[dry-run] (%s) $ %s", tag, fmt_argv(final))
            return ActionResult(returncode=0)

        log.debug("(%s) $ %s", tag, fmt_argv(final))
        start = time.time()

        proc = subprocess.run(
            final,
            cwd=str(cwd) if cwd else None,
            env=dict(os.environ, **(env or {})),
            text=True,
            capture_output=True,
        )

        elapsed = round(time.time() - start, 2)
        if proc.stdout:
            log.debug("[stdout] %s", proc.stdout.strip())
        if proc.stderr:
            log.debug("[stderr] %s", proc.stderr.strip())
        log.debug("[exit %s] after %ss", proc.returncode, elapsed)

        return ActionResult(
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )


class StepShell:
    """
    A CommandRunner bound to one step's elevation flag.

    Actions only ever see this object, so a step cannot ask for more
    privilege than it declared.
    """

    def __init__(self, runner: CommandRunner, *, become: bool):
        self._runner = runner
        self.become = become

    @property
    def dry_run(self) -> bool:
        return self._runner.dry_run

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[Path | str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> ActionResult:
        """Run a command that may change the host; logged only under --dry-run."""
        return self._runner.run(argv, become=self.become, cwd=cwd, env=env)

    def query(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[Path | str] = None,
    ) -> ActionResult:
        """Run an unelevated read-only command (state inspection)."""
        return self._runner.run(argv, become=False, cwd=cwd, read_only=True)
