# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ActionResult:
    """
    What a step action produced.

    changed is the action's own structured signal (HEAD moved, link replaced,
    packages missing before install). None means the action cannot tell.
    """

    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    changed: Optional[bool] = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True)
class ExecutionContext:
    """
    controls how commands are executed
    """

    dry_run: bool = False
