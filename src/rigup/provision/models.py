# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/rigup/provision/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..utils.execution import ActionResult
from ..utils.facts import HostFacts
from ..utils.shell import CommandRunner, StepShell
from .errors import FactError


class FailurePolicy(str, Enum):
    FATAL = "fatal"
    IGNORE = "ignore"


class StepStatus(str, Enum):
    PENDING = "PENDING"
    SKIPPED = "SKIPPED"
    RAN_OK = "RAN_OK"
    RAN_CHANGED = "RAN_CHANGED"
    FAILED = "FAILED"


@dataclass
class ExecutionResult:
    step: str
    status: StepStatus = StepStatus.PENDING
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    error: Optional[str] = None
    duration_ms: int = 0

    @property
    def ran(self) -> bool:
        return self.status in (StepStatus.RAN_OK, StepStatus.RAN_CHANGED, StepStatus.FAILED)

    @property
    def changed(self) -> bool:
        return self.status == StepStatus.RAN_CHANGED

    @property
    def failed(self) -> bool:
        return self.status == StepStatus.FAILED


class RunContext:
    """
    State shared by every step of one run: host facts, facts registered by
    earlier steps, and earlier results. Passed explicitly to preconditions.
    """

    def __init__(self, facts: HostFacts, runner: CommandRunner):
        self.facts = facts
        self.runner = runner
        self.results: Dict[str, ExecutionResult] = {}
        self._registered: Dict[str, Any] = {}

    @property
    def dry_run(self) -> bool:
        return self.runner.dry_run

    def set_fact(self, name: str, value: Any) -> None:
        if name in self._registered:
            raise FactError(f"fact '{name}' is already resolved and cannot be changed")
        self._registered[name] = value

    def fact(self, name: str) -> Any:
        try:
            return self._registered[name]
        except KeyError:
            raise FactError(f"fact '{name}' has not been resolved") from None

    def has_fact(self, name: str) -> bool:
        return name in self._registered

    def result(self, step: str) -> Optional[ExecutionResult]:
        return self.results.get(step)

    def changed(self, step: str) -> bool:
        r = self.results.get(step)
        return bool(r and r.changed)

    def query(self, argv, *, cwd=None) -> ActionResult:
        """Unelevated read-only command, for preconditions."""
        return self.runner.run(argv, become=False, cwd=cwd, read_only=True)


class StepContext:
    """
    What an action sees: the run context plus a shell bound to the step's
    own elevation flag.
    """

    def __init__(self, run: RunContext, step: "Step"):
        self.run = run
        self.step = step
        self.shell = StepShell(run.runner, become=step.become)

    @property
    def facts(self) -> HostFacts:
        return self.run.facts

    @property
    def dry_run(self) -> bool:
        return self.run.dry_run

    def fact(self, name: str) -> Any:
        return self.run.fact(name)

    def set_fact(self, name: str, value: Any) -> None:
        self.run.set_fact(name, value)

    def changed(self, step: str) -> bool:
        return self.run.changed(step)


Precondition = Callable[[RunContext], bool]
Action = Callable[[StepContext], ActionResult]
ChangedClassifier = Callable[[ActionResult, StepContext], bool]


@dataclass
class Step:
    name: str
    action: Action
    precondition: Optional[Precondition] = None     # True -> already satisfied, skip
    become: bool = False
    changed_when: Optional[ChangedClassifier] = None
    failure_policy: FailurePolicy = FailurePolicy.FATAL
    tags: Tuple[str, ...] = ()


@dataclass
class ProvisionReport:
    results: List[ExecutionResult] = field(default_factory=list)
    halted_by: Optional[ExecutionResult] = None

    def add(self, result: ExecutionResult) -> None:
        self.results.append(result)

    @property
    def failed(self) -> bool:
        return self.halted_by is not None

    @property
    def changed(self) -> List[str]:
        return [r.step for r in self.results if r.changed]

    def counts(self) -> Dict[str, int]:
        out = {s.value: 0 for s in StepStatus if s != StepStatus.PENDING}
        for r in self.results:
            out[r.status.value] += 1
        return out

    def summary(self) -> str:
        c = self.counts()
        return (
            f"CHANGED={c['RAN_CHANGED']} OK={c['RAN_OK']} "
            f"SKIPPED={c['SKIPPED']} FAILED={c['FAILED']}"
        )
