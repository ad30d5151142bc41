# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import time
import uuid
from typing import List, Optional, Sequence

from ..observers.dispatcher import EventBus
from ..observers.events import (
    new_ctx,
    RunStarted,
    RunSummary,
    StepStarted,
    StepSkipped,
    StepSucceeded,
    StepFailed,
)
from ..utils.execution import ActionResult
from ..utils.facts import HostFacts
from ..utils.shell import CommandRunner
from .errors import ProvisionError
from .models import (
    ExecutionResult,
    FailurePolicy,
    ProvisionReport,
    RunContext,
    Step,
    StepContext,
    StepStatus,
)

log = logging.getLogger("rigup")


def _tail(text: str, limit: int = 2000) -> str:
    text = (text or "").strip()
    return text[-limit:]


def _classify(step: Step, result: ActionResult, sctx: StepContext) -> bool:
    if step.changed_when is not None:
        return bool(step.changed_when(result, sctx))
    if result.changed is not None:
        return result.changed
    return True


class Provisioner:
    """
    Evaluates Steps in declared order against the local host.

    Each step: precondition -> (skip | action -> changed classification).
    A failed FATAL step halts the run; partial state is left as-is since a
    rerun is the recovery path.
    """

    def __init__(
        self,
        runner: CommandRunner,
        facts: HostFacts,
        *,
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
    ):
        self.runner = runner
        self.facts = facts
        self.bus = bus or EventBus()
        self.run_id = run_id or str(uuid.uuid4())
        self.ctx = RunContext(facts, runner)

    def _event_ctx(self) -> dict:
        return new_ctx(host=self.facts.hostname, user=self.facts.user, run_id=self.run_id)

    def _fail(self, res: ExecutionResult, step: Step, error: str) -> None:
        res.status = StepStatus.FAILED
        res.error = error
        fatal = step.failure_policy == FailurePolicy.FATAL
        if fatal:
            log.error("step '%s' failed: %s", step.name, error)
        else:
            log.warning("step '%s' failed (ignored): %s", step.name, error)
        self.bus.emit(
            StepFailed(
                name=step.name,
                error=error,
                fatal=fatal,
                returncode=res.returncode,
                **self._event_ctx(),
            )
        )

    def run_step(self, step: Step) -> ExecutionResult:
        res = ExecutionResult(step=step.name)
        self.bus.emit(StepStarted(name=step.name, become=step.become, **self._event_ctx()))

        try:
            satisfied = bool(step.precondition(self.ctx)) if step.precondition else False
        except (ProvisionError, OSError) as exc:
            self._fail(res, step, f"precondition check failed: {exc}")
            return res

        if satisfied:
            log.debug("step '%s' skipped (precondition satisfied)", step.name)
            res.status = StepStatus.SKIPPED
            self.bus.emit(StepSkipped(name=step.name, **self._event_ctx()))
            return res

        sctx = StepContext(self.ctx, step)
        start = time.time()
        try:
            outcome = step.action(sctx)
        except (ProvisionError, OSError) as exc:
            res.duration_ms = int((time.time() - start) * 1000)
            self._fail(res, step, str(exc))
            return res
        res.duration_ms = int((time.time() - start) * 1000)

        res.returncode = outcome.returncode
        res.stdout = outcome.stdout
        res.stderr = outcome.stderr

        if not outcome.ok:
            detail = _tail(outcome.stderr) or _tail(outcome.stdout)
            msg = f"exited with status {outcome.returncode}"
            self._fail(res, step, f"{msg}: {detail}" if detail else msg)
            return res

        changed = _classify(step, outcome, sctx)
        res.status = StepStatus.RAN_CHANGED if changed else StepStatus.RAN_OK
        self.bus.emit(
            StepSucceeded(
                name=step.name,
                changed=changed,
                duration_ms=res.duration_ms,
                **self._event_ctx(),
            )
        )
        return res

    def run(self, steps: Sequence[Step]) -> ProvisionReport:
        # results and registered facts belong to one run; self.ctx keeps the latest
        self.ctx = RunContext(self.facts, self.runner)
        report = ProvisionReport()
        names: List[str] = [s.name for s in steps]
        self.bus.emit(RunStarted(steps=names, dry_run=self.runner.dry_run, **self._event_ctx()))

        for step in steps:
            res = self.run_step(step)
            self.ctx.results[step.name] = res
            report.add(res)
            if res.failed and step.failure_policy == FailurePolicy.FATAL:
                report.halted_by = res
                log.error("halting: %d step(s) not evaluated", len(steps) - len(report.results))
                break

        c = report.counts()
        self.bus.emit(
            RunSummary(
                changed=c["RAN_CHANGED"],
                ok=c["RAN_OK"],
                skipped=c["SKIPPED"],
                failed=c["FAILED"],
                halted_by=report.halted_by.step if report.halted_by else None,
                **self._event_ctx(),
            )
        )
        log.info("run finished: %s", report.summary())
        return report
