# src/rigup/observers/jsonfile.py
from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, Optional

from ..provision.models import StepStatus
from .dispatcher import Observer
from .events import BaseEvent, RunStarted, RunSummary, StepFailed, StepSkipped, StepSucceeded


class JsonFileObserver(Observer):
    """
    Appends one JSON line per finished step, shaped like ExecutionResult,
    framed by a "run" record at start and at the end.
    StepStarted is not written; the outcome record carries the name.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def record(event: BaseEvent) -> Optional[Dict[str, Any]]:
        base = {"ts": event.ts, "run_id": event.run_id}

        if isinstance(event, StepSkipped):
            return {**base, "record": "step", "step": event.name,
                    "status": StepStatus.SKIPPED.value, "changed": False}
        if isinstance(event, StepSucceeded):
            status = StepStatus.RAN_CHANGED if event.changed else StepStatus.RAN_OK
            return {**base, "record": "step", "step": event.name, "status": status.value,
                    "changed": event.changed, "duration_ms": event.duration_ms}
        if isinstance(event, StepFailed):
            return {**base, "record": "step", "step": event.name, "status": StepStatus.FAILED.value,
                    "changed": False, "returncode": event.returncode,
                    "error": event.error, "fatal": event.fatal}
        if isinstance(event, RunStarted):
            return {**base, "record": "run", "phase": "started", "host": event.host,
                    "user": event.user, "steps": list(event.steps), "dry_run": event.dry_run}
        if isinstance(event, RunSummary):
            return {**base, "record": "run", "phase": "finished", "changed": event.changed,
                    "ok": event.ok, "skipped": event.skipped, "failed": event.failed,
                    "halted_by": event.halted_by}
        return None

    def notify(self, event: BaseEvent) -> None:
        rec = self.record(event)
        if rec is None:
            return
        with self.path.open("a") as f:
            json.dump(rec, f)
            f.write("\n")
