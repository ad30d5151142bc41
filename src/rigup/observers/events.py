# src/rigup/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single provisioning run
    host: str         # hostname being provisioned
    user: str         # invoking user

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(host: str, user: str, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "host": host,
        "user": user,
    }


# ---------------------------------------------------------------------
# Run lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class RunStarted(BaseEvent):
    steps: List[str]
    dry_run: bool = False

@dataclass(frozen=True)
class RunSummary(BaseEvent):
    changed: int
    ok: int
    skipped: int
    failed: int
    halted_by: Optional[str] = None


# ---------------------------------------------------------------------
# Step lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StepStarted(BaseEvent):
    name: str
    become: bool

@dataclass(frozen=True)
class StepSkipped(BaseEvent):
    name: str

@dataclass(frozen=True)
class StepSucceeded(BaseEvent):
    name: str
    changed: bool
    duration_ms: int

@dataclass(frozen=True)
class StepFailed(BaseEvent):
    name: str
    error: str
    fatal: bool
    returncode: Optional[int] = None
