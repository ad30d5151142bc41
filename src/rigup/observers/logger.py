# src/rigup/observers/logger.py
from __future__ import annotations
import logging
from .events import BaseEvent, RunStarted, RunSummary, StepFailed, StepSkipped, StepSucceeded


class LoggerObserver:
    """Mirrors step outcomes into the run log at DEBUG, one line each."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        if isinstance(event, StepSucceeded):
            self.logger.debug(
                "[EVENT] %s: %s (%dms)",
                "changed" if event.changed else "ok", event.name, event.duration_ms,
            )
        elif isinstance(event, StepSkipped):
            self.logger.debug("[EVENT] skipped: %s", event.name)
        elif isinstance(event, StepFailed):
            self.logger.debug(
                "[EVENT] failed%s: %s rc=%s",
                "" if event.fatal else " (ignored)", event.name, event.returncode,
            )
        elif isinstance(event, RunStarted):
            self.logger.debug(
                "[EVENT] RunStarted: %d steps on %s as %s%s",
                len(event.steps), event.host, event.user, " (dry-run)" if event.dry_run else "",
            )
        elif isinstance(event, RunSummary):
            self.logger.debug(
                "[EVENT] RunSummary: changed=%d ok=%d skipped=%d failed=%d halted_by=%s",
                event.changed, event.ok, event.skipped, event.failed, event.halted_by,
            )
        # StepStarted is left out; every start is followed by one of the above
