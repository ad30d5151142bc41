# src/rigup/observers/console.py
import typer

from .events import BaseEvent, StepFailed, StepSkipped, StepStarted, StepSucceeded, RunSummary

class ConsoleObserver:
    def notify(self, event: BaseEvent) -> None:
        if isinstance(event, StepStarted):
            flag = " [become]" if event.become else ""
            typer.echo(f"TASK [{event.name}]{flag}")
        elif isinstance(event, StepSkipped):
            typer.echo("  skipped")
        elif isinstance(event, StepSucceeded):
            typer.echo("  changed" if event.changed else "  ok")
        elif isinstance(event, StepFailed):
            label = "failed" if event.fatal else "failed (ignored)"
            typer.echo(f"  {label}: {event.error}", err=True)
        elif isinstance(event, RunSummary):
            typer.echo(
                f"\nRECAP {event.host}: changed={event.changed} ok={event.ok} "
                f"skipped={event.skipped} failed={event.failed}"
            )
