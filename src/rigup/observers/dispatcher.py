# src/rigup/observers/dispatcher.py
from __future__ import annotations
import logging
from typing import Iterable, List, Optional, Protocol
from .events import BaseEvent

log = logging.getLogger("rigup")


class Observer(Protocol):
    def notify(self, event: BaseEvent) -> None: ...


class EventBus:
    def __init__(self, observers: Optional[Iterable[Observer]] = None):
        self._observers: List[Observer] = list(observers or [])

    def emit(self, event: BaseEvent) -> None:
        for ob in self._observers:
            try:
                ob.notify(event)
            except Exception as exc:
                # observers must not break a run
                log.debug("observer %s failed on %s: %s", ob.__class__.__name__, event.__class__.__name__, exc)
