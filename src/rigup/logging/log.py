# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

#src/rigup/logging/log.py

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"
# step progress already goes to the console through ConsoleObserver
CONSOLE_FORMAT = "%(levelname)s: %(message)s"


def default_log_dir() -> Path:
    return Path.home() / ".rigup" / "logs"


def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "rigup",
    verbose: bool = False,
) -> tuple[logging.Logger, str, Path]:
    """
    Set up one provisioning run's logging and return (logger, run_id, log_path).

    The file gets every command line, its stdout/stderr and every event.
    The console gets INFO and up, or everything with --debug.
    """
    run_id = str(uuid.uuid4())

    base_dir = Path(base_dir) if base_dir is not None else default_log_dir()
    base_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = base_dir / f"{name}-{ts}-{run_id}.log"

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    for h in list(logger.handlers):
        h.close()
    logger.handlers.clear()
    logger.propagate = False

    fh = logging.FileHandler(log_path)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    logger.addHandler(fh)
    logger.addHandler(ch)

    logger.debug("=== rigup run %s started, full trace in %s ===", run_id, log_path)
    return logger, run_id, log_path
