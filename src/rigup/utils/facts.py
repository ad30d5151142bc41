# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/rigup/utils/facts.py

from __future__ import annotations

import getpass
import os
import pwd
import socket
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class HostFacts:
    """
    Ambient values resolved once per run. Read-only afterwards.
    """
    home: Path
    user: str
    uid: int
    hostname: str
    shell: Optional[str] = None     # login shell from the password database

    @property
    def is_root(self) -> bool:
        return self.uid == 0

    def dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["home"] = str(self.home)
        return d


def login_shell(user: str) -> Optional[str]:
    try:
        return pwd.getpwnam(user).pw_shell or None
    except KeyError:
        return None


def gather_facts(environ: Optional[Mapping[str, str]] = None) -> HostFacts:
    env = os.environ if environ is None else environ

    user = env.get("USER") or env.get("LOGNAME") or getpass.getuser()
    home = env.get("HOME")
    if not home:
        try:
            home = pwd.getpwnam(user).pw_dir
        except KeyError:
            home = str(Path.home())

    return HostFacts(
        home=Path(home),
        user=user,
        uid=os.getuid(),
        hostname=socket.gethostname(),
        shell=login_shell(user),
    )


def expand_home(path: str | Path, facts: HostFacts) -> Path:
    """
    Resolve a leading '~' against the gathered home, not the process HOME.
    """
    s = str(path)
    if s == "~":
        return facts.home
    if s.startswith("~/"):
        return facts.home / s[2:]
    return Path(s)
