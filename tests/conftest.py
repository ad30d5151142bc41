from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pytest

from rigup.utils.execution import ActionResult, ExecutionContext
from rigup.utils.facts import HostFacts


@dataclass
class Call:
    argv: list
    become: bool
    cwd: Optional[str]
    env: Optional[dict]
    read_only: bool


class FakeRunner:
    """
    Stands in for CommandRunner. Responses are looked up by full argv tuple,
    then by argv[0]; a response is an ActionResult or a callable(argv, cwd).
    """

    def __init__(self, responses=None, dry_run=False):
        self.calls = []
        self.responses = dict(responses or {})
        self.ctx = ExecutionContext(dry_run=dry_run)

    @property
    def dry_run(self):
        return self.ctx.dry_run

    def run(self, argv, *, become=False, cwd=None, env=None, read_only=False):
        argv = [str(a) for a in argv]
        self.calls.append(Call(argv, become, str(cwd) if cwd else None, env, read_only))
        if self.dry_run and not read_only:
            return ActionResult()
        for key in (tuple(argv), argv[0]):
            if key in self.responses:
                r = self.responses[key]
                return r(argv, cwd) if callable(r) else r
        return ActionResult()

    def argvs(self):
        return [c.argv for c in self.calls]

    def elevated(self):
        return [c.argv for c in self.calls if c.become]


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def host_facts(tmp_path: Path) -> HostFacts:
    home = tmp_path / "home"
    home.mkdir()
    return HostFacts(home=home, user="dev", uid=1000, hostname="box", shell="/bin/bash")


@pytest.fixture
def make_runner():
    return FakeRunner
