import subprocess

import pytest

from rigup.utils.execution import ActionResult, ExecutionContext
from rigup.utils.shell import CommandRunner, StepShell, fmt_argv


class DummyCP:
    def __init__(self, rc=0, out="", err=""):
        self.returncode = rc
        self.stdout = out
        self.stderr = err


def _capture(monkeypatch, rc=0, out="", err=""):
    calls = []

    def fake_run(argv, cwd=None, env=None, text=False, capture_output=False):
        calls.append({"argv": argv, "cwd": cwd, "env": env})
        return DummyCP(rc, out, err)

    monkeypatch.setattr(subprocess, "run", fake_run)
    return calls


def test_plain_command_runs_unelevated(monkeypatch):
    calls = _capture(monkeypatch, out="ok\n")

    r = CommandRunner(is_root=False).run(["git", "status"], cwd="/tmp")

    assert calls[0]["argv"] == ["git", "status"]
    assert calls[0]["cwd"] == "/tmp"
    assert r == ActionResult(returncode=0, stdout="ok\n", stderr="")
    assert r.changed is None


def test_become_prefixes_sudo_and_forwards_env(monkeypatch):
    calls = _capture(monkeypatch)

    CommandRunner(is_root=False).run(
        ["apt-get", "install", "-y", "tmux"],
        become=True,
        env={"DEBIAN_FRONTEND": "noninteractive"},
    )

    assert calls[0]["argv"] == [
        "sudo", "-H", "--",
        "env", "DEBIAN_FRONTEND=noninteractive",
        "apt-get", "install", "-y", "tmux",
    ]
    assert calls[0]["env"]["DEBIAN_FRONTEND"] == "noninteractive"


def test_root_needs_no_sudo(monkeypatch):
    calls = _capture(monkeypatch)

    CommandRunner(is_root=True).run(["usermod", "-s", "/usr/bin/zsh", "dev"], become=True)

    assert calls[0]["argv"] == ["usermod", "-s", "/usr/bin/zsh", "dev"]


def test_dry_run_executes_only_read_only(monkeypatch):
    calls = _capture(monkeypatch, rc=1)
    runner = CommandRunner(ExecutionContext(dry_run=True), is_root=False)

    mutating = runner.run(["make", "install"], become=True)
    probe = runner.run(["which", "zsh"], read_only=True)

    assert mutating.ok
    assert [c["argv"] for c in calls] == [["which", "zsh"]]
    assert probe.returncode == 1


def test_step_shell_binds_elevation(fake_runner):
    elevated = StepShell(fake_runner, become=True)
    elevated.run(["make", "install"])
    elevated.query(["dpkg-query", "-W", "tmux"])

    plain = StepShell(fake_runner, become=False)
    plain.run(["make"])

    assert [(c.argv[0], c.become, c.read_only) for c in fake_runner.calls] == [
        ("make", True, False),
        ("dpkg-query", False, True),
        ("make", False, False),
    ]


def test_fmt_argv_quotes():
    assert fmt_argv(["sh", "-c", "echo hi"]) == "sh -c 'echo hi'"


def test_step_shell_cannot_run_mutations_during_dry_run(monkeypatch):
    calls = _capture(monkeypatch)
    shell = StepShell(CommandRunner(ExecutionContext(dry_run=True), is_root=False), become=False)

    with pytest.raises(TypeError):
        shell.run(["rm", "-rf", "/tmp/x"], read_only=True)

    assert shell.run(["git", "clone", "x"]).ok
    shell.query(["git", "rev-parse", "HEAD"])
    assert [c["argv"] for c in calls] == [["git", "rev-parse", "HEAD"]]
