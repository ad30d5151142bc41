from pathlib import Path

import pytest

from rigup.provision.errors import GitError
from rigup.utils.execution import ActionResult
from rigup.utils.git import GitCheckout, clone_or_update
from rigup.utils.shell import StepShell


URL = "https://example.test/dotfiles.git"


def _checkout(dest: Path) -> None:
    (dest / ".git").mkdir(parents=True)


def test_fresh_clone_reports_change(fake_runner, tmp_path: Path):
    dest = tmp_path / "dotfiles"

    def clone(argv, cwd):
        _checkout(dest)
        return ActionResult()

    fake_runner.responses["git"] = ActionResult(stdout="a" * 40 + "\n")
    fake_runner.responses[("git", "clone", "--branch", "master", URL, str(dest))] = clone

    r = clone_or_update(StepShell(fake_runner, become=False), GitCheckout(url=URL, dest=dest, version="master"))

    assert r.changed is True
    assert fake_runner.argvs()[0] == ["git", "clone", "--branch", "master", URL, str(dest)]


def test_update_at_same_sha_is_unchanged(fake_runner, tmp_path: Path):
    dest = tmp_path / "neovim"
    _checkout(dest)
    fake_runner.responses[("git", "rev-parse", "HEAD")] = ActionResult(stdout="b" * 40)

    repo = GitCheckout(url=URL, dest=dest, version="stable", depth=1)
    r = clone_or_update(StepShell(fake_runner, become=False), repo)

    assert r.changed is False
    assert ["git", "fetch", "--depth", "1", "--tags", "--force", "origin", "stable"] in fake_runner.argvs()
    assert ["git", "checkout", "--detach", "FETCH_HEAD"] in fake_runner.argvs()


def test_update_to_new_sha_is_a_change(fake_runner, tmp_path: Path):
    dest = tmp_path / "neovim"
    _checkout(dest)
    heads = iter(["b" * 40, "c" * 40])
    fake_runner.responses[("git", "rev-parse", "HEAD")] = lambda argv, cwd: ActionResult(stdout=next(heads))

    r = clone_or_update(StepShell(fake_runner, become=False), GitCheckout(url=URL, dest=dest, version="stable"))

    assert r.changed is True


def test_local_modifications_block_update_without_force(fake_runner, tmp_path: Path):
    dest = tmp_path / "neovim"
    _checkout(dest)
    fake_runner.responses[("git", "rev-parse", "HEAD")] = ActionResult(stdout="b" * 40)
    fake_runner.responses[("git", "status", "--porcelain", "--untracked-files=no")] = ActionResult(
        stdout=" M src/nvim/main.c\n"
    )

    with pytest.raises(GitError, match="local modifications"):
        clone_or_update(StepShell(fake_runner, become=False), GitCheckout(url=URL, dest=dest))

    assert not any(a[:2] == ["git", "fetch"] for a in fake_runner.argvs())


def test_force_discards_local_modifications(fake_runner, tmp_path: Path):
    dest = tmp_path / "dotfiles"
    _checkout(dest)
    fake_runner.responses[("git", "rev-parse", "HEAD")] = ActionResult(stdout="b" * 40)

    clone_or_update(StepShell(fake_runner, become=False), GitCheckout(url=URL, dest=dest, force=True))

    argvs = fake_runner.argvs()
    assert ["git", "status", "--porcelain", "--untracked-files=no"] not in argvs
    assert ["git", "checkout", "--force", "--detach", "FETCH_HEAD"] in argvs


def test_non_empty_non_git_destination_is_refused(fake_runner, tmp_path: Path):
    dest = tmp_path / "dotfiles"
    dest.mkdir()
    (dest / "notes.txt").write_text("mine")

    with pytest.raises(GitError, match="not a git checkout"):
        clone_or_update(StepShell(fake_runner, become=False), GitCheckout(url=URL, dest=dest))


def test_failed_clone_is_returned(fake_runner, tmp_path: Path):
    fake_runner.responses["git"] = ActionResult(returncode=128, stderr="fatal: repository not found")

    r = clone_or_update(
        StepShell(fake_runner, become=False),
        GitCheckout(url=URL, dest=tmp_path / "dotfiles"),
    )

    assert r.returncode == 128
