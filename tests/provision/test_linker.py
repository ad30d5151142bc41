import os
import types
from pathlib import Path

import pytest

from rigup.provision.errors import LinkError, LinkTargetMissingError
from rigup.provision.linker import enumerate_dotfiles, link_directory, link_files


@pytest.fixture
def dotfiles(tmp_path: Path) -> Path:
    src = tmp_path / "dotfiles"
    (src / ".git").mkdir(parents=True)
    (src / ".git" / "config").write_text("[core]\n")
    (src / ".bashrc").write_text("export EDITOR=nvim\n")
    (src / ".gitconfig").write_text("[user]\n")
    return src


def test_enumerate_excludes_git_metadata(dotfiles: Path):
    found = enumerate_dotfiles(dotfiles, exclude=[".git"])
    assert isinstance(found, types.GeneratorType)
    assert set(found) == {".bashrc", ".gitconfig"}


def test_enumerate_is_not_recursive_and_hidden_only(dotfiles: Path):
    (dotfiles / "README.md").write_text("docs")
    (dotfiles / "nvim-config").mkdir()
    (dotfiles / "nvim-config" / ".luarc").write_text("{}")

    assert set(enumerate_dotfiles(dotfiles)) == {".bashrc", ".gitconfig"}
    assert set(enumerate_dotfiles(dotfiles, patterns=["*"])) == {".bashrc", ".gitconfig", "README.md"}


def test_link_creates_symlinks_resolving_to_source(dotfiles: Path, tmp_path: Path):
    home = tmp_path / "home"
    home.mkdir()

    outcomes = link_files(dotfiles, home, enumerate_dotfiles(dotfiles, exclude=[".git"]))

    assert len(outcomes) == 2
    assert all(o.changed for o in outcomes)
    links = sorted(p.name for p in home.iterdir())
    assert links == [".bashrc", ".gitconfig"]
    for name in links:
        assert (home / name).is_symlink()
        assert (home / name).resolve() == (dotfiles / name).resolve()


def test_link_is_idempotent(dotfiles: Path, tmp_path: Path):
    home = tmp_path / "home"
    home.mkdir()
    link_files(dotfiles, home, [".bashrc"])

    again = link_files(dotfiles, home, [".bashrc"])
    assert [o.changed for o in again] == [False]


def test_link_replaces_existing_file_and_stale_link(dotfiles: Path, tmp_path: Path):
    home = tmp_path / "home"
    home.mkdir()
    (home / ".bashrc").write_text("old")
    os.symlink(tmp_path / "elsewhere", home / ".gitconfig")

    outcomes = link_files(dotfiles, home, [".bashrc", ".gitconfig"])

    assert all(o.changed and o.replaced for o in outcomes)
    assert os.readlink(home / ".bashrc") == str(dotfiles / ".bashrc")
    assert os.readlink(home / ".gitconfig") == str(dotfiles / ".gitconfig")
    # no temporary links left behind
    assert sorted(p.name for p in home.iterdir()) == [".bashrc", ".gitconfig"]


def test_link_missing_target_dir_is_fatal(dotfiles: Path, tmp_path: Path):
    with pytest.raises(LinkTargetMissingError):
        link_files(dotfiles, tmp_path / "nope", [".bashrc"])


def test_link_dry_run_changes_nothing(dotfiles: Path, tmp_path: Path):
    home = tmp_path / "home"
    home.mkdir()

    outcomes = link_files(dotfiles, home, [".bashrc"], dry_run=True)

    assert outcomes[0].changed
    assert list(home.iterdir()) == []


def test_link_directory_as_a_whole(dotfiles: Path, tmp_path: Path):
    nvim_src = dotfiles / "nvim-config"
    nvim_src.mkdir()
    (nvim_src / "init.lua").write_text("-- init")
    config = tmp_path / "home" / ".config"
    config.mkdir(parents=True)

    outcome = link_directory(nvim_src, config / "nvim")

    assert outcome.changed
    assert (config / "nvim").is_symlink()
    assert (config / "nvim" / "init.lua").read_text() == "-- init"
    assert link_directory(nvim_src, config / "nvim").changed is False


def test_link_directory_refuses_to_replace_real_directory(dotfiles: Path, tmp_path: Path):
    nvim_src = dotfiles / "nvim-config"
    nvim_src.mkdir()
    dest = tmp_path / "home" / ".config" / "nvim"
    dest.mkdir(parents=True)

    with pytest.raises(LinkError):
        link_directory(nvim_src, dest)
