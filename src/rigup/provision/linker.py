# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/rigup/provision/linker.py

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

from .errors import LinkError, LinkTargetMissingError

log = logging.getLogger("rigup")

DEFAULT_EXCLUDES: Sequence[str] = (".git",)
DEFAULT_PATTERNS: Sequence[str] = (".*",)


@dataclass(frozen=True)
class LinkOutcome:
    dest: Path
    source: Path
    changed: bool
    replaced: bool = False      # something else was at dest before


def _matches_any(name: str, patterns: Iterable[str]) -> bool:
    return any(fnmatch(name, p) for p in patterns)


def enumerate_dotfiles(
    source_dir: str | Path,
    exclude: Sequence[str] = DEFAULT_EXCLUDES,
    patterns: Sequence[str] = DEFAULT_PATTERNS,
) -> Iterator[str]:
    """
    Lazily yield the relative paths of regular files directly under
    source_dir (no recursion) whose name matches `patterns` and none of
    `exclude`. Hidden files are included.
    """
    with os.scandir(source_dir) as it:
        for entry in it:
            if not entry.is_file(follow_symlinks=False):
                continue
            if _matches_any(entry.name, exclude):
                continue
            if not _matches_any(entry.name, patterns):
                continue
            yield entry.name


def _force_symlink(source: Path, dest: Path, *, dry_run: bool) -> LinkOutcome:
    if dest.is_symlink() and os.readlink(dest) == str(source):
        return LinkOutcome(dest=dest, source=source, changed=False)

    if dest.is_dir() and not dest.is_symlink():
        raise LinkError(f"refusing to replace directory {dest} with a symlink")

    replaced = dest.is_symlink() or dest.exists()
    if dry_run:
        log.info("[dry-run] link %s -> %s", dest, source)
        return LinkOutcome(dest=dest, source=source, changed=True, replaced=replaced)

    # build the link beside the destination, then swap it in
    tmp = dest.with_name(f".{dest.name}.rigup-{os.getpid()}")
    if tmp.is_symlink() or tmp.exists():
        tmp.unlink()
    os.symlink(source, tmp)
    try:
        os.replace(tmp, dest)
    except OSError as exc:
        tmp.unlink()
        raise LinkError(f"could not link {dest} -> {source}: {exc}") from exc

    log.info("linked %s -> %s", dest, source)
    return LinkOutcome(dest=dest, source=source, changed=True, replaced=replaced)


def link_files(
    source_dir: str | Path,
    target_dir: str | Path,
    relative_paths: Iterable[str],
    *,
    dry_run: bool = False,
) -> List[LinkOutcome]:
    """
    Force-create target_dir/rel -> source_dir/rel for each relative path.
    """
    source_dir = Path(source_dir)
    target_dir = Path(target_dir)
    if not target_dir.is_dir():
        raise LinkTargetMissingError(f"link target directory does not exist: {target_dir}")

    return [
        _force_symlink(source_dir / rel, target_dir / rel, dry_run=dry_run)
        for rel in relative_paths
    ]


def link_directory(source: str | Path, dest: str | Path, *, dry_run: bool = False) -> LinkOutcome:
    """
    Link a whole directory (e.g. an editor config folder) instead of its files.
    """
    source = Path(source)
    dest = Path(dest)
    if not source.is_dir():
        raise LinkError(f"source directory does not exist: {source}")
    if not dest.parent.is_dir():
        raise LinkTargetMissingError(f"link target directory does not exist: {dest.parent}")
    return _force_symlink(source, dest, dry_run=dry_run)
