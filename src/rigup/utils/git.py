# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/rigup/utils/git.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..provision.errors import GitError
from .execution import ActionResult

log = logging.getLogger("rigup")


@dataclass(frozen=True)
class GitCheckout:
    url: str
    dest: Path
    version: str = "HEAD"
    depth: Optional[int] = None
    force: bool = False          # discard local modifications on update


def head_sha(shell, dest: Path) -> Optional[str]:
    if not (dest / ".git").exists():
        return None
    r = shell.query(["git", "rev-parse", "HEAD"], cwd=dest)
    return r.stdout.strip() if r.ok and r.stdout.strip() else None


def _depth(repo: GitCheckout) -> List[str]:
    return ["--depth", str(repo.depth)] if repo.depth else []


def clone_or_update(shell, repo: GitCheckout) -> ActionResult:
    """
    Clone when the destination has no checkout yet, otherwise fetch the
    requested version and check it out.

    changed is "HEAD before != HEAD after", which stays correct whatever
    git prints.
    """
    before = head_sha(shell, repo.dest)

    if before is None:
        if repo.dest.exists() and any(repo.dest.iterdir()):
            raise GitError(f"{repo.dest} exists, is not empty and is not a git checkout")
        log.info("cloning %s (%s) into %s", repo.url, repo.version, repo.dest)
        argv = ["git", "clone", *_depth(repo)]
        if repo.version != "HEAD":
            argv += ["--branch", repo.version]
        argv += [repo.url, str(repo.dest)]
        r = shell.run(argv)
        if not r.ok:
            return r
    else:
        if not repo.force:
            status = shell.query(["git", "status", "--porcelain", "--untracked-files=no"], cwd=repo.dest)
            if status.ok and status.stdout.strip():
                raise GitError(
                    f"{repo.dest} has local modifications; refusing to update without force"
                )

        log.info("updating %s to %s", repo.dest, repo.version)
        r = shell.run(["git", "fetch", *_depth(repo), "--tags", "--force", "origin", repo.version], cwd=repo.dest)
        if not r.ok:
            return r

        checkout = ["git", "checkout"]
        if repo.force:
            checkout.append("--force")
        checkout += ["--detach", "FETCH_HEAD"]
        r = shell.run(checkout, cwd=repo.dest)
        if not r.ok:
            return r

    if shell.dry_run:
        return ActionResult(returncode=0, stdout=r.stdout, stderr=r.stderr, changed=True)

    after = head_sha(shell, repo.dest)
    if after is None:
        raise GitError(f"no usable checkout at {repo.dest} after clone/update")

    if before != after:
        log.info("%s moved %s -> %s", repo.dest, (before or "none")[:12], after[:12])
    return ActionResult(
        returncode=0,
        stdout=r.stdout,
        stderr=r.stderr,
        changed=before != after,
    )
