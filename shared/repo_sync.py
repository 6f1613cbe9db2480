"""Keep a site working copy in step with its remote branch.

Used both by the setup run and by the deploy tool the webhook listener calls,
so it only depends on the standard library and lib/.
"""

from __future__ import annotations

import os
import shlex
import subprocess
from dataclasses import dataclass
from logging import Logger
from typing import Optional

from lib.errors import SyncError
from lib.logging_utils import log_subprocess_result
from lib.system_utils import is_dry_run, run


@dataclass
class SyncResult:
    action: str
    commit: Optional[str] = None


def _git(args: list, cwd: Optional[str] = None, safe_path: Optional[str] = None) -> subprocess.CompletedProcess:
    cmd = ["git"]
    if safe_path:
        # Root syncs a tree owned by the service user; git refuses that without this
        cmd.extend(["-c", f"safe.directory={safe_path}"])
    cmd.extend(args)
    return subprocess.run(cmd, cwd=cwd, capture_output=True, text=True)


def is_working_copy(path: str) -> bool:
    return os.path.isdir(os.path.join(path, ".git"))


def get_head_commit(path: str) -> Optional[str]:
    result = _git(["-C", path, "rev-parse", "HEAD"], safe_path=path)
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def _describe_failure(result: subprocess.CompletedProcess) -> str:
    lines = (result.stderr or result.stdout or "").strip().splitlines()
    return lines[-1] if lines else f"exit code {result.returncode}"


def clone(remote_url: str, local_path: str, branch: str, logger: Optional[Logger] = None) -> None:
    if os.path.isdir(local_path) and os.listdir(local_path):
        raise SyncError(
            f"{local_path} exists and is not a git working copy",
            remediation=f"mv {shlex.quote(local_path)} {shlex.quote(local_path)}.bak"
        )

    parent = os.path.dirname(local_path.rstrip('/'))
    if parent:
        os.makedirs(parent, exist_ok=True)

    result = _git(["clone", "--branch", branch, remote_url, local_path])
    if logger:
        log_subprocess_result(logger, f"Clone {remote_url} ({branch})", result)
    if result.returncode != 0:
        raise SyncError(
            f"git clone failed: {_describe_failure(result)}",
            remediation=f"git clone --branch {shlex.quote(branch)} {shlex.quote(remote_url)} {shlex.quote(local_path)}"
        )


def fast_forward(local_path: str, branch: str, logger: Optional[Logger] = None) -> None:
    """Fast-forward to origin/<branch>. Diverged or dirty trees are left untouched."""
    result = _git(
        ["-C", local_path, "pull", "--ff-only", "origin", branch],
        safe_path=local_path
    )
    if logger:
        log_subprocess_result(logger, f"Fast-forward {local_path} to origin/{branch}", result)
    if result.returncode != 0:
        raise SyncError(
            f"git pull --ff-only failed in {local_path}: {_describe_failure(result)}",
            remediation=f"cd {shlex.quote(local_path)} && git status && git log --oneline -5 origin/{branch}"
        )


def normalize_ownership(path: str, owner: str, group: str, mode: str = "755",
                        logger: Optional[Logger] = None) -> None:
    quoted = shlex.quote(path)
    for cmd in (f"chown -R {shlex.quote(owner)}:{shlex.quote(group)} {quoted}",
                f"chmod -R {shlex.quote(mode)} {quoted}"):
        result = run(cmd, check=False, capture_output=True)
        if logger:
            log_subprocess_result(logger, cmd, result)
        if result.returncode != 0:
            raise SyncError(f"{cmd} failed: {_describe_failure(result)}", remediation=cmd)


def sync(remote_url: str, local_path: str, branch: str,
         owner: str = "www-data", group: str = "www-data", mode: str = "755",
         logger: Optional[Logger] = None) -> SyncResult:
    """Clone remote_url into local_path, or fast-forward an existing working copy.

    Never resets or discards local commits: a pull that cannot fast-forward
    raises SyncError and the tree is left as it was.
    """
    if is_dry_run():
        action = "updated" if is_working_copy(local_path) else "cloned"
        print(f"  [DRY-RUN] Would {'pull' if action == 'updated' else 'clone'} {remote_url} ({branch}) at {local_path}")
        return SyncResult(action=action)

    if is_working_copy(local_path):
        print("  ▸ Repo already cloned, pulling latest...")
        fast_forward(local_path, branch, logger)
        action = "updated"
    else:
        print(f"  ▸ Cloning {remote_url}...")
        clone(remote_url, local_path, branch, logger)
        action = "cloned"

    normalize_ownership(local_path, owner, group, mode, logger)

    return SyncResult(action=action, commit=get_head_commit(local_path))
