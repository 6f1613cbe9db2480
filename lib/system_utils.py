"""Utility functions for running commands and inspecting the host."""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
import sys
from typing import Optional

from lib.errors import DetectionError


_dry_run = False


def set_dry_run(enabled: bool) -> None:
    """Set dry-run mode globally."""
    global _dry_run
    _dry_run = enabled


def is_dry_run() -> bool:
    """Check if dry-run mode is enabled."""
    return _dry_run


def run(cmd: str, check: bool = True, cwd: Optional[str] = None, capture_output: bool = False, text: bool = True) -> subprocess.CompletedProcess[str]:
    print(f"  Running: {cmd[:80]}..." if len(cmd) > 80 else f"  Running: {cmd}")
    sys.stdout.flush()

    if is_dry_run():
        print("  [DRY-RUN] Command not executed")
        return subprocess.CompletedProcess(args=[cmd], returncode=0, stdout="", stderr="")

    result = subprocess.run(cmd, shell=True, capture_output=capture_output, text=text, cwd=cwd)
    if check and result.returncode != 0:
        if getattr(result, 'stderr', None):
            print(f"    Warning: {result.stderr[:200]}")
            sys.stdout.flush()
    return result


def write_file(path: str, content: str, mode: Optional[int] = None) -> None:
    """Write a text file, honouring dry-run mode."""
    if is_dry_run():
        print(f"  [DRY-RUN] Would write {path}")
        return

    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, 'w') as f:
        f.write(content)
    if mode is not None:
        os.chmod(path, mode)


def read_file(path: str) -> Optional[str]:
    try:
        with open(path, 'r') as f:
            return f.read()
    except FileNotFoundError:
        return None


def detect_os() -> None:
    try:
        with open("/etc/os-release") as f:
            content = f.read().lower()
    except FileNotFoundError:
        raise DetectionError("Cannot detect OS - /etc/os-release not found")

    if "debian" not in content:
        raise DetectionError("Unsupported OS (only Debian and derivatives are supported)")


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None


def is_package_installed(package: str) -> bool:
    result = subprocess.run(
        f"dpkg -l {shlex.quote(package)} 2>/dev/null | grep -q ^ii",
        shell=True, capture_output=True
    )
    return result.returncode == 0


def is_service_active(service: str) -> bool:
    result = subprocess.run(
        f"systemctl is-active {shlex.quote(service)} >/dev/null 2>&1",
        shell=True, capture_output=True
    )
    return result.returncode == 0


def user_exists(username: str) -> bool:
    result = subprocess.run(
        f"id {shlex.quote(username)}",
        shell=True, capture_output=True
    )
    return result.returncode == 0


def get_local_timezone() -> str:
    if os.path.exists("/etc/timezone"):
        try:
            with open("/etc/timezone", "r") as f:
                tz = f.read().strip()
                if tz:
                    return tz
        except OSError:
            pass

    if os.path.islink("/etc/localtime"):
        target = os.readlink("/etc/localtime")
        if "zoneinfo/" in target:
            return target.split("zoneinfo/", 1)[1]

    return "UTC"
