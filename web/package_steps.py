"""Package installation with a pinned binary fallback."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from typing import Optional

from lib.errors import InstallError
from lib.system_utils import run, command_exists, is_package_installed


@dataclass(frozen=True)
class FallbackArtifact:
    """Release archive extracted straight into a directory on PATH."""
    url: str
    binary: str
    dest_dir: str = "/usr/local/bin"
    strip_components: int = 1


WEBHOOK_VERSION = "2.8.1"
WEBHOOK_FALLBACK = FallbackArtifact(
    url=f"https://github.com/adnanh/webhook/releases/download/{WEBHOOK_VERSION}/webhook-linux-amd64.tar.gz",
    binary="webhook",
)

_apt_updated = False


def _apt_update() -> None:
    global _apt_updated
    if _apt_updated:
        return
    run("apt-get update -qq", check=False)
    _apt_updated = True


def apt_install(package: str) -> bool:
    os.environ["DEBIAN_FRONTEND"] = "noninteractive"
    _apt_update()
    result = run(f"apt-get install -y -qq {shlex.quote(package)}", check=False)
    return result.returncode == 0


def install_fallback(artifact: FallbackArtifact) -> bool:
    archive = f"/tmp/{artifact.binary}.tar.gz"
    target = os.path.join(artifact.dest_dir, artifact.binary)
    commands = [
        f"wget -q {shlex.quote(artifact.url)} -O {shlex.quote(archive)}",
        f"tar -xzf {shlex.quote(archive)} -C {shlex.quote(artifact.dest_dir)} --strip-components={artifact.strip_components}",
        f"chmod 755 {shlex.quote(target)}",
    ]
    try:
        for cmd in commands:
            result = run(cmd, check=False)
            if result.returncode != 0:
                return False
    finally:
        run(f"rm -f {shlex.quote(archive)}", check=False)
    return True


def ensure_package(name: str, binary_check: Optional[str] = None,
                   fallback: Optional[FallbackArtifact] = None) -> bool:
    """Make sure a package is present. Returns True if anything was installed."""
    if binary_check:
        if command_exists(binary_check):
            print(f"  ✓ {binary_check} already present")
            return False
    elif is_package_installed(name):
        print(f"  ✓ {name} already installed")
        return False

    print(f"  ▸ Installing {name}...")
    if apt_install(name):
        print(f"  ✓ Installed {name}")
        return True

    if fallback is None:
        raise InstallError(
            f"apt-get could not install {name}",
            remediation=f"apt-get install -y {name}"
        )

    print(f"  ⚠ {name} not available from apt, downloading {fallback.url}")
    if install_fallback(fallback):
        print(f"  ✓ Installed {fallback.binary} to {fallback.dest_dir}")
        return True

    raise InstallError(
        f"Could not install {name} from apt or {fallback.url}",
        remediation=f"wget {fallback.url} && tar -xzf {os.path.basename(fallback.url)} -C {fallback.dest_dir} --strip-components={fallback.strip_components}"
    )


# Imported by the deploy tool, which runs under /usr/bin/python3
DEPLOY_TOOL_PACKAGES = ("python3-tz",)


def dependencies_present(ctx) -> bool:
    if not (ctx.capabilities.has_git and ctx.capabilities.has_webhook_daemon):
        return False
    return all(is_package_installed(package) for package in DEPLOY_TOOL_PACKAGES)


def install_dependencies(ctx) -> None:
    """Ensure git, the webhook listener and the deploy tool's imports are installed."""
    ensure_package("git", binary_check="git")
    ensure_package("webhook", binary_check="webhook", fallback=WEBHOOK_FALLBACK)
    for package in DEPLOY_TOOL_PACKAGES:
        ensure_package(package)
