"""Webroot checkout step."""

from __future__ import annotations

import shlex

from lib.errors import SyncError
from lib.system_utils import is_dry_run, user_exists
from shared.repo_sync import sync


def sync_webroot(ctx) -> None:
    config = ctx.config
    print(f"  ▸ Setting up webroot at {config.webroot}...")

    if not is_dry_run() and not user_exists(config.service_user):
        raise SyncError(
            f"Service user '{config.service_user}' does not exist",
            remediation=f"useradd --system --no-create-home --shell /usr/sbin/nologin {shlex.quote(config.service_user)}"
        )

    ctx.sync_result = sync(
        config.repo_url,
        config.webroot,
        config.branch,
        owner=config.service_user,
        group=config.service_group,
        logger=ctx.logger,
    )
    commit = (ctx.sync_result.commit or "")[:8]
    print(f"  ✓ Webroot ready ({ctx.sync_result.action}{' @ ' + commit if commit else ''})")
