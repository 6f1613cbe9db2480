#!/usr/bin/env python3
"""
Site deploy tool

Executed by the webhook listener after a signed push notification. Fast-forwards
the webroot to the latest commit of the deployed branch (cloning it if the
webroot is gone), re-normalizes ownership and appends one line to the deploy
log.

Never resets or discards local changes: a tree that cannot fast-forward is
left alone and the run exits non-zero.

Logs to: /var/log/site_provision/deploy_site.log (and syslog)
"""

from __future__ import annotations

import argparse
import os
import sys
from datetime import datetime
from typing import Optional

import pytz

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '../..'))

from lib.errors import SyncError
from lib.logging_utils import get_service_logger
from lib.site_state import load_site_config
from shared.repo_sync import sync

logger = get_service_logger('deploy_site', use_syslog=True)


def deploy_timestamp(timezone: str, now: Optional[datetime] = None) -> str:
    try:
        tz = pytz.timezone(timezone)
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Unknown timezone {timezone!r}, using UTC")
        tz = pytz.UTC
    if now is None:
        now = datetime.now(tz)
    else:
        now = now.astimezone(tz)
    return now.strftime('%Y-%m-%d %H:%M:%S %Z')


def append_deploy_log(log_path: str, domain: str, commit: Optional[str], timezone: str) -> str:
    suffix = f" ({commit[:8]})" if commit else ""
    line = f"[{deploy_timestamp(timezone)}] Deployed {domain}{suffix}"
    with open(log_path, 'a') as f:
        f.write(line + "\n")
    return line


def deploy(domain: str, repo_url: str, webroot: str, branch: str, user: str, group: str,
           log_path: str, timezone: str) -> int:
    logger.info(f"Deploying {domain}: syncing origin/{branch} into {webroot}")
    try:
        result = sync(repo_url, webroot, branch, owner=user, group=group, logger=logger)
    except SyncError as e:
        logger.error(f"Deploy of {domain} failed: {e}")
        if e.remediation:
            logger.error(f"Inspect with: {e.remediation}")
        return 1

    line = append_deploy_log(log_path, domain, result.commit, timezone)
    logger.info(line)
    return 0


def create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deploy the latest commit into the webroot")
    parser.add_argument("--domain", help="Site domain (defaults to the provisioned site)")
    parser.add_argument("--repo", dest="repo_url", help="Remote to clone when the webroot is missing")
    parser.add_argument("--webroot", help="Working copy to update")
    parser.add_argument("--branch", help="Branch to fast-forward")
    parser.add_argument("--user", help="Owner of the webroot")
    parser.add_argument("--group", help="Group of the webroot")
    parser.add_argument("--log", dest="log_path", help="Deploy log to append to")
    parser.add_argument("--timezone", help="Timezone for the deploy log timestamp")
    return parser


def main(argv: Optional[list] = None) -> int:
    args = create_argument_parser().parse_args(argv)

    # Arguments win; the state file fills in anything the deploy script left out
    site = load_site_config()
    domain = args.domain or (site.domain if site else None)
    webroot = args.webroot or (site.webroot if site else None)
    repo_url = args.repo_url or (site.repo_url if site else None)
    if not domain or not webroot or not repo_url:
        logger.error("No site configured: pass --domain, --repo and --webroot or run setup_site.py first")
        return 1

    branch = args.branch or (site.branch if site else "main")
    user = args.user or (site.service_user if site else "www-data")
    group = args.group or (site.service_group if site else "www-data")
    log_path = args.log_path or (site.deploy_log_path if site else f"/var/log/{domain.split('.')[0]}-deploy.log")
    timezone = args.timezone or (site.timezone if site else "UTC")

    return deploy(domain, repo_url, webroot, branch, user, group, log_path, timezone)


if __name__ == "__main__":
    sys.exit(main())
