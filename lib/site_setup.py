#!/usr/bin/env python3
"""Single-host site provisioning: ordered steps, summary and state."""

from __future__ import annotations

import logging
import os
import shlex
import sys
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from lib.arg_parser import create_setup_argument_parser
from lib.config import SiteConfig, SIGNATURE_HEADER
from lib.display import print_setup_summary, print_completion_summary
from lib.errors import ProvisionError
from lib.logging_utils import get_service_logger
from lib.progress import progress_bar
from lib.site_state import save_site_state
from lib.system_utils import set_dry_run, detect_os
from lib.types import HostCapabilities
from shared.repo_sync import SyncResult
from web.steps import (
    detect_web_server,
    install_dependencies,
    dependencies_present,
    sync_webroot,
    configure_vhosts,
    configure_deploy_hook,
    configure_ssl,
)
from web.deploy_hook_steps import sign_payload
from web.ssl_steps import CertResult


DESCRIPTION = "Static site with push-to-deploy webhook"
TEST_PAYLOAD = "{}"


@dataclass
class SetupContext:
    """State shared between steps during one run."""
    config: SiteConfig
    logger: logging.Logger
    capabilities: Optional[HostCapabilities] = None
    secret: Optional[str] = None
    sync_result: Optional[SyncResult] = None
    cert_result: Optional[CertResult] = None
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Step:
    name: str
    action: Callable[[SetupContext], None]
    check: Optional[Callable[[SetupContext], bool]] = None
    fatal: bool = True


def build_steps() -> List[Step]:
    return [
        Step("Detecting web server", detect_web_server),
        Step("Installing dependencies", install_dependencies, check=dependencies_present),
        Step("Setting up webroot", sync_webroot),
        Step("Configuring virtual hosts", configure_vhosts),
        Step("Setting up webhook auto-deploy", configure_deploy_hook),
        Step("Setting up SSL (Let's Encrypt)", configure_ssl, fatal=False),
    ]


def run_steps(steps: Sequence[Step], ctx: SetupContext) -> bool:
    """Run steps in order. Returns False once a fatal step fails."""
    total = len(steps)
    for i, step in enumerate(steps, 1):
        bar = progress_bar(i, total)
        print(f"\n{bar} [{i}/{total}] {step.name}")
        sys.stdout.flush()

        if step.check is not None and step.check(ctx):
            print("  ✓ Already satisfied, skipping")
            ctx.logger.info(f"{step.name}: already satisfied")
            continue

        try:
            step.action(ctx)
        except ProvisionError as e:
            if step.fatal and e.fatal:
                print(f"  ✗ {step.name} failed: {e}")
                if e.remediation:
                    print(f"  Run manually: {e.remediation}")
                ctx.logger.error(f"{step.name} failed: {e}")
                return False

            warning = str(e)
            if e.remediation:
                warning += f"; run manually: {e.remediation}"
            print(f"  ⚠ {warning}")
            ctx.warnings.append(warning)
            ctx.logger.warning(f"{step.name}: {warning}")
            continue

        ctx.logger.info(f"{step.name}: done")

    bar = progress_bar(total, total)
    print(f"\n{bar} Complete!")
    return True


def build_test_command(config: SiteConfig, secret: str) -> str:
    """curl invocation that fires the hook locally with a valid signature."""
    signature = sign_payload(secret, TEST_PAYLOAD.encode('utf-8'))
    url = f"http://127.0.0.1:{config.webhook_port}/hooks/{config.hook_id}"
    return " ".join([
        "curl -X POST",
        "-H " + shlex.quote("Content-Type: application/json"),
        "-H " + shlex.quote(f"{SIGNATURE_HEADER}: {signature}"),
        "-d " + shlex.quote(TEST_PAYLOAD),
        url,
    ])


def setup_main(argv: Optional[List[str]] = None) -> int:
    parser = create_setup_argument_parser(DESCRIPTION)
    args = parser.parse_args(argv)

    config = SiteConfig.from_args(args)
    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}")
        return 1

    if config.dry_run:
        set_dry_run(True)
        print("=" * 60)
        print("DRY-RUN MODE ENABLED")
        print("=" * 60)
    elif os.geteuid() != 0:
        print("Error: This script must be run as root")
        return 1

    print_setup_summary(config, DESCRIPTION)

    try:
        detect_os()
    except ProvisionError as e:
        print(f"Error: {e}")
        return 1
    print("OS: Debian")
    sys.stdout.flush()

    logger = get_service_logger('setup_site', console_output=False)
    logger.info(f"Provisioning {config.domain} from {config.repo_url} ({config.branch})")

    ctx = SetupContext(config=config, logger=logger)
    if not run_steps(build_steps(), ctx):
        print("\n✗ Setup failed")
        logger.error(f"Provisioning {config.domain} failed")
        return 1

    if not config.dry_run:
        commit = ctx.sync_result.commit if ctx.sync_result else None
        save_site_state(config, ctx.capabilities, commit)

    test_command = build_test_command(config, ctx.secret) if ctx.secret else None
    print_completion_summary(config, ctx.secret, test_command, ctx.warnings, ctx.cert_result)

    logger.info(f"Provisioned {config.domain} with {len(ctx.warnings)} warning(s)")
    return 0
