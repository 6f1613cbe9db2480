"""Push-to-deploy webhook setup steps."""

from __future__ import annotations

import hashlib
import hmac
import json
import os
import secrets
import shlex
import shutil
from typing import Optional

from lib.config import (
    SiteConfig,
    HOOKS_FILE,
    SIGNATURE_HEADER,
    TOOLS_INSTALL_DIR,
)
from lib.errors import HookError
from lib.system_utils import run, write_file, is_dry_run, command_exists
from lib.systemd_service import create_service, generate_webhook_service


DEPLOY_SECRET_BYTES = 16
MIN_SECRET_LENGTH = DEPLOY_SECRET_BYTES * 2

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
TOOL_PACKAGES = ("lib", "shared", "web")
DEPLOY_TOOL = os.path.join(TOOLS_INSTALL_DIR, "web", "service_tools", "deploy_site.py")
DEFAULT_WEBHOOK_BIN = "/usr/local/bin/webhook"


def generate_secret(config: SiteConfig) -> str:
    """Fresh per run; the operator copies it into the repository's webhook settings."""
    return f"{config.slug}_deploy_{secrets.token_hex(DEPLOY_SECRET_BYTES)}"


def sign_payload(secret: str, body: bytes) -> str:
    """Signature in the form sent in the X-Hub-Signature header."""
    digest = hmac.new(secret.encode('utf-8'), body, hashlib.sha1).hexdigest()
    return f"sha1={digest}"


def verify_signature(secret: str, body: bytes, header: Optional[str]) -> bool:
    """Check a signature the way the listener's payload-hash-sha1 rule does."""
    if not header:
        return False
    expected = sign_payload(secret, body)
    if not header.startswith("sha1="):
        expected = expected[len("sha1="):]
    return hmac.compare_digest(expected, header)


def generate_deploy_script(config: SiteConfig) -> str:
    args = [
        "--domain", config.domain,
        "--repo", config.repo_url,
        "--webroot", config.webroot,
        "--branch", config.branch,
        "--user", config.service_user,
        "--group", config.service_group,
        "--log", config.deploy_log_path,
        "--timezone", config.timezone,
    ]
    quoted = " ".join(shlex.quote(arg) for arg in args)
    return f"""#!/bin/bash
# Deploy {config.domain} from {config.repo_url} ({config.branch})
set -e
exec /usr/bin/python3 {DEPLOY_TOOL} {quoted}
"""


def generate_hooks(config: SiteConfig, secret: str) -> list:
    return [
        {
            "id": config.hook_id,
            "execute-command": config.deploy_script_path,
            "command-working-directory": config.webroot,
            "response-message": f"Deploying {config.domain}...",
            "trigger-rule": {
                "match": {
                    "type": "payload-hash-sha1",
                    "secret": secret,
                    "parameter": {
                        "source": "header",
                        "name": SIGNATURE_HEADER,
                    },
                }
            },
        }
    ]


def generate_hooks_json(config: SiteConfig, secret: str) -> str:
    return json.dumps(generate_hooks(config, secret), indent=2) + "\n"


def find_webhook_binary() -> str:
    return shutil.which("webhook") or DEFAULT_WEBHOOK_BIN


def install_site_tools() -> None:
    """Copy the deploy tool and its imports to TOOLS_INSTALL_DIR."""
    if is_dry_run():
        print(f"  [DRY-RUN] Would copy {', '.join(TOOL_PACKAGES)} to {TOOLS_INSTALL_DIR}")
        return

    for package in TOOL_PACKAGES:
        shutil.copytree(
            os.path.join(PROJECT_ROOT, package),
            os.path.join(TOOLS_INSTALL_DIR, package),
            dirs_exist_ok=True,
            ignore=shutil.ignore_patterns("__pycache__", "*.pyc"),
        )
    run(f"chmod -R a+rX {shlex.quote(TOOLS_INSTALL_DIR)}", check=False)
    print(f"  ✓ Site tools installed to {TOOLS_INSTALL_DIR}")


def prepare_deploy_log(config: SiteConfig) -> None:
    """The listener runs as the service user and cannot create files in /var/log."""
    log_path = shlex.quote(config.deploy_log_path)
    run(f"touch {log_path}")
    run(f"chown {shlex.quote(config.service_user)}:{shlex.quote(config.service_group)} {log_path}")
    run(f"chmod 644 {log_path}")


def install(config: SiteConfig, secret: str, webhook_port: int) -> None:
    """Write deploy script, hook descriptor and listener unit, then (re)start it."""
    install_site_tools()

    write_file(config.deploy_script_path, generate_deploy_script(config), mode=0o755)
    print(f"  ✓ Deploy script created at {config.deploy_script_path}")

    prepare_deploy_log(config)

    # Holds the secret: readable by root and the listener's group only
    write_file(HOOKS_FILE, generate_hooks_json(config, secret), mode=0o640)
    result = run(f"chown root:{shlex.quote(config.service_group)} {shlex.quote(HOOKS_FILE)}", check=False)
    if result.returncode != 0:
        raise HookError(f"Could not hand {HOOKS_FILE} to group {config.service_group}")
    print(f"  ✓ Hook '{config.hook_id}' written to {HOOKS_FILE}")

    if not (is_dry_run() or command_exists("webhook")):
        raise HookError("webhook binary not found on PATH", remediation="apt-get install -y webhook")

    service_content = generate_webhook_service(
        f"GitHub Webhook Listener for {config.domain}",
        find_webhook_binary(),
        HOOKS_FILE,
        webhook_port,
        user=config.service_user,
        group=config.service_group,
    )
    if not create_service(config.webhook_service_name, service_content):
        raise HookError(
            f"Webhook listener {config.webhook_service_name} is not running",
            remediation=f"journalctl -u {config.webhook_service_name} -n 50"
        )
    print(f"  ✓ Webhook listener running on port {webhook_port}")


def configure_deploy_hook(ctx) -> None:
    ctx.secret = generate_secret(ctx.config)
    install(ctx.config, ctx.secret, ctx.config.webhook_port)
