#!/usr/bin/env python3

from __future__ import annotations

import argparse

import argcomplete

from lib.config import (
    DEFAULT_BRANCH,
    DEFAULT_DOMAIN,
    DEFAULT_REPO_URL,
    DEFAULT_WEBHOOK_PORT,
    SERVICE_GROUP,
    SERVICE_USER,
)


def create_setup_argument_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)

    parser.add_argument("--domain", default=None,
                       help=f"Site domain; www.<domain> is added as alias (default: {DEFAULT_DOMAIN})")
    parser.add_argument("--webroot", default=None,
                       help="Document root and git working copy (default: /var/www/<domain>)")
    parser.add_argument("--repo", dest="repo_url", default=None,
                       help=f"Git repository to deploy (default: {DEFAULT_REPO_URL})")
    parser.add_argument("--branch", default=None,
                       help=f"Branch to deploy (default: {DEFAULT_BRANCH})")
    parser.add_argument("--port", dest="webhook_port", type=int, default=None,
                       help=f"Local port for the webhook listener (default: {DEFAULT_WEBHOOK_PORT})")
    parser.add_argument("--email", dest="ssl_email", default=None,
                       help="Contact e-mail for Let's Encrypt registration (optional)")
    parser.add_argument("--public-host", dest="public_host", default=None,
                       help="Public IP or hostname shown in the webhook payload URL (default: domain)")
    parser.add_argument("--user", dest="service_user", default=None,
                       help=f"User owning the webroot and running the webhook listener (default: {SERVICE_USER})")
    parser.add_argument("--group", dest="service_group", default=None,
                       help=f"Group owning the webroot (default: {SERVICE_GROUP})")
    parser.add_argument("-t", "--timezone", help="Timezone for deploy log timestamps (defaults to local)")
    parser.add_argument("--ssl", dest="enable_ssl",
                       action=argparse.BooleanOptionalAction, default=None,
                       help="Request a Let's Encrypt certificate (default: enabled)")
    parser.add_argument("--dry-run", dest="dry_run", action="store_true",
                       help="Print commands without executing them or writing files")

    argcomplete.autocomplete(parser)
    return parser
