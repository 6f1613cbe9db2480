#!/usr/bin/env python3

import argparse
from dataclasses import dataclass, asdict
from typing import Optional, Dict, List, Any

from lib.validators import (
    validate_branch,
    validate_domain,
    validate_email,
    validate_host,
    validate_port,
    validate_repo_url,
    validate_username,
)


# Deployment target. Edit these for a new site; every flag defaults to them.
DEFAULT_DOMAIN = "example.com"
DEFAULT_WEBROOT = f"/var/www/{DEFAULT_DOMAIN}"
DEFAULT_REPO_URL = "https://example.test/site.git"
DEFAULT_BRANCH = "main"
DEFAULT_WEBHOOK_PORT = 9001
DEFAULT_SSL_EMAIL: Optional[str] = None
DEFAULT_PUBLIC_HOST: Optional[str] = None

SERVICE_USER = "www-data"
SERVICE_GROUP = "www-data"

TOOLS_INSTALL_DIR = "/opt/site_provision"
HOOKS_DIR = "/etc/webhook"
HOOKS_FILE = f"{HOOKS_DIR}/hooks.json"
WEBHOOK_PATH = "/webhook-deploy"
SIGNATURE_HEADER = "X-Hub-Signature"


@dataclass(frozen=True)
class SiteConfig:
    domain: str = DEFAULT_DOMAIN
    webroot: str = DEFAULT_WEBROOT
    repo_url: str = DEFAULT_REPO_URL
    branch: str = DEFAULT_BRANCH
    webhook_port: int = DEFAULT_WEBHOOK_PORT
    ssl_email: Optional[str] = DEFAULT_SSL_EMAIL
    public_host: Optional[str] = DEFAULT_PUBLIC_HOST
    service_user: str = SERVICE_USER
    service_group: str = SERVICE_GROUP
    enable_ssl: bool = True
    timezone: str = "UTC"
    dry_run: bool = False

    @property
    def aliases(self) -> tuple:
        return (f"www.{self.domain}",)

    @property
    def server_names(self) -> tuple:
        return (self.domain,) + self.aliases

    @property
    def slug(self) -> str:
        return self.domain.split('.')[0].lower()

    @property
    def hook_id(self) -> str:
        return f"deploy-{self.slug}"

    @property
    def deploy_script_path(self) -> str:
        return f"/usr/local/bin/deploy-{self.slug}.sh"

    @property
    def deploy_log_path(self) -> str:
        return f"/var/log/{self.slug}-deploy.log"

    @property
    def webhook_service_name(self) -> str:
        return f"webhook-{self.slug}"

    @property
    def payload_url(self) -> str:
        return f"http://{self.public_host or self.domain}{WEBHOOK_PATH}"

    def validate(self) -> List[str]:
        """Return a list of problems; empty when the configuration is usable."""
        errors = []
        if not validate_domain(self.domain):
            errors.append(f"Invalid domain: {self.domain}")
        if not self.webroot.startswith('/') or self.webroot.rstrip('/') == '':
            errors.append(f"Webroot must be an absolute path below /: {self.webroot}")
        if not validate_repo_url(self.repo_url):
            errors.append(f"Invalid repository URL: {self.repo_url}")
        if not validate_branch(self.branch):
            errors.append(f"Invalid branch name: {self.branch}")
        if not validate_port(self.webhook_port):
            errors.append(f"Webhook port must be between 1024 and 65535: {self.webhook_port}")
        if self.ssl_email and not validate_email(self.ssl_email):
            errors.append(f"Invalid e-mail address: {self.ssl_email}")
        if self.public_host and not validate_host(self.public_host):
            errors.append(f"Invalid public host: {self.public_host}")
        for name in (self.service_user, self.service_group):
            if not validate_username(name):
                errors.append(f"Invalid service user/group: {name}")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SiteConfig':
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> 'SiteConfig':
        from lib.system_utils import get_local_timezone

        domain = args.domain or DEFAULT_DOMAIN
        webroot = args.webroot
        if not webroot:
            webroot = f"/var/www/{domain}"

        enable_ssl = args.enable_ssl
        if enable_ssl is None:
            enable_ssl = True

        return cls(
            domain=domain,
            webroot=webroot.rstrip('/') or webroot,
            repo_url=args.repo_url or DEFAULT_REPO_URL,
            branch=args.branch or DEFAULT_BRANCH,
            webhook_port=args.webhook_port if args.webhook_port is not None else DEFAULT_WEBHOOK_PORT,
            ssl_email=args.ssl_email or DEFAULT_SSL_EMAIL,
            public_host=args.public_host or DEFAULT_PUBLIC_HOST,
            service_user=args.service_user or SERVICE_USER,
            service_group=args.service_group or SERVICE_GROUP,
            enable_ssl=enable_ssl,
            timezone=args.timezone or get_local_timezone(),
            dry_run=getattr(args, 'dry_run', False),
        )
