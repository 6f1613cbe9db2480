"""site_provision - Idempotent provisioning of a static site with push-to-deploy."""

from __future__ import annotations

from .config import SiteConfig
from .errors import ProvisionError
from .validators import validate_domain, validate_host, validate_ip_address, validate_username
from .system_utils import run, set_dry_run, is_dry_run

__all__ = [
    "SiteConfig",
    "ProvisionError",
    "validate_domain",
    "validate_host",
    "validate_ip_address",
    "validate_username",
    "run",
    "set_dry_run",
    "is_dry_run",
]
