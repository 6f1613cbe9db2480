"""Web server provisioning steps."""

from __future__ import annotations

from .probe_steps import detect_web_server
from .package_steps import install_dependencies, dependencies_present
from .repo_steps import sync_webroot
from .vhost_steps import configure_vhosts
from .deploy_hook_steps import configure_deploy_hook
from .ssl_steps import configure_ssl

__all__ = [
    'detect_web_server',
    'install_dependencies',
    'dependencies_present',
    'sync_webroot',
    'configure_vhosts',
    'configure_deploy_hook',
    'configure_ssl',
]
