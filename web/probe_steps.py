"""Detect the web server and tools already present on the host."""

from __future__ import annotations

from lib.errors import DetectionError
from lib.system_utils import run, command_exists, is_service_active, is_dry_run
from lib.types import HostCapabilities, WebServerKind
from web.package_steps import ensure_package


DEFAULT_WEB_SERVER = "nginx"


def start_default_web_server() -> None:
    """Install and start nginx when no web server is running."""
    print(f"  ⚠ No web server detected. Installing {DEFAULT_WEB_SERVER}...")
    ensure_package(DEFAULT_WEB_SERVER)

    run(f"systemctl enable {DEFAULT_WEB_SERVER}", check=False)
    result = run(f"systemctl start {DEFAULT_WEB_SERVER}", check=False)
    if result.returncode != 0 or not (is_dry_run() or is_service_active(DEFAULT_WEB_SERVER)):
        raise DetectionError(
            f"{DEFAULT_WEB_SERVER} was installed but is not running",
            remediation=f"systemctl status {DEFAULT_WEB_SERVER}"
        )
    print(f"  ✓ {DEFAULT_WEB_SERVER} installed and started")


def detect() -> HostCapabilities:
    """Take the host snapshot. Running servers are never stopped or replaced."""
    nginx_running = is_service_active("nginx")
    if nginx_running:
        print("  ✓ Nginx is running")

    apache_running = is_service_active("apache2")
    if apache_running:
        print("  ✓ Apache2 is running")

    kind = WebServerKind.from_flags(nginx_running, apache_running)
    if kind is WebServerKind.NONE:
        start_default_web_server()
        kind = WebServerKind.NGINX

    capabilities = HostCapabilities(
        web_server_kind=kind,
        has_git=command_exists("git"),
        has_runtime=command_exists("node"),
        has_webhook_daemon=command_exists("webhook"),
        has_cert_tool=command_exists("certbot"),
    )

    if capabilities.has_runtime:
        print("  ✓ Node already present")
    return capabilities


def detect_web_server(ctx) -> None:
    ctx.capabilities = detect()
