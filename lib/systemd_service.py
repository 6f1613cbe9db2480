"""Systemd service creation for the webhook listener."""

import shlex
import time

from lib.errors import HookError
from lib.system_utils import run, write_file, read_file

SYSTEMD_DIR = "/etc/systemd/system"


def generate_webhook_service(description: str, webhook_bin: str, hooks_file: str, port: int,
                             user: str = "www-data", group: str = "www-data") -> str:
    """Generate systemd service configuration for the webhook listener."""
    return f"""[Unit]
Description={description}
After=network.target

[Service]
Type=simple
User={user}
Group={group}
ExecStart={webhook_bin} -hooks {hooks_file} -ip 127.0.0.1 -port {port} -verbose
Restart=always
RestartSec=10

# Logging
StandardOutput=journal
StandardError=journal

[Install]
WantedBy=multi-user.target
"""


def get_service_file(service_name: str) -> str:
    return f"{SYSTEMD_DIR}/{service_name}.service"


def create_service(service_name: str, service_content: str) -> bool:
    """Write, enable and (re)start a systemd service.

    Returns whether systemd reports the service active afterwards.
    """
    service_file = get_service_file(service_name)

    if read_file(service_file) is not None:
        print(f"  ℹ Service {service_name} already exists, updating...")

    try:
        write_file(service_file, service_content, mode=0o644)
    except PermissionError as e:
        raise HookError(f"Failed to write service file {service_file}. Need root permissions.") from e

    quoted = shlex.quote(service_name)
    for action in ("daemon-reload", f"enable {quoted}", f"restart {quoted}"):
        result = run(f"systemctl {action}", check=False)
        if result.returncode != 0:
            raise HookError(
                f"systemctl {action} failed",
                remediation=f"systemctl status {service_name}"
            )

    print(f"  ✓ Created and started systemd service: {service_name}")

    # Give service a moment to start
    time.sleep(1)

    result = run(f"systemctl is-active {quoted}", check=False)
    if result.returncode != 0:
        print(f"  ⚠ Warning: {service_name} may not be running. Check with: systemctl status {service_name}")
        return False
    print(f"  ✓ {service_name} is running")
    return True
