"""Error types raised by provisioning steps."""

from __future__ import annotations

from typing import Optional


class ProvisionError(Exception):
    """Base class for step failures.

    Attributes:
        remediation: Manual command the operator can run to finish the step
        fatal: Whether the run must stop when this error is raised
    """
    fatal = True

    def __init__(self, message: str, remediation: Optional[str] = None):
        super().__init__(message)
        self.remediation = remediation


class DetectionError(ProvisionError):
    """Host could not be inspected or no web server could be brought up."""


class InstallError(ProvisionError):
    """Package manager and binary fallback both failed."""


class SyncError(ProvisionError):
    """Clone or fast-forward of the site repository failed."""


class RenderError(ProvisionError):
    """Virtual host failed validation; previous config is still live."""


class HookError(ProvisionError):
    """Webhook listener service could not be enabled or started."""


class CertError(ProvisionError):
    """Certificate request failed. Never stops the run."""
    fatal = False
