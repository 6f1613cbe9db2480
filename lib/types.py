"""Common types shared by the setup steps.

Add new aliases here when you spot repeated typing patterns across modules.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any

# Basic JSON types
JSONDict = dict[str, Any]

StrList = list[str]

BYTES_PER_KB = 1024
BYTES_PER_MB = 1024 * BYTES_PER_KB


class WebServerKind(Enum):
    """Web servers found active on the host."""
    NONE = "none"
    NGINX = "nginx"
    APACHE = "apache"
    BOTH = "both"

    @classmethod
    def from_flags(cls, nginx: bool, apache: bool) -> "WebServerKind":
        if nginx and apache:
            return cls.BOTH
        if nginx:
            return cls.NGINX
        if apache:
            return cls.APACHE
        return cls.NONE

    def active_servers(self) -> StrList:
        """Return systemd service names of the active servers, nginx first."""
        servers = []
        if self in (WebServerKind.NGINX, WebServerKind.BOTH):
            servers.append("nginx")
        if self in (WebServerKind.APACHE, WebServerKind.BOTH):
            servers.append("apache2")
        return servers


@dataclass(frozen=True)
class HostCapabilities:
    """Snapshot of the host taken once at the start of a run."""
    web_server_kind: WebServerKind
    has_git: bool = False
    has_runtime: bool = False
    has_webhook_daemon: bool = False
    has_cert_tool: bool = False

    def to_dict(self) -> JSONDict:
        data = asdict(self)
        data['web_server_kind'] = self.web_server_kind.value
        return data

    @classmethod
    def from_dict(cls, data: JSONDict) -> "HostCapabilities":
        return cls(
            web_server_kind=WebServerKind(data.get('web_server_kind', 'none')),
            has_git=bool(data.get('has_git')),
            has_runtime=bool(data.get('has_runtime')),
            has_webhook_daemon=bool(data.get('has_webhook_daemon')),
            has_cert_tool=bool(data.get('has_cert_tool')),
        )


__all__ = [
    "JSONDict",
    "StrList",
    "BYTES_PER_KB",
    "BYTES_PER_MB",
    "WebServerKind",
    "HostCapabilities",
]
