"""SSL/TLS and Let's Encrypt certificate management."""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Optional, Sequence

from lib.errors import CertError, InstallError
from lib.system_utils import run
from lib.types import StrList, WebServerKind
from web.package_steps import ensure_package


CERTBOT_PLUGINS = {
    "nginx": ("nginx", "python3-certbot-nginx"),
    "apache2": ("apache", "python3-certbot-apache"),
}


@dataclass
class CertResult:
    status: str
    message: str = ""


def build_certbot_command(plugin: str, domains: Sequence[str], email: Optional[str]) -> str:
    cmd_parts = [
        f"certbot --{plugin}",
    ]
    for domain in domains:
        cmd_parts.append(f"-d {shlex.quote(domain)}")
    cmd_parts.extend([
        "--non-interactive",
        "--agree-tos",
        "--redirect",
        "--keep-until-expiring",
    ])
    if email:
        cmd_parts.append(f"--email {shlex.quote(email)}")
    else:
        cmd_parts.append("--register-unsafely-without-email")
    return " ".join(cmd_parts)


def manual_command(plugin: str, domains: Sequence[str]) -> str:
    return f"certbot --{plugin} " + " ".join(f"-d {shlex.quote(d)}" for d in domains)


def install_certbot(kind: WebServerKind) -> None:
    print("Installing certbot...")
    ensure_package("certbot", binary_check="certbot")
    for service in kind.active_servers():
        ensure_package(CERTBOT_PLUGINS[service][1])


def setup_certificate_renewal() -> None:
    print("  Setting up automatic certificate renewal...")

    run("systemctl enable certbot.timer", check=False)
    run("systemctl start certbot.timer", check=False)

    print("  ✓ Automatic renewal configured")


def ensure_certificate(domain: str, aliases: Sequence[str], kind: WebServerKind,
                       email: Optional[str] = None) -> CertResult:
    """Request or renew the certificate and bind it into every active server.

    Raises CertError with the command to finish by hand; DNS often does not
    point at a fresh host yet, so callers treat this as a warning.
    """
    domains: StrList = [domain] + list(aliases)
    plugins = [CERTBOT_PLUGINS[service][0] for service in kind.active_servers()]
    if not plugins:
        return CertResult("skipped", "no active web server")

    try:
        install_certbot(kind)
    except InstallError as e:
        raise CertError(f"certbot could not be installed: {e}", remediation=e.remediation) from e

    print(f"  Obtaining Let's Encrypt certificate for {len(domains)} domain(s): {', '.join(domains)}")
    for plugin in plugins:
        result = run(build_certbot_command(plugin, domains, email), check=False)
        if result.returncode != 0:
            raise CertError(
                f"certbot --{plugin} failed for {domain}",
                remediation=manual_command(plugin, domains)
            )
        print(f"  ✓ SSL certificate installed ({plugin})")

    setup_certificate_renewal()
    return CertResult("installed", f"certificate covers {', '.join(domains)}")


def configure_ssl(ctx) -> None:
    if not ctx.config.enable_ssl:
        print("  ℹ SSL disabled, skipping")
        ctx.cert_result = CertResult("skipped", "disabled by --no-ssl")
        return
    ctx.cert_result = ensure_certificate(
        ctx.config.domain,
        ctx.config.aliases,
        ctx.capabilities.web_server_kind,
        ctx.config.ssl_email,
    )
