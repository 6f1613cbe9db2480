#!/usr/bin/env python3

"""Display utilities for setup scripts."""

from typing import Optional, Sequence

from lib.config import SiteConfig
from web.ssl_steps import CertResult

BOX_WIDTH = 56


def box(lines: Sequence[str], width: int = BOX_WIDTH) -> str:
    """Frame lines in a box; long lines are kept whole rather than cut."""
    inner = max([width] + [len(line) + 2 for line in lines])
    out = ["╔" + "═" * inner + "╗"]
    for line in lines:
        if line == "-":
            out.append("╠" + "═" * inner + "╣")
        else:
            out.append("║ " + line.ljust(inner - 1) + "║")
    out.append("╚" + "═" * inner + "╝")
    return "\n".join(out)


def print_setup_summary(config: SiteConfig, description: str) -> None:
    """Print the configuration a run is about to apply."""
    print("=" * 60)
    print(description)
    print("=" * 60)
    print(f"Domain: {config.domain} (+ {', '.join(config.aliases)})")
    print(f"Webroot: {config.webroot}")
    print(f"Repository: {config.repo_url} ({config.branch})")
    print(f"Webhook port: {config.webhook_port}")
    print("SSL: Yes (Let's Encrypt)" if config.enable_ssl else "SSL: No")
    if config.ssl_email:
        print(f"SSL Email: {config.ssl_email}")
    if config.dry_run:
        print("Dry-run: Yes")
    print("=" * 60)


def certificate_line(cert_result: Optional[CertResult]) -> str:
    if cert_result is None:
        return "not issued (see warnings)"
    if cert_result.message:
        return f"{cert_result.status} ({cert_result.message})"
    return cert_result.status


def completion_lines(config: SiteConfig, secret: Optional[str],
                     warnings: Sequence[str], cert_result: Optional[CertResult] = None) -> list:
    scheme = "https" if cert_result is not None and cert_result.status == "installed" else "http"
    lines = [
        "✅  SETUP COMPLETE",
        "-",
        f"Site live at:  {scheme}://{config.domain}",
        f"Certificate:   {certificate_line(cert_result)}",
        f"Webroot:       {config.webroot}",
        f"Deploy log:    {config.deploy_log_path}",
        "",
        "── GITHUB WEBHOOK SETUP (do this once) ──",
        f"Repo: {config.repo_url}",
        "Settings → Webhooks → Add webhook",
        "",
        "Payload URL:",
        f"{config.payload_url}",
        "",
        "Content type: application/json",
    ]
    if secret:
        lines.append(f"Secret: {secret}")
    lines.extend([
        "",
        "── WHAT TO DO NEXT ──",
        "1. Add webhook in GitHub (details above)",
        f"2. Point DNS A record → {config.public_host or 'this server'}",
        "3. Push any commit to test auto-deploy",
    ])
    if warnings:
        lines.extend(["", "── WARNINGS ──"])
        lines.extend(f"⚠ {warning}" for warning in warnings)
    return lines


def print_completion_summary(config: SiteConfig, secret: Optional[str], test_command: Optional[str],
                             warnings: Sequence[str] = (), cert_result: Optional[CertResult] = None) -> None:
    print()
    print(box(completion_lines(config, secret, warnings, cert_result)))
    if test_command:
        print()
        print("Test the listener from this server:")
        print(f"  {test_command}")
    print()
