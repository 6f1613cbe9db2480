#!/usr/bin/env python3

"""Validation utilities for setup scripts."""

import re


def validate_ip_address(ip: str) -> bool:
    """Validate an IPv4 address."""
    pattern = r'^(\d{1,3}\.){3}\d{1,3}$'
    if not re.match(pattern, ip):
        return False
    octets = ip.split('.')
    return all(0 <= int(octet) <= 255 for octet in octets)


def validate_host(host: str) -> bool:
    """Validate a hostname or IP address."""
    normalized_host = host.lower().rstrip('.')
    if validate_ip_address(normalized_host):
        return True
    hostname_pattern = r'^([a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?\.)*[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?$'
    return bool(re.match(hostname_pattern, normalized_host))


def validate_domain(domain: str) -> bool:
    """Validate a public domain name: at least two labels, no IP, no wildcard."""
    if not domain or len(domain) > 253 or domain != domain.lower():
        return False
    if validate_ip_address(domain):
        return False
    labels = domain.split('.')
    if len(labels) < 2:
        return False
    label_pattern = r'^[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?$'
    if not all(re.match(label_pattern, label) for label in labels):
        return False
    # TLDs are never all-numeric
    return not labels[-1].isdigit()


def validate_port(port: int) -> bool:
    """Validate an unprivileged TCP port for a local listener."""
    return isinstance(port, int) and not isinstance(port, bool) and 1024 <= port <= 65535


def validate_username(username: str) -> bool:
    """Validate a Unix username."""
    pattern = r'^[a-z_][a-z0-9_-]{0,31}$'
    return bool(re.match(pattern, username))


def validate_email(email: str) -> bool:
    """Validate an e-mail address for ACME registration."""
    pattern = r'^[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}$'
    return bool(re.match(pattern, email))


def validate_branch(branch: str) -> bool:
    """Validate a git branch name (subset of git check-ref-format)."""
    if not branch or branch.startswith(('-', '/')) or branch.endswith(('/', '.', '.lock')):
        return False
    if '..' in branch or '//' in branch or '@{' in branch:
        return False
    return bool(re.match(r'^[A-Za-z0-9._/\-]+$', branch))


def validate_repo_url(url: str) -> bool:
    """Validate a git remote: https, ssh, scp-style or absolute local path."""
    if re.match(r'^(https?|ssh|git|file)://[^\s]+$', url):
        return True
    if re.match(r'^[A-Za-z0-9._\-]+@[A-Za-z0-9.\-]+:[^\s]+$', url):
        return True
    return url.startswith('/') and not any(c.isspace() for c in url)
