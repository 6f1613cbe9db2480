#!/usr/bin/env python3
"""Server-side state persistence for the provisioned site."""

from __future__ import annotations

import json
import os
from typing import Optional, Any

from lib.config import SiteConfig, TOOLS_INSTALL_DIR
from lib.types import HostCapabilities


STATE_DIR = os.path.join(TOOLS_INSTALL_DIR, "state")
STATE_FILE = os.path.join(STATE_DIR, "site.json")

_REQUIRED_KEYS = ("config", "capabilities")


def save_site_state(
    config: SiteConfig,
    capabilities: HostCapabilities,
    commit: Optional[str] = None,
) -> None:
    """Record what the last run applied. The deploy secret is never stored here."""
    os.makedirs(STATE_DIR, exist_ok=True)

    config_data = config.to_dict()
    config_data.pop('dry_run', None)

    state: dict[str, Any] = {
        "config": config_data,
        "capabilities": capabilities.to_dict(),
        "commit": commit,
    }

    with open(STATE_FILE, 'w') as f:
        json.dump(state, f, indent=2, sort_keys=True)
    os.chmod(STATE_FILE, 0o644)


def _validate_site_state(state: Any) -> Optional[str]:
    """Return None if valid, or an error message string if invalid."""
    if not isinstance(state, dict):
        return f"Expected dict, got {type(state).__name__}"

    missing = [k for k in _REQUIRED_KEYS if k not in state]
    if missing:
        return f"Missing required keys: {', '.join(missing)}"

    if not isinstance(state["config"], dict) or "domain" not in state["config"]:
        return "config section has no domain"

    return None


def load_site_state() -> Optional[dict[str, Any]]:
    if not os.path.exists(STATE_FILE):
        return None

    try:
        with open(STATE_FILE, 'r') as f:
            state = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        print(f"Warning: Failed to load site state: {e}")
        return None

    error = _validate_site_state(state)
    if error:
        print(f"Warning: Invalid site state ({error})")
        return None

    return state


def load_site_config() -> Optional[SiteConfig]:
    state = load_site_state()
    if state is None:
        return None
    return SiteConfig.from_dict(state["config"])
