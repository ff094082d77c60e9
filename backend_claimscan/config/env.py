"""
Environment variable loading and parsing for ClaimScan.

- Loads .env from project root when available.
- CLAIMSCAN_* variables override engine thresholds (see config.settings).
- Parse helpers raise ValueError naming the variable on bad input.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_claimscan/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

ENV_PREFIX = "CLAIMSCAN_"


def load_claimscan_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides set variables."""
    if _ENV_PATH.is_file():
        load_dotenv(_ENV_PATH, override=False)


def _raw(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


def get_env_float(name: str) -> float | None:
    """Return the variable as float, or None when unset or blank."""
    raw = _raw(name)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def get_env_int(name: str) -> int | None:
    """Return the variable as int, or None when unset or blank."""
    raw = _raw(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def get_env_choice(name: str, choices: tuple[str, ...]) -> str | None:
    raw = _raw(name)
    if raw is None:
        return None
    value = raw.lower()
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got {raw!r}")
    return value
