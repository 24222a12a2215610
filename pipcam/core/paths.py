"""Centralized path constants for pipcam."""

from __future__ import annotations

import os
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[1]

# Shipped defaults
DEFAULT_CONFIG_PATH = PACKAGE_ROOT / "config.txt"

# Per-user state (allows running from read-only installs)
_STATE_ENV = os.environ.get("PIPCAM_STATE_DIR")
USER_STATE_DIR = Path(_STATE_ENV).expanduser() if _STATE_ENV else (Path.home() / ".pipcam")
USER_CONFIG_PATH = USER_STATE_DIR / "config.txt"
LOGS_DIR = USER_STATE_DIR / "logs"
LOG_FILE = LOGS_DIR / "pipcam.log"

# App-private documents root; recordings live underneath
DOCUMENTS_DIR = USER_STATE_DIR / "documents"

# Public roots shared with other applications
DOWNLOADS_DIR = Path.home() / "Downloads"
GALLERY_DIR = Path.home() / "Videos"


def ensure_directories() -> None:
    """Create the private state directories if they don't exist."""

    USER_STATE_DIR.mkdir(parents=True, exist_ok=True)
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    DOCUMENTS_DIR.mkdir(parents=True, exist_ok=True)


__all__ = [
    "PACKAGE_ROOT",
    "DEFAULT_CONFIG_PATH",
    "USER_STATE_DIR",
    "USER_CONFIG_PATH",
    "LOGS_DIR",
    "LOG_FILE",
    "DOCUMENTS_DIR",
    "DOWNLOADS_DIR",
    "GALLERY_DIR",
    "ensure_directories",
]
