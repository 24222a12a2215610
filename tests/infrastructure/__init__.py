"""Test infrastructure: mocks and helpers, not tests."""

from pathlib import Path

INFRASTRUCTURE_DIR = Path(__file__).parent
MOCKS_DIR = INFRASTRUCTURE_DIR / "mocks"
