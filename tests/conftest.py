"""Pytest configuration for the Kage test suite."""

import sys
from pathlib import Path

import pytest

# Make the kage and kage_runtime packages importable without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from kage_runtime.crypto import KEY_SIZE  # noqa: E402


@pytest.fixture
def key() -> bytes:
    return bytes(range(KEY_SIZE))


@pytest.fixture
def other_key() -> bytes:
    return bytes(reversed(range(KEY_SIZE)))
