"""Pytest configuration ensuring local packages are importable."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from seql.cache import reset_default_cache  # noqa: E402
from seql.tree import ElementTreeProvider  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_default_cache():
    reset_default_cache()
    yield
    reset_default_cache()


@pytest.fixture
def provider() -> ElementTreeProvider:
    return ElementTreeProvider()
