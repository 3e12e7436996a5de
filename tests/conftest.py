"""
Pytest configuration for local imports and shared fixtures.
"""

import os
import sys

import pytest


def _ensure_repo_on_path() -> None:
    """Ensure the repository root is on sys.path."""
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


_ensure_repo_on_path()

from export.sheet_layout import QueueEntry  # noqa: E402
from models.template import instantiate_template  # noqa: E402


@pytest.fixture
def starter_layers():
    return instantiate_template()


@pytest.fixture
def price_mapping():
    return {"active-price": "Price", "was-price": "MSRP"}


@pytest.fixture
def make_queue():
    def _make(n):
        return [QueueEntry(id=f"label-{i}", layers=instantiate_template()) for i in range(n)]
    return _make
