"""Shared pytest fixtures for versionchain tests.

The default_resolver, empty_resolver and linear_resolver fixtures come
from the versionchain.testing plugin.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from versionchain.observability import reset_metrics

pytest_plugins = ["versionchain.testing.fixtures"]


@pytest.fixture(autouse=True)
def _isolate_metrics() -> Iterator[None]:
    """Start every test with zeroed global counters."""
    reset_metrics()
    yield
    reset_metrics()

