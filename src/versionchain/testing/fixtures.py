"""Pytest fixtures for version chain tests.

Load with ``pytest_plugins = ["versionchain.testing.fixtures"]``.

Fixtures:
    default_resolver: Fresh, unfrozen resolver holding the v1 -> v2 -> v3 chain.
    empty_resolver: Resolver with no versions registered.
    linear_resolver: Factory building a chain of pass-through versions.
"""

from collections.abc import Callable

import pytest

from versionchain.contracts import create_default_resolver
from versionchain.resolver import VersionChainResolver


@pytest.fixture
def default_resolver() -> VersionChainResolver:
    return create_default_resolver()


@pytest.fixture
def empty_resolver() -> VersionChainResolver:
    return VersionChainResolver()


@pytest.fixture
def linear_resolver() -> Callable[..., VersionChainResolver]:
    """Factory: ``linear_resolver("v1", "v2", "v3")`` registers a linear chain.

    No operations are attached; callers add overrides as needed.
    """

    def build(*tags: str) -> VersionChainResolver:
        resolver = VersionChainResolver()
        previous: str | None = None
        for tag in tags:
            resolver.register(tag, previous)
            previous = tag
        return resolver

    return build


__all__ = [
    "default_resolver",
    "empty_resolver",
    "linear_resolver",
]
