"""Behavior contracts of the default API version chain.

The default chain is v1 -> v2 -> v3. v1 implements every operation in
``versionchain.contracts.operations``; v2 and v3 only tag resource
responses with their own ``api_version``.

Example:
    >>> resolver = create_default_resolver()
    >>> resolver.resolve_source("v3", "format_validation_errors")
    'v1'
    >>> resolver.resolve_source("v3", "resource_meta")
    'v3'
"""

from versionchain.contracts import operations, v1, v2, v3
from versionchain.contracts.base import BehaviorContract
from versionchain.resolver import VersionChainResolver

DEFAULT_VERSIONS: tuple[str, ...] = (v1.VERSION, v2.VERSION, v3.VERSION)


def install_default_chain(resolver: VersionChainResolver) -> VersionChainResolver:
    """Register v1, v2 and v3 with their overrides on an empty resolver."""
    v1.install(resolver)
    v2.install(resolver)
    v3.install(resolver)
    return resolver


def create_default_resolver(freeze: bool = False) -> VersionChainResolver:
    """Build a resolver holding the default v1 -> v2 -> v3 chain.

    Args:
        freeze: If True, the returned resolver rejects further registration.
    """
    resolver = install_default_chain(VersionChainResolver())
    if freeze:
        resolver.freeze()
    return resolver


__all__ = [
    "BehaviorContract",
    "DEFAULT_VERSIONS",
    "create_default_resolver",
    "install_default_chain",
    "operations",
]
