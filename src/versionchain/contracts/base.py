"""Behavior contract: the operations of one API version.

A BehaviorContract is a resolver bound to a single version tag. Calling an
operation resolves it along the chain and invokes the implementation with
the contract as its first argument. Implementations that call other
operations through that contract therefore dispatch at the requesting
version, even when they were defined on an older layer.

Example:
    >>> contract = create_default_resolver().bind("v3")
    >>> contract.call("format_response", {"id": 1}).body
    {'data': {'id': 1}, 'api_version': 'v3'}
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from versionchain.errors import VersionChainError
from versionchain.models.layers import Implementation
from versionchain.observability import get_logger, get_metrics

if TYPE_CHECKING:
    from versionchain.resolver import VersionChainResolver

logger = get_logger(__name__)


class BehaviorContract:
    """The resolved operation bundle of one version.

    Attributes:
        version: The version tag this contract is bound to
        resolver: The resolver operations are looked up in
    """

    def __init__(self, resolver: VersionChainResolver, version: str) -> None:
        self.resolver = resolver
        self.version = version

    def resolve(self, operation: str) -> Implementation:
        return self.resolver.resolve(self.version, operation)

    def has_operation(self, operation: str) -> bool:
        return self.resolver.override_record(self.version, operation).source_version is not None

    def operations(self) -> list[str]:
        return self.resolver.operations(self.version)

    def call(self, operation: str, *args: Any, **kwargs: Any) -> Any:
        """Resolve an operation at this version and invoke it.

        Raises:
            UnresolvedOperationError: If no layer implements the operation.
        """
        start_time = time.perf_counter()
        metrics = get_metrics()
        try:
            implementation = self.resolve(operation)
        except VersionChainError as e:
            logger.warning(
                "versionchain.resolve.failed",
                version=self.version,
                operation=operation,
                error_code=e.code,
            )
            metrics.increment_counter(
                "versionchain_resolution_errors_total", {"error": type(e).__name__}
            )
            raise

        metrics.increment_counter(
            "versionchain_resolutions_total", {"version": self.version, "operation": operation}
        )
        result = implementation(self, *args, **kwargs)
        logger.debug(
            "versionchain.operation.called",
            version=self.version,
            operation=operation,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return result

    def __repr__(self) -> str:
        return f"BehaviorContract(version={self.version!r})"
