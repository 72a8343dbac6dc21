"""Testing utilities for code built on versionchain.

Modules:
    fixtures: Pytest fixtures (default_resolver, empty_resolver, linear_resolver).
    assertions: Custom assertions (assert_inherits, assert_overrides,
        assert_api_response).

Example:
    >>> from versionchain.testing import assert_inherits
    >>> assert_inherits(resolver, "v3", "format_validation_errors", "v1")
"""

from versionchain.testing.assertions import (
    assert_api_response,
    assert_inherits,
    assert_overrides,
)

__all__ = [
    "assert_api_response",
    "assert_inherits",
    "assert_overrides",
]
