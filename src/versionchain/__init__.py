"""versionchain: linear API version chains with selective overrides.

Each API version extends exactly one predecessor and inherits every
operation it does not override. The resolver answers "which
implementation of operation X applies to version Y?".

Example:
    >>> from versionchain import create_default_resolver
    >>> resolver = create_default_resolver()
    >>> contract = resolver.bind("v2")
    >>> contract.call("not_found").status_code
    404
"""

__version__ = "0.1.0"

from versionchain.contracts import BehaviorContract, create_default_resolver
from versionchain.errors import (
    ChainFrozenError,
    DuplicateOverrideError,
    DuplicateVersionError,
    InvalidChainError,
    InvalidVersionTagError,
    UnknownVersionError,
    UnresolvedOperationError,
    VersionChainError,
)
from versionchain.models import ApiResponse, OverrideRecord, Page, VersionLayer
from versionchain.resolver import VersionChainResolver

__all__ = [
    "__version__",
    "ApiResponse",
    "BehaviorContract",
    "ChainFrozenError",
    "DuplicateOverrideError",
    "DuplicateVersionError",
    "InvalidChainError",
    "InvalidVersionTagError",
    "OverrideRecord",
    "Page",
    "UnknownVersionError",
    "UnresolvedOperationError",
    "VersionChainError",
    "VersionChainResolver",
    "VersionLayer",
    "create_default_resolver",
]
