"""v2 behavior contract.

Extends v1. Only the resource envelope tag changes; everything else is
inherited unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from versionchain.contracts import operations as ops

if TYPE_CHECKING:
    from versionchain.contracts.base import BehaviorContract
    from versionchain.resolver import VersionChainResolver

VERSION = "v2"
PREDECESSOR = "v1"


def resource_meta(contract: BehaviorContract) -> dict[str, Any]:
    return {"api_version": VERSION}


def install(resolver: VersionChainResolver) -> None:
    resolver.register(VERSION, PREDECESSOR)
    resolver.override(VERSION, ops.RESOURCE_META, resource_meta)
