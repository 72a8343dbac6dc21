"""Version layer records.

A VersionLayer is one rung of the compatibility ladder: its tag, the tag
of the single version it extends, and the operations it redefines. Layers
are frozen; adding an override produces a new layer.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from pydantic import Field, field_validator

from versionchain.models.base import VersionChainBaseModel
from versionchain.models.tags import parse_version_tag

Implementation = Callable[..., Any]


class VersionLayer(VersionChainBaseModel):
    """One registered API version and its overrides.

    Attributes:
        tag: Normalized version tag (e.g. "v2").
        predecessor: Tag of the version this layer extends; None for the root.
        overrides: Operation name to implementation, for operations this
            layer redefines. Empty for pass-through layers.
    """

    tag: str = Field(..., description="Normalized version tag")
    predecessor: str | None = Field(default=None, description="Tag of the extended version")
    overrides: dict[str, Implementation] = Field(
        default_factory=dict,
        description="Operations redefined by this layer",
    )

    @field_validator("tag", "predecessor")
    @classmethod
    def normalize_tag(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return parse_version_tag(v)

    @property
    def is_root(self) -> bool:
        return self.predecessor is None

    @property
    def operations(self) -> Mapping[str, Implementation]:
        """Read-only view of this layer's own overrides."""
        return MappingProxyType(self.overrides)

    def overrides_operation(self, operation: str) -> bool:
        return operation in self.overrides

    def with_override(self, operation: str, implementation: Implementation) -> VersionLayer:
        """Return a copy of this layer with one more override."""
        return self.model_copy(update={"overrides": {**self.overrides, operation: implementation}})


class OverrideRecord(VersionChainBaseModel):
    """Whether a version redefines an operation, and who supplies it.

    Attributes:
        version: The version that was queried.
        operation: The operation name.
        overridden: True if the queried version itself redefines the operation.
        source_version: Tag of the layer whose implementation resolution
            returns, or None when no layer implements the operation.
    """

    version: str
    operation: str
    overridden: bool
    source_version: str | None = None

    @property
    def inherited(self) -> bool:
        return not self.overridden and self.source_version is not None
