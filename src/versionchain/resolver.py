"""Version chain resolver.

The resolver holds a strictly linear ladder of API versions (v1 -> v2 ->
v3 ...). Each version layer may override individual operations; every
operation it does not override is inherited from its predecessor.

Lifecycle:
    register() and override() run during a single-threaded startup phase
    (optionally closed with freeze()). resolve() is a pure lookup that can
    be called from any number of threads.

Thread Safety:
    Writers are serialized by an internal lock and publish a new immutable
    snapshot of the chain on every change. Readers never take the lock:
    every read works on the one snapshot that was current when it started,
    so late registration is safe but invisible to reads already in progress.

Lookups:
    Version tags are matched case-insensitively, and tags that order equal
    name the same version (``v2.0`` finds ``v2``). Operation names are
    matched after stripping surrounding whitespace, the same normalization
    override() applies.

Example:
    >>> resolver = VersionChainResolver()
    >>> _ = resolver.register("v1")
    >>> _ = resolver.register("v2", "v1")
    >>> resolver.override("v1", "format_response", lambda contract, data: {"data": data})
    >>> resolver.resolve("v2", "format_response") is resolver.resolve("v1", "format_response")
    True
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, NamedTuple

from packaging.version import Version

from versionchain.errors import (
    ChainFrozenError,
    DuplicateOverrideError,
    DuplicateVersionError,
    InvalidChainError,
    UnknownVersionError,
    UnresolvedOperationError,
)
from versionchain.models.layers import Implementation, OverrideRecord, VersionLayer
from versionchain.models.tags import is_version_tag, parse_version_tag, version_key
from versionchain.observability import get_logger, get_metrics

if TYPE_CHECKING:
    from versionchain.contracts.base import BehaviorContract

logger = get_logger(__name__)


class _ChainSnapshot(NamedTuple):
    layers: Mapping[str, VersionLayer]
    order: tuple[str, ...]
    keys: Mapping[Version, str]


_EMPTY_SNAPSHOT = _ChainSnapshot(
    layers=MappingProxyType({}), order=(), keys=MappingProxyType({})
)


def validate_implementation(implementation: Implementation) -> None:
    """Validate that an implementation can be attached to a version layer.

    Raises:
        TypeError: If implementation is not callable.
    """
    if not callable(implementation):
        raise TypeError(f"Implementation must be callable; got {type(implementation).__name__}")


def _validate_operation_name(operation_name: str) -> str:
    if not isinstance(operation_name, str):
        raise TypeError(f"Operation name must be a string; got {type(operation_name).__name__}")
    name = operation_name.strip()
    if not name:
        raise ValueError("Operation name must not be empty")
    return name


def _operation_key(operation_name: str) -> str:
    if not isinstance(operation_name, str):
        return repr(operation_name)
    return operation_name.strip()


def _canonical_tag(snapshot: _ChainSnapshot, version_tag: str) -> str:
    # Lookups never fail on syntax: anything that is not registered is unknown.
    if not isinstance(version_tag, str):
        raise UnknownVersionError(repr(version_tag))
    tag = version_tag.strip().lower()
    if tag in snapshot.layers or not is_version_tag(tag):
        return tag
    return snapshot.keys.get(version_key(tag), tag)


def _require_layer(snapshot: _ChainSnapshot, version_tag: str) -> VersionLayer:
    tag = _canonical_tag(snapshot, version_tag)
    layer = snapshot.layers.get(tag)
    if layer is None:
        raise UnknownVersionError(tag)
    return layer


def _lineage(snapshot: _ChainSnapshot, layer: VersionLayer) -> Iterator[VersionLayer]:
    current: VersionLayer | None = layer
    while current is not None:
        yield current
        current = snapshot.layers[current.predecessor] if current.predecessor else None


def _locate(snapshot: _ChainSnapshot, layer: VersionLayer, operation: str) -> VersionLayer | None:
    for candidate in _lineage(snapshot, layer):
        if candidate.overrides_operation(operation):
            return candidate
    return None


class VersionChainResolver:
    """Registry of version layers with nearest-ancestor operation lookup.

    Attributes:
        _snapshot: Currently published (layers, order, keys) triple; replaced, never mutated
        _write_lock: Serializes register(), override() and freeze()
        _frozen: True once freeze() has been called
    """

    def __init__(self) -> None:
        self._snapshot: _ChainSnapshot = _EMPTY_SNAPSHOT
        self._write_lock = threading.Lock()
        self._frozen = False

    # -- writes -----------------------------------------------------------

    def register(self, version_tag: str, predecessor_tag: str | None = None) -> VersionLayer:
        """Declare a new version layer and its single predecessor.

        Args:
            version_tag: Tag of the new version (e.g. "v2").
            predecessor_tag: Tag of the version it extends; None for the root.

        Returns:
            The registered (empty) VersionLayer.

        Raises:
            DuplicateVersionError: If version_tag, or a tag that orders equal
                to it, is already registered.
            UnknownVersionError: If predecessor_tag is given but not registered.
            InvalidChainError: If the registration would add a second root,
                branch the ladder, or not order after its predecessor.
            InvalidVersionTagError: If a tag is malformed.
            ChainFrozenError: If the resolver has been frozen.
        """
        tag = parse_version_tag(version_tag)
        predecessor = parse_version_tag(predecessor_tag) if predecessor_tag is not None else None
        key = version_key(tag)

        with self._write_lock:
            if self._frozen:
                raise ChainFrozenError(f"register version {tag}")
            snapshot = self._snapshot
            if tag in snapshot.layers:
                raise DuplicateVersionError(tag)
            if key in snapshot.keys:
                raise DuplicateVersionError(tag, details={"registered_as": snapshot.keys[key]})

            if predecessor is None:
                if snapshot.order:
                    raise InvalidChainError(
                        tag, f"root version {snapshot.order[0]} is already registered"
                    )
            else:
                predecessor = _canonical_tag(snapshot, predecessor)
                if predecessor not in snapshot.layers:
                    raise UnknownVersionError(predecessor, details={"registering": tag})
                head = snapshot.order[-1]
                if predecessor != head:
                    successor = snapshot.order[snapshot.order.index(predecessor) + 1]
                    raise InvalidChainError(
                        tag, f"{predecessor} is already extended by {successor}"
                    )
                if key <= version_key(predecessor):
                    raise InvalidChainError(tag, f"must order after predecessor {predecessor}")

            layer = VersionLayer(tag=tag, predecessor=predecessor)
            self._snapshot = _ChainSnapshot(
                layers=MappingProxyType({**snapshot.layers, tag: layer}),
                order=(*snapshot.order, tag),
                keys=MappingProxyType({**snapshot.keys, key: tag}),
            )

        logger.debug("versionchain.version.registered", version=tag, predecessor=predecessor)
        get_metrics().increment_counter("versionchain_versions_registered_total")
        return layer

    def override(
        self, version_tag: str, operation_name: str, implementation: Implementation
    ) -> None:
        """Attach a concrete implementation of one operation to a version layer.

        The operation name is stored stripped of surrounding whitespace.

        Raises:
            UnknownVersionError: If version_tag is not registered.
            DuplicateOverrideError: If the layer already overrides operation_name.
            TypeError: If implementation is not callable.
            ChainFrozenError: If the resolver has been frozen.
        """
        validate_implementation(implementation)
        operation = _validate_operation_name(operation_name)

        with self._write_lock:
            snapshot = self._snapshot
            tag = _canonical_tag(snapshot, version_tag)
            if self._frozen:
                raise ChainFrozenError(f"override {operation} in {tag}")
            layer = snapshot.layers.get(tag)
            if layer is None:
                raise UnknownVersionError(tag, details={"operation": operation})
            if layer.overrides_operation(operation):
                raise DuplicateOverrideError(tag, operation)

            self._snapshot = snapshot._replace(
                layers=MappingProxyType(
                    {**snapshot.layers, tag: layer.with_override(operation, implementation)}
                )
            )

        logger.debug(
            "versionchain.operation.overridden",
            version=tag,
            operation=operation,
            implementation=getattr(implementation, "__qualname__", repr(implementation)),
        )
        get_metrics().increment_counter("versionchain_overrides_total", {"version": tag})

    def implements(
        self, version_tag: str, operation_name: str | None = None
    ) -> Callable[[Implementation], Implementation]:
        """Decorator form of override(); the operation defaults to the function name.

        Example:
            >>> @resolver.implements("v3")
            ... def format_response(contract, resource):
            ...     return {"data": resource}
        """

        def decorator(func: Implementation) -> Implementation:
            self.override(version_tag, operation_name or func.__name__, func)
            return func

        return decorator

    def freeze(self) -> None:
        """End the initialization phase; later writes raise ChainFrozenError."""
        with self._write_lock:
            self._frozen = True
        logger.debug("versionchain.chain.frozen", versions=list(self._snapshot.order))

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -- reads ------------------------------------------------------------

    def resolve(self, version_tag: str, operation_name: str) -> Implementation:
        """Return the implementation of an operation as seen by a version.

        Walks from version_tag towards the root and returns the first
        override found. Pure and idempotent.

        Raises:
            UnknownVersionError: If version_tag is not registered.
            UnresolvedOperationError: If no layer up to the root implements
                the operation.
        """
        snapshot = self._snapshot
        layer = _require_layer(snapshot, version_tag)
        operation = _operation_key(operation_name)
        source = _locate(snapshot, layer, operation)
        if source is None:
            raise UnresolvedOperationError(layer.tag, operation)
        return source.overrides[operation]

    def resolve_source(self, version_tag: str, operation_name: str) -> str:
        """Return the tag of the layer whose implementation resolve() returns."""
        snapshot = self._snapshot
        layer = _require_layer(snapshot, version_tag)
        operation = _operation_key(operation_name)
        source = _locate(snapshot, layer, operation)
        if source is None:
            raise UnresolvedOperationError(layer.tag, operation)
        return source.tag

    def override_record(self, version_tag: str, operation_name: str) -> OverrideRecord:
        """Describe whether a version redefines an operation or inherits it.

        Raises:
            UnknownVersionError: If version_tag is not registered.
        """
        snapshot = self._snapshot
        layer = _require_layer(snapshot, version_tag)
        operation = _operation_key(operation_name)
        source = _locate(snapshot, layer, operation)
        return OverrideRecord(
            version=layer.tag,
            operation=operation,
            overridden=layer.overrides_operation(operation),
            source_version=source.tag if source is not None else None,
        )

    def has_version(self, version_tag: str) -> bool:
        if not isinstance(version_tag, str):
            return False
        snapshot = self._snapshot
        return _canonical_tag(snapshot, version_tag) in snapshot.layers

    def get_layer(self, version_tag: str) -> VersionLayer:
        return _require_layer(self._snapshot, version_tag)

    def versions(self) -> list[str]:
        """Registered tags ordered from the root to the newest version."""
        return list(self._snapshot.order)

    @property
    def root(self) -> str | None:
        order = self._snapshot.order
        return order[0] if order else None

    @property
    def head(self) -> str | None:
        order = self._snapshot.order
        return order[-1] if order else None

    def lineage(self, version_tag: str) -> list[str]:
        """Tags from version_tag back to the root, inclusive.

        Example:
            >>> resolver.lineage("v3")
            ['v3', 'v2', 'v1']
        """
        snapshot = self._snapshot
        return [layer.tag for layer in _lineage(snapshot, _require_layer(snapshot, version_tag))]

    def operations(self, version_tag: str) -> list[str]:
        """All operation names resolvable at a version, sorted."""
        snapshot = self._snapshot
        names: set[str] = set()
        for layer in _lineage(snapshot, _require_layer(snapshot, version_tag)):
            names.update(layer.overrides)
        return sorted(names)

    def resolution_table(self, version_tag: str) -> dict[str, str]:
        """Map each resolvable operation to the tag that supplies it."""
        snapshot = self._snapshot
        table: dict[str, str] = {}
        for layer in _lineage(snapshot, _require_layer(snapshot, version_tag)):
            for operation in layer.overrides:
                table.setdefault(operation, layer.tag)
        return dict(sorted(table.items()))

    def bind(self, version_tag: str) -> BehaviorContract:
        """Return the behavior contract of one version.

        The contract is bound to the registered spelling of the tag.

        Raises:
            UnknownVersionError: If version_tag is not registered.
        """
        from versionchain.contracts.base import BehaviorContract

        return BehaviorContract(self, _require_layer(self._snapshot, version_tag).tag)

    def __contains__(self, version_tag: object) -> bool:
        return isinstance(version_tag, str) and self.has_version(version_tag)

    def __len__(self) -> int:
        return len(self._snapshot.order)

    def __iter__(self) -> Iterator[str]:
        return iter(self._snapshot.order)
