"""Tests for the version chain resolver.

Covers registration rules of the linear ladder, override bookkeeping,
nearest-ancestor resolution, the inspection helpers, and freezing.
"""

import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

import pytest

from versionchain.errors import (
    ChainFrozenError,
    DuplicateOverrideError,
    DuplicateVersionError,
    InvalidChainError,
    InvalidVersionTagError,
    UnknownVersionError,
    UnresolvedOperationError,
)
from versionchain.observability import get_metrics
from versionchain.resolver import VersionChainResolver


def format_response_v1(contract: object, resource: object) -> dict[str, object]:
    return {"data": resource, "api_version": "v1"}


def format_response_v3(contract: object, resource: object) -> dict[str, object]:
    return {"data": resource, "api_version": "v3"}


def format_validation_errors_v1(contract: object, errors: object) -> dict[str, object]:
    return {"message": "Validation failed", "errors": errors}


@pytest.fixture
def ladder(linear_resolver: Callable[..., VersionChainResolver]) -> VersionChainResolver:
    """v1 -> v2 -> v3; v1 defines both operations, v3 overrides formatResponse."""
    resolver = linear_resolver("v1", "v2", "v3")
    resolver.override("v1", "formatResponse", format_response_v1)
    resolver.override("v1", "formatValidationErrors", format_validation_errors_v1)
    resolver.override("v3", "formatResponse", format_response_v3)
    return resolver


class TestRegister:
    """Tests for VersionChainResolver.register."""

    def test_register_root_and_successors(self, empty_resolver: VersionChainResolver) -> None:
        root = empty_resolver.register("v1")
        empty_resolver.register("v2", "v1")

        assert root.is_root
        assert empty_resolver.versions() == ["v1", "v2"]
        assert empty_resolver.root == "v1"
        assert empty_resolver.head == "v2"
        assert len(empty_resolver) == 2
        assert "v2" in empty_resolver

    def test_tags_are_normalized(self, empty_resolver: VersionChainResolver) -> None:
        empty_resolver.register(" V1 ")
        layer = empty_resolver.register("V2", "v1")

        assert layer.tag == "v2"
        assert layer.predecessor == "v1"
        assert empty_resolver.has_version("v2")

    def test_duplicate_version(self, empty_resolver: VersionChainResolver) -> None:
        empty_resolver.register("v1")

        with pytest.raises(DuplicateVersionError) as exc_info:
            empty_resolver.register("v1")
        assert exc_info.value.version == "v1"

    def test_unknown_predecessor(self, empty_resolver: VersionChainResolver) -> None:
        empty_resolver.register("v1")

        with pytest.raises(UnknownVersionError) as exc_info:
            empty_resolver.register("v3", "v2")
        assert exc_info.value.version == "v2"
        assert empty_resolver.versions() == ["v1"]

    def test_unknown_predecessor_on_empty_chain(
        self, empty_resolver: VersionChainResolver
    ) -> None:
        with pytest.raises(UnknownVersionError):
            empty_resolver.register("v2", "v1")

    def test_second_root_is_rejected(self, empty_resolver: VersionChainResolver) -> None:
        empty_resolver.register("v1")

        with pytest.raises(InvalidChainError):
            empty_resolver.register("v2")

    def test_branching_is_rejected(self, empty_resolver: VersionChainResolver) -> None:
        empty_resolver.register("v1")
        empty_resolver.register("v2", "v1")

        with pytest.raises(InvalidChainError) as exc_info:
            empty_resolver.register("v3", "v1")
        assert "already extended by v2" in exc_info.value.reason

    def test_successor_must_order_after_predecessor(
        self, empty_resolver: VersionChainResolver
    ) -> None:
        empty_resolver.register("v2")

        with pytest.raises(InvalidChainError):
            empty_resolver.register("v1", "v2")

    def test_equal_ordering_tag_is_a_duplicate(
        self, empty_resolver: VersionChainResolver
    ) -> None:
        empty_resolver.register("v1")
        empty_resolver.register("v2", "v1")

        with pytest.raises(DuplicateVersionError) as exc_info:
            empty_resolver.register("v2.0", "v2")
        assert exc_info.value.details["registered_as"] == "v2"

    def test_predecessor_by_equal_ordering_tag(
        self, empty_resolver: VersionChainResolver
    ) -> None:
        empty_resolver.register("v1")

        layer = empty_resolver.register("v2", "v1.0")

        assert layer.predecessor == "v1"

    def test_minor_version_between_majors(self, empty_resolver: VersionChainResolver) -> None:
        empty_resolver.register("v1")
        empty_resolver.register("v1.1", "v1")
        empty_resolver.register("v2", "v1.1")

        assert empty_resolver.lineage("v2") == ["v2", "v1.1", "v1"]

    def test_malformed_tag(self, empty_resolver: VersionChainResolver) -> None:
        with pytest.raises(InvalidVersionTagError):
            empty_resolver.register("latest")

    def test_register_counts_metric(self, empty_resolver: VersionChainResolver) -> None:
        empty_resolver.register("v1")
        empty_resolver.register("v2", "v1")

        assert get_metrics().get_counter("versionchain_versions_registered_total") == 2.0


class TestOverride:
    """Tests for VersionChainResolver.override."""

    def test_override_unknown_version(self, empty_resolver: VersionChainResolver) -> None:
        with pytest.raises(UnknownVersionError):
            empty_resolver.override("v1", "formatResponse", format_response_v1)

    def test_duplicate_override(self, ladder: VersionChainResolver) -> None:
        with pytest.raises(DuplicateOverrideError) as exc_info:
            ladder.override("v3", "formatResponse", format_response_v1)
        assert exc_info.value.version == "v3"
        assert exc_info.value.operation == "formatResponse"
        # The first override is kept
        assert ladder.resolve("v3", "formatResponse") is format_response_v3

    def test_same_operation_on_different_versions(self, ladder: VersionChainResolver) -> None:
        ladder.override("v2", "formatValidationErrors", format_validation_errors_v1)

        assert ladder.override_record("v2", "formatValidationErrors").overridden

    def test_non_callable_implementation(self, ladder: VersionChainResolver) -> None:
        with pytest.raises(TypeError):
            ladder.override("v2", "formatResponse", "not callable")  # type: ignore[arg-type]

    def test_empty_operation_name(self, ladder: VersionChainResolver) -> None:
        with pytest.raises(ValueError):
            ladder.override("v2", "  ", format_response_v1)

    def test_operation_names_match_after_stripping(self, ladder: VersionChainResolver) -> None:
        """Names are stripped on override and on every lookup alike."""
        ladder.override("v2", " archive ", format_response_v1)

        assert ladder.operations("v2") == ["archive", "formatResponse", "formatValidationErrors"]
        assert ladder.resolve("v2", " archive ") is format_response_v1
        assert ladder.resolve("v3", "archive\t") is format_response_v1
        assert ladder.resolve_source("v3", " archive") == "v2"
        record = ladder.override_record("v2", "archive ")
        assert record.operation == "archive"
        assert record.overridden
        with pytest.raises(DuplicateOverrideError):
            ladder.override("v2", "archive", format_response_v1)

    def test_implements_decorator_defaults_to_function_name(
        self, ladder: VersionChainResolver
    ) -> None:
        @ladder.implements("v2")
        def archive(contract: object) -> str:
            return "archived"

        @ladder.implements("v3", "formatValidationErrors")
        def v3_errors(contract: object, errors: object) -> dict[str, object]:
            return {"errors": errors}

        assert ladder.resolve("v3", "archive") is archive
        assert ladder.resolve("v3", "formatValidationErrors") is v3_errors
        assert archive(None) == "archived"


class TestResolve:
    """Tests for nearest-ancestor resolution."""

    def test_override_at_requested_version(self, ladder: VersionChainResolver) -> None:
        assert ladder.resolve("v3", "formatResponse") is format_response_v3

    def test_inherited_from_root(self, ladder: VersionChainResolver) -> None:
        assert ladder.resolve("v3", "formatValidationErrors") is format_validation_errors_v1

    def test_pass_through_version_falls_back(self, ladder: VersionChainResolver) -> None:
        assert ladder.resolve("v2", "formatResponse") is format_response_v1

    def test_unknown_version(self, ladder: VersionChainResolver) -> None:
        with pytest.raises(UnknownVersionError) as exc_info:
            ladder.resolve("v4", "formatResponse")
        assert exc_info.value.version == "v4"

    def test_malformed_version_is_unknown(self, ladder: VersionChainResolver) -> None:
        with pytest.raises(UnknownVersionError):
            ladder.resolve("latest", "formatResponse")

    def test_lookup_is_case_insensitive(self, ladder: VersionChainResolver) -> None:
        assert ladder.resolve("V3", "formatResponse") is format_response_v3

    def test_equal_ordering_tags_name_the_same_version(
        self, ladder: VersionChainResolver
    ) -> None:
        assert ladder.resolve("v3.0", "formatResponse") is format_response_v3
        assert ladder.resolve_source("v2.0", "formatResponse") == "v1"
        assert ladder.lineage("v3.0") == ["v3", "v2", "v1"]
        assert ladder.has_version("v1.0")
        assert "v2.0" in ladder
        assert ladder.bind("v2.0").version == "v2"
        with pytest.raises(UnknownVersionError):
            ladder.resolve("v3.1", "formatResponse")

    def test_unresolved_operation(self, ladder: VersionChainResolver) -> None:
        with pytest.raises(UnresolvedOperationError) as exc_info:
            ladder.resolve("v3", "archive")
        assert exc_info.value.version == "v3"
        assert exc_info.value.operation == "archive"

    def test_idempotent(self, ladder: VersionChainResolver) -> None:
        first = ladder.resolve("v2", "formatResponse")
        second = ladder.resolve("v2", "formatResponse")

        assert first is second
        assert first(None, {"id": 1}) == second(None, {"id": 1})

    def test_resolve_source(self, ladder: VersionChainResolver) -> None:
        assert ladder.resolve_source("v3", "formatResponse") == "v3"
        assert ladder.resolve_source("v3", "formatValidationErrors") == "v1"
        assert ladder.resolve_source("v2", "formatResponse") == "v1"

    def test_resolve_has_no_side_effects(self, ladder: VersionChainResolver) -> None:
        before = ladder.resolution_table("v3")
        metrics_before = get_metrics().export_prometheus()

        ladder.resolve("v3", "formatResponse")
        with pytest.raises(UnresolvedOperationError):
            ladder.resolve("v3", "archive")

        assert ladder.resolution_table("v3") == before
        assert get_metrics().export_prometheus() == metrics_before


class TestInspection:
    """Tests for the chain inspection helpers."""

    def test_lineage(self, ladder: VersionChainResolver) -> None:
        assert ladder.lineage("v3") == ["v3", "v2", "v1"]
        assert ladder.lineage("v1") == ["v1"]

    def test_lineage_unknown(self, ladder: VersionChainResolver) -> None:
        with pytest.raises(UnknownVersionError):
            ladder.lineage("v9")

    def test_operations_are_a_superset_of_predecessor(self, ladder: VersionChainResolver) -> None:
        ladder.override("v3", "archive", format_response_v3)

        assert set(ladder.operations("v2")) <= set(ladder.operations("v3"))
        assert ladder.operations("v3") == ["archive", "formatResponse", "formatValidationErrors"]

    def test_resolution_table(self, ladder: VersionChainResolver) -> None:
        assert ladder.resolution_table("v3") == {
            "formatResponse": "v3",
            "formatValidationErrors": "v1",
        }
        assert ladder.resolution_table("v2") == {
            "formatResponse": "v1",
            "formatValidationErrors": "v1",
        }

    def test_override_record(self, ladder: VersionChainResolver) -> None:
        overridden = ladder.override_record("v3", "formatResponse")
        inherited = ladder.override_record("v2", "formatResponse")
        missing = ladder.override_record("v2", "archive")

        assert overridden.overridden and overridden.source_version == "v3"
        assert inherited.inherited and inherited.source_version == "v1"
        assert not missing.overridden and missing.source_version is None

    def test_inspection_reads_a_single_snapshot(
        self, ladder: VersionChainResolver, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A version registered while a read is in progress stays invisible to that read."""

        def lineage_with_late_registration(version_tag: str) -> list[str]:
            if not ladder.has_version("v4"):
                ladder.register("v4", "v3")
            return VersionChainResolver.lineage(ladder, version_tag)

        monkeypatch.setattr(ladder, "lineage", lineage_with_late_registration)

        with pytest.raises(UnknownVersionError):
            ladder.operations("v4")
        with pytest.raises(UnknownVersionError):
            ladder.resolution_table("v4")
        assert ladder.resolution_table("v3") == {
            "formatResponse": "v3",
            "formatValidationErrors": "v1",
        }

    def test_get_layer(self, ladder: VersionChainResolver) -> None:
        layer = ladder.get_layer("v3")

        assert layer.predecessor == "v2"
        assert set(layer.overrides) == {"formatResponse"}
        with pytest.raises(UnknownVersionError):
            ladder.get_layer("v4")

    def test_empty_resolver(self, empty_resolver: VersionChainResolver) -> None:
        assert empty_resolver.root is None
        assert empty_resolver.head is None
        assert empty_resolver.versions() == []
        assert not empty_resolver.has_version("v1")
        assert list(empty_resolver) == []

    def test_bind(self, ladder: VersionChainResolver) -> None:
        contract = ladder.bind("V3")

        assert contract.version == "v3"
        with pytest.raises(UnknownVersionError):
            ladder.bind("v4")


class TestFreeze:
    """Tests for freezing a resolver after startup."""

    def test_frozen_resolver_rejects_writes(self, ladder: VersionChainResolver) -> None:
        ladder.freeze()

        assert ladder.frozen
        with pytest.raises(ChainFrozenError):
            ladder.register("v4", "v3")
        with pytest.raises(ChainFrozenError):
            ladder.override("v2", "archive", format_response_v1)

    def test_frozen_resolver_still_resolves(self, ladder: VersionChainResolver) -> None:
        ladder.freeze()

        assert ladder.resolve("v2", "formatResponse") is format_response_v1


class TestThreadSafety:
    """Tests for concurrent reads and writes."""

    def test_concurrent_resolution(self, ladder: VersionChainResolver) -> None:
        def resolve_many(_: int) -> bool:
            return all(
                ladder.resolve("v3", "formatValidationErrors") is format_validation_errors_v1
                for _ in range(200)
            )

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(resolve_many, range(16)))

        assert all(results)

    def test_late_registration_while_resolving(self, ladder: VersionChainResolver) -> None:
        stop = threading.Event()
        failures: list[Exception] = []

        def reader() -> None:
            while not stop.is_set():
                try:
                    assert ladder.resolve("v3", "formatResponse") is format_response_v3
                except Exception as e:
                    failures.append(e)
                    return

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        previous = "v3"
        for major in range(4, 40):
            tag = f"v{major}"
            ladder.register(tag, previous)
            ladder.override(tag, f"op_{major}", format_response_v1)
            previous = tag
        stop.set()
        for t in threads:
            t.join()

        assert failures == []
        assert ladder.head == "v39"
        assert ladder.resolve("v39", "formatResponse") is format_response_v3
        assert ladder.resolve_source("v39", "op_4") == "v4"

    def test_concurrent_duplicate_override_only_one_wins(
        self, ladder: VersionChainResolver
    ) -> None:
        barrier = threading.Barrier(8)
        outcomes: list[str] = []
        lock = threading.Lock()

        def attempt() -> None:
            barrier.wait()
            try:
                ladder.override("v2", "archive", format_response_v1)
                result = "ok"
            except DuplicateOverrideError:
                result = "duplicate"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("duplicate") == 7
