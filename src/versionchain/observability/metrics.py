"""Version chain counters.

Every counter is declared up front as a CounterSpec with a fixed set of
label names, so a typo in a label at a call site fails loudly instead of
opening a new time series. Values live in process and are exported in the
Prometheus text exposition format by the ``/metrics`` route.

Counters:
    versionchain_versions_registered_total: version layers registered
    versionchain_overrides_total{version}: overrides declared per version
    versionchain_resolutions_total{version, operation}: operations called
        through a BehaviorContract
    versionchain_resolution_errors_total{error}: failed calls and
        negotiations, by error class
    versionchain_negotiations_total{version, source}: request versions
        chosen, by where the tag came from (path, header, default, latest)
"""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class CounterSpec:
    """Declaration of one counter: its name, help text and label names."""

    name: str
    help_text: str
    label_names: tuple[str, ...] = ()


VERSIONS_REGISTERED = CounterSpec(
    "versionchain_versions_registered_total", "Version layers registered"
)
OVERRIDES = CounterSpec(
    "versionchain_overrides_total", "Operation overrides declared", ("version",)
)
RESOLUTIONS = CounterSpec(
    "versionchain_resolutions_total",
    "Operations called through a behavior contract",
    ("version", "operation"),
)
RESOLUTION_ERRORS = CounterSpec(
    "versionchain_resolution_errors_total",
    "Failed operation resolutions and version negotiations",
    ("error",),
)
NEGOTIATIONS = CounterSpec(
    "versionchain_negotiations_total",
    "Request versions chosen by negotiation",
    ("version", "source"),
)

DEFAULT_COUNTERS: tuple[CounterSpec, ...] = (
    VERSIONS_REGISTERED,
    OVERRIDES,
    RESOLUTIONS,
    RESOLUTION_ERRORS,
    NEGOTIATIONS,
)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _format_value(value: float) -> str:
    return str(int(value)) if value.is_integer() else repr(value)


class MetricsCollector:
    """Thread-safe store for the declared counters."""

    def __init__(self, specs: Iterable[CounterSpec] = DEFAULT_COUNTERS) -> None:
        self._lock = threading.Lock()
        self._specs: dict[str, CounterSpec] = {}
        self._values: dict[str, Counter[tuple[str, ...]]] = {}
        for spec in specs:
            self.register_counter(spec)

    def register_counter(self, spec: CounterSpec) -> None:
        """Declare a counter; re-declaring the same spec is a no-op.

        Raises:
            ValueError: If a different spec is already registered under the name.
        """
        with self._lock:
            existing = self._specs.get(spec.name)
            if existing is not None and existing != spec:
                raise ValueError(f"Counter {spec.name} is already declared differently")
            self._specs[spec.name] = spec
            self._values.setdefault(spec.name, Counter())

    def _key(self, name: str, labels: Mapping[str, str] | None) -> tuple[str, ...]:
        spec = self._specs.get(name)
        if spec is None:
            raise KeyError(f"Unknown counter: {name}")
        given = dict(labels or {})
        if set(given) != set(spec.label_names):
            raise ValueError(
                f"Counter {name} takes labels {list(spec.label_names)}; got {sorted(given)}"
            )
        return tuple(given[label] for label in spec.label_names)

    def increment_counter(
        self, name: str, labels: Mapping[str, str] | None = None, value: float = 1.0
    ) -> None:
        """Add value to one labelled series of a declared counter.

        Raises:
            KeyError: If the counter was never declared.
            ValueError: If the label names differ from the declaration.
        """
        with self._lock:
            key = self._key(name, labels)
            self._values[name][key] += value

    def get_counter(self, name: str, labels: Mapping[str, str] | None = None) -> float:
        with self._lock:
            key = self._key(name, labels)
            return float(self._values[name][key])

    def export_prometheus(self) -> str:
        """Render every counter, series sorted by label values."""
        lines: list[str] = []
        with self._lock:
            for name, spec in self._specs.items():
                lines.append(f"# HELP {name} {spec.help_text}")
                lines.append(f"# TYPE {name} counter")
                series = self._values[name]
                if not series and not spec.label_names:
                    lines.append(f"{name} 0")
                for key in sorted(series):
                    labels = ",".join(
                        f'{label}="{_escape(value)}"'
                        for label, value in zip(spec.label_names, key)
                    )
                    suffix = f"{{{labels}}}" if labels else ""
                    lines.append(f"{name}{suffix} {_format_value(series[key])}")
        return "\n".join(lines) + "\n"

    def reset(self) -> None:
        with self._lock:
            for series in self._values.values():
                series.clear()


_collector = MetricsCollector()


def get_metrics() -> MetricsCollector:
    """Return the process-wide collector."""
    return _collector


def reset_metrics() -> None:
    """Zero every counter of the process-wide collector."""
    _collector.reset()
