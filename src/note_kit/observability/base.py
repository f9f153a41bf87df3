from collections import defaultdict
from typing import Protocol


class MetricsHook(Protocol):
    def record_latency(
        self,
        name: str,
        value_ms: float,
        labels: dict[str, str] | None = None,
    ) -> None: ...

    def increment(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None: ...

    def record_gauge(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None: ...


class NoOpMetricsHook:
    def record_latency(
        self, name: str, value_ms: float, labels: dict[str, str] | None = None
    ) -> None:
        pass

    def increment(
        self, name: str, value: int = 1, labels: dict[str, str] | None = None
    ) -> None:
        pass

    def record_gauge(
        self, name: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        pass


def _key(name: str, labels: dict[str, str] | None) -> tuple[str, tuple]:
    return name, tuple(sorted((labels or {}).items()))


class InMemoryMetricsHook:
    """Keeps every recorded value in memory, keyed by name and labels.

    Meant for asserting on metrics in tests and for ad hoc inspection of a
    single run; it never evicts anything.
    """

    def __init__(self) -> None:
        self.latencies: dict[tuple[str, tuple], list[float]] = defaultdict(list)
        self.counters: dict[tuple[str, tuple], int] = defaultdict(int)
        self.gauges: dict[tuple[str, tuple], float] = {}

    def record_latency(
        self, name: str, value_ms: float, labels: dict[str, str] | None = None
    ) -> None:
        self.latencies[_key(name, labels)].append(value_ms)

    def increment(
        self, name: str, value: int = 1, labels: dict[str, str] | None = None
    ) -> None:
        self.counters[_key(name, labels)] += value

    def record_gauge(
        self, name: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        self.gauges[_key(name, labels)] = value

    def count(self, name: str, labels: dict[str, str] | None = None) -> int:
        return self.counters.get(_key(name, labels), 0)
