"""Prometheus instrumentation of the adapter.

``PrometheusObserver`` implements the translation observer hooks with
``prometheus_client`` instruments registered in a registry it owns, so
separate application instances (and tests) never share metric state.
"""

from typing import Sequence

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    Summary,
    generate_latest,
)

from crateadapter.translation.models import (
    BulkStatement,
    Query,
    SQLStatement,
    TimeSeries,
)


class PrometheusObserver:
    """Records request, store and sample metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.write_duration = Histogram(
            "crate_adapter_write_latency_seconds",
            "How long it took us to respond to write requests.",
            registry=self.registry,
        )
        self.write_errors = Counter(
            "crate_adapter_write_failed",
            "How many write request we returned errors for.",
            registry=self.registry,
        )
        self.write_samples = Summary(
            "crate_adapter_write_timeseries_samples",
            "How many samples each written timeseries has.",
            registry=self.registry,
        )
        self.write_crate_duration = Histogram(
            "crate_adapter_write_crate_latency_seconds",
            "Latency for inserts to Crate.",
            registry=self.registry,
        )
        self.write_crate_errors = Counter(
            "crate_adapter_write_crate_failed",
            "How many inserts to Crate failed.",
            registry=self.registry,
        )
        self.read_duration = Histogram(
            "crate_adapter_read_latency_seconds",
            "How long it took us to respond to read requests.",
            registry=self.registry,
        )
        self.read_errors = Counter(
            "crate_adapter_read_failed",
            "How many read requests we returned errors for.",
            registry=self.registry,
        )
        self.read_crate_duration = Histogram(
            "crate_adapter_read_crate_latency_seconds",
            "Latency for selects from Crate.",
            registry=self.registry,
        )
        self.read_crate_errors = Counter(
            "crate_adapter_read_crate_failed",
            "How many selects from Crate failed.",
            registry=self.registry,
        )
        self.read_samples = Summary(
            "crate_adapter_read_timeseries_samples",
            "How many samples each returned timeseries has.",
            registry=self.registry,
        )

    def on_query_translated(self, query: Query, statement: SQLStatement) -> None:
        pass

    def on_write_translated(
        self, series: Sequence[TimeSeries], statement: BulkStatement
    ) -> None:
        for ts in series:
            self.write_samples.observe(len(ts.samples))

    def on_store_call_completed(
        self, operation: str, duration_seconds: float, success: bool
    ) -> None:
        if operation == "read":
            self.read_crate_duration.observe(duration_seconds)
            if not success:
                self.read_crate_errors.inc()
        else:
            self.write_crate_duration.observe(duration_seconds)
            if not success:
                self.write_crate_errors.inc()

    def on_assembly_completed(self, series: Sequence[TimeSeries]) -> None:
        for ts in series:
            self.read_samples.observe(len(ts.samples))

    def on_request_completed(
        self, operation: str, duration_seconds: float, success: bool
    ) -> None:
        if operation == "read":
            self.read_duration.observe(duration_seconds)
            if not success:
                self.read_errors.inc()
        else:
            self.write_duration.observe(duration_seconds)
            if not success:
                self.write_errors.inc()

    def render(self) -> bytes:
        """Text exposition of every metric in the registry."""
        return generate_latest(self.registry)
