"""
Prometheus metrics collection for transition-sync

This module provides metrics instrumentation for monitoring
sync runs, eligibility outcomes, and target table writes.
"""
import os
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
)


# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# RUN METRICS
# =======================

sync_runs_total = Counter(
    name="sync_runs_total",
    documentation="Total number of sync runs",
    labelnames=["mode", "status"],  # mode: live, dry_run; status: success, error
    registry=REGISTRY,
)

sync_run_duration_seconds = Histogram(
    name="sync_run_duration_seconds",
    documentation="Time spent on a full source-to-target run in seconds",
    labelnames=["mode"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
    registry=REGISTRY,
)

students_processed_total = Counter(
    name="sync_students_processed_total",
    documentation="Total number of students that reached the row builder",
    labelnames=["mode"],
    registry=REGISTRY,
)

# =======================
# DATA QUALITY METRICS
# =======================

source_records_loaded_total = Counter(
    name="sync_source_records_loaded_total",
    documentation="Records loaded per source dataset",
    labelnames=["source"],
    registry=REGISTRY,
)

eligibility_decisions_total = Counter(
    name="sync_eligibility_decisions_total",
    documentation="Eligibility decisions by outcome",
    labelnames=["decision"],  # include, exclude-withdrawn, exclude-other, reinstated
    registry=REGISTRY,
)

row_build_errors_total = Counter(
    name="sync_row_build_errors_total",
    documentation="Students whose row could not be built and were emitted as error rows",
    labelnames=["mode"],
    registry=REGISTRY,
)

# =======================
# TARGET TABLE METRICS
# =======================

rows_written_total = Counter(
    name="sync_rows_written_total",
    documentation="Rows written to the target table",
    labelnames=["action"],  # update, insert
    registry=REGISTRY,
)

duplicate_keys = Gauge(
    name="sync_duplicate_keys",
    documentation="Student keys occurring more than once in the target table after the last run",
    labelnames=["table"],
    registry=REGISTRY,
)


# =======================
# EXPORT
# =======================

def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """Increment a counter metric"""
    counter.labels(**labels).inc(value)


def set_gauge(gauge: Gauge, value: float, **labels) -> None:
    """Set a gauge metric value"""
    gauge.labels(**labels).set(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    """Observe a value in a histogram metric"""
    histogram.labels(**labels).observe(value)


# =======================
# METRICS COLLECTOR CLASS
# =======================

class MetricsCollector:
    """
    Metrics collector for sync runs.

    Provides a single interface the pipeline calls at the end of each phase.
    """

    def __init__(self, table_name: str = "tentative_rows"):
        """
        Initialize metrics collector.

        Args:
            table_name: Target table label for table-level gauges
        """
        self.table_name = table_name

    def record_source_loaded(self, source: str, record_count: int) -> None:
        """Record the number of records a source contributed."""
        if record_count > 0:
            increment_counter(source_records_loaded_total, record_count, source=source)

    def record_eligibility(self, decisions: dict[str, int]) -> None:
        """
        Record eligibility decision counts.

        Args:
            decisions: Mapping of decision value to count
        """
        for decision, count in decisions.items():
            if count > 0:
                increment_counter(eligibility_decisions_total, count, decision=decision)

    def record_run(
        self,
        dry_run: bool,
        success: bool,
        duration_seconds: float = 0.0,
        students_processed: int = 0,
        rows_updated: int = 0,
        rows_inserted: int = 0,
        error_rows: int = 0,
        duplicate_key_count: int = 0,
    ) -> None:
        """
        Record the outcome of a full sync run.

        Args:
            dry_run: Whether the run skipped writes
            success: Whether the run completed
            duration_seconds: Wall-clock duration of the run
            students_processed: Students that reached the row builder
            rows_updated: Rows updated in place
            rows_inserted: Rows appended
            error_rows: Rows emitted as error rows
            duplicate_key_count: Duplicate keys found after the write
        """
        mode = "dry_run" if dry_run else "live"
        increment_counter(sync_runs_total, 1, mode=mode, status="success" if success else "error")
        if duration_seconds > 0:
            observe_histogram(sync_run_duration_seconds, duration_seconds, mode=mode)
        if not success:
            return

        if students_processed > 0:
            increment_counter(students_processed_total, students_processed, mode=mode)
        if error_rows > 0:
            increment_counter(row_build_errors_total, error_rows, mode=mode)
        if not dry_run:
            if rows_updated > 0:
                increment_counter(rows_written_total, rows_updated, action="update")
            if rows_inserted > 0:
                increment_counter(rows_written_total, rows_inserted, action="insert")
            set_gauge(duplicate_keys, duplicate_key_count, table=self.table_name)
