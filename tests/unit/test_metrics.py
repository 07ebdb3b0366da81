"""
Unit tests for Prometheus metrics.
"""

import pytest
from prometheus_client import generate_latest

from transition_sync.observability.metrics import REGISTRY, MetricsCollector


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.unit
class TestMetricsCollector:
    """Tests for MetricsCollector"""

    def test_record_successful_run(self):
        collector = MetricsCollector(table_name="metrics_test_rows")
        before_runs = sample("sync_runs_total", mode="live", status="success")
        before_inserts = sample("sync_rows_written_total", action="insert")

        collector.record_run(
            dry_run=False,
            success=True,
            duration_seconds=1.5,
            students_processed=3,
            rows_updated=1,
            rows_inserted=2,
            duplicate_key_count=1,
        )

        assert sample("sync_runs_total", mode="live", status="success") == before_runs + 1
        assert sample("sync_rows_written_total", action="insert") == before_inserts + 2
        assert sample("sync_duplicate_keys", table="metrics_test_rows") == 1

    def test_dry_run_records_no_writes(self):
        collector = MetricsCollector()
        before = sample("sync_rows_written_total", action="update")

        collector.record_run(dry_run=True, success=True, rows_updated=5)

        assert sample("sync_rows_written_total", action="update") == before
        assert sample("sync_runs_total", mode="dry_run", status="success") >= 1

    def test_failed_run(self):
        before = sample("sync_runs_total", mode="live", status="error")
        MetricsCollector().record_run(dry_run=False, success=False)
        assert sample("sync_runs_total", mode="live", status="error") == before + 1

    def test_eligibility_and_sources(self):
        collector = MetricsCollector()
        before = sample("sync_eligibility_decisions_total", decision="reinstated")

        collector.record_eligibility({"reinstated": 2, "include": 0})
        collector.record_source_loaded("metrics_test_source", 4)

        assert sample("sync_eligibility_decisions_total", decision="reinstated") == before + 2
        assert sample("sync_source_records_loaded_total", source="metrics_test_source") == 4


@pytest.mark.unit
class TestExport:
    """Tests for metrics exposition"""

    def test_text_format(self):
        MetricsCollector().record_run(dry_run=False, success=True)

        text = generate_latest(REGISTRY).decode("utf-8")

        assert "sync_runs_total" in text
