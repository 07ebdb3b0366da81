"""
Pytest configuration and fixtures for transition-sync tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import csv
import os
from collections.abc import Callable
from datetime import date
from typing import Generator

import pytest
from pyspark.sql import SparkSession
from testcontainers.postgres import PostgresContainer

from transition_sync.config.settings import SyncSettings, parse_settings
from transition_sync.core.models import UnifiedStudentRecord
from transition_sync.core.rows.columns import COLUMN_COUNT, COLUMN_INDEX
from transition_sync.warehouse.connection import DatabaseConnectionPool


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Spark or Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that run the full sync"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session() -> Generator[SparkSession, None, None]:
    """
    Create a Spark session for testing with local mode

    Yields:
        SparkSession configured for local testing
    """
    spark = (
        SparkSession.builder
        .appName("transition-sync-test")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.driver.memory", "1g")
        .config("spark.ui.enabled", "false")
        .config("spark.sql.warehouse.dir", "/tmp/spark-warehouse")
        .getOrCreate()
    )

    spark.sparkContext.setLogLevel("WARN")

    yield spark

    spark.stop()


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_sync",
        password="test_password",
        dbname="test_transition_sync"
    ) as postgres:
        postgres.get_connection_url()
        yield postgres


@pytest.fixture(scope="function")
def db_pool(postgres_container) -> Generator[DatabaseConnectionPool, None, None]:
    """
    Open a connection pool against the test container

    Yields:
        Open DatabaseConnectionPool
    """
    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_transition_sync",
        user="test_sync",
        password="test_password",
    )
    pool.open()
    try:
        yield pool
    finally:
        pool.close()


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_env_vars():
    """
    Set test environment variables

    This fixture loads config/test.env and sets environment variables
    """
    from dotenv import load_dotenv

    env_path = os.path.join(
        os.path.dirname(os.path.dirname(__file__)),
        "config",
        "test.env"
    )

    if os.path.exists(env_path):
        load_dotenv(env_path, override=True)


@pytest.fixture(scope="session")
def config_path() -> str:
    """Path to the example sync configuration"""
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), "config", "sync.yaml")


@pytest.fixture
def sync_settings() -> SyncSettings:
    """Settings with the standard source layout and a small holiday calendar"""
    return parse_settings({
        "sources": {
            "registrations": {"path": "registrations.csv", "key_column": "STUDENT ID", "latest_by": "Start Date"},
            "registrations_backup": {
                "path": "registrations_backup.csv", "key_column": "STUDENT ID", "role": "backup",
            },
            "schedules": {
                "path": "schedules.csv", "key_column": "STUDENT ID",
                "multiplicity": "multi", "exclude_when_present": "Wdraw Date",
            },
            "form_responses": {"path": "form_responses.csv", "key_column": "Student", "multiplicity": "multi"},
            "contacts": {"path": "contact_info.csv", "key_column": "STUDENT ID"},
            "entry_withdrawal": {"path": "entry_withdrawal.csv", "key_column": "STUDENT ID"},
            "withdrawn": {"path": "withdrawn.csv", "key_column": "STUDENT ID", "role": "withdrawal"},
            "wd_other": {"path": "wd_other.csv", "key_column": "STUDENT ID", "role": "withdrawal"},
        },
        "calendar": {"holidays": ["2024-11-28", "2024-11-29"], "early_notice_workdays": 10},
        "teachers": {"jane.doe@example.org": "Doe, Jane", "sam.rivera@example.org": "Rivera, Sam"},
    })


# =======================
# DATA FIXTURES
# =======================

@pytest.fixture
def run_date() -> date:
    """Fixed run date (a Monday)"""
    return date(2024, 11, 4)


@pytest.fixture
def make_record() -> Callable[..., UnifiedStudentRecord]:
    """Factory for unified records: make_record(123456, registrations={...}, schedules=[...])"""
    def _make(student_key: int, **slots) -> UnifiedStudentRecord:
        return UnifiedStudentRecord(student_key=student_key, slots=slots)
    return _make


@pytest.fixture
def make_cells() -> Callable[..., list[str]]:
    """Factory for full-width target rows: make_cells(**{"LAST": "Doe", "STUDENT ID": "123456"})"""
    def _make(values: dict[str, str] | None = None, **kwargs) -> list[str]:
        cells = [""] * COLUMN_COUNT
        for column, value in {**(values or {}), **kwargs}.items():
            cells[COLUMN_INDEX[column]] = value
        return cells
    return _make


@pytest.fixture
def write_csv(tmp_path) -> Callable[[str, list[dict[str, str]]], str]:
    """Write records to tmp_path/<name> as CSV and return the path"""
    def _write(name: str, records: list[dict[str, str]], fieldnames: list[str] | None = None) -> str:
        path = tmp_path / name
        headers = fieldnames or list(records[0].keys())
        with open(path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=headers, lineterminator="\n")
            writer.writeheader()
            writer.writerows(records)
        return str(path)
    return _write
