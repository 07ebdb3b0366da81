"""
Command-line interface for the transition notes sync.

Usage:
    python -m transition_sync.cli.sync_cli run --config config/sync.yaml [options]
    python -m transition_sync.cli.sync_cli plan --config config/sync.yaml [options]
    python -m transition_sync.cli.sync_cli init-table --config config/sync.yaml [options]
"""

import argparse
import sys
from datetime import date

import psycopg
from pyspark.sql import SparkSession

from transition_sync.batch.pipeline import SyncPipeline
from transition_sync.batch.readers import SourceDatasetLoader
from transition_sync.config.settings import SyncConfigLoader, SyncSettings
from transition_sync.core.errors import SyncError
from transition_sync.core.models import RunSummary
from transition_sync.observability.logger import get_logger, setup_logger
from transition_sync.observability.metrics import start_metrics_server
from transition_sync.warehouse.connection import DatabaseConnectionPool
from transition_sync.warehouse.target_table import PostgresTargetTable

logger = get_logger(__name__)


def create_spark_session(app_name: str = "TransitionSync") -> SparkSession:
    """
    Create a local Spark session for reading source snapshots.

    Args:
        app_name: Application name

    Returns:
        SparkSession
    """
    spark = SparkSession.builder \
        .appName(app_name) \
        .master("local[*]") \
        .config("spark.sql.adaptive.enabled", "true") \
        .config("spark.ui.enabled", "false") \
        .getOrCreate()

    spark.sparkContext.setLogLevel("WARN")
    return spark


def parse_today(value: str) -> date:
    """argparse type for --today."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD") from None


def create_pool(args) -> DatabaseConnectionPool:
    """Connection pool from --db-* flags, falling back to DB_* env vars."""
    return DatabaseConnectionPool(
        host=args.db_host,
        port=args.db_port,
        database=args.db_name,
        user=args.db_user,
        password=args.db_password,
    )


def log_summary(summary: RunSummary) -> None:
    logger.info("=" * 60)
    logger.info("DRY RUN COMPLETE" if summary.dry_run else "SYNC COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Students processed: {summary.students_processed}")
    logger.info(f"Rows updated: {summary.rows_updated}")
    logger.info(f"Rows inserted: {summary.rows_inserted}")
    logger.info(f"Rows preserved: {summary.rows_preserved}")
    logger.info(f"Error rows: {summary.error_rows}")
    logger.info(
        f"Excluded: {summary.excluded_withdrawn} withdrawn, {summary.excluded_other} other "
        f"({summary.reinstated} reinstated)"
    )
    if summary.duplicate_keys:
        logger.warning(f"Duplicate student keys: {summary.duplicate_keys}")
    logger.info("=" * 60)
    if summary.dry_run:
        logger.info("DRY RUN: No rows were written to the target table")


def sync_command(args, settings: SyncSettings, dry_run: bool) -> int:
    """
    Execute a full run (run) or a dry run (plan).

    Returns:
        Process exit code
    """
    spark = create_spark_session(f"TransitionSync-{settings.target.table_name}")
    pool = create_pool(args)

    try:
        pool.open()
        target = PostgresTargetTable(
            pool,
            table_name=settings.target.table_name,
            key_column_index=settings.target.key_column_index,
        )
        loader = SourceDatasetLoader(spark, settings)
        pipeline = SyncPipeline(settings, loader, target, today=args.today)
        summary = pipeline.run_merge(dry_run=dry_run)
        log_summary(summary)
        return 0
    except SyncError as e:
        logger.error(f"Sync failed: {e}", exc_info=True)
        return 1
    except psycopg.Error as e:
        logger.error(f"Database error: {e}", exc_info=True)
        return 1
    finally:
        pool.close()
        spark.stop()


def init_table_command(args, settings: SyncSettings) -> int:
    """Create the target table when missing."""
    try:
        with create_pool(args) as pool:
            PostgresTargetTable(
                pool,
                table_name=settings.target.table_name,
                key_column_index=settings.target.key_column_index,
            ).ensure_table()
    except psycopg.Error as e:
        logger.error(f"Database error: {e}", exc_info=True)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Student transition notes sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create the target table on a fresh database
  python -m transition_sync.cli.sync_cli init-table --config config/sync.yaml

  # Preview the changes without writing
  python -m transition_sync.cli.sync_cli plan --config config/sync.yaml

  # Run the sync as of a given date
  python -m transition_sync.cli.sync_cli run --config config/sync.yaml --today 2024-10-01
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (
        ("run", "Merge all sources and update the target table"),
        ("plan", "Compute the merge plan without writing (dry run)"),
        ("init-table", "Create the target table if it does not exist"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--config",
            default="config/sync.yaml",
            help="Path to the sync configuration YAML file (default: config/sync.yaml)"
        )
        sub.add_argument(
            "--log-level",
            default=None,
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Log level (default: env var LOG_LEVEL or INFO)"
        )

        # Database connection arguments; unset flags fall back to DB_* env vars
        sub.add_argument("--db-host", default=None, help="Database host (env: DB_HOST)")
        sub.add_argument("--db-port", type=int, default=None, help="Database port (env: DB_PORT)")
        sub.add_argument("--db-name", default=None, help="Database name (env: DB_NAME)")
        sub.add_argument("--db-user", default=None, help="Database user (env: DB_USER)")
        sub.add_argument("--db-password", default=None, help="Database password (env: DB_PASSWORD)")

        if name != "init-table":
            sub.add_argument(
                "--today",
                type=parse_today,
                default=None,
                help="Run date in YYYY-MM-DD form (default: current date)"
            )
            sub.add_argument(
                "--metrics-port",
                type=int,
                default=None,
                help="Expose Prometheus metrics on this port while running"
            )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logger("transition_sync", level=args.log_level)

    try:
        settings = SyncConfigLoader(args.config).load()
    except SyncError as e:
        logger.error(f"Cannot load configuration: {e}")
        return 1

    if args.command == "init-table":
        return init_table_command(args, settings)

    if args.metrics_port:
        start_metrics_server(args.metrics_port)

    return sync_command(args, settings, dry_run=args.command == "plan")


if __name__ == "__main__":
    sys.exit(main())
