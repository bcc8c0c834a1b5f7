"""
Command-line interface for the order import job.

Usage:
    python -m src.cli.batch_cli run --input <file_path> [options]
    python -m src.cli.batch_cli init-db [options]
"""

import argparse
import sys

from dotenv import load_dotenv
from pydantic import ValidationError as SettingsValidationError

from src.batch.pipeline import build_import_order_job
from src.core.config import JobSettings, load_settings
from src.observability.logger import get_logger, log_operation, setup_logger
from src.observability.metrics import start_metrics_server, write_metrics_file
from src.utils.validation import ValidationError, validate_input_file
from src.warehouse.connection import DatabaseConnectionPool
from src.warehouse.orders_table import OrdersTable

logger = get_logger(__name__)


def settings_from_args(args) -> JobSettings:
    """
    Build settings from the optional config file, then CLI overrides.

    Args:
        args: Parsed command-line arguments
    """
    database = {
        "host": args.db_host,
        "port": args.db_port,
        "name": args.db_name,
        "user": args.db_user,
        "password": args.db_password,
    }
    return load_settings(
        args.config,
        input_path=getattr(args, "input", None),
        chunk_size=getattr(args, "chunk_size", None),
        discount_rate=getattr(args, "discount_rate", None),
        delimiter=getattr(args, "delimiter", None),
        write_retry_attempts=getattr(args, "retry_attempts", None),
        table_name=args.table,
        database=database,
    )


def open_pool(settings: JobSettings) -> DatabaseConnectionPool:
    pool = DatabaseConnectionPool(**settings.database.pool_kwargs())
    pool.open()
    return pool


def run_command(args) -> int:
    """
    Execute the order import job.

    Args:
        args: Command-line arguments

    Returns:
        Process exit code: 0 when the job COMPLETED, 1 otherwise
    """
    settings = settings_from_args(args)
    input_path = validate_input_file(settings.input_path)

    logger.info(
        f"Starting order import from {input_path}",
        extra={
            "input_path": str(input_path),
            "chunk_size": settings.chunk_size,
            "discount_rate": settings.discount_rate,
            "table": settings.table_name,
        },
    )

    if args.metrics_port:
        start_metrics_server(args.metrics_port)

    pool = open_pool(settings)
    try:
        if args.create_table:
            OrdersTable(pool, settings.table_name).create_if_missing()

        job = build_import_order_job(settings, pool)
        result = job.run()
    finally:
        pool.close()

    logger.info("=" * 60)
    logger.info(f"JOB {result.job_name} {result.status.value}")
    logger.info("=" * 60)
    for step in result.step_results:
        logger.info(
            f"Step {step.step_name}: read={step.read_count} written={step.write_count} "
            f"chunks={step.commit_count} status={step.status.value}"
        )
    if result.failure:
        logger.error(f"Failure: {result.failure}")
    logger.info("=" * 60)

    if args.metrics_file:
        write_metrics_file(args.metrics_file)
        logger.info(f"Metrics written to {args.metrics_file}", extra={"metrics_file": args.metrics_file})

    return 0 if result.successful else 1


def init_db_command(args) -> int:
    """
    Create the orders table if it doesn't exist.

    Args:
        args: Command-line arguments
    """
    settings = settings_from_args(args)
    pool = open_pool(settings)
    try:
        with log_operation("Creating table", logger=logger, table=settings.table_name):
            OrdersTable(pool, settings.table_name).create_if_missing()
    finally:
        pool.close()

    return 0


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        help="Path to job configuration YAML file"
    )
    parser.add_argument(
        "--table",
        help="Target table name (default: orders)"
    )
    parser.add_argument(
        "--db-host",
        help="Database host (default: $DB_HOST or localhost)"
    )
    parser.add_argument(
        "--db-port",
        type=int,
        help="Database port (default: $DB_PORT or 5432)"
    )
    parser.add_argument(
        "--db-name",
        help="Database name (default: $DB_NAME or orders_db)"
    )
    parser.add_argument(
        "--db-user",
        help="Database user (default: $DB_USER or batch)"
    )
    parser.add_argument(
        "--db-password",
        help="Database password (default: $DB_PASSWORD)"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Chunked order import batch job",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Import orders with the defaults (chunks of 3, 10% discount)
  python -m src.cli.batch_cli run --input data/orders.csv

  # Larger chunks, different discount, create the table first
  python -m src.cli.batch_cli run --input data/orders.csv --chunk-size 500 \\
      --discount-rate 0.2 --create-table

  # Settings from a file, secrets from an env file
  python -m src.cli.batch_cli run --config config/job.yaml --env-file .env

  # Create the target table only
  python -m src.cli.batch_cli init-db --table orders
        """
    )
    parser.add_argument(
        "--env-file",
        help="Load environment variables (DB_*, LOG_*) from this file first"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: $LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "text"],
        help="Log format (default: $LOG_FORMAT or json)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the order import job")
    run_parser.add_argument(
        "--input",
        help="Path to input file (required unless set in --config)"
    )
    run_parser.add_argument(
        "--chunk-size",
        type=int,
        help="Records per committed chunk (default: 3)"
    )
    run_parser.add_argument(
        "--discount-rate",
        type=float,
        help="Discount applied to every amount, in [0, 1) (default: 0.10)"
    )
    run_parser.add_argument(
        "--delimiter",
        help="Field delimiter of the input file (default: ,)"
    )
    run_parser.add_argument(
        "--retry-attempts",
        type=int,
        help="Attempts per chunk write; 1 disables retry (default: 1)"
    )
    run_parser.add_argument(
        "--create-table",
        action="store_true",
        help="Create the target table if it doesn't exist"
    )
    run_parser.add_argument(
        "--metrics-port",
        type=int,
        help="Expose Prometheus metrics on this port while the job runs"
    )
    run_parser.add_argument(
        "--metrics-file",
        help="Write Prometheus metrics to this file (textfile collector format) after the run"
    )
    add_common_arguments(run_parser)

    init_parser = subparsers.add_parser("init-db", help="Create the target table")
    add_common_arguments(init_parser)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.env_file:
        load_dotenv(args.env_file, override=True)

    if args.log_level or args.log_format:
        setup_logger(level=args.log_level, format_type=args.log_format)

    commands = {
        "run": run_command,
        "init-db": init_db_command,
    }

    try:
        return commands[args.command](args)
    except (SettingsValidationError, ValidationError, FileNotFoundError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 2
    except Exception as e:
        logger.error(f"Error during {args.command}: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
