"""
Pytest configuration and fixtures for the order import job tests

Unit tests run against an in-memory fake of the connection pool; integration
and e2e tests run against PostgreSQL started with testcontainers.
"""
import logging
from pathlib import Path
from typing import Callable, Generator, List

import pytest
from testcontainers.postgres import PostgresContainer

from src.observability.logger import DEFAULT_LOGGER_NAME
from src.warehouse.connection import DatabaseConnectionPool
from src.warehouse.orders_table import OrdersTable

from tests.helpers import FakeConnectionPool, RecordingWriter

POSTGRES_USER = "test_batch"
POSTGRES_PASSWORD = "test_password"
POSTGRES_DB = "test_orders"

SAMPLE_HEADER = "order_id,customer_name,amount"


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that run the full job"
    )


# =======================
# FAKE STORE
# =======================

@pytest.fixture
def fake_pool() -> FakeConnectionPool:
    return FakeConnectionPool()


@pytest.fixture
def recording_writer() -> RecordingWriter:
    return RecordingWriter()


# =======================
# FILE FIXTURES
# =======================

@pytest.fixture
def write_orders_csv(tmp_path) -> Callable[..., Path]:
    """
    Factory writing an orders file with a header and the given data lines

    Usage:
        path = write_orders_csv(["1,Alice,100.0", "2,Bob,50"])
    """
    def _write(lines: List[str], header: str = SAMPLE_HEADER, name: str = "orders.csv") -> Path:
        path = tmp_path / name
        content = "\n".join([header, *lines]) + "\n" if header is not None else "\n".join(lines)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture(scope="session")
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def sample_orders_csv(fixtures_dir) -> Path:
    """Header plus seven orders"""
    return fixtures_dir / "orders.csv"


# =======================
# LOGGING
# =======================

@pytest.fixture
def app_caplog(caplog) -> Generator[pytest.LogCaptureFixture, None, None]:
    """
    caplog that also sees application logs (which don't propagate by default)
    """
    app_logger = logging.getLogger(DEFAULT_LOGGER_NAME)
    previous = app_logger.propagate
    app_logger.propagate = True
    caplog.set_level(logging.DEBUG, logger=DEFAULT_LOGGER_NAME)
    yield caplog
    app_logger.propagate = previous


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Skips dependent tests when Docker isn't reachable.
    """
    container = PostgresContainer(
        image="postgres:16.2-alpine",
        username=POSTGRES_USER,
        password=POSTGRES_PASSWORD,
        dbname=POSTGRES_DB,
    )
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"Docker is not available for integration tests: {e}")

    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def db_settings(postgres_container) -> dict:
    """Connection parameters for the running container"""
    return {
        "host": postgres_container.get_container_host_ip(),
        "port": int(postgres_container.get_exposed_port(5432)),
        "database": POSTGRES_DB,
        "user": POSTGRES_USER,
        "password": POSTGRES_PASSWORD,
    }


@pytest.fixture
def db_pool(db_settings) -> Generator[DatabaseConnectionPool, None, None]:
    pool = DatabaseConnectionPool(**db_settings)
    pool.open()
    yield pool
    pool.close()


@pytest.fixture
def orders_table(db_pool) -> OrdersTable:
    """Empty orders table"""
    table = OrdersTable(db_pool)
    table.create_if_missing()
    table.truncate()
    return table
