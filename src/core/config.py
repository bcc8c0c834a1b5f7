"""
Job configuration management.

Loads job settings from an optional YAML file, falls back to environment
variables for database parameters, and validates everything with Pydantic.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, PositiveInt, SecretStr, field_validator

from src.utils.validation import sanitize_sql_identifier

DEFAULT_CHUNK_SIZE = 3
DEFAULT_DISCOUNT_RATE = 0.10
DEFAULT_TABLE_NAME = "orders"


class DatabaseSettings(BaseModel):
    """
    Connection parameters for the durable store.

    Unset fields default to DB_HOST, DB_PORT, DB_NAME, DB_USER and DB_PASSWORD.
    """

    host: str = Field(default_factory=lambda: os.getenv("DB_HOST", "localhost"))
    port: int = Field(default_factory=lambda: int(os.getenv("DB_PORT", "5432")), gt=0, lt=65536)
    name: str = Field(default_factory=lambda: os.getenv("DB_NAME", "orders_db"))
    user: str = Field(default_factory=lambda: os.getenv("DB_USER", "batch"))
    password: SecretStr | None = Field(
        default_factory=lambda: SecretStr(os.environ["DB_PASSWORD"]) if os.getenv("DB_PASSWORD") else None
    )
    min_pool_size: PositiveInt = 1
    max_pool_size: PositiveInt = 4
    timeout: float = Field(30.0, gt=0)

    def pool_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for DatabaseConnectionPool."""
        return {
            "host": self.host,
            "port": self.port,
            "database": self.name,
            "user": self.user,
            "password": self.password.get_secret_value() if self.password else None,
            "min_size": self.min_pool_size,
            "max_size": self.max_pool_size,
            "timeout": self.timeout,
        }


class JobSettings(BaseModel):
    """
    Behaviour knobs of the order import job.

    Attributes:
        input_path: Delimited source file
        chunk_size: Records per committed chunk
        discount_rate: Fraction taken off every amount, in [0, 1)
        delimiter: Field delimiter of the source file
        table_name: Target table
        write_retry_attempts: Attempts per chunk write; 1 disables retry
        database: Store connection parameters
    """

    input_path: Path | None = None
    chunk_size: PositiveInt = DEFAULT_CHUNK_SIZE
    discount_rate: float = Field(DEFAULT_DISCOUNT_RATE, ge=0.0, lt=1.0)
    delimiter: str = Field(",", min_length=1, max_length=1)
    table_name: str = DEFAULT_TABLE_NAME
    write_retry_attempts: PositiveInt = 1
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    @field_validator("table_name")
    @classmethod
    def check_table_name(cls, v: str) -> str:
        return sanitize_sql_identifier(v, field_name="table_name")


class JobConfigLoader:
    """
    Loads JobSettings from a YAML configuration file.

    Expected YAML format:
    ```yaml
    job:
      input_path: data/orders.csv
      chunk_size: 3
      discount_rate: 0.10
      table_name: orders

    database:
      host: localhost
      port: 5432
      name: orders_db
      user: batch
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the job config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Job configuration file not found: {config_path}")

    def load(self, **overrides: Any) -> JobSettings:
        """
        Load settings, applying non-None keyword overrides last.

        Args:
            **overrides: Job-level fields (or ``database`` as a dict) that win over the file

        Returns:
            Validated JobSettings

        Raises:
            ValueError: If the YAML is not a mapping or has unknown sections
            pydantic.ValidationError: If a value violates its constraints
        """
        with open(self.config_path) as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping")

        unknown = set(config) - {"job", "database"}
        if unknown:
            raise ValueError(f"Unknown configuration section(s): {', '.join(sorted(unknown))}")

        return build_settings(config.get("job") or {}, config.get("database") or {}, **overrides)


def build_settings(
    job: dict[str, Any] | None = None,
    database: dict[str, Any] | None = None,
    **overrides: Any,
) -> JobSettings:
    """
    Merge job and database sections with overrides into JobSettings.

    None-valued overrides are ignored so CLI flags left unset don't clobber the file.
    """
    job_values = dict(job or {})
    db_values = dict(database or {})

    db_overrides = overrides.pop("database", None) or {}
    db_values.update({k: v for k, v in db_overrides.items() if v is not None})
    job_values.update({k: v for k, v in overrides.items() if v is not None})

    return JobSettings(**job_values, database=DatabaseSettings(**db_values))


def load_settings(config_path: str | Path | None = None, **overrides: Any) -> JobSettings:
    """
    Load settings from ``config_path`` if given, otherwise from defaults and environment.
    """
    if config_path:
        return JobConfigLoader(config_path).load(**overrides)
    return build_settings(**overrides)


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_DISCOUNT_RATE",
    "DEFAULT_TABLE_NAME",
    "DatabaseSettings",
    "JobSettings",
    "JobConfigLoader",
    "build_settings",
    "load_settings",
]
