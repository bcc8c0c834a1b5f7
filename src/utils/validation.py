"""
Input validation utilities for the order import job.

Provides reusable checks for values that end up in SQL text or file
system calls, where parameter binding can't protect us.
"""

import re
from pathlib import Path

# PostgreSQL truncates identifiers beyond this length
MAX_IDENTIFIER_LENGTH = 63

RESERVED_KEYWORDS = {
    "select", "insert", "update", "delete", "drop", "create", "alter",
    "table", "database", "index", "view", "user", "grant", "revoke", "order",
}


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


def sanitize_sql_identifier(identifier: str, field_name: str = "identifier") -> str:
    """
    Sanitize an SQL identifier (table name, column name, etc.).

    Use this for dynamic table names to prevent SQL injection; values are
    always bound as parameters instead.

    Args:
        identifier: The identifier to sanitize
        field_name: Name of the field (for error messages)

    Returns:
        The validated identifier

    Raises:
        ValidationError: If validation fails

    Examples:
        >>> sanitize_sql_identifier("orders")
        'orders'
        >>> sanitize_sql_identifier("orders; DROP TABLE orders;")  # doctest: +SKIP
        ValidationError: identifier contains invalid characters
    """
    if not identifier or not isinstance(identifier, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    identifier = identifier.strip()

    if not re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', identifier):
        raise ValidationError(
            f"{field_name} contains invalid characters. "
            "SQL identifiers must start with a letter or underscore and contain only "
            "alphanumeric characters and underscores."
        )

    if len(identifier) > MAX_IDENTIFIER_LENGTH:
        raise ValidationError(
            f"{field_name} exceeds PostgreSQL maximum length of {MAX_IDENTIFIER_LENGTH} characters"
        )

    if identifier.lower() in RESERVED_KEYWORDS:
        raise ValidationError(
            f"{field_name} '{identifier}' is a reserved SQL keyword. "
            "Please use a different name."
        )

    return identifier


def validate_input_file(file_path: str | Path, field_name: str = "input_path") -> Path:
    """
    Validate that a source file exists and is readable as a regular file.

    Args:
        file_path: The file path to validate
        field_name: Name of the field (for error messages)

    Returns:
        The path as a Path object

    Raises:
        ValidationError: If the path is empty, contains null bytes, or is not a file
    """
    if not file_path or not str(file_path).strip():
        raise ValidationError(f"{field_name} must be a non-empty path")

    if "\x00" in str(file_path):
        raise ValidationError(f"{field_name} contains null bytes")

    path = Path(str(file_path).strip())

    if not path.exists():
        raise ValidationError(f"{field_name} not found: {path}")

    if not path.is_file():
        raise ValidationError(f"{field_name} is not a regular file: {path}")

    return path


def validate_delimiter(delimiter: str, field_name: str = "delimiter") -> str:
    """
    Validate a single-character field delimiter.

    Raises:
        ValidationError: If the delimiter is not exactly one non-newline, non-quote character
    """
    if not isinstance(delimiter, str) or len(delimiter) != 1:
        raise ValidationError(f"{field_name} must be a single character, got {delimiter!r}")

    if delimiter in ('"', "\r", "\n"):
        raise ValidationError(f"{field_name} cannot be a quote or newline character")

    return delimiter
