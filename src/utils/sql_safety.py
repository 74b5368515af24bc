"""
SQL safety utilities for preventing SQL injection.

Table and column names in the cleanup queries are assembled from a table
prefix and fixed templates, so every identifier is validated and quoted
before it reaches a statement. Values always travel as bound parameters.
"""

import re
from typing import Literal

DbType = Literal["postgresql", "sqlserver", "mysql", "sqlite"]

# Strict ASCII-only pattern for SQL identifiers
VALID_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def validate_identifier(identifier: str) -> None:
    """
    Validate a SQL identifier (table name, column name, etc.).

    Raises:
        ValueError: If the identifier contains invalid characters
    """
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")

    if not VALID_IDENTIFIER.match(identifier):
        raise ValueError(
            f"Invalid SQL identifier: {identifier!r}. "
            "Only ASCII letters, digits, and underscores are allowed, "
            "and must start with a letter or underscore."
        )


def quote_identifier(identifier: str, db_type: DbType) -> str:
    """
    Safely quote a SQL identifier after validation.

    Args:
        identifier: The identifier to quote
        db_type: Database type for proper quoting style

    Returns:
        Quoted identifier safe for use in SQL

    Raises:
        ValueError: If the identifier is invalid
    """
    validate_identifier(identifier)

    if db_type == "sqlserver":
        return f"[{identifier}]"
    if db_type == "mysql":
        return f"`{identifier}`"
    return f'"{identifier}"'


def validate_integer_param(value: int, param_name: str, min_value: int = 0) -> None:
    """
    Validate an integer parameter for SQL queries.

    Args:
        value: The value to validate
        param_name: Name of the parameter (for error messages)
        min_value: Minimum allowed value (default 0)

    Raises:
        ValueError: If the value is not a valid integer or below minimum
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(
            f"Invalid {param_name}: {value!r}. Must be an integer."
        )

    if value < min_value:
        raise ValueError(
            f"Invalid {param_name}: {value}. Must be >= {min_value}."
        )
