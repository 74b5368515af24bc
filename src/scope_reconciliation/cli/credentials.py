"""
Connection settings and logging setup for the CLI.

Settings come from Vault (``--use-vault``) or from command-line options
with EAV_DB_* environment variables as fallback.
"""

import argparse
import logging
import os
from typing import Any

from utils.logging import setup_logging as configure_logging
from utils.vault_client import DEFAULT_PORTS, VaultClient

from ..errors import PreconditionError

logger = logging.getLogger(__name__)

DEFAULT_DB_TYPE = "mysql"

DEFAULT_ODBC_DRIVERS = {
    "mysql": "MySQL ODBC 8.0 Unicode Driver",
    "sqlserver": "ODBC Driver 18 for SQL Server",
}


def setup_logging(log_level: str = "INFO", json_format: bool = False, log_file: str | None = None) -> None:
    """
    Setup logging for a CLI run

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: Emit JSON records instead of console lines
        log_file: Optional rotated log file
    """
    configure_logging(
        level=log_level.upper(),
        log_file=log_file,
        console_output=True,
        json_format=json_format,
    )


def get_connection_config(args: argparse.Namespace) -> dict[str, Any]:
    """
    Resolve database connection settings

    Args:
        args: Parsed command-line arguments

    Returns:
        Dict with db_type, host, port, database, username, password,
        driver and table_prefix

    Raises:
        PreconditionError: If credentials are missing or Vault lookup fails
    """
    db_type = args.db_type or os.getenv("EAV_DB_TYPE", DEFAULT_DB_TYPE)
    if db_type not in DEFAULT_PORTS:
        raise PreconditionError(f"Unsupported database type: {db_type}")

    if args.use_vault:
        try:
            creds = VaultClient().get_database_credentials(db_type)
        except Exception as e:
            raise PreconditionError(f"Failed to fetch credentials from Vault: {e}") from e

        config = {
            "host": creds["host"],
            "port": int(creds["port"]),
            "database": creds["database"],
            "username": creds["username"],
            "password": creds["password"],
        }
        logger.info("Fetched database credentials from Vault")
    else:
        config = {
            "host": args.db_host or os.getenv("EAV_DB_HOST", "localhost"),
            "port": int(args.db_port or os.getenv("EAV_DB_PORT", DEFAULT_PORTS[db_type])),
            "database": args.db_name or os.getenv("EAV_DB_NAME", "magento"),
            "username": args.db_user or os.getenv("EAV_DB_USER", "magento"),
            "password": args.db_password or os.getenv("EAV_DB_PASSWORD"),
        }

        if not config["password"]:
            raise PreconditionError(
                "Database password not provided (use --db-password, EAV_DB_PASSWORD or --use-vault)"
            )

    config["db_type"] = db_type
    config["driver"] = (
        args.odbc_driver
        or os.getenv("EAV_DB_DRIVER")
        or DEFAULT_ODBC_DRIVERS.get(db_type)
    )
    config["table_prefix"] = (
        args.table_prefix if args.table_prefix is not None else os.getenv("EAV_TABLE_PREFIX", "")
    )
    return config
