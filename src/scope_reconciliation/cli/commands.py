"""
CLI command implementations.

override-default-value: promote store values that differ from the default
into the default scope, then clean up NULL (and optionally duplicate) store
values. Preconditions are checked in a fixed order before any table is read:
the store must exist, the entity must be valid, and the run must be a dry-run,
forced, or confirmed interactively.
"""

import argparse
import logging
import os
import sys
from collections.abc import Callable
from typing import Any

import psycopg2
from prometheus_client import CollectorRegistry

from utils.metrics import CleanupMetrics, push_metrics

from ..descriptor import EntityType, StorageEdition, resolve_descriptors
from ..cursor import ensure_chunk_size
from ..dialect import detect_dialect
from ..engine import run_cleanup
from ..errors import ConfirmationDeclinedError, PreconditionError
from ..report import (
    ReconciliationReport,
    export_report_csv,
    export_report_json,
    format_report_console,
)
from ..scopes import ScopeResolver, detect_edition
from ..storage import storage_operation
from .credentials import get_connection_config

logger = logging.getLogger(__name__)

NOT_INTERACTIVE_MESSAGE = (
    "ERROR: neither --dry-run nor --force options were supplied, "
    "and we are not running interactively."
)
NOT_DRY_RUN_WARNING = "WARNING: this is not a dry run. If you want to do a dry-run, add --dry-run."
CONFIRMATION_PROMPT = "Are you sure you want to continue? [No] "


def connect_database(config: dict[str, Any]) -> Any:
    """
    Open an autocommit connection to the catalog database

    Args:
        config: Connection settings from get_connection_config()

    Returns:
        DB-API connection

    Raises:
        StorageAccessError: If the connection cannot be established
    """
    db_type = config["db_type"]
    target = f"{db_type}://{config['host']}:{config['port']}/{config['database']}"

    with storage_operation(target, "connect"):
        if db_type == "postgresql":
            conn = psycopg2.connect(
                host=config["host"],
                port=config["port"],
                database=config["database"],
                user=config["username"],
                password=config["password"],
                connect_timeout=10,
            )
            conn.autocommit = True
        else:
            # Imported here so PostgreSQL-only hosts do not need unixODBC
            import pyodbc

            if db_type == "sqlserver":
                server = f"SERVER={config['host']},{config['port']};"
                extra = "TrustServerCertificate=yes;MARS_Connection=yes;"
            else:
                server = f"SERVER={config['host']};PORT={config['port']};"
                extra = ""
            conn = pyodbc.connect(
                f"DRIVER={{{config['driver']}}};"
                f"{server}"
                f"DATABASE={config['database']};"
                f"UID={config['username']};"
                f"PWD={config['password']};"
                f"{extra}",
                autocommit=True,
            )

    logger.info(f"Connected to {target}")
    return conn


def confirm_destructive_run(
    dry_run: bool,
    force: bool,
    interactive: bool,
    ask: Callable[[str], str] = input,
) -> None:
    """
    Make sure a non-dry run was asked for on purpose

    Raises:
        ConfirmationDeclinedError: If not interactive, or the user says no
    """
    if dry_run or force:
        return

    if not interactive:
        raise ConfirmationDeclinedError(NOT_INTERACTIVE_MESSAGE)

    print(NOT_DRY_RUN_WARNING)
    answer = ask(CONFIRMATION_PROMPT)
    if answer.strip().lower() not in ("y", "yes"):
        raise ConfirmationDeclinedError("Aborted, no changes were made.")


def resolve_edition(
    args: argparse.Namespace, connection: Any, entity_type: EntityType, table_prefix: str
) -> StorageEdition:
    choice = (args.edition or os.getenv("EAV_EDITION", "auto")).lower()
    if choice == "auto":
        return detect_edition(connection, detect_dialect(connection), entity_type, table_prefix)
    try:
        return StorageEdition(choice)
    except ValueError:
        raise PreconditionError(
            f"Unknown edition {choice!r}; use auto, community or enterprise"
        ) from None


def write_report(report: ReconciliationReport, output_path: str, fmt: str) -> None:
    if fmt == "json":
        export_report_json(report, output_path)
    elif fmt == "csv":
        export_report_csv(report, output_path)
    else:
        with open(output_path, "w") as f:
            f.write(format_report_console(report) + "\n")
    logger.info(f"Report written to {output_path}")


def cmd_override_default(args: argparse.Namespace) -> ReconciliationReport:
    """
    Run the store-scope cleanup

    Args:
        args: Parsed command-line arguments

    Returns:
        The finished report

    Raises:
        PreconditionError: If a precondition fails (nothing was changed)
        StorageAccessError: If connecting, scanning or writing fails
    """
    ensure_chunk_size(args.chunk_size)
    config = get_connection_config(args)
    table_prefix = config["table_prefix"]

    connection = connect_database(config)
    try:
        dialect = detect_dialect(connection)

        ScopeResolver(connection, dialect, table_prefix).ensure_exists(args.store_id)
        entity_type = EntityType.parse(args.entity)
        confirm_destructive_run(args.dry_run, args.force, sys.stdin.isatty())

        edition = resolve_edition(args, connection, entity_type, table_prefix)
        tables = resolve_descriptors(entity_type, edition, table_prefix)
        logger.info(
            f"Cleaning up {entity_type.value} values of store {args.store_id} "
            f"({edition.value} edition, {len(tables)} tables)"
        )

        metrics = CleanupMetrics(registry=CollectorRegistry())
        report = ReconciliationReport(
            scope_id=args.store_id,
            dry_run=args.dry_run,
            entity_type=entity_type.value,
            stream=sys.stdout,
            keep_lines=False,
        )

        try:
            run_cleanup(
                connection,
                tables,
                args.store_id,
                args.dry_run,
                remove_duplicates=args.remove_duplicates,
                report=report,
                dialect=dialect,
                chunk_size=args.chunk_size,
                metrics=metrics,
            )
        finally:
            if args.pushgateway:
                try:
                    push_metrics(args.pushgateway, metrics.registry)
                except Exception as e:
                    logger.warning(f"Could not push metrics to {args.pushgateway}: {e}")

        if args.output:
            write_report(report, args.output, args.format)

        logger.info(report.summarize())
        return report
    finally:
        connection.close()
