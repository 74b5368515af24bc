"""
Logging configuration for the EAV scope cleanup tool

Diagnostic logs go to stderr (optionally JSON formatted); the audit
transcript of a cleanup run is written separately by the report.

Usage:
    import logging

    from utils.logging import setup_logging

    setup_logging(level="INFO", log_file="/var/log/eav-cleanup/run.log")

    logger = logging.getLogger(__name__)
    logger.info("Scanning table", extra={"table_name": "catalog_product_entity_int"})
"""

from .config import configure_from_env, setup_logging, shutdown_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "configure_from_env",
    "shutdown_logging",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
