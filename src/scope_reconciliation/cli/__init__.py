"""
Command-line interface for store-scope cleanup.

Available commands:
- override-default-value: promote differing store values into the default
  scope and remove the store rows

Exit codes: 0 on success, 1 when a precondition fails (nothing changed),
2 when the database cannot be read or written.
"""

import logging
import os
import sys

from utils.logging import shutdown_logging
from utils.tracing import initialize_tracing, shutdown_tracing

from ..errors import PreconditionError, StorageAccessError
from .commands import cmd_override_default, confirm_destructive_run, connect_database
from .credentials import get_connection_config, setup_logging
from .parser import create_parser

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PRECONDITION = 1
EXIT_STORAGE = 2


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the eav-scope-cleanup CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.log_level, json_format=args.log_json, log_file=args.log_file)

    if args.command != 'override-default-value':
        parser.print_help()
        return EXIT_PRECONDITION

    if os.getenv("OTLP_ENDPOINT"):
        initialize_tracing()

    try:
        cmd_override_default(args)
    except PreconditionError as e:
        print(str(e))
        logger.error(f"Precondition failed: {e}")
        return EXIT_PRECONDITION
    except StorageAccessError as e:
        print(f"ERROR: {e}")
        logger.error(f"Cleanup aborted: {e}")
        return EXIT_STORAGE
    finally:
        shutdown_tracing()

    return EXIT_OK


def run() -> None:
    """Console script wrapper that exits with main()'s status"""
    code = main()
    shutdown_logging()
    sys.exit(code)


__all__ = [
    'main',
    'run',
    'setup_logging',
    'get_connection_config',
    'connect_database',
    'confirm_destructive_run',
    'cmd_override_default',
    'create_parser',
]
