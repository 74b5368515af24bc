"""
Command-line argument parser configuration.

Defines the ``eav-scope-cleanup`` command and its options. Connection
options fall back to EAV_DB_* environment variables (see credentials.py).
"""

import argparse

from ..cursor import DEFAULT_CHUNK_SIZE


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="eav-scope-cleanup",
        description="Clean up store-scope values in catalog EAV attribute tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Preview what would change for store 2 (products)
  eav-scope-cleanup override-default-value --store-id 2 --dry-run

  # Promote store 3 category values into the default scope without prompting
  eav-scope-cleanup override-default-value --entity category --store-id 3 --force

  # Also drop store values that equal the default, export a JSON report
  eav-scope-cleanup override-default-value --store-id 2 --force \\
      --remove-duplicates --output report.json --format json

  # Credentials from Vault, MySQL through ODBC
  eav-scope-cleanup override-default-value --store-id 2 --dry-run \\
      --db-type mysql --use-vault
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        help='Emit diagnostic logs as JSON'
    )
    parser.add_argument(
        '--log-file',
        help='Also write diagnostic logs to this file (rotated)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== override-default-value command ==========
    override_parser = subparsers.add_parser(
        'override-default-value',
        help="Promote differing store values into the default scope and drop the store rows",
    )
    override_parser.add_argument(
        '--store-id',
        type=int,
        required=True,
        help='Store id whose values override the default when they differ'
    )
    override_parser.add_argument(
        '--entity',
        default='product',
        help='Entity to clean up: product or category (default: product)'
    )
    override_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Only print what would change'
    )
    override_parser.add_argument(
        '--force',
        action='store_true',
        help='Skip the interactive confirmation'
    )
    override_parser.add_argument(
        '--remove-duplicates',
        action='store_true',
        help='Also delete store values identical to their default value'
    )
    override_parser.add_argument(
        '--edition',
        choices=['auto', 'community', 'enterprise'],
        help='Storage edition; decides entity_id vs row_id (default: auto-detect)'
    )
    override_parser.add_argument(
        '--table-prefix',
        help='Database table prefix of the installation'
    )
    override_parser.add_argument(
        '--chunk-size',
        type=int,
        default=DEFAULT_CHUNK_SIZE,
        help=f'Rows fetched per round trip while scanning (default: {DEFAULT_CHUNK_SIZE})'
    )
    override_parser.add_argument(
        '--output',
        help='Write the report to this file'
    )
    override_parser.add_argument(
        '--format',
        choices=['console', 'json', 'csv'],
        default='console',
        help='Report format for --output (default: console)'
    )
    override_parser.add_argument(
        '--pushgateway',
        help='Push run metrics to this Prometheus Pushgateway (host:port)'
    )
    override_parser.add_argument(
        '--use-vault',
        action='store_true',
        help='Fetch database credentials from HashiCorp Vault'
    )
    # Database options
    override_parser.add_argument(
        '--db-type',
        choices=['postgresql', 'mysql', 'sqlserver'],
        help='Catalog database type (default: EAV_DB_TYPE or mysql)'
    )
    override_parser.add_argument('--db-host', help='Database host')
    override_parser.add_argument('--db-port', type=int, help='Database port')
    override_parser.add_argument('--db-name', help='Database name')
    override_parser.add_argument('--db-user', help='Database username')
    override_parser.add_argument('--db-password', help='Database password')
    override_parser.add_argument('--odbc-driver', help='ODBC driver name for mysql/sqlserver')

    return parser
