"""
Shared utilities for the EAV scope cleanup tool

Provides:
- logging: structured/console logging setup
- tracing: OpenTelemetry span helpers
- metrics: Prometheus counters for cleanup runs
- sql_safety: identifier validation and quoting
- vault_client: HashiCorp Vault integration for database credentials
"""

__version__ = "1.0.0"
__all__ = ["logging", "tracing", "metrics", "sql_safety", "vault_client"]
