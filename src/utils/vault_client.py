"""
HashiCorp Vault client for fetching database credentials

Reads the catalog database credentials from the Vault KV v2 secrets engine.
"""

import logging
import os
import re
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

SUPPORTED_DATABASE_TYPES = ("postgresql", "mysql", "sqlserver")

DEFAULT_PORTS = {
    "postgresql": 5432,
    "mysql": 3306,
    "sqlserver": 1433,
}


class VaultClient:
    """
    HashiCorp Vault client for secrets management

    Uses the KV v2 secrets engine; credentials live under
    ``secret/database/<database_type>``.
    """

    def __init__(
        self,
        vault_addr: Optional[str] = None,
        vault_token: Optional[str] = None,
        namespace: Optional[str] = None
    ):
        """
        Initialize Vault client

        Args:
            vault_addr: Vault server address (default: from VAULT_ADDR env var)
            vault_token: Vault authentication token (default: from VAULT_TOKEN env var)
            namespace: Vault namespace (optional, for Vault Enterprise)

        Raises:
            ValueError: If vault_addr or vault_token are not provided
        """
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_token = vault_token or os.getenv("VAULT_TOKEN")
        self.namespace = namespace

        if not self.vault_addr:
            raise ValueError(
                "Vault address not provided. Set VAULT_ADDR environment variable "
                "or pass vault_addr parameter."
            )

        if not self.vault_token:
            raise ValueError(
                "Vault token not provided. Set VAULT_TOKEN environment variable "
                "or pass vault_token parameter."
            )

        self.vault_addr = self.vault_addr.rstrip("/")

        self.headers = {
            "X-Vault-Token": self.vault_token,
            "Content-Type": "application/json"
        }

        if self.namespace:
            self.headers["X-Vault-Namespace"] = self.namespace

        logger.debug(f"Initialized Vault client for {self.vault_addr}")

    def get_secret(self, secret_path: str) -> Dict[str, Any]:
        """
        Fetch secret from Vault KV v2 secrets engine

        Args:
            secret_path: Path to secret (e.g., "secret/database/mysql")

        Returns:
            Dictionary containing secret data

        Raises:
            ValueError: If secret_path is invalid or holds no data
            requests.RequestException: If Vault request fails
        """
        if not secret_path or not isinstance(secret_path, str):
            raise ValueError("secret_path must be a non-empty string")

        if '..' in secret_path or secret_path.startswith('//'):
            raise ValueError(
                f"Invalid secret_path: {secret_path}. "
                "Path traversal attempts are not allowed."
            )

        if not re.match(r'^[a-zA-Z0-9/_-]+$', secret_path):
            raise ValueError(
                f"Invalid secret_path: {secret_path}. "
                "Only alphanumeric characters, slashes, underscores, and hyphens are allowed."
            )

        # KV v2 requires /data/ after the mount point
        if "/data/" not in secret_path:
            parts = secret_path.split("/", 1)
            if len(parts) == 2:
                secret_path = f"{parts[0]}/data/{parts[1]}"
            else:
                secret_path = f"{secret_path}/data"

        url = f"{self.vault_addr}/v1/{secret_path}"
        logger.debug(f"Fetching secret from: {url}")

        response = requests.get(url, headers=self.headers, timeout=10)

        if response.status_code == 404:
            raise ValueError(f"Secret not found at path: {secret_path}")

        response.raise_for_status()

        secret_data = response.json().get("data", {}).get("data", {})

        if not secret_data:
            raise ValueError(f"No data found in secret at path: {secret_path}")

        return secret_data

    def get_database_credentials(self, database_type: str) -> Dict[str, Any]:
        """
        Fetch catalog database credentials from Vault

        Args:
            database_type: One of "postgresql", "mysql" or "sqlserver"

        Returns:
            Dictionary with host, port, database, username and password

        Raises:
            ValueError: If database_type is invalid or credentials are incomplete
        """
        if database_type not in SUPPORTED_DATABASE_TYPES:
            raise ValueError(
                f"Unsupported database_type: {database_type}. "
                f"Must be one of: {', '.join(SUPPORTED_DATABASE_TYPES)}."
            )

        secret_data = self.get_secret(f"secret/database/{database_type}")

        required_fields = ["host", "database", "username", "password"]
        missing_fields = [
            field for field in required_fields if field not in secret_data
        ]

        if missing_fields:
            raise ValueError(
                f"Missing required fields in secret: {', '.join(missing_fields)}"
            )

        secret_data.setdefault("port", DEFAULT_PORTS[database_type])

        logger.info(f"Fetched {database_type} credentials from Vault")

        return secret_data
