"""
Configuration management for MDB_DOCS.

Values come from explicit constructor arguments first, then environment
variables, then the defaults in mdb_docs.constants.
"""

import os

from .constants import (
    DANGLING_REFERENCE_POLICIES,
    DEFAULT_DANGLING_REFERENCE_POLICY,
    DEFAULT_MAX_POOL_SIZE,
    DEFAULT_MIN_POOL_SIZE,
    DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
)
from .exceptions import ConfigurationError


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class DocsConfig:
    """
    Document gateway configuration.

    Example:
        # Using environment variables
        config = DocsConfig()
        db = get_database(config)

        # Or using direct parameters
        config = DocsConfig(
            mongo_uri="mongodb://localhost:27017",
            db_name="budget",
            dangling_references="raise",
        )
    """

    def __init__(
        self,
        mongo_uri: str | None = None,
        db_name: str | None = None,
        max_pool_size: int | None = None,
        min_pool_size: int | None = None,
        server_selection_timeout_ms: int | None = None,
        dangling_references: str | None = None,
        use_transactions: bool | None = None,
    ):
        """
        Initialize configuration.

        Args:
            mongo_uri: MongoDB connection URI (defaults to MONGO_URI env var)
            db_name: Database name (defaults to DB_NAME env var)
            max_pool_size: Maximum connection pool size (MONGO_MAX_POOL_SIZE)
            min_pool_size: Minimum connection pool size (MONGO_MIN_POOL_SIZE)
            server_selection_timeout_ms: Server selection timeout in ms
                (MONGO_SERVER_SELECTION_TIMEOUT_MS)
            dangling_references: "keep" or "raise" (MDB_DOCS_DANGLING_REFERENCES)
            use_transactions: Run batch deletes inside a transaction
                (MDB_DOCS_USE_TRANSACTIONS, default true)
        """
        self.mongo_uri = mongo_uri or os.getenv("MONGO_URI", "")
        self.db_name = db_name or os.getenv("DB_NAME", "")
        self.max_pool_size = max_pool_size or int(
            os.getenv("MONGO_MAX_POOL_SIZE", str(DEFAULT_MAX_POOL_SIZE))
        )
        self.min_pool_size = min_pool_size or int(
            os.getenv("MONGO_MIN_POOL_SIZE", str(DEFAULT_MIN_POOL_SIZE))
        )
        self.server_selection_timeout_ms = server_selection_timeout_ms or int(
            os.getenv(
                "MONGO_SERVER_SELECTION_TIMEOUT_MS",
                str(DEFAULT_SERVER_SELECTION_TIMEOUT_MS),
            )
        )
        self.dangling_references = (
            dangling_references
            or os.getenv("MDB_DOCS_DANGLING_REFERENCES", DEFAULT_DANGLING_REFERENCE_POLICY)
        ).lower()
        if use_transactions is None:
            use_transactions = _env_bool("MDB_DOCS_USE_TRANSACTIONS", True)
        self.use_transactions = use_transactions

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: If required configuration is missing or invalid
        """
        if not self.mongo_uri:
            raise ConfigurationError(
                "mongo_uri is required (set MONGO_URI environment variable or pass directly)",
                config_key="mongo_uri",
            )

        if not self.db_name:
            raise ConfigurationError(
                "db_name is required (set DB_NAME environment variable or pass directly)",
                config_key="db_name",
            )

        if self.max_pool_size < 1:
            raise ConfigurationError(
                f"max_pool_size must be >= 1, got {self.max_pool_size}",
                config_key="max_pool_size",
                config_value=self.max_pool_size,
            )

        if self.min_pool_size < 1:
            raise ConfigurationError(
                f"min_pool_size must be >= 1, got {self.min_pool_size}",
                config_key="min_pool_size",
                config_value=self.min_pool_size,
            )

        if self.min_pool_size > self.max_pool_size:
            raise ConfigurationError(
                f"min_pool_size ({self.min_pool_size}) cannot be greater than "
                f"max_pool_size ({self.max_pool_size})",
                config_key="min_pool_size",
                config_value=self.min_pool_size,
            )

        if self.server_selection_timeout_ms < 1000:
            raise ConfigurationError(
                f"server_selection_timeout_ms must be >= 1000, got "
                f"{self.server_selection_timeout_ms}",
                config_key="server_selection_timeout_ms",
                config_value=self.server_selection_timeout_ms,
            )

        if self.dangling_references not in DANGLING_REFERENCE_POLICIES:
            raise ConfigurationError(
                f"dangling_references must be one of {DANGLING_REFERENCE_POLICIES}, "
                f"got {self.dangling_references!r}",
                config_key="dangling_references",
                config_value=self.dangling_references,
            )
