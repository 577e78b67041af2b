"""
Shared MongoDB client.

All gateways in a process share a single AsyncIOMotorClient (and therefore a
single connection pool). The client is created lazily on first use.

Usage:
    from mdb_docs.database import get_database, close_shared_client

    db = get_database(DocsConfig())
    incomes = IncomeService(db)
    ...
    close_shared_client()
"""

import logging
import threading

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import (
    ConnectionFailure,
    InvalidOperation,
    OperationFailure,
    ServerSelectionTimeoutError,
)

from ..config import DocsConfig
from ..constants import DEFAULT_MAX_IDLE_TIME_MS

logger = logging.getLogger(__name__)

_shared_client: AsyncIOMotorClient | None = None
# threading.Lock rather than asyncio.Lock: the client may be requested from
# several threads, each with its own event loop
_init_lock = threading.Lock()


def get_shared_mongo_client(
    mongo_uri: str,
    max_pool_size: int,
    min_pool_size: int,
    server_selection_timeout_ms: int,
    max_idle_time_ms: int = DEFAULT_MAX_IDLE_TIME_MS,
) -> AsyncIOMotorClient:
    """
    Gets or creates the shared MongoDB client instance.

    Args:
        mongo_uri: MongoDB connection URI
        max_pool_size: Maximum connection pool size
        min_pool_size: Minimum connection pool size
        server_selection_timeout_ms: Server selection timeout in milliseconds
        max_idle_time_ms: Maximum idle time before closing connections

    Returns:
        Shared AsyncIOMotorClient instance
    """
    global _shared_client

    if _shared_client is not None:
        return _shared_client

    with _init_lock:
        # Another thread may have created it while we waited
        if _shared_client is not None:
            return _shared_client

        logger.info(
            f"Creating shared MongoDB client (max_pool_size={max_pool_size}, "
            f"min_pool_size={min_pool_size})"
        )

        try:
            _shared_client = AsyncIOMotorClient(
                mongo_uri,
                serverSelectionTimeoutMS=server_selection_timeout_ms,
                appname="MDB_DOCS",
                maxPoolSize=max_pool_size,
                minPoolSize=min_pool_size,
                maxIdleTimeMS=max_idle_time_ms,
            )
        except (ConnectionFailure, ServerSelectionTimeoutError, ValueError, TypeError) as e:
            logger.error(f"Failed to create shared MongoDB client: {e}", exc_info=True)
            _shared_client = None
            raise

        return _shared_client


def get_database(config: DocsConfig | None = None) -> AsyncIOMotorDatabase:
    """
    Return the configured database from the shared client.

    Raises:
        ConfigurationError: If the configuration is incomplete or invalid
    """
    config = config or DocsConfig()
    config.validate()
    client = get_shared_mongo_client(
        config.mongo_uri,
        max_pool_size=config.max_pool_size,
        min_pool_size=config.min_pool_size,
        server_selection_timeout_ms=config.server_selection_timeout_ms,
    )
    return client[config.db_name]


async def verify_shared_client() -> bool:
    """
    Ping the server through the shared client.

    Returns:
        True if client is connected and responsive, False otherwise
    """
    if _shared_client is None:
        logger.warning("Shared MongoDB client is None - cannot verify")
        return False

    try:
        await _shared_client.admin.command("ping")
        logger.debug("Shared MongoDB client verification successful")
        return True
    except (
        ConnectionFailure,
        ServerSelectionTimeoutError,
        OperationFailure,
        InvalidOperation,
    ) as e:
        logger.exception(f"Shared MongoDB client verification failed: {e}")
        return False


def close_shared_client() -> None:
    """
    Closes the shared MongoDB client.
    Should be called during application shutdown.
    """
    global _shared_client

    if _shared_client is not None:
        try:
            _shared_client.close()
            logger.info("Shared MongoDB client closed")
        except (InvalidOperation, AttributeError, RuntimeError) as e:
            logger.warning(f"Error closing shared MongoDB client: {e}")
        finally:
            _shared_client = None
