"""
MDB_DOCS - MongoDB document gateway

Generic per-collection CRUD over motor with single-level reference
hydration, plus typed per-entity services.
"""

from .config import DocsConfig
from .database import close_shared_client, get_database
from .exceptions import (
    AmbiguousDeleteError,
    ConfigurationError,
    DanglingReferenceError,
    DocumentNotFoundError,
    MongoDocsError,
    PartialBatchDeleteError,
    QueryValidationError,
)
from .query import OrderBy, Where
from .references import Reference
from .repositories import Entity, InMemoryRepository, MongoRepository, Repository
from .services import EntityService, Income, IncomeService

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "DocsConfig",
    "get_database",
    "close_shared_client",
    # Repositories
    "Entity",
    "Repository",
    "MongoRepository",
    "InMemoryRepository",
    # Queries and references
    "Where",
    "OrderBy",
    "Reference",
    # Services
    "EntityService",
    "Income",
    "IncomeService",
    # Errors
    "MongoDocsError",
    "ConfigurationError",
    "QueryValidationError",
    "AmbiguousDeleteError",
    "DocumentNotFoundError",
    "DanglingReferenceError",
    "PartialBatchDeleteError",
]
