"""
Pytest configuration and shared fixtures for MDB_DOCS tests.

This module provides:
- Mock motor database / collection / session fixtures
- Test entities and in-memory repositories
- Common test utilities
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from mdb_docs.references import Reference
from mdb_docs.repositories import Entity, InMemoryRepository, MongoRepository
from mdb_docs.services import Income


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without a MongoDB server")


# ============================================================================
# TEST ENTITIES
# ============================================================================


@dataclass
class Category(Entity):
    name: str | None = None
    parent: Reference | Dict[str, Any] | None = None

    reference_fields: ClassVar[tuple[str, ...]] = ("parent",)


@dataclass
class Budget(Entity):
    """Holds references inside a list and inside a nested dict."""

    name: str | None = None
    members: List[Any] | None = None
    limits: Dict[str, Any] | None = None

    reference_fields: ClassVar[tuple[str, ...]] = ("members",)


# ============================================================================
# MOCK MONGODB FIXTURES
# ============================================================================


def make_cursor(documents: List[Dict[str, Any]]) -> MagicMock:
    """Create a mock motor cursor returning ``documents``."""
    cursor = MagicMock()
    cursor.sort = MagicMock(return_value=cursor)
    cursor.to_list = AsyncMock(return_value=documents)
    return cursor


def make_collection(name: str) -> MagicMock:
    """Create a mock motor collection with async methods."""
    collection = MagicMock()
    collection.name = name
    collection.find_one = AsyncMock(return_value=None)
    collection.find = MagicMock(return_value=make_cursor([]))
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=0))
    collection.count_documents = AsyncMock(return_value=0)
    return collection


@pytest.fixture
def mock_transaction() -> MagicMock:
    """Async context manager returned by session.start_transaction()."""
    transaction = MagicMock()
    transaction.__aenter__ = AsyncMock(return_value=transaction)
    transaction.__aexit__ = AsyncMock(return_value=False)
    return transaction


@pytest.fixture
def mock_session(mock_transaction: MagicMock) -> MagicMock:
    """Create a mock client session supporting transactions."""
    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    session.start_transaction = MagicMock(return_value=mock_transaction)
    return session


@pytest.fixture
def mock_database(mock_session: MagicMock) -> MagicMock:
    """
    Create a mock motor database.

    ``db[name]`` always returns the same mock collection for a given name.
    """
    collections: Dict[str, MagicMock] = {}

    def get_collection(name: str) -> MagicMock:
        if name not in collections:
            collections[name] = make_collection(name)
        return collections[name]

    db = MagicMock()
    db.name = "test_db"
    db.__getitem__.side_effect = get_collection
    db.client = MagicMock()
    db.client.start_session = AsyncMock(return_value=mock_session)
    return db


@pytest.fixture
def incomes_repository(mock_database: MagicMock) -> MongoRepository:
    return MongoRepository(
        mock_database,
        "incomes",
        Income,
        dangling_references="keep",
        use_transactions=True,
    )


# ============================================================================
# IN-MEMORY FIXTURES
# ============================================================================


@pytest.fixture
def storage() -> Dict[str, Dict[str, Dict[str, Any]]]:
    return {}


@pytest.fixture
def memory_categories(storage) -> InMemoryRepository:
    return InMemoryRepository("categories", Category, storage=storage)


@pytest.fixture
def memory_incomes(storage) -> InMemoryRepository:
    return InMemoryRepository("incomes", Income, storage=storage)


@pytest.fixture
def category_class() -> type:
    return Category


@pytest.fixture
def budget_class() -> type:
    return Budget


@pytest.fixture
def memory_budgets(storage) -> InMemoryRepository:
    return InMemoryRepository("budgets", Budget, storage=storage)
