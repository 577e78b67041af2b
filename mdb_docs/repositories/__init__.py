"""
MDB Docs Repository Pattern

Provides the per-collection gateway contract and its MongoDB and in-memory
implementations.

Usage:
    from mdb_docs.repositories import Entity, MongoRepository

    incomes = MongoRepository(db, "incomes", Income)
    income = await incomes.get("65f0c0ffee0000000000abcd")
"""

from .base import Entity, InMemoryRepository, Repository
from .mongo import MongoRepository

__all__ = [
    "Repository",
    "Entity",
    "InMemoryRepository",
    "MongoRepository",
]
