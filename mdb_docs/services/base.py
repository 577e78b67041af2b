"""
Entity services.

An EntityService binds one repository to a fixed collection and entity type
and exposes the four CRUD verbs for it. Subclass it once per collection:

    class IncomeService(EntityService[Income]):
        collection_name = "incomes"
        entity_class = Income
"""

import dataclasses
import logging
from typing import Any, ClassVar, Generic, TypeVar

from ..config import DocsConfig
from ..database import get_database
from ..references import Reference
from ..repositories import Entity, MongoRepository, Repository

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)


class EntityService(Generic[T]):
    """Typed facade over the repository of one collection."""

    collection_name: ClassVar[str]
    entity_class: ClassVar[type[Entity]]

    def __init__(
        self,
        database: Any = None,  # AsyncIOMotorDatabase
        repository: Repository[T] | None = None,
        config: DocsConfig | None = None,
    ):
        """
        Args:
            database: Motor database; the shared client's database from
                ``config`` is used when omitted
            repository: Ready-made repository (e.g. InMemoryRepository in tests)
            config: Configuration for the default database and repository
        """
        if repository is None:
            if database is None:
                database = get_database(config)
            repository = MongoRepository(
                database, self.collection_name, self.entity_class, config=config
            )
        self._repository = repository

    @property
    def repository(self) -> Repository[T]:
        return self._repository

    async def get(
        self,
        id: str | None = None,
        where: Any = None,
        order_by: Any = None,
    ) -> T | list[T] | None:
        return await self._repository.get(id, where, order_by)

    async def create(self, entity: T) -> T:
        # The store assigns identities
        if entity.id is not None:
            logger.debug(f"Dropping caller-supplied id before creating in '{self.collection_name}'")
            entity = dataclasses.replace(entity, id=None)
        return await self._repository.create(entity)

    async def update(self, entity: T | dict[str, Any], id: str) -> None:
        await self._repository.update(entity, id)

    async def delete(self, id: str) -> int:
        return await self._repository.delete(id)

    def get_doc_ref(self, id: str) -> Reference:
        return self._repository.get_doc_ref(id)
