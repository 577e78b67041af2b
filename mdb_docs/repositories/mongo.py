"""
MongoDB Repository Implementation

Implements the Repository interface on top of a motor database. Reads
hydrate declared reference fields; filtered deletes run as one atomic batch.
"""

import asyncio
import dataclasses
import logging
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from bson import DBRef
from pymongo.errors import PyMongoError

from ..config import DocsConfig
from ..constants import MONGO_ID_FIELD
from ..exceptions import DocumentNotFoundError, MongoDocsError, PartialBatchDeleteError
from ..observability.logging import get_logger, log_operation, operation_context
from ..query import build_filter, build_sort
from ..references import to_object_id
from .base import Entity, Repository

logger = get_logger(__name__)

T = TypeVar("T", bound=Entity)


class MongoRepository(Repository[T], Generic[T]):
    """
    MongoDB implementation of the Repository interface.

    Example:
        incomes = MongoRepository(db, "incomes", Income)

        income = await incomes.create(Income(amount=100))
        await incomes.update({"amount": 150}, income.id)
        recent = await incomes.get(
            where=Where("amount", ">=", 100), order_by=OrderBy("date", "desc")
        )
        await incomes.delete(where=[("amount", "<", 10)])
    """

    def __init__(
        self,
        database: Any,  # AsyncIOMotorDatabase
        collection_name: str,
        entity_class: type[T],
        dangling_references: str | None = None,
        use_transactions: bool | None = None,
        config: DocsConfig | None = None,
    ):
        """
        Initialize the MongoDB repository.

        Args:
            database: Motor database the collection lives in
            collection_name: Name of the collection
            entity_class: Entity subclass for this repository
            dangling_references: "keep" or "raise"; defaults to the config value
            use_transactions: Run filtered deletes in a transaction; defaults
                to the config value
            config: Configuration to take defaults from (environment if None)
        """
        if dangling_references is None or use_transactions is None:
            config = config or DocsConfig()
            if dangling_references is None:
                dangling_references = config.dangling_references
            if use_transactions is None:
                use_transactions = config.use_transactions

        super().__init__(collection_name, entity_class, dangling_references)
        self._database = database
        self._collection = database[collection_name]
        self._use_transactions = use_transactions

    @contextmanager
    def _operation(self, operation: str, **context: Any) -> Iterator[None]:
        """Bind the operation to log records in the block and log its outcome."""
        with operation_context(
            collection_name=self._collection_name, operation=operation, **context
        ):
            start = time.perf_counter()
            try:
                yield
            except (MongoDocsError, PyMongoError) as e:
                # Driver failures are errors; our own validation failures are warnings
                level = logging.WARNING if isinstance(e, MongoDocsError) else logging.ERROR
                log_operation(
                    logger,
                    operation,
                    level=level,
                    success=False,
                    duration_ms=(time.perf_counter() - start) * 1000,
                    error=str(e),
                )
                raise
            log_operation(logger, operation, duration_ms=(time.perf_counter() - start) * 1000)

    async def get(
        self,
        id: str | None = None,
        where: Any = None,
        order_by: Any = None,
    ) -> T | list[T] | None:
        if id:
            with self._operation("get", document_id=id):
                document = await self._collection.find_one({MONGO_ID_FIELD: to_object_id(id)})
                if document is None:
                    return None
                await self.hydrate_document_reference(document)
                return self._to_entity(document)

        with self._operation("query"):
            cursor = self._collection.find(build_filter(where))
            sort = build_sort(order_by)
            if sort:
                cursor = cursor.sort(sort)
            documents = await cursor.to_list(length=None)

            await asyncio.gather(*(self.hydrate_document_reference(d) for d in documents))
            return [self._to_entity(document) for document in documents]

    async def create(self, data: T) -> T:
        with self._operation("create"):
            document = data.to_dict()
            document.pop(MONGO_ID_FIELD, None)

            result = await self._collection.insert_one(document)
            created = dataclasses.replace(data, id=str(result.inserted_id))
            logger.debug(f"Added {self._entity_class.__name__} with id={created.id}")
        return created

    async def update(self, data: T | Mapping[str, Any], id: str) -> None:
        with self._operation("update", document_id=id):
            fields = self._update_fields(data, id)
            result = await self._collection.update_one(
                {MONGO_ID_FIELD: to_object_id(id)}, {"$set": fields}
            )
            if result.matched_count == 0:
                raise DocumentNotFoundError(self._collection_name, str(id))

    async def delete(self, id: str | None = None, where: Any = None) -> int:
        with self._operation("delete", document_id=id):
            self._check_delete_args(id, where)

            if id:
                result = await self._collection.delete_one({MONGO_ID_FIELD: to_object_id(id)})
                return result.deleted_count

            batch_filter = build_filter(where)
            if not self._use_transactions:
                return await self._delete_matching(batch_filter, session=None)

            client = self._database.client
            async with await client.start_session() as session:
                async with session.start_transaction():
                    return await self._delete_matching(batch_filter, session=session)

    async def _delete_matching(self, batch_filter: dict[str, Any], session: Any) -> int:
        """
        Delete every document matching ``batch_filter`` in one delete_many.

        Inside a transaction a short count aborts the whole batch; without one
        it is reported as partially applied.
        """
        cursor = self._collection.find(
            batch_filter, projection={MONGO_ID_FIELD: 1}, session=session
        )
        ids = [document[MONGO_ID_FIELD] for document in await cursor.to_list(length=None)]
        if not ids:
            return 0

        result = await self._collection.delete_many(
            {MONGO_ID_FIELD: {"$in": ids}}, session=session
        )
        if result.deleted_count != len(ids):
            raise PartialBatchDeleteError(
                self._collection_name,
                expected=len(ids),
                deleted=result.deleted_count,
                rolled_back=session is not None,
                document_ids=[str(i) for i in ids],
            )

        logger.debug(f"Batch deleted {len(ids)} documents from '{self._collection_name}'")
        return result.deleted_count

    async def exists(self, id: str) -> bool:
        with self._operation("exists", document_id=id):
            document = await self._collection.find_one(
                {MONGO_ID_FIELD: to_object_id(id)}, projection={MONGO_ID_FIELD: 1}
            )
            return document is not None

    async def count(self, where: Any = None) -> int:
        with self._operation("count"):
            return await self._collection.count_documents(build_filter(where))

    async def _fetch_reference(self, ref: DBRef) -> dict[str, Any] | None:
        database = self._database
        if ref.database and ref.database != database.name:
            database = database.client[ref.database]
        return await database[ref.collection].find_one({MONGO_ID_FIELD: ref.id})
