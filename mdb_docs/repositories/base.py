"""
Abstract Repository Pattern

Defines the per-collection gateway contract shared by the MongoDB
implementation and the in-memory test double, together with the Entity base
class and the reference hydration step both of them use.
"""

import asyncio
import copy
import dataclasses
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

from bson import DBRef, ObjectId

from ..constants import (
    DANGLING_RAISE,
    DANGLING_REFERENCE_POLICIES,
    DEFAULT_DANGLING_REFERENCE_POLICY,
    ID_FIELD,
    MONGO_ID_FIELD,
)
from ..exceptions import (
    AmbiguousDeleteError,
    ConfigurationError,
    DanglingReferenceError,
    DocumentNotFoundError,
    QueryValidationError,
)
from ..observability.logging import get_logger
from ..query import get_field, normalize_order_by, normalize_where
from ..references import Reference, decode_value, encode_value, to_object_id

logger = get_logger(__name__)


@dataclass
class Entity:
    """
    Base class for domain entities.

    The store assigns ``id`` on creation. Subclasses list the fields that may
    hold a Reference in ``reference_fields``; only those are hydrated.

    Example:
        @dataclass
        class Income(Entity):
            amount: float | None = None
            category: Reference | dict | None = None

            reference_fields: ClassVar[tuple[str, ...]] = ("category",)
    """

    id: str | None = None

    reference_fields: ClassVar[tuple[str, ...]] = ()

    def to_dict(self) -> dict[str, Any]:
        """
        Convert entity to a document for storage.

        None values are left out, so an entity with only some fields set
        doubles as a partial update. Hydrated (dict) values of reference
        fields are read-side views and are never written back.
        """
        data = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name == ID_FIELD:
                data[MONGO_ID_FIELD] = to_object_id(value)
            elif f.name in self.reference_fields and isinstance(value, dict):
                continue
            else:
                data[f.name] = encode_value(value)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Entity | None":
        """Create entity from a stored (possibly hydrated) document."""
        if data is None:
            return None

        data = dict(data)
        if MONGO_ID_FIELD in data:
            data[ID_FIELD] = str(data.pop(MONGO_ID_FIELD))

        field_names = {f.name for f in dataclasses.fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in field_names:
                continue
            if key in cls.reference_fields:
                value = decode_value(value)
            values[key] = value

        return cls(**values)


T = TypeVar("T", bound=Entity)


class Repository(ABC, Generic[T]):
    """
    Per-collection data access contract.

    get / create / update / delete plus reference hydration and document
    locators. Implementations only supply the store calls; argument checks
    and hydration live here.
    """

    def __init__(
        self,
        collection_name: str,
        entity_class: type[T],
        dangling_references: str = DEFAULT_DANGLING_REFERENCE_POLICY,
    ):
        if dangling_references not in DANGLING_REFERENCE_POLICIES:
            raise ConfigurationError(
                f"dangling_references must be one of {DANGLING_REFERENCE_POLICIES}",
                config_key="dangling_references",
                config_value=dangling_references,
            )
        self._collection_name = collection_name
        self._entity_class = entity_class
        self._dangling_references = dangling_references

    @property
    def collection_name(self) -> str:
        return self._collection_name

    @property
    def entity_class(self) -> type[T]:
        return self._entity_class

    @abstractmethod
    async def get(
        self,
        id: str | None = None,
        where: Any = None,
        order_by: Any = None,
    ) -> T | list[T] | None:
        """
        Get one entity by id, or every entity matching ``where``.

        Args:
            id: Entity ID. When given, ``where`` and ``order_by`` are ignored.
            where: A Where, a (field_path, op, value) triple, or a sequence of
                either; all predicates are AND-combined.
            order_by: An OrderBy, a field path or a (field_path, direction) pair.

        Returns:
            The hydrated entity (None if missing) when ``id`` is given,
            otherwise the list of hydrated matches in store order.
        """

    @abstractmethod
    async def create(self, data: T) -> T:
        """
        Persist a new entity.

        Returns:
            A copy of ``data`` carrying the store-assigned id
        """

    @abstractmethod
    async def update(self, data: T | Mapping[str, Any], id: str) -> None:
        """
        Merge the given fields into the document at ``id``.

        Raises:
            DocumentNotFoundError: If no document has that id
        """

    @abstractmethod
    async def delete(self, id: str | None = None, where: Any = None) -> int:
        """
        Delete one document by id, or every match of ``where`` as one batch.

        Returns:
            Number of deleted documents

        Raises:
            AmbiguousDeleteError: Unless exactly one of id / where is given
            PartialBatchDeleteError: If a batch did not apply all-or-nothing
        """

    @abstractmethod
    async def exists(self, id: str) -> bool:
        pass

    @abstractmethod
    async def count(self, where: Any = None) -> int:
        pass

    @abstractmethod
    async def _fetch_reference(self, ref: DBRef) -> dict[str, Any] | None:
        """Load the document a reference points to, or None if it is gone."""

    def get_doc_ref(self, id: str) -> Reference:
        """Return a locator for ``id`` in this collection without fetching it."""
        return Reference(collection=self._collection_name, id=str(id))

    async def hydrate_document_reference(self, document: dict[str, Any]) -> dict[str, Any]:
        """
        Inline the documents behind the declared reference fields.

        Each DBRef-valued reference field becomes ``{"id": ..., **fields}``.
        One level only: references inside the loaded documents stay as they
        are. Resolutions for one document run concurrently.

        Raises:
            DanglingReferenceError: If a target is missing and the policy is
                "raise"
        """
        fields = [
            name
            for name in self._entity_class.reference_fields
            if isinstance(document.get(name), DBRef)
        ]
        if not fields:
            return document

        targets = await asyncio.gather(
            *(self._fetch_reference(document[name]) for name in fields)
        )

        for name, target in zip(fields, targets):
            ref = document[name]
            if target is None:
                if self._dangling_references == DANGLING_RAISE:
                    raise DanglingReferenceError(name, ref.collection, str(ref.id))
                logger.warning(
                    f"Leaving dangling reference unresolved: {self._collection_name}.{name} "
                    f"-> {ref.collection}/{ref.id}"
                )
                continue
            target = dict(target)
            target_id = target.pop(MONGO_ID_FIELD, ref.id)
            document[name] = {ID_FIELD: str(target_id), **target}

        return document

    def _to_entity(self, document: dict[str, Any] | None) -> T | None:
        return self._entity_class.from_dict(document)

    def _update_fields(self, data: T | Mapping[str, Any], id: str) -> dict[str, Any]:
        """Turn update input into the dict of fields to $set."""
        if isinstance(data, Entity):
            fields = data.to_dict()
        elif isinstance(data, Mapping):
            fields = {key: encode_value(value) for key, value in data.items()}
        else:
            raise QueryValidationError(
                f"Update data must be an entity or a mapping, got {type(data).__name__}",
                query_type="update",
            )

        fields.pop(MONGO_ID_FIELD, None)
        fields.pop(ID_FIELD, None)

        for key in fields:
            if key.startswith("$"):
                raise QueryValidationError(
                    f"Update field {key!r} must not be an operator",
                    query_type="update",
                    field_path=key,
                )
        if not fields:
            raise QueryValidationError(
                f"Nothing to update for document '{id}'",
                query_type="update",
            )
        return fields

    def _check_delete_args(self, id: str | None, where: Any) -> None:
        has_where = bool(normalize_where(where))
        if bool(id) == has_where:
            raise AmbiguousDeleteError(self._collection_name, bool(id), has_where)


def _set_path(document: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    target = document
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            target[part] = {}
        target = target[part]
    target[parts[-1]] = value


def _sort_key(value: Any) -> tuple[bool, Any]:
    # Missing and null values sort first, as MongoDB does for ascending sorts
    if value is None:
        return (False, 0)
    return (True, value)


class InMemoryRepository(Repository[T]):
    """
    In-memory repository implementation for testing.

    Documents are kept in their stored form (``_id`` ObjectIds, DBRef
    references) inside ``storage``, a mapping of collection name to
    ``{id: document}``. Repositories sharing the same storage can resolve
    each other's references. The storage models one database named
    ``database_name``; a DBRef naming any other database does not resolve.

    Example:
        storage = {}
        categories = InMemoryRepository("categories", Category, storage=storage)
        incomes = InMemoryRepository("incomes", Income, storage=storage)
    """

    def __init__(
        self,
        collection_name: str,
        entity_class: type[T],
        storage: dict[str, dict[str, dict[str, Any]]] | None = None,
        dangling_references: str = DEFAULT_DANGLING_REFERENCE_POLICY,
        database_name: str = "memory",
    ):
        super().__init__(collection_name, entity_class, dangling_references)
        self._database_name = database_name
        self._storage = storage if storage is not None else {}
        self._storage.setdefault(collection_name, {})

    @property
    def _documents(self) -> dict[str, dict[str, Any]]:
        return self._storage[self._collection_name]

    async def get(
        self,
        id: str | None = None,
        where: Any = None,
        order_by: Any = None,
    ) -> T | list[T] | None:
        if id:
            document = self._documents.get(str(id))
            if document is None:
                return None
            document = await self.hydrate_document_reference(copy.deepcopy(document))
            return self._to_entity(document)

        predicates = normalize_where(where)
        sort_spec = normalize_order_by(order_by)

        documents = [
            copy.deepcopy(document)
            for document in self._documents.values()
            if all(predicate.matches(document) for predicate in predicates)
        ]
        if sort_spec is not None:
            documents.sort(
                key=lambda document: _sort_key(get_field(document, sort_spec.mongo_field)),
                reverse=sort_spec.direction == "desc",
            )

        await asyncio.gather(*(self.hydrate_document_reference(d) for d in documents))
        return [self._to_entity(document) for document in documents]

    async def create(self, data: T) -> T:
        document = copy.deepcopy(data.to_dict())
        document.pop(MONGO_ID_FIELD, None)
        object_id = ObjectId()
        document[MONGO_ID_FIELD] = object_id
        self._documents[str(object_id)] = document
        return dataclasses.replace(data, id=str(object_id))

    async def update(self, data: T | Mapping[str, Any], id: str) -> None:
        fields = self._update_fields(data, id)
        document = self._documents.get(str(id))
        if document is None:
            raise DocumentNotFoundError(self._collection_name, str(id))
        for path, value in fields.items():
            _set_path(document, path, copy.deepcopy(value))

    async def delete(self, id: str | None = None, where: Any = None) -> int:
        self._check_delete_args(id, where)
        if id:
            return 1 if self._documents.pop(str(id), None) is not None else 0

        predicates = normalize_where(where)
        matched = [
            key
            for key, document in self._documents.items()
            if all(predicate.matches(document) for predicate in predicates)
        ]
        for key in matched:
            del self._documents[key]
        return len(matched)

    async def exists(self, id: str) -> bool:
        return str(id) in self._documents

    async def count(self, where: Any = None) -> int:
        predicates = normalize_where(where)
        return sum(
            1
            for document in self._documents.values()
            if all(predicate.matches(document) for predicate in predicates)
        )

    async def _fetch_reference(self, ref: DBRef) -> dict[str, Any] | None:
        if ref.database and ref.database != self._database_name:
            return None
        document = self._storage.get(ref.collection, {}).get(str(ref.id))
        return copy.deepcopy(document) if document is not None else None

    def clear(self) -> None:
        """Clear all documents of this collection (useful for test setup)."""
        self._documents.clear()
