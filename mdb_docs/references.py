"""
Document references.

A field of an entity holds either a plain value or a Reference. A Reference
is stored as a bson.DBRef and becomes an inline dict ({"id": ..., **fields})
once the gateway hydrates it.
"""

from dataclasses import dataclass
from typing import Any

from bson import DBRef, ObjectId


def to_object_id(id: Any) -> Any:
    """Convert a string id to ObjectId when it is a valid one, else return it unchanged."""
    if isinstance(id, str) and ObjectId.is_valid(id):
        return ObjectId(id)
    return id


@dataclass(frozen=True)
class Reference:
    """
    Opaque locator of a document in a collection.

    Example:
        category = categories.get_doc_ref("65f0c0ffee0000000000abcd")
        await incomes.create(Income(amount=100, category=category))
    """

    collection: str
    id: str

    def to_dbref(self) -> DBRef:
        return DBRef(self.collection, to_object_id(self.id))

    @classmethod
    def from_dbref(cls, ref: DBRef) -> "Reference":
        return cls(collection=ref.collection, id=str(ref.id))


def encode_value(value: Any) -> Any:
    """Translate References into their stored form, at any depth of lists and dicts."""
    if isinstance(value, Reference):
        return value.to_dbref()
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    if isinstance(value, dict):
        return {key: encode_value(item) for key, item in value.items()}
    return value


def decode_value(value: Any) -> Any:
    """
    Read a declared reference field back: a DBRef, or a list of them, becomes
    Reference values. Hydrated dicts and anything else pass through.
    """
    if isinstance(value, DBRef):
        return Reference.from_dbref(value)
    if isinstance(value, list):
        return [decode_value(item) for item in value]
    return value
