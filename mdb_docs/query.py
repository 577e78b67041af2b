"""
Query composition.

Where predicates and OrderBy specifications are small pydantic models that
translate into MongoDB filter documents and sort specs:

    Where("amount", ">=", 100)          -> {"amount": {"$gte": 100}}
    [Where(...), Where(...)]            -> {"$and": [..., ...]}
    OrderBy("date", "desc")             -> [("date", DESCENDING)]

Predicates can also be evaluated against stored documents, which is what
InMemoryRepository uses.
"""

import operator
from collections.abc import Sequence
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator
from pymongo import ASCENDING, DESCENDING

from .constants import COMPARISON_OPERATORS, ID_FIELD, LIST_OPERATORS, MONGO_ID_FIELD
from .exceptions import QueryValidationError
from .references import encode_value, to_object_id

Operator = Literal[
    "<", "<=", "==", "!=", ">=", ">", "array-contains", "array-contains-any", "in", "not-in"
]

_ORDERING = {
    "<": operator.lt,
    "<=": operator.le,
    ">=": operator.ge,
    ">": operator.gt,
}

_MISSING = object()


def _check_field_path(value: str) -> str:
    if not value:
        raise ValueError("field path must not be empty")
    if any(part.startswith("$") or not part for part in value.split(".")):
        raise ValueError(f"invalid field path {value!r}")
    return value


def _resolve(document: dict[str, Any], path: str) -> Any:
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def get_field(document: dict[str, Any], path: str, default: Any = None) -> Any:
    """Read a dotted field path from a document, ``default`` if absent."""
    value = _resolve(document, path)
    return default if value is _MISSING else value


class Where(BaseModel):
    """A single (field path, operator, value) predicate."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    field_path: str
    op: Operator
    value: Any = None

    def __init__(self, field_path: str, op: str, value: Any = None, **kwargs: Any):
        super().__init__(field_path=field_path, op=op, value=value, **kwargs)

    @field_validator("field_path")
    @classmethod
    def _validate_field_path(cls, value: str) -> str:
        return _check_field_path(value)

    @model_validator(mode="after")
    def _validate_value(self) -> "Where":
        if self.op in LIST_OPERATORS and not isinstance(self.value, (list, tuple, set)):
            raise ValueError(f"operator {self.op!r} requires a list value")
        return self

    @property
    def mongo_field(self) -> str:
        return MONGO_ID_FIELD if self.field_path == ID_FIELD else self.field_path

    def stored_value(self) -> Any:
        """The comparison value in the form it has inside stored documents."""
        convert = to_object_id if self.field_path == ID_FIELD else encode_value
        if self.op in LIST_OPERATORS:
            return [convert(item) for item in self.value]
        return convert(self.value)

    def to_mongo(self) -> dict[str, Any]:
        value = self.stored_value()
        if self.op == "array-contains":
            return {self.mongo_field: {"$elemMatch": {"$eq": value}}}
        if self.op == "array-contains-any":
            return {self.mongo_field: {"$elemMatch": {"$in": value}}}
        return {self.mongo_field: {COMPARISON_OPERATORS[self.op]: value}}

    def matches(self, document: dict[str, Any]) -> bool:
        """Evaluate the predicate against a stored document."""
        actual = _resolve(document, self.mongo_field)
        value = self.stored_value()

        if self.op == "==":
            return actual is not _MISSING and actual == value
        if self.op == "!=":
            return actual is _MISSING or actual != value
        if self.op == "in":
            return actual is not _MISSING and actual in value
        if self.op == "not-in":
            return actual is _MISSING or actual not in value
        if self.op == "array-contains":
            return isinstance(actual, list) and value in actual
        if self.op == "array-contains-any":
            return isinstance(actual, list) and any(item in actual for item in value)

        if actual is _MISSING or actual is None:
            return False
        try:
            return _ORDERING[self.op](actual, value)
        except TypeError:
            return False


class OrderBy(BaseModel):
    """Sort on a field path, ascending unless told otherwise."""

    model_config = ConfigDict(frozen=True)

    field_path: str
    direction: Literal["asc", "desc"] = "asc"

    def __init__(self, field_path: str, direction: str = "asc", **kwargs: Any):
        super().__init__(field_path=field_path, direction=direction, **kwargs)

    @field_validator("field_path")
    @classmethod
    def _validate_field_path(cls, value: str) -> str:
        return _check_field_path(value)

    @property
    def mongo_field(self) -> str:
        return MONGO_ID_FIELD if self.field_path == ID_FIELD else self.field_path

    def to_mongo(self) -> list[tuple[str, int]]:
        return [(self.mongo_field, ASCENDING if self.direction == "asc" else DESCENDING)]


def _coerce_where(item: Any) -> Where:
    if isinstance(item, Where):
        return item
    if isinstance(item, (tuple, list)) and len(item) == 3:
        try:
            return Where(*item)
        except ValidationError as e:
            raise QueryValidationError(
                f"Invalid where predicate {item!r}: {e.errors()[0]['msg']}",
                query_type="where",
            ) from e
    raise QueryValidationError(
        f"Where predicate must be a Where or a (field_path, op, value) triple, got {item!r}",
        query_type="where",
    )


def normalize_where(where: Any) -> list[Where]:
    """
    Turn a predicate argument into a list of Where objects.

    Accepts None, a single Where, a single (field_path, op, value) triple, or a
    sequence of either.
    """
    if where is None:
        return []
    if isinstance(where, Where):
        return [where]
    if (
        isinstance(where, tuple)
        and len(where) == 3
        and isinstance(where[0], str)
        and isinstance(where[1], str)
    ):
        return [_coerce_where(where)]
    if isinstance(where, Sequence) and not isinstance(where, (str, bytes)):
        return [_coerce_where(item) for item in where]
    raise QueryValidationError(
        f"Unsupported where argument of type {type(where).__name__}",
        query_type="where",
    )


def normalize_order_by(order_by: Any) -> OrderBy | None:
    if order_by is None:
        return None
    if isinstance(order_by, OrderBy):
        return order_by
    try:
        if isinstance(order_by, str):
            return OrderBy(order_by)
        if isinstance(order_by, (tuple, list)) and 1 <= len(order_by) <= 2:
            return OrderBy(*order_by)
    except ValidationError as e:
        raise QueryValidationError(
            f"Invalid order_by {order_by!r}: {e.errors()[0]['msg']}",
            query_type="order_by",
        ) from e
    raise QueryValidationError(
        f"order_by must be an OrderBy, a field path or a (field_path, direction) pair, "
        f"got {order_by!r}",
        query_type="order_by",
    )


def build_filter(where: Any) -> dict[str, Any]:
    """Build a MongoDB filter document; all predicates are AND-combined."""
    clauses = [item.to_mongo() for item in normalize_where(where)]
    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def build_sort(order_by: Any) -> list[tuple[str, int]] | None:
    spec = normalize_order_by(order_by)
    return spec.to_mongo() if spec else None
