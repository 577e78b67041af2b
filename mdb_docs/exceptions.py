"""
Custom exceptions for MDB_DOCS.

All errors raised by the gateway itself derive from MongoDocsError, which
keeps compatibility with RuntimeError. Driver errors (pymongo) are never
wrapped and reach the caller unmodified.
"""

from typing import Any, Dict, List, Optional


class MongoDocsError(RuntimeError):
    """
    Base exception for MDB_DOCS errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (collection_name,
                 document_id, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class ConfigurationError(MongoDocsError):
    """
    Raised when configuration is invalid or missing.

    Attributes:
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value


class QueryValidationError(MongoDocsError):
    """
    Raised when a predicate, sort or update payload cannot be translated
    into a MongoDB query.
    """

    def __init__(
        self,
        message: str,
        query_type: Optional[str] = None,
        field_path: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if query_type:
            context["query_type"] = query_type
        if field_path:
            context["field_path"] = field_path
        super().__init__(message, context=context)
        self.query_type = query_type
        self.field_path = field_path


class AmbiguousDeleteError(MongoDocsError):
    """Raised when delete() is called without exactly one of id / where."""

    def __init__(self, collection_name: str, id_given: bool, where_given: bool) -> None:
        if id_given and where_given:
            message = "delete() accepts either an id or a where predicate, not both"
        else:
            message = "delete() requires an id or a where predicate"
        super().__init__(message, context={"collection_name": collection_name})


class DocumentNotFoundError(MongoDocsError):
    """Raised when a write targets a document that does not exist."""

    def __init__(self, collection_name: str, document_id: str) -> None:
        super().__init__(
            f"Document '{document_id}' not found in '{collection_name}'",
            context={"collection_name": collection_name, "document_id": document_id},
        )
        self.collection_name = collection_name
        self.document_id = document_id


class DanglingReferenceError(MongoDocsError):
    """
    Raised during hydration when a reference points to a document that no
    longer exists and the dangling-reference policy is "raise".
    """

    def __init__(self, field: str, ref_collection: str, ref_id: Any) -> None:
        super().__init__(
            f"Reference in field '{field}' points to missing document",
            context={"field": field, "ref_collection": ref_collection, "ref_id": ref_id},
        )
        self.field = field
        self.ref_collection = ref_collection
        self.ref_id = ref_id


class PartialBatchDeleteError(MongoDocsError):
    """
    Raised when a batch delete could not be applied all-or-nothing.

    Attributes:
        expected: Number of documents the batch targeted
        deleted: Number of documents the store reported as deleted
        rolled_back: True when the batch ran in a transaction that was aborted,
                     so nothing was applied
        document_ids: Ids the batch targeted
    """

    def __init__(
        self,
        collection_name: str,
        expected: int,
        deleted: int,
        rolled_back: bool,
        document_ids: Optional[List[str]] = None,
    ) -> None:
        state = "rolled back" if rolled_back else "partially applied"
        super().__init__(
            f"Batch delete {state}: {deleted} of {expected} documents deleted",
            context={
                "collection_name": collection_name,
                "expected": expected,
                "deleted": deleted,
            },
        )
        self.expected = expected
        self.deleted = deleted
        self.rolled_back = rolled_back
        self.document_ids = document_ids or []
