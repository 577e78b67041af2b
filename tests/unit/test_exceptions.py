"""
Unit tests for custom exceptions.
"""

import pytest

from mdb_docs.exceptions import (
    AmbiguousDeleteError,
    ConfigurationError,
    DanglingReferenceError,
    DocumentNotFoundError,
    MongoDocsError,
    PartialBatchDeleteError,
    QueryValidationError,
)


@pytest.mark.unit
class TestMongoDocsError:
    def test_is_runtime_error(self):
        assert isinstance(MongoDocsError("boom"), RuntimeError)

    def test_message_without_context(self):
        assert str(MongoDocsError("boom")) == "boom"

    def test_message_with_context(self):
        error = MongoDocsError("boom", context={"collection_name": "incomes"})

        assert str(error) == "boom (context: collection_name=incomes)"


@pytest.mark.unit
class TestSubclasses:
    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("bad"),
            QueryValidationError("bad"),
            AmbiguousDeleteError("incomes", False, False),
            DocumentNotFoundError("incomes", "abc"),
            DanglingReferenceError("category", "categories", "abc"),
            PartialBatchDeleteError("incomes", expected=2, deleted=1, rolled_back=True),
        ],
    )
    def test_all_derive_from_base(self, error):
        assert isinstance(error, MongoDocsError)

    def test_ambiguous_delete_messages(self):
        assert "requires an id" in str(AmbiguousDeleteError("incomes", False, False))
        assert "not both" in str(AmbiguousDeleteError("incomes", True, True))

    def test_document_not_found_context(self):
        error = DocumentNotFoundError("incomes", "abc")

        assert error.context == {"collection_name": "incomes", "document_id": "abc"}
        assert "abc" in str(error)

    def test_partial_batch_states(self):
        rolled_back = PartialBatchDeleteError("incomes", expected=3, deleted=1, rolled_back=True)
        partial = PartialBatchDeleteError("incomes", expected=3, deleted=1, rolled_back=False)

        assert "rolled back" in str(rolled_back)
        assert "partially applied" in str(partial)
        assert partial.document_ids == []

    def test_query_validation_context(self):
        error = QueryValidationError("bad", query_type="where", field_path="$where")

        assert error.context == {"query_type": "where", "field_path": "$where"}
