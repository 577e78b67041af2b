"""
Unit tests for the entity service facade.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId

from mdb_docs.exceptions import AmbiguousDeleteError
from mdb_docs.references import Reference
from mdb_docs.repositories import InMemoryRepository, MongoRepository
from mdb_docs.services import Income, IncomeService


@pytest.fixture
def income_service(storage) -> IncomeService:
    return IncomeService(repository=InMemoryRepository("incomes", Income, storage=storage))


@pytest.mark.unit
class TestIncomeService:
    @pytest.mark.asyncio
    async def test_income_lifecycle(self, income_service):
        created = await income_service.create(Income(amount=100))
        assert created == Income(id=created.id, amount=100)

        await income_service.update(Income(amount=150), created.id)
        assert await income_service.get(created.id) == Income(id=created.id, amount=150)

        await income_service.delete(created.id)
        assert await income_service.get(created.id) is None

    @pytest.mark.asyncio
    async def test_create_strips_caller_id(self):
        repository = MagicMock()
        repository.create = AsyncMock(side_effect=lambda entity: entity)
        service = IncomeService(repository=repository)
        income = Income(id="caller-id", amount=10)

        await service.create(income)

        sent = repository.create.await_args.args[0]
        assert sent.id is None
        assert sent.amount == 10
        assert income.id == "caller-id"

    @pytest.mark.asyncio
    async def test_created_id_differs_from_supplied_id(self, income_service):
        supplied = str(ObjectId())

        created = await income_service.create(Income(id=supplied, amount=10))

        assert created.id != supplied
        assert await income_service.get(supplied) is None

    @pytest.mark.asyncio
    async def test_get_forwards_query(self):
        repository = MagicMock()
        repository.get = AsyncMock(return_value=[])
        service = IncomeService(repository=repository)

        await service.get(where=("amount", ">", 5), order_by=("date", "desc"))

        repository.get.assert_awaited_once_with(None, ("amount", ">", 5), ("date", "desc"))

    @pytest.mark.asyncio
    async def test_delete_requires_id(self, income_service):
        with pytest.raises(AmbiguousDeleteError):
            await income_service.delete(None)

    def test_get_doc_ref(self, income_service):
        assert income_service.get_doc_ref("abc") == Reference("incomes", "abc")

    def test_builds_mongo_repository_from_database(self, mock_database):
        service = IncomeService(mock_database)

        assert isinstance(service.repository, MongoRepository)
        assert service.repository.collection_name == "incomes"
        assert service.repository.entity_class is Income

    def test_uses_shared_database_by_default(self, mock_database):
        with patch("mdb_docs.services.base.get_database", return_value=mock_database) as get_db:
            service = IncomeService()

        get_db.assert_called_once_with(None)
        assert isinstance(service.repository, MongoRepository)
