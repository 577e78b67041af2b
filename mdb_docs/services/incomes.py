"""
Incomes service.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar

from ..references import Reference
from ..repositories import Entity
from .base import EntityService


@dataclass
class Income(Entity):
    """A recorded income. ``category`` references a document in another collection."""

    amount: float | None = None
    description: str | None = None
    date: datetime | None = None
    category: Reference | dict[str, Any] | None = None

    reference_fields: ClassVar[tuple[str, ...]] = ("category",)


class IncomeService(EntityService[Income]):
    collection_name = "incomes"
    entity_class = Income
