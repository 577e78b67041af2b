"""
Per-collection entity services.
"""

from .base import EntityService
from .incomes import Income, IncomeService

__all__ = [
    "EntityService",
    "Income",
    "IncomeService",
]
