"""
Shared Expense Groups

This module provides:
- In-memory storage of groups, persons, expenses and their split entries
- Expense entry with split allocation validated to the minor unit
- Live balances and settlement plans, frozen when a group is closed
- Plain-text share summaries and JSON backup export/import
"""

from .models import (
    Group,
    Person,
    GroupExpense,
    Settlement,
    SettlementPlan,
    LedgerExport,
)
from .service import (
    GroupService,
    GroupServiceError,
    GroupNotFoundError,
    PersonNotFoundError,
    ExpenseNotFoundError,
    GroupClosedError,
)

__all__ = [
    "Group",
    "Person",
    "GroupExpense",
    "Settlement",
    "SettlementPlan",
    "LedgerExport",
    "GroupService",
    "GroupServiceError",
    "GroupNotFoundError",
    "PersonNotFoundError",
    "ExpenseNotFoundError",
    "GroupClosedError",
]
