"""
Ledger Reconciliation Engine

Pure functions over in-memory snapshots of a group's ledger:
- Split allocation of an expense total in integer minor units
- Per-participant balance aggregation (paid, owed, net)
- Greedy simplification of net balances into settlement transactions
"""

from .models import (
    SplitPolicy,
    Participant,
    Expense,
    SplitEntry,
    Balance,
    SettlementTransaction,
)
from .errors import (
    SplitError,
    InvalidAmount,
    NoParticipants,
    UnsupportedPolicy,
    SplitMismatch,
)
from .allocator import (
    RECONCILIATION_TOLERANCE,
    allocate,
    check_reconciliation,
    split_equally,
    to_split_entries,
)
from .balances import aggregate_balances, net_drift
from .simplifier import simplify

__all__ = [
    "SplitPolicy",
    "Participant",
    "Expense",
    "SplitEntry",
    "Balance",
    "SettlementTransaction",
    "SplitError",
    "InvalidAmount",
    "NoParticipants",
    "UnsupportedPolicy",
    "SplitMismatch",
    "RECONCILIATION_TOLERANCE",
    "allocate",
    "check_reconciliation",
    "split_equally",
    "to_split_entries",
    "aggregate_balances",
    "net_drift",
    "simplify",
]
