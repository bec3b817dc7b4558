"""
Unit Tests for the Balance Aggregator
"""

import pytest

from reconcile.allocator import allocate, to_split_entries
from reconcile.balances import aggregate_balances, net_drift
from reconcile.models import Expense, Participant, SplitEntry


PEOPLE = [
    Participant(id="a", name="Alice"),
    Participant(id="b", name="Bob"),
    Participant(id="c", name="Carol"),
]


def _expense(expense_id, paid_by, amount_minor):
    return Expense(id=expense_id, paid_by=paid_by, amount_minor=amount_minor)


class TestAggregation:
    """Tests for folding expenses and splits into balances."""

    def test_single_equal_expense(self):
        """Alice pays 100 split three ways; she owes the first extra unit."""
        expense = _expense("e1", "a", 100)
        splits = to_split_entries("e1", allocate(100, "equal", ["a", "b", "c"]))

        balances = aggregate_balances(PEOPLE, [expense], splits)

        assert [(b.participant_id, b.paid_minor, b.owed_minor, b.net_minor) for b in balances] == [
            ("a", 100, 34, 66),
            ("b", 0, 33, -33),
            ("c", 0, 33, -33),
        ]
        assert net_drift(balances) == 0

    def test_inactive_participants_are_included(self):
        """Everyone appears in the output, in input order, even with no activity."""
        balances = aggregate_balances(PEOPLE, [], [])

        assert [b.name for b in balances] == ["Alice", "Bob", "Carol"]
        assert all(b.is_settled for b in balances)

    def test_order_follows_participants_not_balance(self):
        expenses = [_expense("e1", "c", 900)]
        splits = to_split_entries("e1", allocate(900, "equal", ["a", "b", "c"]))

        balances = aggregate_balances(PEOPLE, expenses, splits)

        assert [b.participant_id for b in balances] == ["a", "b", "c"]
        assert balances[2].net_minor == 600

    def test_unknown_references_are_dropped(self):
        """Payments and shares of removed participants contribute nothing."""
        expenses = [_expense("e1", "a", 300), _expense("e2", "ghost", 500)]
        splits = [
            SplitEntry(expense_id="e1", participant_id="a", amount_minor=100),
            SplitEntry(expense_id="e1", participant_id="b", amount_minor=100),
            SplitEntry(expense_id="e1", participant_id="ghost", amount_minor=100),
            SplitEntry(expense_id="e2", participant_id="c", amount_minor=500),
        ]

        balances = aggregate_balances(PEOPLE, expenses, splits)

        assert [b.net_minor for b in balances] == [200, -100, -500]

    def test_paid_and_owed_accumulate(self):
        expenses = [_expense("e1", "a", 1000), _expense("e2", "b", 600), _expense("e3", "a", 50)]
        splits = (
            to_split_entries("e1", allocate(1000, "equal", ["a", "b"]))
            + to_split_entries("e2", allocate(600, "equal", ["a", "b", "c"]))
            + to_split_entries("e3", allocate(50, "exact", ["c"], {"c": "0.50"}))
        )

        balances = aggregate_balances(PEOPLE, expenses, splits)
        by_id = {b.participant_id: b for b in balances}

        assert by_id["a"].paid_minor == 1050
        assert by_id["a"].owed_minor == 700
        assert by_id["b"].net_minor == 600 - 700
        assert by_id["c"].owed_minor == 250
        assert net_drift(balances) == 0


class TestZeroSum:
    """Tests for the double-entry property."""

    def test_drift_bounded_by_expense_count(self):
        """Each tolerated split may leave at most one unit of drift."""
        inputs = {"a": "33.333", "b": "33.333", "c": "33.334"}
        expenses = [_expense(f"e{i}", "a", 1000) for i in range(4)]
        splits = []
        for e in expenses:
            splits += to_split_entries(e.id, allocate(1000, "percentage", ["a", "b", "c"], inputs), inputs)

        balances = aggregate_balances(PEOPLE, expenses, splits)

        assert net_drift(balances) == 4
        assert abs(net_drift(balances)) <= len(expenses)

    @pytest.mark.parametrize("total", [1, 7, 100, 1001, 99999])
    def test_exact_splits_sum_to_zero(self, total):
        expenses = [_expense("e1", "b", total), _expense("e2", "c", total + 3)]
        splits = (
            to_split_entries("e1", allocate(total, "equal", ["a", "b", "c"]))
            + to_split_entries("e2", allocate(total + 3, "equal", ["c", "a"]))
        )

        assert net_drift(aggregate_balances(PEOPLE, expenses, splits)) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
