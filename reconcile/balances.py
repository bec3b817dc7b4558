import logging
from typing import Iterable, Sequence

from .models import Balance, Expense, Participant, SplitEntry

logger = logging.getLogger(__name__)


def aggregate_balances(
    participants: Sequence[Participant],
    expenses: Iterable[Expense],
    split_entries: Iterable[SplitEntry],
) -> list[Balance]:
    """Fold expenses and split entries into one balance per participant.

    Participants with no activity are included at zero. Contributions from
    payers or split rows that reference an unknown participant (for instance
    one removed after the fact) are dropped so that history still renders.
    The result keeps the order of ``participants``.
    """
    paid = {p.id: 0 for p in participants}
    owed = {p.id: 0 for p in participants}

    for expense in expenses:
        if expense.paid_by in paid:
            paid[expense.paid_by] += expense.amount_minor
        else:
            logger.debug("Dropping payment of %s by unknown participant %s (expense %s)",
                         expense.amount_minor, expense.paid_by, expense.id)

    for entry in split_entries:
        if entry.participant_id in owed:
            owed[entry.participant_id] += entry.amount_minor
        else:
            logger.debug("Dropping share of %s owed by unknown participant %s (expense %s)",
                         entry.amount_minor, entry.participant_id, entry.expense_id)

    balances = []
    seen = set()
    for p in participants:
        if p.id in seen:
            continue
        seen.add(p.id)
        balances.append(Balance(
            participant_id=p.id,
            name=p.name,
            paid_minor=paid[p.id],
            owed_minor=owed[p.id],
            net_minor=paid[p.id] - owed[p.id],
        ))
    return balances


def net_drift(balances: Iterable[Balance]) -> int:
    """Sum of net balances; zero for a fully reconciled ledger."""
    return sum(b.net_minor for b in balances)
