import logging
from typing import Iterable

from .models import Balance, SettlementTransaction

logger = logging.getLogger(__name__)


def simplify(balances: Iterable[Balance]) -> list[SettlementTransaction]:
    """Greedily match the largest debtor with the largest creditor.

    Produces at most ``creditors + debtors - 1`` transfers. This is a
    heuristic, not a minimum-transaction solver. Sorting is stable, so
    participants with equal magnitudes keep their input order.

    The input is expected to sum to zero. Otherwise whatever magnitude is
    left on the last open cursor is dropped.
    """
    creditors = []
    debtors = []
    for b in balances:
        if b.net_minor > 0:
            creditors.append([b.participant_id, b.net_minor])
        elif b.net_minor < 0:
            debtors.append([b.participant_id, -b.net_minor])

    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1], reverse=True)

    transactions = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]
        amount = min(debtor[1], creditor[1])

        if amount > 0:
            transactions.append(SettlementTransaction(
                from_participant_id=debtor[0],
                to_participant_id=creditor[0],
                amount_minor=amount,
            ))

        debtor[1] -= amount
        creditor[1] -= amount

        if debtor[1] == 0:
            i += 1
        if creditor[1] == 0:
            j += 1

    residual = sum(d[1] for d in debtors[i:]) - sum(c[1] for c in creditors[j:])
    if residual:
        logger.warning("Balances do not sum to zero; %s minor units left unsettled", residual)

    return transactions
