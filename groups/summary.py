from typing import Iterable, Mapping, Sequence

from reconcile.models import Balance, SettlementTransaction
from reconcile.money import format_minor

UNKNOWN_PERSON = "Unknown"


def build_share_message(
    group_name: str,
    currency: str,
    balances: Sequence[Balance],
    transactions: Iterable[SettlementTransaction],
    names: Mapping[str, str],
) -> str:
    """Render a plain-text summary suitable for pasting into a chat.

    Amounts are printed exactly as computed by the engine.
    """
    lines = [f"*{group_name}*", "", "*Settlements:*"]

    transactions = list(transactions)
    if not transactions:
        lines.append("All settled up!")
    for tx in transactions:
        debtor = names.get(tx.from_participant_id, UNKNOWN_PERSON)
        creditor = names.get(tx.to_participant_id, UNKNOWN_PERSON)
        lines.append(f"{debtor} owes {creditor}: {format_minor(tx.amount_minor, currency)}")

    lines.extend(["", "*Balances:*"])
    for b in balances:
        amount = format_minor(abs(b.net_minor), currency)
        if b.net_minor > 0:
            lines.append(f"{b.name}: +{amount}")
        elif b.net_minor < 0:
            lines.append(f"{b.name}: -{amount}")
        else:
            lines.append(f"{b.name}: settled")

    return "\n".join(lines) + "\n"
