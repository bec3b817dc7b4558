from decimal import Decimal, InvalidOperation
from typing import Hashable, Iterable, Mapping, Optional, Sequence, TypeVar, Union

from .errors import InvalidAmount, NoParticipants, SplitMismatch, UnsupportedPolicy
from .models import SplitEntry, SplitPolicy
from .money import parse_decimal, round_half_up, to_minor

# Rounding slack accepted between an expense total and the sum of its shares.
RECONCILIATION_TOLERANCE = 1

P = TypeVar("P", bound=Hashable)


def resolve_policy(policy: Union[SplitPolicy, str]) -> SplitPolicy:
    try:
        resolved = SplitPolicy(policy)
    except ValueError:
        raise UnsupportedPolicy(policy) from None
    if resolved == SplitPolicy.SHARES:
        raise UnsupportedPolicy(resolved)
    return resolved


def split_equally(total_minor: int, participants: Sequence[P]) -> dict[P, int]:
    """Divide ``total_minor`` evenly, handing out the remainder by position.

    Every participant gets ``total_minor // n``; the first ``total_minor % n``
    participants, in the order given, get one extra minor unit each. The
    shares always sum to ``total_minor`` exactly.
    """
    selected = list(dict.fromkeys(participants))
    if not selected:
        raise NoParticipants()
    base, remainder = divmod(total_minor, len(selected))
    return {p: base + (1 if i < remainder else 0) for i, p in enumerate(selected)}


def check_reconciliation(total_minor: int, shares: Mapping[P, int]) -> int:
    """Return ``total - sum(shares)`` or raise ``SplitMismatch`` past the tolerance."""
    difference = total_minor - sum(shares.values())
    if abs(difference) > RECONCILIATION_TOLERANCE:
        raise SplitMismatch(difference)
    return difference


def _raw_input(raw_inputs: Mapping, participant) -> Optional[Decimal]:
    value = raw_inputs.get(participant)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        parsed = parse_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(value, participant_id=participant) from None
    if parsed < 0:
        raise InvalidAmount(value, participant_id=participant)
    return parsed


def _split_exact(selected: Sequence[P], raw_inputs: Mapping) -> dict[P, int]:
    shares = {}
    for p in selected:
        value = _raw_input(raw_inputs, p)
        if value is not None:
            try:
                shares[p] = to_minor(value)
            except InvalidOperation:
                raise InvalidAmount(raw_inputs.get(p), participant_id=p) from None
    return shares


def _split_percentage(total_minor: int, selected: Sequence[P], raw_inputs: Mapping) -> dict[P, int]:
    shares = {}
    for p in selected:
        percent = _raw_input(raw_inputs, p)
        if percent is not None:
            try:
                shares[p] = round_half_up(percent * total_minor / 100)
            except InvalidOperation:
                raise InvalidAmount(raw_inputs.get(p), participant_id=p) from None
    return shares


def allocate(
    total_minor: int,
    policy: Union[SplitPolicy, str],
    participants: Iterable[P],
    raw_inputs: Optional[Mapping[P, object]] = None,
) -> dict[P, int]:
    """Resolve each selected participant's share of ``total_minor``.

    ``raw_inputs`` holds the per-participant exact amounts (major units) or
    percentages for the non-equal policies. Either the full mapping is
    returned or a ``SplitError`` is raised; shares that fall outside the
    reconciliation tolerance raise ``SplitMismatch``.
    """
    if total_minor <= 0:
        raise InvalidAmount(total_minor)

    resolved = resolve_policy(policy)
    selected = list(dict.fromkeys(participants))
    if not selected:
        raise NoParticipants()

    if resolved == SplitPolicy.EQUAL:
        return split_equally(total_minor, selected)

    raw_inputs = raw_inputs or {}
    if resolved == SplitPolicy.EXACT:
        shares = _split_exact(selected, raw_inputs)
    else:
        shares = _split_percentage(total_minor, selected, raw_inputs)

    check_reconciliation(total_minor, shares)
    return shares


def to_split_entries(
    expense_id: str,
    shares: Mapping[str, int],
    raw_inputs: Optional[Mapping[str, object]] = None,
) -> list[SplitEntry]:
    raw_inputs = raw_inputs or {}
    entries = []
    for participant_id, amount_minor in shares.items():
        if amount_minor == 0:
            continue
        raw = raw_inputs.get(participant_id)
        value = None
        if raw is not None and not (isinstance(raw, str) and not raw.strip()):
            value = parse_decimal(raw)
        entries.append(SplitEntry(
            expense_id=expense_id,
            participant_id=participant_id,
            value=value,
            amount_minor=amount_minor,
        ))
    return entries
