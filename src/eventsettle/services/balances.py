"""Per-member balances for a single group.

A positive balance means the group owes the member money, a negative one
means the member owes the group. All amounts are integer cents, so the
balances of a group always sum to exactly zero.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_EVEN
from typing import Iterable, Sequence

from eventsettle.db.models import Expense, Settlement
from eventsettle.services.errors import InvalidExpense, InvalidSettlement


def split_amount(amount_cents: int, participants: Sequence[str]) -> dict[str, int]:
    """Split ``amount_cents`` evenly, handing leftover cents out in participant order."""
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise InvalidExpense(f"amount must be a whole number of cents, got {amount_cents!r}")
    if amount_cents <= 0:
        raise InvalidExpense("amount must be positive")
    if not participants:
        raise InvalidExpense("participants must not be empty")

    n = len(participants)
    base_share = (Decimal(amount_cents) / Decimal(n)).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN)

    shares = [int(base_share) for _ in participants]
    remainder = amount_cents - sum(shares)

    idx = 0
    step = 1 if remainder > 0 else -1
    while remainder != 0:
        shares[idx] += step
        remainder -= step
        idx = (idx + 1) % n

    return dict(zip(participants, shares))


def _check_settlement(settlement: Settlement) -> None:
    if settlement.amount_cents <= 0:
        raise InvalidSettlement(f"settlement {settlement.id}: amount must be positive")
    if settlement.from_member_id == settlement.to_member_id:
        raise InvalidSettlement(f"settlement {settlement.id}: payer and receiver are the same member")


def compute_balances(
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
    members: Iterable[str],
) -> dict[str, int]:
    balances: dict[str, int] = {member_id: 0 for member_id in members}

    for expense in expenses:
        try:
            shares = split_amount(expense.amount_cents, expense.participant_ids)
        except InvalidExpense as exc:
            raise InvalidExpense(f"expense {expense.id}: {exc}") from exc
        for member_id, share in shares.items():
            balances[member_id] = balances.get(member_id, 0) - share
        balances[expense.payer_id] = balances.get(expense.payer_id, 0) + expense.amount_cents

    for settlement in settlements:
        _check_settlement(settlement)
        balances[settlement.from_member_id] = balances.get(settlement.from_member_id, 0) + settlement.amount_cents
        balances[settlement.to_member_id] = balances.get(settlement.to_member_id, 0) - settlement.amount_cents

    return balances
