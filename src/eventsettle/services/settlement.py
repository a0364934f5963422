from __future__ import annotations

import math
from typing import Iterable, List, Mapping, Optional

from eventsettle.db.models import SuggestedPayment
from eventsettle.services.errors import InvalidBalance


def _as_cents(member_id: str, balance: object) -> int:
    if isinstance(balance, bool) or not isinstance(balance, (int, float)):
        raise InvalidBalance(f"balance of {member_id} is not a number: {balance!r}")
    if isinstance(balance, float):
        if not math.isfinite(balance) or not balance.is_integer():
            raise InvalidBalance(f"balance of {member_id} is not a whole number of cents: {balance!r}")
        return int(balance)
    return balance


def simplify(
    balances: Mapping[str, int],
    group_id: Optional[str] = None,
    tolerance_cents: int = 0,
) -> List[SuggestedPayment]:
    """Greedily match debtors to creditors.

    Creditors and debtors are each walked in member id order, so the same
    balances always produce the same suggestions. Balances within
    ``tolerance_cents`` of zero count as settled. At most
    ``creditors + debtors - 1`` payments are suggested.
    """
    if tolerance_cents < 0:
        raise ValueError("tolerance_cents must not be negative")

    creditors: list[tuple[str, int]] = []
    debtors: list[tuple[str, int]] = []

    for member_id, value in balances.items():
        balance = _as_cents(member_id, value)
        if balance > tolerance_cents:
            creditors.append((member_id, balance))
        elif balance < -tolerance_cents:
            debtors.append((member_id, -balance))

    creditors.sort(key=lambda x: x[0])
    debtors.sort(key=lambda x: x[0])

    payments: list[SuggestedPayment] = []
    i, j = 0, 0

    while i < len(creditors) and j < len(debtors):
        cred_id, cred_amount = creditors[i]
        debt_id, debt_amount = debtors[j]

        amount = min(cred_amount, debt_amount)
        payments.append(
            SuggestedPayment(from_member_id=debt_id, to_member_id=cred_id, amount_cents=amount, group_id=group_id)
        )

        cred_amount -= amount
        debt_amount -= amount

        if cred_amount <= tolerance_cents:
            i += 1
        else:
            creditors[i] = (cred_id, cred_amount)

        if debt_amount <= tolerance_cents:
            j += 1
        else:
            debtors[j] = (debt_id, debt_amount)

    return payments


def apply_payments(balances: Mapping[str, int], payments: Iterable[SuggestedPayment]) -> dict[str, int]:
    after = dict(balances)
    for payment in payments:
        after[payment.from_member_id] = after.get(payment.from_member_id, 0) + payment.amount_cents
        after[payment.to_member_id] = after.get(payment.to_member_id, 0) - payment.amount_cents
    return after
