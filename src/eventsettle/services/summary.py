from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from eventsettle.db.models import Member, OverallBalance, SuggestedPayment
from eventsettle.services.money import balance_text, format_amount


def _labels(members: Iterable[Member]) -> dict[str, str]:
    return {member.id: member.name for member in members}


def format_balances(balances: Mapping[str, int], members: Sequence[Member], currency: str = "EUR") -> str:
    labels = _labels(members)
    lines = ["Balances:"]
    for member_id, balance in balances.items():
        lines.append(f"• {labels.get(member_id, member_id)}: {format_amount(balance, currency)}")
    return "\n".join(lines)


def format_payments(payments: Sequence[SuggestedPayment], members: Sequence[Member], currency: str = "EUR") -> str:
    if not payments:
        return "All settled!"

    labels = _labels(members)
    lines = ["To settle up:"]
    for p in payments:
        payer = labels.get(p.from_member_id, p.from_member_id)
        receiver = labels.get(p.to_member_id, p.to_member_id)
        lines.append(f"• {payer} → {receiver}: {format_amount(p.amount_cents, currency)}")
    return "\n".join(lines)


def format_overall(overall: OverallBalance, currency: str = "EUR") -> str:
    text = balance_text(overall.total_cents, currency)
    if overall.partial:
        text += f" (partial: {len(overall.failed_group_ids)} group(s) could not be computed)"
    return text
