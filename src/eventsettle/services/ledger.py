from __future__ import annotations

from typing import Protocol

from eventsettle.db.models import (
    Expense,
    Group,
    GroupBalance,
    Member,
    OverallBalance,
    Settlement,
    SuggestedPayment,
)
from eventsettle.logging import get_logger
from eventsettle.services.balances import compute_balances
from eventsettle.services.errors import InvalidSettlement, SettlementError
from eventsettle.services.settlement import simplify

log = get_logger(__name__)


class Repository(Protocol):
    async def load_members(self, group_id: str) -> list[Member]: ...

    async def load_expenses(self, group_id: str) -> list[Expense]: ...

    async def load_settlements(self, group_id: str) -> list[Settlement]: ...

    async def list_member_groups(self, member_id: str) -> list[Group]: ...

    async def record_settlement(self, payment: SuggestedPayment) -> Settlement: ...


async def group_balances(repo: Repository, group_id: str) -> dict[str, int]:
    members = await repo.load_members(group_id)
    expenses = await repo.load_expenses(group_id)
    settlements = await repo.load_settlements(group_id)
    return compute_balances(expenses, settlements, [m.id for m in members])


async def pending_settlements(repo: Repository, group_id: str, tolerance_cents: int = 0) -> list[SuggestedPayment]:
    balances = await group_balances(repo, group_id)
    return simplify(balances, group_id=group_id, tolerance_cents=tolerance_cents)


async def completed_settlements(repo: Repository, group_id: str) -> list[Settlement]:
    settlements = await repo.load_settlements(group_id)
    return sorted(settlements, key=lambda s: s.created_at, reverse=True)


async def net_balance_for_member(repo: Repository, group_id: str, member_id: str) -> int:
    balances = await group_balances(repo, group_id)
    return balances.get(member_id, 0)


async def overall_net_balance(repo: Repository, member_id: str) -> OverallBalance:
    """Sum a member's balance over all of their groups.

    A group whose balance cannot be computed is left out of the total and
    listed in ``failed_group_ids``; the result is then partial.
    """
    groups = await repo.list_member_groups(member_id)

    total = 0
    failed: list[str] = []
    for group in groups:
        try:
            total += await net_balance_for_member(repo, group.id, member_id)
        except SettlementError as exc:
            log.warning("ledger.group_failed", group_id=group.id, member_id=member_id, error=str(exc))
            failed.append(group.id)

    return OverallBalance(total_cents=total, failed_group_ids=tuple(failed))


async def groups_with_balance(repo: Repository, member_id: str) -> list[GroupBalance]:
    result: list[GroupBalance] = []
    for group in await repo.list_member_groups(member_id):
        net = await net_balance_for_member(repo, group.id, member_id)
        result.append(GroupBalance(group=group, net_cents=net))
    return result


async def confirm_payment(repo: Repository, payment: SuggestedPayment) -> Settlement:
    if payment.amount_cents <= 0:
        raise InvalidSettlement("payment amount must be positive")
    if payment.from_member_id == payment.to_member_id:
        raise InvalidSettlement("payer and receiver are the same member")
    if payment.group_id is None:
        raise InvalidSettlement("payment is not bound to a group")

    settlement = await repo.record_settlement(payment)
    log.info(
        "ledger.payment_recorded",
        settlement_id=settlement.id,
        group_id=settlement.group_id,
        amount_cents=settlement.amount_cents,
    )
    return settlement
