from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True, slots=True)
class Member:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class Group:
    id: str
    name: str
    created_by: str
    created_at: datetime
    description: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Expense:
    id: str
    group_id: str
    amount_cents: int
    payer_id: str
    participant_ids: tuple[str, ...]
    created_at: datetime
    description: Optional[str] = None

    def __post_init__(self) -> None:
        # one share per participant, first appearance wins
        object.__setattr__(self, "participant_ids", tuple(dict.fromkeys(self.participant_ids)))


@dataclass(frozen=True, slots=True)
class Settlement:
    id: str
    group_id: str
    from_member_id: str
    to_member_id: str
    amount_cents: int
    created_at: datetime


@dataclass(frozen=True, slots=True)
class SuggestedPayment:
    from_member_id: str
    to_member_id: str
    amount_cents: int
    group_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class OverallBalance:
    total_cents: int
    failed_group_ids: tuple[str, ...] = field(default=())

    @property
    def partial(self) -> bool:
        return bool(self.failed_group_ids)


@dataclass(frozen=True, slots=True)
class GroupMember:
    member: Member
    amount_paid_cents: int


@dataclass(frozen=True, slots=True)
class GroupBalance:
    group: Group
    net_cents: int
