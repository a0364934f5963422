from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional, Sequence

import asyncpg

from eventsettle.db.models import Expense, Group, GroupMember, Member, Settlement, SuggestedPayment
from eventsettle.logging import get_logger, sql_logger
from eventsettle.services.balances import split_amount
from eventsettle.services.errors import CollaboratorFailure

_STORAGE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class Database:
    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._pool: asyncpg.Pool | None = None
        self._log = get_logger(__name__)

    async def connect(self) -> None:
        if self._pool is None:
            # asyncpg expects a plain postgresql:// scheme, without "+asyncpg"
            dsn = self._dsn.replace("+asyncpg", "")
            try:
                self._pool = await asyncpg.create_pool(dsn)
            except _STORAGE_ERRORS as exc:
                raise CollaboratorFailure("could not connect to the database") from exc
            self._log.info("db.pool.created")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._log.info("db.pool.closed")

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        pool = await self._ensure_pool()
        sql_logger.info("sql.fetch", query=query, args=args)
        try:
            return await pool.fetch(query, *args)
        except _STORAGE_ERRORS as exc:
            raise CollaboratorFailure("database read failed") from exc

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        pool = await self._ensure_pool()
        sql_logger.info("sql.fetchrow", query=query, args=args)
        try:
            return await pool.fetchrow(query, *args)
        except _STORAGE_ERRORS as exc:
            raise CollaboratorFailure("database read failed") from exc

    async def fetchval(self, query: str, *args: Any) -> Any:
        pool = await self._ensure_pool()
        sql_logger.info("sql.fetchval", query=query, args=args)
        try:
            return await pool.fetchval(query, *args)
        except _STORAGE_ERRORS as exc:
            raise CollaboratorFailure("database read failed") from exc

    async def execute(self, query: str, *args: Any) -> str:
        pool = await self._ensure_pool()
        sql_logger.info("sql.execute", query=query, args=args)
        try:
            return await pool.execute(query, *args)
        except _STORAGE_ERRORS as exc:
            raise CollaboratorFailure("database write failed") from exc

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        pool = await self._ensure_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    sql_logger.info("sql.transaction.begin")
                    yield conn
        except _STORAGE_ERRORS as exc:
            raise CollaboratorFailure("database transaction failed") from exc

    async def _ensure_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            await self.connect()
        assert self._pool
        return self._pool


def _member_from_row(row: Any) -> Member:
    return Member(id=row["id"], name=row["name"])


def _group_from_row(row: Any) -> Group:
    return Group(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        created_by=row["created_by"],
        created_at=row["created_at"],
    )


def _expense_from_row(row: Any) -> Expense:
    return Expense(
        id=row["id"],
        group_id=row["group_id"],
        amount_cents=row["amount_cents"],
        payer_id=row["payer_id"],
        participant_ids=tuple(row["participant_ids"] or ()),
        created_at=row["created_at"],
        description=row["description"],
    )


def _settlement_from_row(row: Any) -> Settlement:
    return Settlement(
        id=row["id"],
        group_id=row["group_id"],
        from_member_id=row["from_member_id"],
        to_member_id=row["to_member_id"],
        amount_cents=row["amount_cents"],
        created_at=row["created_at"],
    )


class SettleRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def create_member(self, name: str) -> Member:
        row = await self.db.fetchrow(
            "INSERT INTO members (id, name) VALUES ($1, $2) RETURNING *",
            str(uuid.uuid4()),
            name,
        )
        assert row is not None
        return _member_from_row(row)

    async def create_group(self, name: str, created_by: str, description: Optional[str] = None) -> Group:
        group_id = str(uuid.uuid4())
        async with self.db.transaction() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO groups (id, name, description, created_by, created_at)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING *
                """,
                group_id,
                name,
                description,
                created_by,
                datetime.now(timezone.utc),
            )
            await conn.execute(
                "INSERT INTO group_members (group_id, member_id) VALUES ($1, $2)",
                group_id,
                created_by,
            )
        assert row is not None
        return _group_from_row(row)

    async def add_member(self, group_id: str, member_id: str) -> None:
        await self.db.execute(
            """
            INSERT INTO group_members (group_id, member_id)
            VALUES ($1, $2)
            ON CONFLICT DO NOTHING
            """,
            group_id,
            member_id,
        )

    async def add_expense(
        self,
        group_id: str,
        amount_cents: int,
        payer_id: str,
        participant_ids: Sequence[str],
        description: Optional[str] = None,
    ) -> Expense:
        participants = list(dict.fromkeys(participant_ids))
        # expenses are never deleted, so a bad row would break the group for good
        split_amount(amount_cents, participants)

        expense_id = str(uuid.uuid4())
        async with self.db.transaction() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO expenses (id, group_id, payer_id, amount_cents, description, created_at)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING *
                """,
                expense_id,
                group_id,
                payer_id,
                amount_cents,
                description,
                datetime.now(timezone.utc),
            )
            await conn.executemany(
                """
                INSERT INTO expense_participants (expense_id, member_id, position)
                VALUES ($1, $2, $3)
                """,
                [(expense_id, member_id, position) for position, member_id in enumerate(participants)],
            )
        assert row is not None
        return _expense_from_row({**dict(row), "participant_ids": participants})

    async def load_members(self, group_id: str) -> list[Member]:
        rows = await self.db.fetch(
            """
            SELECT m.id, m.name
            FROM members m
            JOIN group_members gm ON gm.member_id = m.id
            WHERE gm.group_id = $1
            ORDER BY m.name, m.id
            """,
            group_id,
        )
        return [_member_from_row(row) for row in rows]

    async def load_members_with_payments(self, group_id: str) -> list[GroupMember]:
        rows = await self.db.fetch(
            """
            SELECT m.id, m.name, COALESCE(SUM(e.amount_cents), 0) AS amount_paid_cents
            FROM members m
            JOIN group_members gm ON gm.member_id = m.id
            LEFT JOIN expenses e ON e.group_id = gm.group_id AND e.payer_id = m.id
            WHERE gm.group_id = $1
            GROUP BY m.id, m.name
            ORDER BY m.name, m.id
            """,
            group_id,
        )
        return [
            GroupMember(member=_member_from_row(row), amount_paid_cents=int(row["amount_paid_cents"]))
            for row in rows
        ]

    async def load_expenses(self, group_id: str) -> list[Expense]:
        rows = await self.db.fetch(
            """
            SELECT e.*,
                   array_agg(ep.member_id ORDER BY ep.position)
                       FILTER (WHERE ep.member_id IS NOT NULL) AS participant_ids
            FROM expenses e
            LEFT JOIN expense_participants ep ON ep.expense_id = e.id
            WHERE e.group_id = $1
            GROUP BY e.id
            ORDER BY e.created_at, e.id
            """,
            group_id,
        )
        return [_expense_from_row(row) for row in rows]

    async def load_settlements(self, group_id: str) -> list[Settlement]:
        rows = await self.db.fetch(
            "SELECT * FROM settlements WHERE group_id = $1 ORDER BY created_at DESC, id",
            group_id,
        )
        return [_settlement_from_row(row) for row in rows]

    async def list_member_groups(self, member_id: str) -> list[Group]:
        rows = await self.db.fetch(
            """
            SELECT g.*
            FROM groups g
            JOIN group_members gm ON gm.group_id = g.id
            WHERE gm.member_id = $1
            ORDER BY g.created_at DESC
            """,
            member_id,
        )
        return [_group_from_row(row) for row in rows]

    async def record_settlement(self, payment: SuggestedPayment) -> Settlement:
        row = await self.db.fetchrow(
            """
            INSERT INTO settlements (id, group_id, from_member_id, to_member_id, amount_cents, created_at)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING *
            """,
            str(uuid.uuid4()),
            payment.group_id,
            payment.from_member_id,
            payment.to_member_id,
            payment.amount_cents,
            datetime.now(timezone.utc),
        )
        assert row is not None
        return _settlement_from_row(row)
