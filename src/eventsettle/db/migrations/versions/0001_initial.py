"""initial schema

Revision ID: 0001
Revises: 
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "members",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text()),
    )

    op.create_table(
        "groups",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("created_by", sa.Text(), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "group_members",
        sa.Column("group_id", sa.Text(), sa.ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("member_id", sa.Text(), sa.ForeignKey("members.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "expenses",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("group_id", sa.Text(), sa.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
        sa.Column("payer_id", sa.Text(), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("amount_cents", sa.BigInteger(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("amount_cents > 0", name="expenses_amount_positive"),
    )

    op.create_table(
        "expense_participants",
        sa.Column("expense_id", sa.Text(), sa.ForeignKey("expenses.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("member_id", sa.Text(), sa.ForeignKey("members.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "settlements",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("group_id", sa.Text(), sa.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
        sa.Column("from_member_id", sa.Text(), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("to_member_id", sa.Text(), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("amount_cents", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("amount_cents > 0", name="settlements_amount_positive"),
        sa.CheckConstraint("from_member_id <> to_member_id", name="settlements_distinct_members"),
    )

    op.create_index("idx_group_members_member", "group_members", ["member_id"])
    op.create_index("idx_expenses_group", "expenses", ["group_id"])
    op.create_index("idx_settlements_group", "settlements", ["group_id"])


def downgrade() -> None:
    op.drop_index("idx_settlements_group", table_name="settlements")
    op.drop_index("idx_expenses_group", table_name="expenses")
    op.drop_index("idx_group_members_member", table_name="group_members")

    op.drop_table("settlements")
    op.drop_table("expense_participants")
    op.drop_table("expenses")
    op.drop_table("group_members")
    op.drop_table("groups")
    op.drop_table("members")
