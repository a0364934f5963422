from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from eventsettle.config import get_settings
from eventsettle.db.repo import Database, SettleRepository
from eventsettle.logging import configure_logging, get_logger
from eventsettle.services.errors import SettlementError
from eventsettle.services.ledger import group_balances, overall_net_balance
from eventsettle.services.settlement import simplify
from eventsettle.services.summary import format_balances, format_overall, format_payments


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="eventsettle-report", description="Show balances and suggested payments for a group.")
    parser.add_argument("group_id")
    parser.add_argument("--member", help="also show this member's balance across all of their groups")
    return parser


async def run(group_id: str, member_id: Optional[str] = None) -> str:
    settings = get_settings()
    db = Database(settings.database_url)
    await db.connect()
    repo = SettleRepository(db)

    log = get_logger(__name__)
    log.info("report.start", group_id=group_id)
    try:
        members = await repo.load_members(group_id)
        balances = await group_balances(repo, group_id)
        payments = simplify(balances, group_id=group_id, tolerance_cents=settings.settle_tolerance_cents)

        sections = [
            format_balances(balances, members, settings.currency),
            format_payments(payments, members, settings.currency),
        ]
        if member_id:
            overall = await overall_net_balance(repo, member_id)
            sections.append(f"Overall: {format_overall(overall, settings.currency)}")
        return "\n\n".join(sections)
    finally:
        await db.close()
        log.info("report.stop", group_id=group_id)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"failed to load/compute balances: invalid configuration ({exc.error_count()} error(s))", file=sys.stderr)
        return 1

    configure_logging(settings.log_level)
    try:
        output = asyncio.run(run(args.group_id, args.member))
    except SettlementError as exc:
        get_logger(__name__).error("report.failed", error=str(exc))
        print("failed to load/compute balances", file=sys.stderr)
        return 1
    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
