from __future__ import annotations


class SettlementError(Exception):
    pass


class InvalidExpense(SettlementError, ValueError):
    pass


class InvalidSettlement(SettlementError, ValueError):
    pass


class InvalidBalance(SettlementError, ValueError):
    pass


class CollaboratorFailure(SettlementError, RuntimeError):
    """Storage read or write failed."""
