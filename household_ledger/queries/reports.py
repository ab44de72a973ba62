"""
Monthly Balance Report

DESIGN DECISION: Reports are computed on demand from the stores and are
never persisted. Only settled (Lunas) transactions count: a pending
transaction has not moved any money yet.

The running balance is computed oldest-first, because a cumulative sum
only means something in chronological order. The finished rows are then
reversed for display (newest first) WITHOUT recomputing anything, so each
row's cumulative_balance still reads "balance at the end of this month".
"""

from collections import defaultdict

from household_ledger.ledger.store import TransactionStore
from household_ledger.models.report import (
    DashboardStats,
    MonthlyBalanceRow,
    period_label,
)
from household_ledger.models.transaction import (
    Transaction,
    TransactionKind,
    period_of,
)


def build_monthly_report(
    income: list[Transaction],
    expense: list[Transaction],
) -> list[MonthlyBalanceRow]:
    """
    Group settled transactions by (year, month) into balance rows.

    Returns:
        Rows ordered most recent period first
    """
    totals: dict[tuple[int, int], dict[str, int]] = defaultdict(
        lambda: {"income": 0, "expense": 0}
    )
    for transaction in income:
        if transaction.is_settled:
            totals[period_of(transaction.date)]["income"] += transaction.amount
    for transaction in expense:
        if transaction.is_settled:
            totals[period_of(transaction.date)]["expense"] += transaction.amount

    rows = []
    cumulative = 0
    for year, month in sorted(totals):
        period = totals[(year, month)]
        net = period["income"] - period["expense"]
        cumulative += net
        rows.append(
            MonthlyBalanceRow(
                period_label=period_label(year, month),
                year=year,
                month=month,
                income=period["income"],
                expense=period["expense"],
                monthly_net=net,
                cumulative_balance=cumulative,
            )
        )

    rows.reverse()
    return rows


def build_dashboard_stats(
    income: list[Transaction],
    expense: list[Transaction],
) -> DashboardStats:
    """Settled totals over the whole ledger."""
    total_income = sum(t.amount for t in income if t.is_settled)
    total_expense = sum(t.amount for t in expense if t.is_settled)
    return DashboardStats(
        total_income=total_income,
        total_expense=total_expense,
        balance=total_income - total_expense,
    )


class ReportEngine:
    """Reads both stores and builds balance reports from their snapshots."""

    def __init__(self, stores: dict[TransactionKind, TransactionStore]):
        self._stores = stores

    async def monthly_report(self) -> list[MonthlyBalanceRow]:
        income, expense = await self._snapshots()
        return build_monthly_report(income, expense)

    async def dashboard_stats(self) -> DashboardStats:
        income, expense = await self._snapshots()
        return build_dashboard_stats(income, expense)

    async def _snapshots(self) -> tuple[list[Transaction], list[Transaction]]:
        income = await self._stores[TransactionKind.INCOME].list()
        expense = await self._stores[TransactionKind.EXPENSE].list()
        return income, expense
