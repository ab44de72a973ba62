"""
Year Dashboard

Activity for one calendar year: totals, month-by-month volume, where the
income came from, where the expense went, and the largest and latest
transactions.

Unlike the balance report these figures include pending transactions.
They describe what was recorded in the year, not realized cash.
"""

import datetime as dt
from collections import defaultdict
from typing import Callable, Optional

from household_ledger.ledger.store import TransactionStore
from household_ledger.models.report import (
    SHORT_MONTH_NAMES,
    BreakdownEntry,
    MonthlyActivity,
    TransactionSummary,
    YearDashboard,
)
from household_ledger.models.transaction import Transaction, TransactionKind


TOP_LIMIT = 5
RECENT_LIMIT = 5


def available_years(transactions: list[Transaction]) -> list[int]:
    """Years with any transaction, newest first."""
    return sorted({t.year for t in transactions}, reverse=True)


def _summary(transaction: Transaction) -> TransactionSummary:
    return TransactionSummary(
        id=transaction.id,
        date=transaction.date,
        description=transaction.description,
        kind=transaction.kind,
        amount=transaction.amount,
    )


def _breakdown(pairs: list[tuple[str, int]]) -> list[BreakdownEntry]:
    """Sum amounts per name, keeping first-seen order."""
    totals: dict[str, int] = {}
    for name, amount in pairs:
        totals[name] = totals.get(name, 0) + amount
    return [BreakdownEntry(name=name, value=value) for name, value in totals.items()]


def build_year_dashboard(
    income: list[Transaction],
    expense: list[Transaction],
    year: Optional[int] = None,
    today: Optional[dt.date] = None,
) -> YearDashboard:
    """
    Aggregate one year of activity.

    Args:
        income: All income transactions
        expense: All expense transactions
        year: Year to show; defaults to the most recent year with data
        today: Used for the default year when there is no data at all
    """
    years = available_years(income + expense)
    if year is None:
        year = years[0] if years else (today or dt.date.today()).year

    year_income = [t for t in income if t.year == year]
    year_expense = [t for t in expense if t.year == year]

    total_income = sum(t.amount for t in year_income)
    total_expense = sum(t.amount for t in year_expense)

    monthly: dict[int, dict[str, int]] = defaultdict(lambda: {"income": 0, "expense": 0})
    for t in year_income:
        monthly[t.month]["income"] += t.amount
    for t in year_expense:
        monthly[t.month]["expense"] += t.amount

    activity = [
        MonthlyActivity(
            month=month,
            label=SHORT_MONTH_NAMES[month - 1],
            income=monthly[month]["income"],
            expense=monthly[month]["expense"],
        )
        for month in sorted(monthly)
    ]

    combined = year_income + year_expense
    # sorted() is stable, so ties keep income-before-expense, stored order
    top = sorted(combined, key=lambda t: t.amount, reverse=True)[:TOP_LIMIT]
    recent = sorted(combined, key=lambda t: t.date, reverse=True)[:RECENT_LIMIT]

    return YearDashboard(
        year=year,
        available_years=years,
        total_income=total_income,
        total_expense=total_expense,
        balance=total_income - total_expense,
        monthly_activity=activity,
        income_by_fund_source=_breakdown([(t.fund_source, t.amount) for t in year_income]),
        expense_by_category=_breakdown([(t.category, t.amount) for t in year_expense]),
        top_transactions=[_summary(t) for t in top],
        recent_transactions=[_summary(t) for t in recent],
    )


class DashboardBuilder:
    """Builds a YearDashboard from the current store snapshots."""

    def __init__(
        self,
        stores: dict[TransactionKind, TransactionStore],
        today: Callable[[], dt.date] = dt.date.today,
    ):
        self._stores = stores
        self._today = today

    async def build(self, year: Optional[int] = None) -> YearDashboard:
        income = await self._stores[TransactionKind.INCOME].list()
        expense = await self._stores[TransactionKind.EXPENSE].list()
        return build_year_dashboard(income, expense, year=year, today=self._today())
