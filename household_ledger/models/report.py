"""
Report Models for Household Ledger

Report rows are derived from the transaction collections on request, and
list filters narrow what a list view shows. None of these models are ever
persisted.
"""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from household_ledger.models.transaction import TransactionStatus


MONTH_NAMES = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]

SHORT_MONTH_NAMES = [
    "Jan", "Feb", "Mar", "Apr", "Mei", "Jun",
    "Jul", "Agu", "Sep", "Okt", "Nov", "Des",
]


def period_label(year: int, month: int) -> str:
    """Human label for a period, e.g. "Agustus 2024"."""
    return f"{MONTH_NAMES[month - 1]} {year}"


class MonthlyBalanceRow(BaseModel):
    """
    One month of the balance report.

    cumulative_balance is the running total of monthly_net over all periods
    up to and including this one, in chronological order.
    """

    period_label: str = Field(
        ...,
        description="Month name and year, e.g. 'Agustus 2024'"
    )
    year: int
    month: int = Field(ge=1, le=12)
    income: int = Field(
        default=0,
        ge=0,
        description="Sum of settled income in the period"
    )
    expense: int = Field(
        default=0,
        ge=0,
        description="Sum of settled expense in the period"
    )
    monthly_net: int = Field(
        default=0,
        description="income - expense (signed)"
    )
    cumulative_balance: int = Field(
        default=0,
        description="Running balance through the end of this period"
    )


class DashboardStats(BaseModel):
    """Settled totals across the whole ledger."""

    total_income: int = 0
    total_expense: int = 0
    balance: int = 0


class MonthlyActivity(BaseModel):
    """Income and expense volume for one month of a dashboard year."""

    month: int = Field(ge=1, le=12)
    label: str
    income: int = 0
    expense: int = 0


class BreakdownEntry(BaseModel):
    """Share of a total attributed to one option value."""

    name: str
    value: int


class TransactionSummary(BaseModel):
    """Compact cross-kind view of a transaction for dashboard lists."""

    id: str
    date: date
    description: str
    kind: Literal["penerimaan", "pengeluaran"]
    amount: int


class YearDashboard(BaseModel):
    """
    Aggregations for a single year of the dashboard.

    Unlike the balance report, these totals include pending transactions:
    they describe activity, not realized cash.
    """

    year: int
    available_years: list[int] = Field(
        default_factory=list,
        description="Years with any data, newest first"
    )
    total_income: int = 0
    total_expense: int = 0
    balance: int = 0
    monthly_activity: list[MonthlyActivity] = Field(default_factory=list)
    income_by_fund_source: list[BreakdownEntry] = Field(default_factory=list)
    expense_by_category: list[BreakdownEntry] = Field(default_factory=list)
    top_transactions: list[TransactionSummary] = Field(default_factory=list)
    recent_transactions: list[TransactionSummary] = Field(default_factory=list)


# =============================================================================
# LIST VIEW MODELS
# =============================================================================

class TransactionFilter(BaseModel):
    """
    Narrowing applied to the list of one transaction kind.

    Unset (or blank) fields match everything. Text fields match exactly.
    fund_source only applies to income, counterparty only to expense.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    fund_source: Optional[str] = None
    counterparty: Optional[str] = None
    category: Optional[str] = None
    account: Optional[str] = None
    month: Optional[int] = Field(
        default=None,
        ge=1,
        le=12,
        description="Calendar month, matched in every year"
    )
    status: Optional[TransactionStatus] = None

    @field_validator(
        'fund_source', 'counterparty', 'category', 'account', 'month', 'status',
        mode='before',
    )
    @classmethod
    def blank_means_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ListStats(BaseModel):
    """Totals over the transactions a list currently shows."""

    total: int = Field(
        default=0,
        description="Sum of every listed amount, settled or not"
    )
    settled: int = Field(
        default=0,
        description="Sum of listed amounts with status Lunas"
    )
    pending: int = Field(
        default=0,
        description="Sum of listed amounts with status Pending"
    )
    count: int = 0
