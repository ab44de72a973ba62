"""
Transaction Lists

The list view of one transaction kind: narrowed by option fields, month
and status, newest first, with totals over exactly what is shown. The
filtered export writes the same rows the list shows.

DESIGN DECISION: Filtering happens on a snapshot, never inside the store.
The store stays a plain collection and every view (list, stats, export,
filter choices) is a pure function of the snapshot plus a filter.
"""

from typing import Optional

from household_ledger.models.report import ListStats, TransactionFilter
from household_ledger.models.transaction import Transaction, TransactionKind


# Option fields each kind can be narrowed by, in display order
FILTER_FIELDS: dict[TransactionKind, tuple[str, ...]] = {
    TransactionKind.INCOME: ("fund_source", "category", "account"),
    TransactionKind.EXPENSE: ("counterparty", "category", "account"),
}

_KIND_SPECIFIC_FIELDS = ("fund_source", "counterparty")


class FilterNotApplicableError(ValueError):
    """A filter names a field the transaction kind does not carry."""

    def __init__(self, kind: TransactionKind, field: str):
        self.kind = kind
        self.field = field
        super().__init__(f"{field} cannot filter {kind.value} transactions")


def filter_transactions(
    kind: TransactionKind,
    transactions: list[Transaction],
    filters: Optional[TransactionFilter] = None,
) -> list[Transaction]:
    """
    Transactions matching every set filter, newest first.

    Transactions on the same date keep their relative input order.

    Raises:
        FilterNotApplicableError: If a kind-specific filter targets the other kind
    """
    filters = filters or TransactionFilter()
    for field in _KIND_SPECIFIC_FIELDS:
        if getattr(filters, field) is not None and field not in FILTER_FIELDS[kind]:
            raise FilterNotApplicableError(kind, field)

    criteria = {
        field: getattr(filters, field)
        for field in FILTER_FIELDS[kind]
        if getattr(filters, field) is not None
    }

    matched = [
        t for t in transactions
        if all(getattr(t, field) == value for field, value in criteria.items())
        and (filters.month is None or t.month == filters.month)
        and (filters.status is None or t.status == filters.status)
    ]
    return sorted(matched, key=lambda t: t.date, reverse=True)


def build_list_stats(transactions: list[Transaction]) -> ListStats:
    """Totals over a list, split by settlement."""
    settled = sum(t.amount for t in transactions if t.is_settled)
    total = sum(t.amount for t in transactions)
    return ListStats(
        total=total,
        settled=settled,
        pending=total - settled,
        count=len(transactions),
    )


def filter_options(
    kind: TransactionKind,
    transactions: list[Transaction],
) -> dict[str, list[str]]:
    """Distinct values present per filterable field, sorted."""
    return {
        field: sorted({getattr(t, field) for t in transactions})
        for field in FILTER_FIELDS[kind]
    }
