"""
Export Row Builders

Shape transactions and report rows for a spreadsheet. Transaction rows use
the same column labels the importer reads, so an exported file can be
edited and imported back.
"""

from typing import Any

from household_ledger.models.report import MonthlyBalanceRow
from household_ledger.models.transaction import Transaction, TransactionKind
from household_ledger.parsing.dates import format_date
from household_ledger.validation.importer import (
    COL_ACCOUNT,
    COL_AMOUNT,
    COL_CATEGORY,
    COL_CODE,
    COL_COUNTERPARTY,
    COL_DATE,
    COL_FUND_SOURCE,
    COL_ITEM_NAME,
    COL_NOTE,
    COL_STATUS,
    COLUMNS,
)


REPORT_COLUMNS = ["Bulan", "Penerimaan", "Pengeluaran", "Saldo Bulanan", "Saldo Akhir"]


def transaction_export_rows(
    kind: TransactionKind,
    transactions: list[Transaction],
) -> list[dict[str, Any]]:
    """One row per transaction, keyed by the import column labels."""
    rows = []
    for t in transactions:
        values = {
            COL_DATE: format_date(t.date),
            COL_CODE: t.transaction_code,
            COL_AMOUNT: t.amount,
            COL_STATUS: t.status.value,
            COL_CATEGORY: t.category,
            COL_ACCOUNT: t.account,
            COL_NOTE: t.note,
        }
        if kind == TransactionKind.INCOME:
            values[COL_FUND_SOURCE] = t.fund_source
        else:
            values[COL_COUNTERPARTY] = t.counterparty
            values[COL_ITEM_NAME] = t.item_name
        rows.append({column: values[column] for column in COLUMNS[kind]})
    return rows


def report_export_rows(report: list[MonthlyBalanceRow]) -> list[dict[str, Any]]:
    """One row per period, in the order given."""
    return [
        dict(zip(
            REPORT_COLUMNS,
            [
                row.period_label,
                row.income,
                row.expense,
                row.monthly_net,
                row.cumulative_balance,
            ],
        ))
        for row in report
    ]
