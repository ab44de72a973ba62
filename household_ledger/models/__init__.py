"""
Data Models Package

This package contains all Pydantic models used in the Household Ledger.
All data flowing through the ledger must conform to these schemas.
"""

from household_ledger.models.transaction import (
    DRAFT_FOR_KIND,
    MODEL_FOR_KIND,
    TAXONOMY_FIELDS,
    TRANSACTION_LIST_ADAPTER,
    ExpenseDraft,
    ExpenseTransaction,
    IncomeDraft,
    IncomeTransaction,
    TaxonomyKey,
    Transaction,
    TransactionDraft,
    TransactionKind,
    TransactionStatus,
    observed_fields,
    period_of,
    taxonomy_key_for,
    transaction_model,
)
from household_ledger.models.report import (
    MONTH_NAMES,
    SHORT_MONTH_NAMES,
    BreakdownEntry,
    DashboardStats,
    ListStats,
    MonthlyActivity,
    MonthlyBalanceRow,
    TransactionFilter,
    TransactionSummary,
    YearDashboard,
    period_label,
)
from household_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "DRAFT_FOR_KIND",
    "MODEL_FOR_KIND",
    "TAXONOMY_FIELDS",
    "TRANSACTION_LIST_ADAPTER",
    "ExpenseDraft",
    "ExpenseTransaction",
    "IncomeDraft",
    "IncomeTransaction",
    "TaxonomyKey",
    "Transaction",
    "TransactionDraft",
    "TransactionKind",
    "TransactionStatus",
    "observed_fields",
    "period_of",
    "taxonomy_key_for",
    "transaction_model",
    # Report models
    "MONTH_NAMES",
    "SHORT_MONTH_NAMES",
    "BreakdownEntry",
    "DashboardStats",
    "ListStats",
    "MonthlyActivity",
    "MonthlyBalanceRow",
    "TransactionFilter",
    "TransactionSummary",
    "YearDashboard",
    "period_label",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
