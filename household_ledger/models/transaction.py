"""
Core Data Models for Household Ledger

These models define the strict schemas for every transaction in the ledger.
They are designed to:
1. Enforce type safety at runtime (amounts are whole rupiah, never negative)
2. Keep derived fields (month, year) impossible to get out of sync
3. Be serializable for storage and logging
4. Make the Income/Expense split explicit instead of stringly-typed

DESIGN DECISION: Income and Expense are two variants of one discriminated
union keyed by `kind`. Each variant carries its own fixed set of taxonomy
fields, and the mapping from (kind, field) to option list is an explicit
enum-keyed table.
"""

import datetime as dt
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    computed_field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """The two transaction variants kept by the ledger."""
    INCOME = "penerimaan"
    EXPENSE = "pengeluaran"

    @property
    def label(self) -> str:
        """Display label used in the spreadsheet exports."""
        return "Penerimaan" if self is TransactionKind.INCOME else "Pengeluaran"

    @property
    def id_prefix(self) -> str:
        """Prefix of store-assigned ids ("p..." / "e...")."""
        return "p" if self is TransactionKind.INCOME else "e"

    @property
    def code_prefix(self) -> str:
        """Prefix of the advisory transaction code."""
        return "DP" if self is TransactionKind.INCOME else "DK"

    @property
    def import_code_prefix(self) -> str:
        """Prefix of codes synthesized for imported rows without one."""
        return "IMP-P" if self is TransactionKind.INCOME else "IMP-E"


class TransactionStatus(str, Enum):
    """
    Realization status of a transaction.

    Only SETTLED transactions count toward balance reports.
    """
    SETTLED = "Lunas"
    PENDING = "Pending"


class TaxonomyKey(str, Enum):
    """
    The fixed set of option lists.

    Values are the keys the option lists have always been persisted under.
    """
    FUND_SOURCE = "sumberDana"
    INCOME_CATEGORY = "kategoriPenerimaan"
    ACCOUNT = "akun"
    COUNTERPARTY = "rekanan"
    EXPENSE_CATEGORY = "kategoriPengeluaran"


def period_of(value: dt.date) -> tuple[int, int]:
    """
    Return the (year, month) period a date belongs to.

    This is the only place month/year are derived from a date.
    """
    return value.year, value.month


# =============================================================================
# TRANSACTION MODELS
# =============================================================================

class _TransactionFields(BaseModel):
    """Fields shared by both transaction variants."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="ignore",
    )

    transaction_code: str = Field(
        ...,
        min_length=1,
        description="Advisory human-readable code, e.g. DP20240815-001"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    amount: int = Field(
        ...,
        ge=0,
        description="Amount in whole rupiah"
    )
    status: TransactionStatus = Field(
        default=TransactionStatus.PENDING,
        description="Settled (Lunas) or Pending"
    )
    category: str = Field(
        ...,
        min_length=1,
    )
    account: str = Field(
        ...,
        min_length=1,
        description="Account the money moved through (bank, e-wallet, cash)"
    )
    note: str = Field(
        default="",
        description="Free-form note (keterangan)"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def reject_boolean_amount(cls, v):
        if isinstance(v, bool):
            raise ValueError("Amount must be a whole number, not a boolean")
        return v

    @computed_field
    @property
    def month(self) -> int:
        return period_of(self.date)[1]

    @computed_field
    @property
    def year(self) -> int:
        return period_of(self.date)[0]

    @property
    def is_settled(self) -> bool:
        return self.status == TransactionStatus.SETTLED

    @property
    def transaction_kind(self) -> TransactionKind:
        # `kind` is declared as a string literal on each variant
        return TransactionKind(self.kind)


class IncomeDraft(_TransactionFields):
    """An income entry that has not been stored yet (no id)."""

    kind: Literal["penerimaan"] = "penerimaan"
    fund_source: str = Field(
        ...,
        min_length=1,
        description="Where the money came from (sumber dana)"
    )

    @property
    def description(self) -> str:
        return self.fund_source


class ExpenseDraft(_TransactionFields):
    """An expense entry that has not been stored yet (no id)."""

    kind: Literal["pengeluaran"] = "pengeluaran"
    counterparty: str = Field(
        ...,
        min_length=1,
        description="Who was paid (rekanan)"
    )
    item_name: str = Field(
        default="",
        description="What was bought (nama barang)"
    )

    @property
    def description(self) -> str:
        return self.item_name or self.counterparty


class IncomeTransaction(IncomeDraft):
    """A stored income transaction."""

    id: str = Field(
        ...,
        min_length=1,
        frozen=True,
        description="Store-assigned unique id"
    )


class ExpenseTransaction(ExpenseDraft):
    """A stored expense transaction."""

    id: str = Field(
        ...,
        min_length=1,
        frozen=True,
        description="Store-assigned unique id"
    )


Transaction = Annotated[
    Union[IncomeTransaction, ExpenseTransaction],
    Field(discriminator="kind"),
]
TransactionDraft = Annotated[
    Union[IncomeDraft, ExpenseDraft],
    Field(discriminator="kind"),
]

TRANSACTION_LIST_ADAPTER = TypeAdapter(list[Transaction])

MODEL_FOR_KIND: dict[TransactionKind, type[_TransactionFields]] = {
    TransactionKind.INCOME: IncomeTransaction,
    TransactionKind.EXPENSE: ExpenseTransaction,
}

DRAFT_FOR_KIND: dict[TransactionKind, type[_TransactionFields]] = {
    TransactionKind.INCOME: IncomeDraft,
    TransactionKind.EXPENSE: ExpenseDraft,
}


# =============================================================================
# TAXONOMY MAPPING
# =============================================================================

TAXONOMY_FIELDS: dict[tuple[TransactionKind, str], TaxonomyKey] = {
    (TransactionKind.INCOME, "fund_source"): TaxonomyKey.FUND_SOURCE,
    (TransactionKind.INCOME, "category"): TaxonomyKey.INCOME_CATEGORY,
    (TransactionKind.INCOME, "account"): TaxonomyKey.ACCOUNT,
    (TransactionKind.EXPENSE, "counterparty"): TaxonomyKey.COUNTERPARTY,
    (TransactionKind.EXPENSE, "category"): TaxonomyKey.EXPENSE_CATEGORY,
    (TransactionKind.EXPENSE, "account"): TaxonomyKey.ACCOUNT,
}


def taxonomy_key_for(kind: TransactionKind, field: str) -> TaxonomyKey:
    """
    Look up which option list feeds a transaction field.

    Raises:
        KeyError: If the field is not a taxonomy field of that kind
    """
    return TAXONOMY_FIELDS[(kind, field)]


def observed_fields(key: TaxonomyKey) -> list[tuple[TransactionKind, str]]:
    """All (kind, field) pairs whose values widen the given option list."""
    return [pair for pair, mapped in TAXONOMY_FIELDS.items() if mapped == key]


def transaction_model(kind: TransactionKind) -> type[_TransactionFields]:
    return MODEL_FOR_KIND[kind]
