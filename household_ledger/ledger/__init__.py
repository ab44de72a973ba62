"""The canonical transaction collections and the option lists built on them."""

from household_ledger.ledger.store import (
    StoreClosedError,
    TransactionStore,
    generate_transaction_code,
)
from household_ledger.ledger.options import DEFAULT_OPTIONS, OptionRegistry

__all__ = [
    "DEFAULT_OPTIONS",
    "OptionRegistry",
    "StoreClosedError",
    "TransactionStore",
    "generate_transaction_code",
]
