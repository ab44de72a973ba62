"""Display helpers for amounts."""

from household_ledger.formatting.terbilang import format_currency, to_words

__all__ = [
    "format_currency",
    "to_words",
]
