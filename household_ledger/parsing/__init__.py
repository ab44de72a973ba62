"""Parsing of raw spreadsheet cell values."""

from household_ledger.parsing.dates import format_date, resolve_date

__all__ = [
    "format_date",
    "resolve_date",
]
