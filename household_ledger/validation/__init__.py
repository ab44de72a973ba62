"""Bulk import validation."""

from household_ledger.validation.importer import (
    COLUMNS,
    EmptyImportError,
    ImportPipeline,
    ImportPipelineError,
    ImportRowError,
    InvalidAmountError,
    InvalidDateError,
    cell_text,
    coerce_amount,
)

__all__ = [
    "COLUMNS",
    "EmptyImportError",
    "ImportPipeline",
    "ImportPipelineError",
    "ImportRowError",
    "InvalidAmountError",
    "InvalidDateError",
    "cell_text",
    "coerce_amount",
]
