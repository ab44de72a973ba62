"""
Household Ledger - Source Package

The ledger and reporting engine behind a household finance book:
income ("Penerimaan") and expense ("Pengeluaran") transactions,
open-ended option lists, bulk spreadsheet import and monthly
balance reports.

DESIGN PRINCIPLES:
1. One writer at a time, one exclusive section per store operation
2. Fail early, fail visibly (imports are all-or-nothing)
3. No silent corrections of amounts or dates
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "0.1.0"
