"""Read-side views over the transaction stores."""

from household_ledger.queries.reports import (
    ReportEngine,
    build_dashboard_stats,
    build_monthly_report,
)
from household_ledger.queries.dashboard import (
    DashboardBuilder,
    available_years,
    build_year_dashboard,
)
from household_ledger.queries.export import (
    REPORT_COLUMNS,
    report_export_rows,
    transaction_export_rows,
)
from household_ledger.queries.listing import (
    FILTER_FIELDS,
    FilterNotApplicableError,
    build_list_stats,
    filter_options,
    filter_transactions,
)

__all__ = [
    "DashboardBuilder",
    "FILTER_FIELDS",
    "FilterNotApplicableError",
    "REPORT_COLUMNS",
    "ReportEngine",
    "available_years",
    "build_dashboard_stats",
    "build_list_stats",
    "build_monthly_report",
    "build_year_dashboard",
    "filter_options",
    "filter_transactions",
    "report_export_rows",
    "transaction_export_rows",
]
