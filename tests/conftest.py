"""
Shared fixtures for the ledger tests.

Async code is driven with asyncio.run() inside each test, so no pytest
plugin is needed.
"""

import datetime as dt
import itertools

import pytest

from household_ledger.access import Role, fixed_role
from household_ledger.audit import AuditLogger
from household_ledger.config import Settings
from household_ledger.models import (
    ExpenseDraft,
    IncomeDraft,
    TransactionStatus,
)
from household_ledger.services.storage import InMemoryAuditStorage, InMemoryStorage


@pytest.fixture
def storage():
    """Empty in-memory persistence."""
    return InMemoryStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def admin():
    return fixed_role(Role.ADMIN)


@pytest.fixture
def user():
    return fixed_role(Role.USER)


@pytest.fixture
def income_draft():
    """Factory for income drafts with sensible defaults."""
    counter = itertools.count(1)

    def make(
        amount: int = 100_000,
        on: dt.date = dt.date(2024, 1, 15),
        status: TransactionStatus = TransactionStatus.SETTLED,
        **overrides,
    ) -> IncomeDraft:
        fields = {
            "transaction_code": f"DP{on:%Y%m%d}-{next(counter):03d}",
            "date": on,
            "amount": amount,
            "status": status,
            "fund_source": "Gaji Bulanan",
            "category": "Pendapatan Tetap",
            "account": "Bank BCA",
        }
        fields.update(overrides)
        return IncomeDraft(**fields)

    return make


@pytest.fixture
def expense_draft():
    """Factory for expense drafts with sensible defaults."""
    counter = itertools.count(1)

    def make(
        amount: int = 30_000,
        on: dt.date = dt.date(2024, 1, 20),
        status: TransactionStatus = TransactionStatus.SETTLED,
        **overrides,
    ) -> ExpenseDraft:
        fields = {
            "transaction_code": f"DK{on:%Y%m%d}-{next(counter):03d}",
            "date": on,
            "amount": amount,
            "status": status,
            "counterparty": "Superindo",
            "item_name": "Beras 5kg",
            "category": "Kebutuhan Pokok",
            "account": "Tunai",
        }
        fields.update(overrides)
        return ExpenseDraft(**fields)

    return make
