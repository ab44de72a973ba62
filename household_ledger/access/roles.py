"""
Roles and the write gate.

Authentication is not this package's job: the host application decides
who is signed in and hands the ledger a RoleProvider, a zero-argument
callable returning the current Role. The ledger only asks one question
of that role: may it write?

CONTRACT: TransactionStore does not check roles. Every caller that
creates, updates, deletes or imports transactions must go through
`require_write` first. LedgerService does this for all of its write
operations.
"""

from enum import Enum
from typing import Callable, Optional

import structlog


logger = structlog.get_logger(__name__)


class Role(str, Enum):
    """Roles known to the ledger."""
    ADMIN = "admin"
    USER = "user"

    @property
    def can_write(self) -> bool:
        return self is Role.ADMIN


RoleProvider = Callable[[], Optional[Role]]


def fixed_role(role: Role) -> RoleProvider:
    """A provider that always reports the same role."""
    return lambda: role


def require_write(role_provider: RoleProvider, operation: str) -> Role:
    """
    Return the current role if it may write, otherwise refuse.

    A provider that reports no role (nobody signed in) is refused too.

    Raises:
        PermissionDeniedError: If the current role cannot write
    """
    role = role_provider()
    if role is None or not role.can_write:
        logger.info(
            "write_refused",
            operation=operation,
            role=role.value if role else None,
        )
        raise PermissionDeniedError(operation, role)
    return role


class LedgerAccessError(Exception):
    """Base exception for access control."""
    pass


class PermissionDeniedError(LedgerAccessError):
    """The current role may not perform a write operation."""

    def __init__(self, operation: str, role: Optional[Role]):
        self.operation = operation
        self.role = role
        role_name = role.value if role else "anonymous"
        super().__init__(f"Role '{role_name}' may not {operation}")
