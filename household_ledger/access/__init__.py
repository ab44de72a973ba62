"""Role-based write gate."""

from household_ledger.access.roles import (
    LedgerAccessError,
    PermissionDeniedError,
    Role,
    RoleProvider,
    fixed_role,
    require_write,
)

__all__ = [
    "LedgerAccessError",
    "PermissionDeniedError",
    "Role",
    "RoleProvider",
    "fixed_role",
    "require_write",
]
