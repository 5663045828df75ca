"""
Access policy: which role may perform which operation.

This is the single capability table for the whole application. Services
consult it before doing any work, and the login / `/auth/me` responses
expose `capabilities(role)` so a client can hide controls without keeping
its own copy of the rules.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Dict, FrozenSet, List

from .errors import Unauthorized

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    VIEWER = "viewer"
    MANAGER = "manager"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """
        Map any input to a role. Unknown or malformed values become VIEWER
        (least privilege). Matching is case-sensitive.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.VIEWER


class Operation(str, enum.Enum):
    LIST_ITEMS = "list_items"
    READ_ITEM = "read_item"
    CREATE_ITEM = "create_item"
    UPDATE_ITEM = "update_item"
    DELETE_ITEM = "delete_item"
    READ_ITEM_AUDIT = "read_item_audit"
    READ_AUDIT_LOG = "read_audit_log"
    EXPORT_AUDIT = "export_audit"
    LIST_USERS = "list_users"


_ALL = frozenset(Role)
_WRITERS = frozenset({Role.MANAGER, Role.ADMIN})
_ADMIN_ONLY = frozenset({Role.ADMIN})

POLICY: Dict[Operation, FrozenSet[Role]] = {
    Operation.LIST_ITEMS: _ALL,
    Operation.READ_ITEM: _ALL,
    Operation.CREATE_ITEM: _WRITERS,
    Operation.UPDATE_ITEM: _WRITERS,
    Operation.DELETE_ITEM: _ADMIN_ONLY,
    Operation.READ_ITEM_AUDIT: _WRITERS,
    Operation.READ_AUDIT_LOG: _WRITERS,
    Operation.EXPORT_AUDIT: _WRITERS,
    Operation.LIST_USERS: _ADMIN_ONLY,
}


def authorize(role: Any, operation: Operation) -> bool:
    """Return True if `role` may perform `operation`. Never raises."""
    allowed = POLICY.get(operation)
    if allowed is None:
        return False
    return Role.parse(role) in allowed


def ensure_allowed(role: Any, operation: Operation, *, actor: str = "") -> None:
    """Raise Unauthorized unless `role` may perform `operation`."""
    if authorize(role, operation):
        return
    logger.warning(
        "Operation denied by access policy",
        extra={"actor": actor, "role": str(getattr(role, "value", role)), "operation": operation.value},
    )
    raise Unauthorized("Insufficient permissions for this operation.")


def capabilities(role: Any) -> List[str]:
    """Operations the role may perform, in table order."""
    parsed = Role.parse(role)
    return [op.value for op, roles in POLICY.items() if parsed in roles]
