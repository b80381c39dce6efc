"""
Authorization Gate
Pure allow/deny decisions over already looked-up identity and tenant state
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from homefield.core.errors import ErrorKind, error_for
from homefield.domain.models.tenant import Identity, Tenant, TenantRole


class Operation(str, Enum):
    READ = "read"
    UPDATE = "update"
    DELETE_TENANT = "delete_tenant"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    kind: Optional[ErrorKind] = None
    reason: Optional[str] = None

    def raise_for_denial(self) -> None:
        """Raise the PortalError matching this decision, if denied."""
        if not self.allowed:
            raise error_for(self.kind, self.reason)


ALLOW = Decision(allowed=True)


def deny(kind: ErrorKind, reason: str) -> Decision:
    return Decision(allowed=False, kind=kind, reason=reason)


def authorize(
    identity: Optional[Identity],
    caller_tenant: Optional[Tenant] = None,
    required_role: Optional[TenantRole] = None,
    target_id: Optional[str] = None,
    target: Optional[Tenant] = None,
    operation: Optional[Operation] = None,
) -> Decision:
    """
    Decide whether the caller may perform an operation.

    Rules are applied in a fixed order: authentication, role, target
    existence, self-action guard. A non-admin is always told Forbidden,
    never whether the target exists.

    Args:
        identity: Resolved caller, or None when the session is missing/invalid
        caller_tenant: Tenant the caller resolved to (None if none)
        required_role: Role the operation demands (admin-only routes)
        target_id: Tenant id the operation references, if any
        target: Looked-up row for target_id (None if it does not exist)
        operation: What the caller is attempting

    Returns:
        ALLOW or a denial carrying its ErrorKind and a short message
    """
    if identity is None:
        return deny(ErrorKind.UNAUTHENTICATED, "Unauthorized")

    if required_role == TenantRole.ADMIN:
        if caller_tenant is None or not caller_tenant.is_admin:
            return deny(ErrorKind.FORBIDDEN, "Forbidden")

    if target_id is not None and target is None:
        return deny(ErrorKind.NOT_FOUND, "Client not found")

    if operation == Operation.DELETE_TENANT and target is not None:
        if target.auth_user_id is not None and target.auth_user_id == identity.id:
            return deny(ErrorKind.INVALID_INPUT, "Cannot delete your own account")

    return ALLOW
