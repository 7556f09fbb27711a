"""
Permission System (Tenant Guard)

Two independent checks run before any tenant-scoped read or write:

1. Role check: each Operation has an explicit allow-list of roles
   (PERMISSIONS below). A principal outside the list gets
   InsufficientPermissions.
2. Tenant check: the resource must belong to the principal's organization.
   Anything else, including a resource that does not exist, gets
   AccessDenied with an identical response.

A principal without an organization fails both checks with NoOrganization.
"""
import enum
from typing import Dict, FrozenSet, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from nexaro.models.user import User, UserRole
from nexaro.core.exceptions import AccessDenied, InsufficientPermissions, NoOrganization
from nexaro.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

T = TypeVar("T")


class Operation(str, enum.Enum):
    VIEW_ORGANIZATION = "view_organization"
    UPDATE_ORGANIZATION = "update_organization"
    VIEW_TEAM = "view_team"
    INVITE_MEMBER = "invite_member"
    MANAGE_CLIENTS = "manage_clients"
    MANAGE_SERVICES = "manage_services"
    MANAGE_BOOKINGS = "manage_bookings"
    VIEW_SUBSCRIPTION = "view_subscription"
    MANAGE_SUBSCRIPTION = "manage_subscription"


MANAGERS: FrozenSet[UserRole] = frozenset({UserRole.FOUNDER, UserRole.ADMIN})
MEMBERS: FrozenSet[UserRole] = frozenset({UserRole.FOUNDER, UserRole.ADMIN, UserRole.STAFF})

PERMISSIONS: Dict[Operation, FrozenSet[UserRole]] = {
    # Organization settings and team management
    Operation.VIEW_ORGANIZATION: MEMBERS,
    Operation.UPDATE_ORGANIZATION: MANAGERS,
    Operation.VIEW_TEAM: MEMBERS,
    Operation.INVITE_MEMBER: MANAGERS,
    # Day-to-day CRUD
    Operation.MANAGE_CLIENTS: MEMBERS,
    Operation.MANAGE_SERVICES: MEMBERS,
    Operation.MANAGE_BOOKINGS: MEMBERS,
    # Billing metadata
    Operation.VIEW_SUBSCRIPTION: MEMBERS,
    Operation.MANAGE_SUBSCRIPTION: MANAGERS,
}


def require_organization(principal: User) -> int:
    """Return the principal's organization id or raise NoOrganization."""
    if not principal.is_affiliated:
        raise NoOrganization()
    return principal.organization_id


def authorize(principal: User, operation: Operation) -> None:
    """
    Check that the principal may perform ``operation``.

    Raises NoOrganization for unaffiliated users, InsufficientPermissions
    when the role is not in the operation's allow-list.
    """
    require_organization(principal)

    # Unknown operations are denied rather than allowed
    allowed = PERMISSIONS.get(operation, frozenset())
    if principal.role not in allowed:
        log_security_event(
            "insufficient_permissions",
            {
                "user_id": principal.id,
                "organization_id": principal.organization_id,
                "role": getattr(principal.role, "value", principal.role),
                "operation": operation.value,
            },
            logger
        )
        raise InsufficientPermissions()


def ensure_same_tenant(principal: User, resource: Optional[T]) -> T:
    """
    Verify the resource belongs to the principal's organization.

    ``resource`` may be None (not found); that is reported exactly like a
    resource from another tenant.
    """
    organization_id = require_organization(principal)

    if resource is None:
        raise AccessDenied()

    if resource.owning_organization_id != organization_id:
        log_security_event(
            "tenant_isolation_violation",
            {
                "user_id": principal.id,
                "organization_id": organization_id,
                "resource": type(resource).__name__,
                "resource_organization_id": resource.owning_organization_id,
            },
            logger
        )
        raise AccessDenied()

    return resource


def get_scoped_or_deny(db: Session, model: Type[T], resource_id: int, principal: User) -> T:
    """Load ``model`` by primary key and run the tenant check on it."""
    return ensure_same_tenant(principal, db.get(model, resource_id))
