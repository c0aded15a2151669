"""
core.domain.access — The authorization guard.

Every protected operation in the service layer is checked through a
single policy function, ``authorize(roles, operation)``, which returns a
tagged decision (``Allow`` or ``Deny(reason)``).  Services normally call
``require_operation`` which turns a ``Deny`` into the matching domain
exception.

╔══════════════════════════════════════════════════════════════════╗
║  Role names are a closed vocabulary (``RoleName``).  Department  ║
║  staff roles such as "Electrical staff member" are not listed   ║
║  individually: every name outside the distinguished set is       ║
║  classified as ``RoleName.TECHNICAL_STAFF``.                     ║
╚══════════════════════════════════════════════════════════════════╝

Architecture overview
---------------------

    ┌─────────┐      ┌────────────────┐      ┌──────────────────┐
    │  View   │─────▶│  App service   │─────▶│ core.domain      │
    │ (thin)  │      │ (passes the    │      │   .access        │
    └─────────┘      │  principal)    │      │ authorize(...)   │
                     └────────────────┘      └──────────────────┘

The principal is always passed explicitly (``request.user`` handed to
the service); nothing here reads request-global state.

Usage in an app's service layer::

    from core.domain.access import Operation, require_operation

    require_operation(user, Operation.REVIEW_REPORT)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Union

from core.domain.exceptions import PermissionDenied, Unauthorized

if TYPE_CHECKING:
    from accounts.models import User


class RoleName(str, enum.Enum):
    """Closed set of role kinds the policy reasons about."""

    CITIZEN = "Citizen"
    ADMINISTRATOR = "Administrator"
    PUBLIC_RELATIONS_OFFICER = "Municipal Public Relations Officer"
    EXTERNAL_MAINTAINER = "External Maintainer"
    DEPARTMENT_DIRECTOR = "Department Director"
    TECHNICAL_STAFF = "Technical Staff"

    @classmethod
    def classify(cls, role_name: str) -> "RoleName":
        """Map a stored ``Role.name`` onto the closed vocabulary."""
        for member in cls:
            if member is not cls.TECHNICAL_STAFF and member.value == role_name:
                return member
        return cls.TECHNICAL_STAFF


#: Role names that can never be granted through municipality management.
NON_GRANTABLE_ROLES: frozenset[str] = frozenset({
    RoleName.CITIZEN.value,
    RoleName.ADMINISTRATOR.value,
})


class Operation(str, enum.Enum):
    """Every operation the guard knows about."""

    CREATE_REPORT = "create_report"
    REVIEW_REPORT = "review_report"
    VIEW_PENDING_REPORTS = "view_pending_reports"
    ADVANCE_REPORT = "advance_report"
    DELEGATE_REPORT = "delegate_report"
    VIEW_ASSIGNED_REPORTS = "view_assigned_reports"
    VIEW_EXTERNAL_ASSIGNMENTS = "view_external_assignments"
    INTERNAL_COMMENTS = "internal_comments"
    LIST_EXTERNAL_MAINTAINERS = "list_external_maintainers"
    MANAGE_COMPANIES = "manage_companies"
    BROWSE_CATALOG = "browse_catalog"
    MANAGE_MUNICIPALITY_USERS = "manage_municipality_users"
    MUTATE_OWNED_RESOURCE = "mutate_owned_resource"


@dataclass(frozen=True)
class Allow:
    """The operation is permitted."""


@dataclass(frozen=True)
class Deny:
    """The operation is refused; ``unauthenticated`` marks a 401 case."""

    reason: str
    unauthenticated: bool = False


Decision = Union[Allow, Deny]

_ADMIN_ONLY = "Access denied. Admin role required."

# Operation → (roles allowed, denial reason).  ``None`` as the role set
# means the operation is gated by ownership instead of role.
_POLICY: dict[Operation, tuple[frozenset[RoleName] | None, str]] = {
    Operation.CREATE_REPORT: (
        frozenset({RoleName.CITIZEN}),
        "Only citizens can create reports",
    ),
    Operation.REVIEW_REPORT: (
        frozenset({RoleName.PUBLIC_RELATIONS_OFFICER}),
        "Only Municipal Public Relations Officers can approve or reject reports",
    ),
    Operation.VIEW_PENDING_REPORTS: (
        frozenset({RoleName.PUBLIC_RELATIONS_OFFICER}),
        "Only Municipal Public Relations Officers can view pending reports",
    ),
    Operation.ADVANCE_REPORT: (
        frozenset({
            RoleName.TECHNICAL_STAFF,
            RoleName.DEPARTMENT_DIRECTOR,
            RoleName.EXTERNAL_MAINTAINER,
        }),
        "Only technical staff and external maintainers can update report progress",
    ),
    Operation.DELEGATE_REPORT: (
        frozenset({RoleName.TECHNICAL_STAFF, RoleName.DEPARTMENT_DIRECTOR}),
        "Only technical staff can assign reports to external maintainers",
    ),
    Operation.VIEW_ASSIGNED_REPORTS: (
        frozenset({
            RoleName.TECHNICAL_STAFF,
            RoleName.DEPARTMENT_DIRECTOR,
            RoleName.EXTERNAL_MAINTAINER,
        }),
        "Only technical staff and external maintainers can view assigned reports",
    ),
    Operation.VIEW_EXTERNAL_ASSIGNMENTS: (
        frozenset({
            RoleName.TECHNICAL_STAFF,
            RoleName.DEPARTMENT_DIRECTOR,
            RoleName.PUBLIC_RELATIONS_OFFICER,
        }),
        "Only municipality staff can view reports delegated to external maintainers",
    ),
    Operation.INTERNAL_COMMENTS: (
        frozenset(set(RoleName) - {RoleName.CITIZEN}),
        "Citizens cannot access internal comments",
    ),
    Operation.LIST_EXTERNAL_MAINTAINERS: (
        frozenset({
            RoleName.ADMINISTRATOR,
            RoleName.TECHNICAL_STAFF,
            RoleName.DEPARTMENT_DIRECTOR,
        }),
        "Access denied",
    ),
    Operation.MANAGE_COMPANIES: (frozenset({RoleName.ADMINISTRATOR}), _ADMIN_ONLY),
    Operation.BROWSE_CATALOG: (frozenset({RoleName.ADMINISTRATOR}), _ADMIN_ONLY),
    Operation.MANAGE_MUNICIPALITY_USERS: (frozenset({RoleName.ADMINISTRATOR}), _ADMIN_ONLY),
    Operation.MUTATE_OWNED_RESOURCE: (None, "You can only modify your own resources"),
}


def authorize(
    principal_roles: Iterable[RoleName] | None,
    operation: Operation,
    *,
    is_owner: bool | None = None,
) -> Decision:
    """
    Decide whether a principal may perform ``operation``.

    Args:
        principal_roles: The principal's role kinds, or ``None`` for an
                         unauthenticated caller.
        operation:       The operation being attempted.
        is_owner:        For ownership-gated operations, whether the
                         principal owns the target resource.

    Returns:
        ``Allow()`` or ``Deny(reason)``.
    """
    if principal_roles is None:
        return Deny("Not authenticated", unauthenticated=True)

    allowed, reason = _POLICY[operation]
    if allowed is None:
        return Allow() if is_owner else Deny(reason)

    if allowed.intersection(principal_roles):
        return Allow()
    return Deny(reason)


def principal_roles(user: User | None) -> frozenset[RoleName] | None:
    """
    Return the role kinds granted to ``user``, or ``None`` if the user
    is anonymous.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return frozenset(RoleName.classify(name) for name in user.role_names)


def require_operation(
    user: User | None,
    operation: Operation,
    *,
    is_owner: bool | None = None,
    message: str = "",
) -> None:
    """
    Guard that raises when ``authorize`` denies the operation.

    Raises:
        core.domain.exceptions.Unauthorized:     No authenticated user.
        core.domain.exceptions.PermissionDenied: Role or ownership refused.

    Example::

        require_operation(user, Operation.MANAGE_COMPANIES)
    """
    decision = authorize(principal_roles(user), operation, is_owner=is_owner)
    if isinstance(decision, Deny):
        if decision.unauthenticated:
            raise Unauthorized(decision.reason)
        raise PermissionDenied(message or decision.reason)
