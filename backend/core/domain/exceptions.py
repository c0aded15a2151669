"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers.
They are deliberately **not** DRF exceptions so that the domain layer stays
framework-agnostic.  The global DRF exception handler in
``core.domain.exception_handler`` maps them to HTTP responses.

Mapping cheatsheet
------------------
┌─────────────────────┬──────────────────────────────┬──────┐
│ Domain Exception    │ Meaning                      │ Code │
├─────────────────────┼──────────────────────────────┼──────┤
│ DomainError         │ Bad request / business rule  │ 400  │
│ InvalidTransition   │ Illegal report status change │ 400  │
│ Unauthorized        │ No valid session             │ 401  │
│ PermissionDenied    │ Insufficient rights          │ 403  │
│ NotFound            │ Referenced entity missing    │ 404  │
│ Conflict            │ Uniqueness violation         │ 409  │
│ ConfigurationError  │ Internal / missing config    │ 500  │
└─────────────────────┴──────────────────────────────┴──────┘

Recommended usage inside a service::

    from core.domain.exceptions import InvalidTransition

    if (report.status, target) not in ALLOWED_TRANSITIONS:
        raise InvalidTransition(current=report.status, target=target)
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Raised directly for malformed input or a violated business rule
    (the *bad request* case).  Maps to HTTP 400.
    """

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class InvalidTransition(DomainError):
    """
    A report status change that is not an edge of the lifecycle graph.

    Maps to HTTP 400.

    Example::

        raise InvalidTransition(
            current="Resolved",
            target="In Progress",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid status transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            if reason:
                parts.append(f"({reason})")
            message = " ".join(parts) + "."
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class Unauthorized(DomainError):
    """
    No authenticated principal was supplied for a protected operation.

    Maps to HTTP 401.
    """

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class PermissionDenied(DomainError):
    """
    The authenticated user does not hold a role (or does not own the
    resource) required for this operation.

    Maps to HTTP 403.
    """

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested resource does not exist (or is not visible to the
    requesting user given their role scope).

    Maps to HTTP 404.
    """

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with existing data.

    Typical usage: duplicate username, email or company name.
    Maps to HTTP 409.
    """

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class ConfigurationError(DomainError):
    """
    An internal failure caused by missing reference data rather than by
    the caller, e.g. a report category with no responsible DepartmentRole.

    Maps to HTTP 500.
    """

    def __init__(self, message: str = "Internal configuration error.") -> None:
        super().__init__(message)
