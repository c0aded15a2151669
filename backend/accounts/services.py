"""
Accounts Service Layer.

This module is the **single source of truth** for all business logic
within the ``accounts`` app.  Views must remain *thin*: they validate
input through serializers, call a service function / method, and
return the result wrapped in a DRF ``Response``.

Architecture
------------
- ``UserRegistrationService``    — citizen self-registration.
- ``AuthenticationService``      — username/email login + JWT issuance.
- ``DepartmentCatalogService``   — Role / Department / DepartmentRole look-ups.
- ``CompanyService``             — external company management.
- ``UserRoleService``            — grant / replace / remove DepartmentRoles.
- ``MunicipalityUserService``    — staff account management.

Invariants owned here
---------------------
* Every user holds at least one DepartmentRole at all times.
* A user holding "External Maintainer" has a company; nobody else does.
* Citizen and Administrator grants are never handed out through the
  municipality-management surface.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from django.contrib.auth import authenticate as django_authenticate
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.db.models.functions import Lower
from rest_framework_simplejwt.tokens import RefreshToken

from core.constants import ORGANIZATION_DEPARTMENT, ReportCategory
from core.domain.access import NON_GRANTABLE_ROLES, Operation, RoleName, require_operation
from core.domain.exceptions import ConfigurationError, Conflict, DomainError, NotFound
from core.domain.transactions import lock_for_update

from .models import Company, Department, DepartmentRole, Role, UserRole

User = get_user_model()
logger = logging.getLogger(__name__)

#: Sentinel meaning "the caller did not mention company_name at all".
UNSET: Any = object()


def _check_unique_identity(username: str | None, email: str | None, *, exclude_pk: Any = None) -> None:
    """Raise ``Conflict`` if the username or email is already taken."""
    qs = User.objects.all()
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if username and qs.filter(username=username).exists():
        raise Conflict("Username already exists")
    if email and qs.filter(email__iexact=email).exists():
        raise Conflict("Email already exists")


# ═══════════════════════════════════════════════════════════════════
#  Department Catalog Service
# ═══════════════════════════════════════════════════════════════════


class DepartmentCatalogService:
    """
    Read-only access to the seeded Role / Department / DepartmentRole
    reference data.

    Look-up helpers (``find_*``) return ``None`` on absence; listing
    methods are Administrator-only and take the requesting user.
    """

    @staticmethod
    def find_department_role(department_name: str, role_name: str) -> DepartmentRole | None:
        """Return the DepartmentRole pairing the two names, or ``None``."""
        return (
            DepartmentRole.objects
            .select_related("department", "role")
            .filter(department__name=department_name, role__name=role_name)
            .first()
        )

    @staticmethod
    def get_department_role(department_role_id: Any) -> DepartmentRole | None:
        try:
            return DepartmentRole.objects.select_related("department", "role").get(
                pk=department_role_id,
            )
        except (DepartmentRole.DoesNotExist, ValueError, TypeError):
            return None

    @staticmethod
    def list_municipality_departments(requesting_user: User) -> QuerySet[Department]:
        """
        Return every department except the non-operational ``Organization``.

        Raises
        ------
        PermissionDenied
            If the requester is not an Administrator.
        """
        require_operation(requesting_user, Operation.BROWSE_CATALOG)
        return Department.objects.exclude(name=ORGANIZATION_DEPARTMENT).order_by("name")

    @staticmethod
    def list_roles_for_department(requesting_user: User, department_id: Any) -> QuerySet[Role]:
        """
        Return the roles paired with a department.

        For ``Organization`` the Citizen and Administrator roles are left
        out, since those are never assigned by an administrator.

        Parameters
        ----------
        requesting_user : User
            Must be an Administrator.
        department_id : int
            PK of the ``Department``.

        Raises
        ------
        NotFound
            If the department does not exist.
        """
        require_operation(requesting_user, Operation.BROWSE_CATALOG)
        try:
            department = Department.objects.get(pk=department_id)
        except (Department.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Department with ID {department_id} not found")

        roles = Role.objects.filter(department_roles__department=department)
        if department.is_organization:
            roles = roles.exclude(name__in=NON_GRANTABLE_ROLES)
        return roles.order_by("name")

    @staticmethod
    def list_all_municipality_role_names(requesting_user: User) -> list[str]:
        """Distinct role names in use by any department, minus Citizen/Administrator."""
        require_operation(requesting_user, Operation.BROWSE_CATALOG)
        return list(
            Role.objects
            .filter(department_roles__isnull=False)
            .exclude(name__in=NON_GRANTABLE_ROLES)
            .order_by("name")
            .values_list("name", flat=True)
            .distinct()
        )

    @staticmethod
    def list_grantable_department_roles(requesting_user: User) -> QuerySet[DepartmentRole]:
        """DepartmentRoles an administrator may grant to staff."""
        require_operation(requesting_user, Operation.BROWSE_CATALOG)
        return (
            DepartmentRole.objects
            .select_related("department", "role")
            .exclude(role__name__in=NON_GRANTABLE_ROLES)
        )


# ═══════════════════════════════════════════════════════════════════
#  Company Service
# ═══════════════════════════════════════════════════════════════════


class CompanyService:
    """
    External companies that employ External Maintainers.
    """

    @staticmethod
    def find_company_by_name(name: str | None) -> Company | None:
        if not name:
            return None
        return Company.objects.filter(name__iexact=name.strip()).first()

    @staticmethod
    def list_companies(requesting_user: User) -> QuerySet[Company]:
        """All companies ordered by case-insensitive name."""
        require_operation(requesting_user, Operation.MANAGE_COMPANIES)
        return Company.objects.order_by(Lower("name"), "id")

    @staticmethod
    @transaction.atomic
    def create_company(requesting_user: User, *, name: str, category: str) -> Company:
        """
        Register a new external company.

        Parameters
        ----------
        requesting_user : User
            Must be an Administrator.
        name : str
            Unique (case-insensitive) company name.
        category : str
            A ``ReportCategory`` value; the only kind of report the
            company's maintainers may be delegated.

        Raises
        ------
        DomainError
            If ``category`` is not a known report category.
        Conflict
            If a company with the same name already exists.
        """
        require_operation(requesting_user, Operation.MANAGE_COMPANIES)

        name = (name or "").strip()
        if not name:
            raise DomainError("Company name is required")
        if category not in ReportCategory.values:
            raise DomainError(
                f'Invalid category "{category}". Category does not exist in the system.'
            )
        if Company.objects.filter(name__iexact=name).exists():
            raise Conflict(f'Company "{name}" already exists')

        try:
            with transaction.atomic():
                company = Company.objects.create(name=name, category=category)
        except IntegrityError:
            raise Conflict(f'Company "{name}" already exists')

        logger.info("Company created: %s (%s) by %s", company.name, company.category, requesting_user)
        return company


# ═══════════════════════════════════════════════════════════════════
#  Registration Service
# ═══════════════════════════════════════════════════════════════════


class UserRegistrationService:
    """
    Citizen self-registration.
    """

    @staticmethod
    def register_citizen(validated_data: dict[str, Any]) -> User:
        """
        Create a new citizen and grant ``(Organization, Citizen)``.

        Parameters
        ----------
        validated_data : dict
            Cleaned data from ``RegisterRequestSerializer`` containing
            ``username``, ``password``, ``email``, ``first_name``,
            ``last_name``.

        Returns
        -------
        User
            The newly created citizen.

        Raises
        ------
        Conflict
            If the username or email is already taken (also when a
            concurrent registration wins the race at the unique index).
        ConfigurationError
            If the catalog has not been seeded.
        """
        data = dict(validated_data)
        data.pop("password_confirm", None)
        password = data.pop("password")

        _check_unique_identity(data.get("username"), data.get("email"))

        citizen_role = DepartmentCatalogService.find_department_role(
            ORGANIZATION_DEPARTMENT, RoleName.CITIZEN.value,
        )
        if citizen_role is None:
            logger.error("Citizen DepartmentRole missing; run `manage.py seed_catalog`.")
            raise ConfigurationError("Citizen role is not configured")

        try:
            with transaction.atomic():
                user = User.objects.create_user(password=password, **data)
                UserRole.objects.create(user=user, department_role=citizen_role)
        except IntegrityError:
            raise Conflict("Username or email already exists")

        logger.info("Citizen registered: %s", user.username)
        return user


# ═══════════════════════════════════════════════════════════════════
#  Authentication Service
# ═══════════════════════════════════════════════════════════════════


class AuthenticationService:
    """
    Handles username-or-email login and JWT token generation.
    """

    @staticmethod
    def authenticate(identifier: str, password: str) -> User | None:
        """
        Validate credentials and return the user if successful.

        Returns ``None`` when the credentials are invalid or the user
        is inactive.
        """
        return django_authenticate(identifier=identifier, password=password)

    @staticmethod
    def generate_tokens(user: User) -> dict[str, str]:
        """
        Issue a JWT access/refresh token pair for the given user.

        The role names are embedded as a ``roles`` claim so the frontend
        can render role-specific screens without an extra request.

        Returns
        -------
        dict
            ``{"access": "<token>", "refresh": "<token>"}``.
        """
        refresh = RefreshToken.for_user(user)
        refresh["roles"] = sorted(set(user.role_names))
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }


# ═══════════════════════════════════════════════════════════════════
#  User Role Service
# ═══════════════════════════════════════════════════════════════════


class UserRoleService:
    """
    Grants, replaces and removes DepartmentRoles on a user.

    Every mutating method runs in one transaction and locks the target
    user row first, so concurrent removals cannot leave a user with
    zero grants.
    """

    @staticmethod
    def _resolve_department_roles(department_role_ids: Iterable[Any]) -> list[DepartmentRole]:
        ids = list(department_role_ids)
        resolved: list[DepartmentRole] = []
        for dr_id in ids:
            department_role = DepartmentCatalogService.get_department_role(dr_id)
            if department_role is None:
                raise DomainError(f"Invalid department role id: {dr_id}")
            if department_role not in resolved:
                resolved.append(department_role)
        return resolved

    @staticmethod
    def _ensure_grantable(department_roles: Iterable[DepartmentRole]) -> None:
        for department_role in department_roles:
            if department_role.role.name == RoleName.CITIZEN.value:
                raise DomainError("Cannot assign Citizen role to municipality user")
            if department_role.role.name == RoleName.ADMINISTRATOR.value:
                raise DomainError("Cannot assign Administrator role through this endpoint")

    @staticmethod
    def _ensure_municipality_user(
        user: User,
        *,
        citizen_message: str = "Cannot change the roles of a citizen through this endpoint",
    ) -> None:
        """Citizens and Administrators are outside municipality management."""
        if user.is_citizen:
            raise DomainError(citizen_message)
        if user.is_administrator:
            raise DomainError("Cannot change the roles of an Administrator through this endpoint")

    @staticmethod
    def apply_company_rule(user: User, *, holds_external: bool, company_name: Any = UNSET) -> None:
        """
        Keep ``user.company`` consistent with the External Maintainer grant.

        Parameters
        ----------
        user : User
            The (locked) target user; saved if the company changes.
        holds_external : bool
            Whether the user will hold "External Maintainer" after the
            surrounding operation.
        company_name : str | None | UNSET
            Company requested by the caller.  ``UNSET`` keeps whatever is
            already stored; an explicit ``None`` or ``""`` clears it.

        Raises
        ------
        NotFound
            If ``company_name`` does not resolve to a company.
        DomainError
            If a company is supplied for a non External Maintainer, or an
            External Maintainer would end up without one.
        """
        mentioned = company_name is not UNSET
        supplied = mentioned and company_name not in (None, "")

        if holds_external:
            if supplied:
                company = CompanyService.find_company_by_name(company_name)
                if company is None:
                    raise NotFound(f'Company "{company_name}" not found')
            elif mentioned:
                company = None
            else:
                company = user.company
            if company is None:
                raise DomainError("External Maintainer role requires a company")
        else:
            if supplied:
                raise DomainError(
                    "Company can only be specified for users with the External Maintainer role"
                )
            company = None

        if user.company_id != (company.pk if company else None):
            user.company = company
            user.save(update_fields=["company"])

    @staticmethod
    @transaction.atomic
    def assign_role(*, user_id: Any, department_role_id: Any, performed_by: User, company_name: Any = UNSET) -> User:
        """
        Add a DepartmentRole grant to a municipality user.

        Parameters
        ----------
        user_id : int
            PK of the target user.
        department_role_id : int
            PK of the ``DepartmentRole`` to grant.
        performed_by : User
            Must be an Administrator.
        company_name : str, optional
            Required when granting "External Maintainer" to a user that
            has no company yet.

        Raises
        ------
        NotFound
            Unknown user or department role.
        DomainError
            Citizen / Administrator grant, or the target is a citizen.
        Conflict
            The user already holds the grant.
        """
        require_operation(performed_by, Operation.MANAGE_MUNICIPALITY_USERS)

        user = lock_for_update(User, user_id, label="User")
        department_role = DepartmentCatalogService.get_department_role(department_role_id)
        if department_role is None:
            raise NotFound("Department role not found")

        UserRoleService._ensure_grantable([department_role])
        UserRoleService._ensure_municipality_user(
            user, citizen_message="Cannot assign a municipality role to a citizen",
        )
        if user.holds(department_role):
            raise Conflict("User already has this role")

        holds_external = (
            department_role.role.name == RoleName.EXTERNAL_MAINTAINER.value
            or user.is_external_maintainer
        )
        UserRoleService.apply_company_rule(
            user, holds_external=holds_external, company_name=company_name,
        )
        UserRole.objects.create(user=user, department_role=department_role)

        logger.info("Granted %s to %s by %s", department_role, user.username, performed_by)
        return user

    @staticmethod
    @transaction.atomic
    def replace_all_roles(
        *,
        user_id: Any,
        department_role_ids: list[Any],
        performed_by: User,
        company_name: Any = UNSET,
    ) -> User:
        """
        Replace every grant of a user with ``department_role_ids``.

        Raises
        ------
        DomainError
            Empty list, unknown id, a Citizen / Administrator
            DepartmentRole, or a target that is a citizen or an
            Administrator.
        NotFound
            Unknown user, or unknown ``company_name``.
        """
        require_operation(performed_by, Operation.MANAGE_MUNICIPALITY_USERS)

        if not department_role_ids:
            raise DomainError("At least one role is required")

        user = lock_for_update(User, user_id, label="User")
        UserRoleService._ensure_municipality_user(user)
        department_roles = UserRoleService._resolve_department_roles(department_role_ids)
        UserRoleService._ensure_grantable(department_roles)

        holds_external = any(
            dr.role.name == RoleName.EXTERNAL_MAINTAINER.value for dr in department_roles
        )
        UserRoleService.apply_company_rule(
            user, holds_external=holds_external, company_name=company_name,
        )

        UserRole.objects.filter(user=user).delete()
        UserRole.objects.bulk_create(
            [UserRole(user=user, department_role=dr) for dr in department_roles]
        )

        logger.info(
            "Replaced roles of %s with %s by %s",
            user.username,
            [str(dr) for dr in department_roles],
            performed_by,
        )
        return user

    @staticmethod
    @transaction.atomic
    def remove_role(*, user_id: Any, department_role_id: Any, performed_by: User) -> User:
        """
        Remove one grant from a user.

        Raises
        ------
        NotFound
            Unknown user, or the user does not hold that DepartmentRole.
        DomainError
            The grant is the user's last remaining one, or the target is
            a citizen or an Administrator.
        """
        require_operation(performed_by, Operation.MANAGE_MUNICIPALITY_USERS)

        user = lock_for_update(User, user_id, label="User")
        UserRoleService._ensure_municipality_user(user)
        grants = UserRole.objects.select_related("department_role__role").filter(user=user)
        grant = grants.filter(department_role_id=department_role_id).first()
        if grant is None:
            raise NotFound("User does not have this role")
        if grants.count() <= 1:
            raise DomainError("Cannot remove the last role of a user")

        removed_external = grant.department_role.role.name == RoleName.EXTERNAL_MAINTAINER.value
        grant.delete()
        if removed_external and not user.is_external_maintainer:
            UserRoleService.apply_company_rule(user, holds_external=False)

        logger.info("Removed role %s from %s by %s", department_role_id, user.username, performed_by)
        return user


# ═══════════════════════════════════════════════════════════════════
#  Municipality User Service
# ═══════════════════════════════════════════════════════════════════


class MunicipalityUserService:
    """
    Administrative operations on staff accounts (every user that is
    neither a Citizen nor an Administrator).
    """

    @staticmethod
    def _municipality_users() -> QuerySet[User]:
        return (
            User.objects
            .filter(user_roles__isnull=False)
            .exclude(department_roles__role__name__in=NON_GRANTABLE_ROLES)
            .select_related("company")
            .distinct()
        )

    @staticmethod
    def list_users(performed_by: User) -> QuerySet[User]:
        """Municipality users, newest first."""
        require_operation(performed_by, Operation.MANAGE_MUNICIPALITY_USERS)
        return MunicipalityUserService._municipality_users().order_by("-date_joined", "-id")

    @staticmethod
    def get_user(performed_by: User, user_id: Any) -> User:
        require_operation(performed_by, Operation.MANAGE_MUNICIPALITY_USERS)
        try:
            return MunicipalityUserService._municipality_users().get(pk=user_id)
        except (User.DoesNotExist, ValueError, TypeError):
            raise NotFound("User not found")

    @staticmethod
    @transaction.atomic
    def create_user(performed_by: User, validated_data: dict[str, Any]) -> User:
        """
        Create a staff account holding one or more DepartmentRoles.

        Parameters
        ----------
        performed_by : User
            Must be an Administrator.
        validated_data : dict
            ``username``, ``password``, ``email``, ``first_name``,
            ``last_name``, ``department_role_ids`` and, for External
            Maintainers, ``company_name``.

        Raises
        ------
        DomainError
            Citizen / Administrator role requested, empty or unknown role
            ids, or a company/role mismatch.
        Conflict
            Username or email already taken.
        NotFound
            ``company_name`` does not resolve to a company.
        """
        require_operation(performed_by, Operation.MANAGE_MUNICIPALITY_USERS)

        data = dict(validated_data)
        department_role_ids = data.pop("department_role_ids", None) or []
        company_name = data.pop("company_name", UNSET)
        password = data.pop("password")

        if not department_role_ids:
            raise DomainError("At least one role is required")
        department_roles = UserRoleService._resolve_department_roles(department_role_ids)
        role_names = {dr.role.name for dr in department_roles}
        if RoleName.CITIZEN.value in role_names:
            raise DomainError("Cannot create a municipality user with Citizen role")
        if RoleName.ADMINISTRATOR.value in role_names:
            raise DomainError("Cannot create an Administrator through this endpoint")

        _check_unique_identity(data.get("username"), data.get("email"))

        try:
            with transaction.atomic():
                user = User.objects.create_user(password=password, **data)
                UserRoleService.apply_company_rule(
                    user,
                    holds_external=RoleName.EXTERNAL_MAINTAINER.value in role_names,
                    company_name=company_name,
                )
                UserRole.objects.bulk_create(
                    [UserRole(user=user, department_role=dr) for dr in department_roles]
                )
        except IntegrityError:
            raise Conflict("Username or email already exists")

        logger.info(
            "Municipality user created: %s with %s by %s",
            user.username,
            sorted(role_names),
            performed_by,
        )
        return user

    @staticmethod
    @transaction.atomic
    def update_user(performed_by: User, user_id: Any, validated_data: dict[str, Any]) -> User:
        """
        Update profile fields, roles and company of a staff account.

        ``department_role_ids`` (if present) goes through
        ``UserRoleService.replace_all_roles``; ``company_name`` alone is
        checked against the user's current grants.
        """
        user = MunicipalityUserService.get_user(performed_by, user_id)

        data = dict(validated_data)
        department_role_ids = data.pop("department_role_ids", None)
        company_name = data.pop("company_name", UNSET)

        if "email" in data:
            _check_unique_identity(None, data["email"], exclude_pk=user.pk)

        changed = [f for f in ("first_name", "last_name", "email") if f in data]
        for field in changed:
            setattr(user, field, data[field])
        if changed:
            user.save(update_fields=changed)

        if department_role_ids is not None:
            UserRoleService.replace_all_roles(
                user_id=user.pk,
                department_role_ids=department_role_ids,
                performed_by=performed_by,
                company_name=company_name,
            )
        elif company_name is not UNSET:
            UserRoleService.apply_company_rule(
                user,
                holds_external=user.is_external_maintainer,
                company_name=company_name,
            )

        user.refresh_from_db()
        logger.info("Municipality user %s updated by %s", user.username, performed_by)
        return user

    @staticmethod
    @transaction.atomic
    def delete_user(performed_by: User, user_id: Any) -> None:
        user = MunicipalityUserService.get_user(performed_by, user_id)
        username = user.username
        user.delete()
        logger.info("Municipality user %s deleted by %s", username, performed_by)

    @staticmethod
    def list_external_maintainers(requesting_user: User, *, category: str | None = None) -> QuerySet[User]:
        """
        External Maintainers, optionally limited to a company category.
        """
        require_operation(requesting_user, Operation.LIST_EXTERNAL_MAINTAINERS)
        qs = (
            User.objects
            .filter(department_roles__role__name=RoleName.EXTERNAL_MAINTAINER.value)
            .select_related("company")
            .distinct()
        )
        if category:
            if category not in ReportCategory.values:
                raise DomainError(f'Invalid category "{category}"')
            qs = qs.filter(company__category=category)
        return qs.order_by("username")
