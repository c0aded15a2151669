"""
Accounts app models.

Defines the Role / Department catalog, the ``DepartmentRole`` pairing
that is the unit of grant, external ``Company`` records, and a custom
``User`` extending Django's ``AbstractUser``.

A user is never granted a bare ``Role``: grants are rows of the explicit
``UserRole`` join table keyed by ``(user, department_role)``.  The
"at least one grant" and "External Maintainer requires a company"
invariants are enforced by ``accounts.services.UserRoleService``.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models

from core.constants import ORGANIZATION_DEPARTMENT, ReportCategory
from core.domain.access import RoleName


class Role(models.Model):
    """
    A named role, e.g. "Citizen", "Municipal Public Relations Officer",
    "Electrical staff member" or "Department Director".

    The same role name may appear in several departments (every municipal
    department has its own "Department Director").
    """

    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name="Role Name",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )

    class Meta:
        verbose_name = "Role"
        verbose_name_plural = "Roles"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Department(models.Model):
    """
    A municipal department.  ``Organization`` is the non-operational
    department that holds the Citizen and Administrator roles.
    """

    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name="Department Name",
    )

    class Meta:
        verbose_name = "Department"
        verbose_name_plural = "Departments"
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def is_organization(self) -> bool:
        return self.name == ORGANIZATION_DEPARTMENT


class DepartmentRole(models.Model):
    """
    The grantable pairing of a ``Department`` and a ``Role``.

    Seeded once by ``manage.py seed_catalog`` and treated as immutable
    reference data afterwards.
    """

    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        related_name="department_roles",
        verbose_name="Department",
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.PROTECT,
        related_name="department_roles",
        verbose_name="Role",
    )

    class Meta:
        verbose_name = "Department Role"
        verbose_name_plural = "Department Roles"
        ordering = ["department__name", "role__name"]
        constraints = [
            models.UniqueConstraint(
                fields=["department", "role"],
                name="unique_department_role",
            ),
        ]

    def __str__(self):
        return f"{self.department.name} / {self.role.name}"


class Company(models.Model):
    """
    An external company whose maintainers may be delegated reports of
    the company's ``category``.
    """

    name = models.CharField(
        max_length=150,
        unique=True,
        verbose_name="Company Name",
    )
    category = models.CharField(
        max_length=64,
        choices=ReportCategory.choices,
        verbose_name="Category",
    )

    class Meta:
        verbose_name = "Company"
        verbose_name_plural = "Companies"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.category})"


class User(AbstractUser):
    """
    Custom user model for citizens, municipal staff, administrators and
    external maintainers.

    Login is supported via username **or** email together with the
    password.  ``company`` is set if and only if the user holds the
    External Maintainer role.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="maintainers",
        verbose_name="Company",
    )
    department_roles = models.ManyToManyField(
        DepartmentRole,
        through="UserRole",
        related_name="users",
        blank=True,
        verbose_name="Department Roles",
    )

    REQUIRED_FIELDS = ["email"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return self.username

    # ── Helper predicates for role checks ────────────────────────────

    @property
    def role_names(self) -> list[str]:
        """Names of every role granted to the user (via any department)."""
        return list(
            self.department_roles.values_list("role__name", flat=True).distinct()
        )

    def has_role(self, role_name: str) -> bool:
        """Check whether any of the user's grants carries ``role_name``."""
        return self.department_roles.filter(role__name=role_name).exists()

    def holds(self, department_role: DepartmentRole) -> bool:
        """Check whether the user currently holds ``department_role``."""
        return self.user_roles.filter(department_role=department_role).exists()

    @property
    def is_citizen(self) -> bool:
        return self.has_role(RoleName.CITIZEN.value)

    @property
    def is_administrator(self) -> bool:
        return self.has_role(RoleName.ADMINISTRATOR.value)

    @property
    def is_external_maintainer(self) -> bool:
        return self.has_role(RoleName.EXTERNAL_MAINTAINER.value)


class UserRole(models.Model):
    """
    Explicit join table granting a ``DepartmentRole`` to a ``User``.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="user_roles",
        verbose_name="User",
    )
    department_role = models.ForeignKey(
        DepartmentRole,
        on_delete=models.PROTECT,
        related_name="grants",
        verbose_name="Department Role",
    )
    granted_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Granted At",
    )

    class Meta:
        verbose_name = "User Role"
        verbose_name_plural = "User Roles"
        ordering = ["granted_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "department_role"],
                name="unique_user_department_role",
            ),
        ]

    def __str__(self):
        return f"{self.user} → {self.department_role}"
