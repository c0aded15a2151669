"""
Accounts app serializers.

Contains all Request and Response serializers for the accounts API.
Serializers handle field definitions, read/write constraints, and
basic validation.  **No business logic** lives here: uniqueness,
role-assignment rules and the company coupling are delegated to
``services.py`` so that they surface as domain errors.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth import get_user_model
from rest_framework import serializers

from core.constants import ReportCategory

from .models import Company, Department, DepartmentRole, Role

User = get_user_model()


# ═══════════════════════════════════════════════════════════════════
#  Authentication Serializers
# ═══════════════════════════════════════════════════════════════════


class RegisterRequestSerializer(serializers.Serializer):
    """
    Validates citizen self-registration data.

    The ``password`` field is write-only and will be hashed by the
    service layer before persisting.  The response after a successful
    registration is handled by ``UserDetailSerializer``.
    """

    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    password = serializers.CharField(
        write_only=True,
        min_length=8,
        style={"input_type": "password"},
        help_text="Minimum 8 characters.",
    )
    password_confirm = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
        help_text="Must match 'password'.",
    )

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        """Ensure password and password_confirm match."""
        if attrs["password"] != attrs["password_confirm"]:
            raise serializers.ValidationError(
                {"password_confirm": "Passwords do not match."}
            )
        return attrs


class LoginRequestSerializer(serializers.Serializer):
    """
    Accepts a single ``identifier`` (username or email) plus password.
    """

    identifier = serializers.CharField(help_text="Username or email.")
    password = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
    )


class TokenResponseSerializer(serializers.Serializer):
    """
    Read-only serializer describing the login response shape.

    Used for schema documentation.
    """

    access = serializers.CharField(help_text="JWT access token.")
    refresh = serializers.CharField(help_text="JWT refresh token.")
    user = serializers.SerializerMethodField()

    def get_user(self, obj: dict[str, Any]) -> dict[str, Any]:
        return obj["user"]


# ═══════════════════════════════════════════════════════════════════
#  Catalog Serializers
# ═══════════════════════════════════════════════════════════════════


class DepartmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Department
        fields = ["id", "name"]


class RoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = ["id", "name", "description"]


class DepartmentRoleSerializer(serializers.ModelSerializer):
    """
    A department/role pair, flattened for assignment forms.
    """

    department_id = serializers.IntegerField(source="department.id", read_only=True)
    department_name = serializers.CharField(source="department.name", read_only=True)
    role_id = serializers.IntegerField(source="role.id", read_only=True)
    role_name = serializers.CharField(source="role.name", read_only=True)

    class Meta:
        model = DepartmentRole
        fields = ["id", "department_id", "department_name", "role_id", "role_name"]


class CompanySerializer(serializers.ModelSerializer):
    class Meta:
        model = Company
        fields = ["id", "name", "category"]


class CompanyCreateSerializer(serializers.Serializer):
    """
    Request body for ``POST /companies/``.

    ``category`` is a plain string here so that an unknown value is
    reported by the service with the catalog's own message.
    """

    name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    category = serializers.CharField(help_text="One of the report categories.")


# ═══════════════════════════════════════════════════════════════════
#  User Serializers
# ═══════════════════════════════════════════════════════════════════


class UserSummarySerializer(serializers.ModelSerializer):
    """
    Minimal user representation embedded in reports, messages and
    comments.
    """

    class Meta:
        model = User
        fields = ["id", "username", "first_name", "last_name"]
        read_only_fields = fields


class UserDetailSerializer(serializers.ModelSerializer):
    """
    Full user representation including DepartmentRoles and company.
    """

    roles = serializers.SerializerMethodField()
    department_roles = DepartmentRoleSerializer(many=True, read_only=True)
    company_name = serializers.CharField(source="company.name", read_only=True, default=None)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "is_active",
            "date_joined",
            "roles",
            "department_roles",
            "company_name",
        ]
        read_only_fields = fields

    def get_roles(self, obj: User) -> list[str]:
        return sorted(set(obj.role_names))


class MunicipalityUserCreateSerializer(serializers.Serializer):
    """
    Request body for ``POST /municipality-users/``.
    """

    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    password = serializers.CharField(
        write_only=True,
        min_length=8,
        style={"input_type": "password"},
    )
    department_role_ids = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=True,
        help_text="IDs of the DepartmentRoles to grant.",
    )
    company_name = serializers.CharField(
        required=False,
        allow_null=True,
        allow_blank=True,
        help_text="Required for (and only for) External Maintainers.",
    )


class MunicipalityUserUpdateSerializer(serializers.Serializer):
    """
    Request body for ``PATCH /municipality-users/{id}/``.  All fields
    optional.
    """

    email = serializers.EmailField(required=False)
    first_name = serializers.CharField(required=False, max_length=150)
    last_name = serializers.CharField(required=False, max_length=150)
    department_role_ids = serializers.ListField(
        child=serializers.IntegerField(),
        required=False,
        allow_empty=True,
    )
    company_name = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class AssignRoleSerializer(serializers.Serializer):
    """
    Request body for ``POST /municipality-users/{id}/roles/``.
    """

    department_role_id = serializers.IntegerField(help_text="DepartmentRole to grant.")
    company_name = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class ReplaceRolesSerializer(serializers.Serializer):
    """
    Request body for ``PUT /municipality-users/{id}/roles/``.
    """

    department_role_ids = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=True,
    )
    company_name = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class ExternalMaintainerFilterSerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=ReportCategory.choices, required=False)
