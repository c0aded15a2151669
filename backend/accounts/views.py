"""
Accounts app views.

All views follow the **Thin View** pattern: validate input via
serializers, delegate to the service layer, and return the result
wrapped in a DRF ``Response``.  **No business logic** resides here.

View Map
--------
- ``RegisterView``               — POST /auth/register/
- ``LoginView``                  — POST /auth/login/
- ``MeView``                     — GET /me/
- ``DepartmentViewSet``          — /departments/ (list, roles)
- ``RoleNameListView``           — GET /roles/
- ``DepartmentRoleListView``     — GET /department-roles/
- ``CompanyViewSet``             — /companies/ (list, create)
- ``MunicipalityUserViewSet``    — /municipality-users/ (CRUD + roles)
- ``ExternalMaintainerListView`` — GET /external-maintainers/
"""

from __future__ import annotations

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import (
    AssignRoleSerializer,
    CompanyCreateSerializer,
    CompanySerializer,
    DepartmentRoleSerializer,
    DepartmentSerializer,
    ExternalMaintainerFilterSerializer,
    LoginRequestSerializer,
    MunicipalityUserCreateSerializer,
    MunicipalityUserUpdateSerializer,
    RegisterRequestSerializer,
    ReplaceRolesSerializer,
    RoleSerializer,
    TokenResponseSerializer,
    UserDetailSerializer,
)
from .services import (
    UNSET,
    AuthenticationService,
    CompanyService,
    DepartmentCatalogService,
    MunicipalityUserService,
    UserRegistrationService,
    UserRoleService,
)


# ═══════════════════════════════════════════════════════════════════
#  Authentication Views
# ═══════════════════════════════════════════════════════════════════


class RegisterView(generics.CreateAPIView):
    """
    POST /api/accounts/auth/register/

    Public endpoint.  Creates a new citizen holding the
    ``(Organization, Citizen)`` DepartmentRole.

    Request body  → ``RegisterRequestSerializer``
    Response body → ``UserDetailSerializer`` (201 Created)
    """

    permission_classes = [AllowAny]
    serializer_class = RegisterRequestSerializer

    @extend_schema(
        summary="Register a citizen",
        request=RegisterRequestSerializer,
        responses={
            201: OpenApiResponse(response=UserDetailSerializer, description="Citizen created."),
            400: OpenApiResponse(description="Validation error."),
            409: OpenApiResponse(description="Username or email already exists."),
        },
        tags=["Auth"],
    )
    def create(self, request: Request, *args, **kwargs) -> Response:
        """
        Handle citizen registration.

        1. Validate input via RegisterRequestSerializer.
        2. Delegate to UserRegistrationService.register_citizen().
        3. Return the new user serialized with UserDetailSerializer.
        """
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserRegistrationService.register_citizen(serializer.validated_data)
        response_serializer = UserDetailSerializer(user)
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    POST /api/accounts/auth/login/

    Public endpoint.  Authenticates a user via username or email plus
    password.

    Request body  → ``LoginRequestSerializer``
    Response body → ``TokenResponseSerializer`` (200 OK)
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Log in",
        request=LoginRequestSerializer,
        responses={
            200: OpenApiResponse(response=TokenResponseSerializer, description="Token pair and user."),
            401: OpenApiResponse(description="Invalid credentials."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        """
        Handle username-or-email login.

        1. Validate ``request.data`` with ``LoginRequestSerializer``.
        2. Call ``AuthenticationService.authenticate``.
        3. If ``None`` is returned → 401 ``Invalid credentials.``.
        4. Return ``{"access", "refresh", "user"}``.
        """
        serializer = LoginRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = AuthenticationService.authenticate(
            identifier=serializer.validated_data["identifier"],
            password=serializer.validated_data["password"],
        )
        if user is None:
            return Response(
                {"detail": "Invalid credentials."},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        payload = AuthenticationService.generate_tokens(user)
        payload["user"] = UserDetailSerializer(user).data
        return Response(payload, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Current User ("Me") View
# ═══════════════════════════════════════════════════════════════════


class MeView(APIView):
    """
    GET /api/accounts/me/ → current user profile with role names and
    company.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Current user",
        responses={200: OpenApiResponse(response=UserDetailSerializer, description="Profile.")},
        tags=["Auth"],
    )
    def get(self, request: Request) -> Response:
        serializer = UserDetailSerializer(request.user)
        return Response(serializer.data, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Department Catalog Views (Administrator)
# ═══════════════════════════════════════════════════════════════════


class DepartmentViewSet(viewsets.ViewSet):
    """
    GET /api/accounts/departments/            → municipality departments
    GET /api/accounts/departments/{id}/roles/ → roles of a department
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List departments",
        responses={
            200: OpenApiResponse(response=DepartmentSerializer(many=True), description="Departments."),
            403: OpenApiResponse(description="Administrator role required."),
        },
        tags=["Catalog"],
    )
    def list(self, request: Request) -> Response:
        qs = DepartmentCatalogService.list_municipality_departments(request.user)
        return Response(DepartmentSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["get"], url_path="roles")
    @extend_schema(
        summary="List roles of a department",
        description="For the Organization department, Citizen and Administrator are excluded.",
        responses={
            200: OpenApiResponse(response=RoleSerializer(many=True), description="Roles."),
            403: OpenApiResponse(description="Administrator role required."),
            404: OpenApiResponse(description="Department not found."),
        },
        tags=["Catalog"],
    )
    def roles(self, request: Request, pk: int = None) -> Response:
        qs = DepartmentCatalogService.list_roles_for_department(request.user, pk)
        return Response(RoleSerializer(qs, many=True).data, status=status.HTTP_200_OK)


class RoleNameListView(APIView):
    """GET /api/accounts/roles/ → distinct municipality role names."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List municipality role names",
        responses={200: OpenApiResponse(description="List of role names.")},
        tags=["Catalog"],
    )
    def get(self, request: Request) -> Response:
        names = DepartmentCatalogService.list_all_municipality_role_names(request.user)
        return Response(names, status=status.HTTP_200_OK)


class DepartmentRoleListView(APIView):
    """GET /api/accounts/department-roles/ → grantable DepartmentRoles."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List grantable department roles",
        responses={200: OpenApiResponse(response=DepartmentRoleSerializer(many=True), description="DepartmentRoles.")},
        tags=["Catalog"],
    )
    def get(self, request: Request) -> Response:
        qs = DepartmentCatalogService.list_grantable_department_roles(request.user)
        return Response(DepartmentRoleSerializer(qs, many=True).data, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Company Views (Administrator)
# ═══════════════════════════════════════════════════════════════════


class CompanyViewSet(viewsets.ViewSet):
    """
    GET  /api/accounts/companies/ → list companies
    POST /api/accounts/companies/ → create a company
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List companies",
        responses={200: OpenApiResponse(response=CompanySerializer(many=True), description="Companies.")},
        tags=["Companies"],
    )
    def list(self, request: Request) -> Response:
        qs = CompanyService.list_companies(request.user)
        return Response(CompanySerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Create a company",
        request=CompanyCreateSerializer,
        responses={
            201: OpenApiResponse(response=CompanySerializer, description="Company created."),
            400: OpenApiResponse(description="Missing name or invalid category."),
            409: OpenApiResponse(description="Company already exists."),
        },
        tags=["Companies"],
    )
    def create(self, request: Request) -> Response:
        serializer = CompanyCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        company = CompanyService.create_company(
            request.user,
            name=serializer.validated_data.get("name", ""),
            category=serializer.validated_data["category"],
        )
        return Response(CompanySerializer(company).data, status=status.HTTP_201_CREATED)


# ═══════════════════════════════════════════════════════════════════
#  Municipality User Views (Administrator)
# ═══════════════════════════════════════════════════════════════════


class MunicipalityUserViewSet(viewsets.ViewSet):
    """
    Staff account management.

    Endpoints
    ---------
    GET    /municipality-users/                       → list
    POST   /municipality-users/                       → create
    GET    /municipality-users/{id}/                  → retrieve
    PATCH  /municipality-users/{id}/                  → partial_update
    DELETE /municipality-users/{id}/                  → destroy
    POST   /municipality-users/{id}/roles/            → roles (assign one)
    PUT    /municipality-users/{id}/roles/            → roles (replace all)
    DELETE /municipality-users/{id}/roles/{dr_id}/    → remove_role
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List municipality users",
        responses={200: OpenApiResponse(response=UserDetailSerializer(many=True), description="Users.")},
        tags=["Municipality Users"],
    )
    def list(self, request: Request) -> Response:
        qs = MunicipalityUserService.list_users(request.user)
        return Response(UserDetailSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Create municipality user",
        request=MunicipalityUserCreateSerializer,
        responses={
            201: OpenApiResponse(response=UserDetailSerializer, description="User created."),
            400: OpenApiResponse(description="Invalid roles or company."),
            404: OpenApiResponse(description="Company not found."),
            409: OpenApiResponse(description="Username or email already exists."),
        },
        tags=["Municipality Users"],
    )
    def create(self, request: Request) -> Response:
        serializer = MunicipalityUserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = MunicipalityUserService.create_user(request.user, serializer.validated_data)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve municipality user",
        responses={
            200: OpenApiResponse(response=UserDetailSerializer, description="User."),
            404: OpenApiResponse(description="User not found."),
        },
        tags=["Municipality Users"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        user = MunicipalityUserService.get_user(request.user, pk)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update municipality user",
        request=MunicipalityUserUpdateSerializer,
        responses={
            200: OpenApiResponse(response=UserDetailSerializer, description="User updated."),
            400: OpenApiResponse(description="Invalid roles or company."),
            404: OpenApiResponse(description="User not found."),
            409: OpenApiResponse(description="Email already exists."),
        },
        tags=["Municipality Users"],
    )
    def partial_update(self, request: Request, pk: int = None) -> Response:
        serializer = MunicipalityUserUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = MunicipalityUserService.update_user(request.user, pk, serializer.validated_data)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Delete municipality user",
        responses={
            204: OpenApiResponse(description="User deleted."),
            404: OpenApiResponse(description="User not found."),
        },
        tags=["Municipality Users"],
    )
    def destroy(self, request: Request, pk: int = None) -> Response:
        MunicipalityUserService.delete_user(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post", "put"], url_path="roles")
    @extend_schema(
        summary="Assign or replace roles",
        description=(
            "POST grants one DepartmentRole; PUT replaces every grant. "
            "External Maintainer grants require a company_name."
        ),
        request=AssignRoleSerializer,
        responses={
            200: OpenApiResponse(response=UserDetailSerializer, description="Roles updated."),
            400: OpenApiResponse(description="Role not grantable or company mismatch."),
            404: OpenApiResponse(description="User, role or company not found."),
            409: OpenApiResponse(description="User already has this role."),
        },
        tags=["Municipality Users"],
    )
    def roles(self, request: Request, pk: int = None) -> Response:
        if request.method == "PUT":
            serializer = ReplaceRolesSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            user = UserRoleService.replace_all_roles(
                user_id=pk,
                department_role_ids=serializer.validated_data["department_role_ids"],
                performed_by=request.user,
                company_name=serializer.validated_data.get("company_name", UNSET),
            )
        else:
            serializer = AssignRoleSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            user = UserRoleService.assign_role(
                user_id=pk,
                department_role_id=serializer.validated_data["department_role_id"],
                performed_by=request.user,
                company_name=serializer.validated_data.get("company_name", UNSET),
            )
        user.refresh_from_db()
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @action(
        detail=True,
        methods=["delete"],
        url_path=r"roles/(?P<department_role_id>\d+)",
    )
    @extend_schema(
        summary="Remove a role",
        responses={
            200: OpenApiResponse(response=UserDetailSerializer, description="Role removed."),
            400: OpenApiResponse(description="Cannot remove the last role."),
            404: OpenApiResponse(description="User not found or role not held."),
        },
        tags=["Municipality Users"],
    )
    def remove_role(self, request: Request, pk: int = None, department_role_id: str = None) -> Response:
        user = UserRoleService.remove_role(
            user_id=pk,
            department_role_id=int(department_role_id),
            performed_by=request.user,
        )
        user.refresh_from_db()
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)


class ExternalMaintainerListView(APIView):
    """
    GET /api/accounts/external-maintainers/?category=

    External Maintainers, optionally filtered by their company's
    category.  Used by technical staff to pick a delegate.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List external maintainers",
        parameters=[
            OpenApiParameter(name="category", type=str, location=OpenApiParameter.QUERY, description="Company category."),
        ],
        responses={
            200: OpenApiResponse(response=UserDetailSerializer(many=True), description="External maintainers."),
            403: OpenApiResponse(description="Access denied."),
        },
        tags=["Municipality Users"],
    )
    def get(self, request: Request) -> Response:
        filters = ExternalMaintainerFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        qs = MunicipalityUserService.list_external_maintainers(
            request.user,
            category=filters.validated_data.get("category"),
        )
        return Response(UserDetailSerializer(qs, many=True).data, status=status.HTTP_200_OK)
