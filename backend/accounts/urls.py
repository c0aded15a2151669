"""
Accounts app URL configuration.

All routes are namespaced under ``accounts`` and designed to be included
in the project-level ``urls.py`` as::

    path('api/accounts/', include('accounts.urls')),

Endpoint Map
------------
Authentication
    POST   /auth/register/                          → RegisterView
    POST   /auth/login/                             → LoginView
    POST   /auth/token/refresh/                     → TokenRefreshView (SimpleJWT)

Current User Profile ("Me")
    GET    /me/                                     → MeView

Department Catalog (Administrator)
    GET    /departments/                            → DepartmentViewSet.list
    GET    /departments/{id}/roles/                 → DepartmentViewSet.roles
    GET    /roles/                                  → RoleNameListView
    GET    /department-roles/                       → DepartmentRoleListView

Companies (Administrator)
    GET    /companies/                              → CompanyViewSet.list
    POST   /companies/                              → CompanyViewSet.create

Municipality Users (Administrator)
    GET    /municipality-users/                     → MunicipalityUserViewSet.list
    POST   /municipality-users/                     → MunicipalityUserViewSet.create
    GET    /municipality-users/{id}/                → MunicipalityUserViewSet.retrieve
    PATCH  /municipality-users/{id}/                → MunicipalityUserViewSet.partial_update
    DELETE /municipality-users/{id}/                → MunicipalityUserViewSet.destroy
    POST   /municipality-users/{id}/roles/          → MunicipalityUserViewSet.roles
    PUT    /municipality-users/{id}/roles/          → MunicipalityUserViewSet.roles
    DELETE /municipality-users/{id}/roles/{dr_id}/  → MunicipalityUserViewSet.remove_role

External Maintainers (staff)
    GET    /external-maintainers/                   → ExternalMaintainerListView
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    CompanyViewSet,
    DepartmentRoleListView,
    DepartmentViewSet,
    ExternalMaintainerListView,
    LoginView,
    MeView,
    MunicipalityUserViewSet,
    RegisterView,
    RoleNameListView,
)

app_name = "accounts"

router = DefaultRouter()
router.register(r"departments", DepartmentViewSet, basename="department")
router.register(r"companies", CompanyViewSet, basename="company")
router.register(r"municipality-users", MunicipalityUserViewSet, basename="municipality-user")

urlpatterns = [
    # ── Authentication ───────────────────────────────────────────────
    path("auth/register/", RegisterView.as_view(), name="register"),
    path("auth/login/", LoginView.as_view(), name="login"),
    path(
        "auth/token/refresh/",
        TokenRefreshView.as_view(),
        name="token-refresh",
    ),

    # ── Current User (Me) ───────────────────────────────────────────
    path("me/", MeView.as_view(), name="me"),

    # ── Catalog ──────────────────────────────────────────────────────
    path("roles/", RoleNameListView.as_view(), name="role-list"),
    path("department-roles/", DepartmentRoleListView.as_view(), name="department-role-list"),

    # ── External Maintainers ─────────────────────────────────────────
    path(
        "external-maintainers/",
        ExternalMaintainerListView.as_view(),
        name="external-maintainer-list",
    ),

    # ── Router-registered viewsets ───────────────────────────────────
    path("", include(router.urls)),
]
