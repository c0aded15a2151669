"""
Smoke tests — verify that Django boots, URL routing resolves, and
the core domain modules are importable.

These tests do NOT require a database; they just prove the plumbing
works.
"""

from __future__ import annotations

import pytest
from django.urls import resolve, reverse


# ════════════════════════════════════════════════════════════════════
#  URL Routing Smoke Tests
# ════════════════════════════════════════════════════════════════════

class TestURLRouting:
    """Ensure all top-level app URL namespaces resolve without 404."""

    EXPECTED_URLS = [
        # (url_name, expected_path)
        ("report-list",                  "/api/reports/"),
        ("report-assigned",              "/api/reports/assigned/"),
        ("report-map",                   "/api/reports/map/"),
        ("accounts:login",               "/api/accounts/auth/login/"),
        ("accounts:me",                  "/api/accounts/me/"),
        ("accounts:department-list",     "/api/accounts/departments/"),
        ("accounts:external-maintainer-list", "/api/accounts/external-maintainers/"),
        ("core:notification-list",       "/api/core/notifications/"),
        ("core:system-constants",        "/api/core/constants/"),
        ("schema",                       "/api/schema/"),
    ]

    @pytest.mark.parametrize("url_name,expected_path", EXPECTED_URLS)
    def test_url_reverses(self, url_name: str, expected_path: str):
        """Named URL reverses to the expected path."""
        url = reverse(url_name)
        assert url == expected_path, f"{url_name} resolved to {url}, expected {expected_path}"

    @pytest.mark.parametrize("url_name,expected_path", EXPECTED_URLS)
    def test_path_resolves_to_view(self, url_name: str, expected_path: str):
        """Path resolves to a view function (not a 404)."""
        match = resolve(expected_path)
        assert match.func is not None

    def test_detail_routes(self):
        assert reverse("report-update-status", kwargs={"pk": 7}) == "/api/reports/7/status/"
        assert reverse(
            "report-assigned-external",
            kwargs={"maintainer_id": 4},
        ) == "/api/reports/assigned/external/4/"
        assert reverse(
            "report-internal-comment-detail",
            kwargs={"report_pk": 7, "pk": 3},
        ) == "/api/reports/7/internal-comments/3/"
        assert reverse(
            "accounts:municipality-user-remove-role",
            kwargs={"pk": 5, "department_role_id": 2},
        ) == "/api/accounts/municipality-users/5/roles/2/"


# ════════════════════════════════════════════════════════════════════
#  Core Domain Module Import Tests
# ════════════════════════════════════════════════════════════════════

class TestCoreDomainImports:
    """Verify that shared domain utility modules are importable."""

    def test_import_exceptions(self):
        from core.domain.exceptions import (
            ConfigurationError,
            Conflict,
            DomainError,
            InvalidTransition,
            NotFound,
            PermissionDenied,
            Unauthorized,
        )
        for exc_class in (
            ConfigurationError,
            Conflict,
            InvalidTransition,
            NotFound,
            PermissionDenied,
            Unauthorized,
        ):
            assert issubclass(exc_class, DomainError)

    def test_import_notifications(self):
        from core.domain.notifications import NotificationService
        assert hasattr(NotificationService, "create")

    def test_import_transactions(self):
        from core.domain.transactions import compare_and_set, lock_for_update
        assert callable(compare_and_set)
        assert callable(lock_for_update)


# ════════════════════════════════════════════════════════════════════
#  Exception Behaviour Tests
# ════════════════════════════════════════════════════════════════════

class TestDomainExceptions:
    """Unit tests for domain exception classes."""

    def test_domain_error_message(self):
        from core.domain.exceptions import DomainError
        err = DomainError("test message")
        assert str(err) == "test message"

    def test_invalid_transition_structured(self):
        from core.domain.exceptions import InvalidTransition
        err = InvalidTransition(current="Resolved", target="In Progress")
        assert str(err) == "Invalid status transition from 'Resolved' to 'In Progress'."
        assert err.current == "Resolved"
        assert err.target == "In Progress"

    def test_invalid_transition_plain_message(self):
        from core.domain.exceptions import InvalidTransition
        err = InvalidTransition("Cannot reopen report.")
        assert str(err) == "Cannot reopen report."
