"""
Integration tests — registration, login and the current-user profile.

Endpoints under test:
  POST /api/accounts/auth/register/   (accounts:register)
  POST /api/accounts/auth/login/      (accounts:login)
  POST /api/accounts/auth/token/refresh/
  GET  /api/accounts/me/              (accounts:me)

Login accepts the username or the email as ``identifier``.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import Company
from tests.helpers import PASSWORD, login, make_user, seed_catalog

User = get_user_model()


_REGISTER_PAYLOAD = {
    "username": "new_citizen",
    "email": "new_citizen@example.com",
    "first_name": "New",
    "last_name": "Citizen",
    "password": PASSWORD,
    "password_confirm": PASSWORD,
}


class TestRegistration(TestCase):
    @classmethod
    def setUpTestData(cls):
        seed_catalog()

    def setUp(self):
        self.client = APIClient()
        self.url = reverse("accounts:register")

    def test_register_grants_citizen_role(self):
        resp = self.client.post(self.url, _REGISTER_PAYLOAD, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["roles"], ["Citizen"])
        self.assertNotIn("password", resp.data)

        user = User.objects.get(username="new_citizen")
        self.assertTrue(user.is_citizen)
        self.assertTrue(user.check_password(PASSWORD))

    def test_duplicate_username_conflicts(self):
        make_user("new_citizen", ("Organization", "Citizen"))
        payload = dict(_REGISTER_PAYLOAD, email="other@example.com")
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["detail"], "Username already exists")

    def test_duplicate_email_conflicts_case_insensitively(self):
        make_user("someone", ("Organization", "Citizen"), email="new_citizen@example.com")
        payload = dict(_REGISTER_PAYLOAD, email="NEW_CITIZEN@example.com")
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["detail"], "Email already exists")

    def test_password_mismatch_is_rejected(self):
        payload = dict(_REGISTER_PAYLOAD, password_confirm="different123")
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password_confirm", resp.data)


class TestRegistrationWithoutCatalog(TestCase):
    def test_missing_citizen_role_is_a_configuration_error(self):
        resp = APIClient().post(reverse("accounts:register"), _REGISTER_PAYLOAD, format="json")
        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(resp.data["detail"], "Citizen role is not configured")
        self.assertFalse(User.objects.filter(username="new_citizen").exists())


class TestLogin(TestCase):
    @classmethod
    def setUpTestData(cls):
        seed_catalog()
        cls.user = make_user("login_user", ("Public Lighting Department", "Electrical staff member"))

    def setUp(self):
        self.client = APIClient()
        self.url = reverse("accounts:login")

    def test_login_with_username(self):
        resp = self.client.post(self.url, {"identifier": "login_user", "password": PASSWORD}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIn("access", resp.data)
        self.assertIn("refresh", resp.data)
        self.assertEqual(resp.data["user"]["username"], "login_user")

    def test_login_with_email(self):
        resp = self.client.post(
            self.url,
            {"identifier": "login_user@example.com", "password": PASSWORD},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

    def test_access_token_carries_role_claim(self):
        resp = self.client.post(self.url, {"identifier": "login_user", "password": PASSWORD}, format="json")
        token = AccessToken(resp.data["access"])
        self.assertEqual(token["roles"], ["Electrical staff member"])

    def test_wrong_password_returns_401(self):
        resp = self.client.post(self.url, {"identifier": "login_user", "password": "nope"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(resp.data["detail"], "Invalid credentials.")

    def test_inactive_user_cannot_login(self):
        User.objects.filter(pk=self.user.pk).update(is_active=False)
        resp = self.client.post(self.url, {"identifier": "login_user", "password": PASSWORD}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_issues_new_access_token(self):
        resp = self.client.post(self.url, {"identifier": "login_user", "password": PASSWORD}, format="json")
        refresh = self.client.post(
            reverse("accounts:token-refresh"),
            {"refresh": resp.data["refresh"]},
            format="json",
        )
        self.assertEqual(refresh.status_code, status.HTTP_200_OK)
        self.assertIn("access", refresh.data)


class TestMe(TestCase):
    @classmethod
    def setUpTestData(cls):
        seed_catalog()
        cls.company = Company.objects.create(name="Lumina", category="Public Lighting")
        make_user(
            "maintainer",
            ("External Service Providers", "External Maintainer"),
            company=cls.company,
        )

    def test_me_requires_authentication(self):
        resp = APIClient().get(reverse("accounts:me"))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_roles_and_company(self):
        client = APIClient()
        login(client, "maintainer")
        resp = client.get(reverse("accounts:me"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["roles"], ["External Maintainer"])
        self.assertEqual(resp.data["company_name"], "Lumina")
        self.assertEqual(resp.data["department_roles"][0]["department_name"], "External Service Providers")
