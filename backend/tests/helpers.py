"""
Shared helpers for the integration tests.

Engineering constraints kept by every test module:
  - django.test.TestCase + rest_framework.test.APIClient.
  - The catalog is seeded through the real ``seed_catalog`` command.
  - Authentication via the real login endpoint, Bearer JWT headers.
"""

from __future__ import annotations

import base64
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.urls import reverse
from rest_framework import status

from accounts.models import Company, DepartmentRole, UserRole

User = get_user_model()

PASSWORD = "Str0ng!Pass99"

# 1x1 transparent PNG
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(
    bytes.fromhex(
        "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
        "1f15c4890000000d49444154789c6360000002000100ffff03000006"
        "000557bfabd40000000049454e44ae426082"
    )
).decode()

# Piazza Castello, Turin
INSIDE_LAT = 45.0703
INSIDE_LON = 7.6869

# Milan
OUTSIDE_LAT = 45.4642
OUTSIDE_LON = 9.1900

STORAGE_OVERRIDE = {
    "default": {"BACKEND": "django.core.files.storage.InMemoryStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}


def seed_catalog() -> None:
    call_command("seed_catalog", stdout=StringIO())


def department_role(department: str, role: str) -> DepartmentRole:
    return DepartmentRole.objects.get(department__name=department, role__name=role)


def make_user(username: str, *pairs: tuple[str, str], company: Company | None = None, **extra) -> User:
    """
    Create a user holding the given ``(department, role)`` pairs.
    """
    user = User.objects.create_user(
        username=username,
        password=PASSWORD,
        email=extra.pop("email", f"{username}@example.com"),
        first_name=extra.pop("first_name", username.capitalize()),
        last_name=extra.pop("last_name", "Test"),
        company=company,
        **extra,
    )
    for pair in pairs:
        UserRole.objects.create(user=user, department_role=department_role(*pair))
    return user


def make_citizen(username: str) -> User:
    return make_user(username, ("Organization", "Citizen"))


def login(client, username: str, password: str = PASSWORD) -> str:
    """
    Login through the real endpoint and set the Bearer token on ``client``.
    """
    resp = client.post(
        reverse("accounts:login"),
        {"identifier": username, "password": password},
        format="json",
    )
    assert resp.status_code == status.HTTP_200_OK, f"Login failed in test setup: {resp.data}"
    token = resp.data["access"]
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return token


def report_payload(**overrides) -> dict:
    payload = {
        "title": "Broken street lamp",
        "description": "The lamp at the corner has been off for a week.",
        "category": "Public Lighting",
        "latitude": INSIDE_LAT,
        "longitude": INSIDE_LON,
        "is_anonymous": False,
        "photos": [PNG_DATA_URI],
    }
    payload.update(overrides)
    return payload


def make_report(reporter, **fields):
    """Create a report directly, bypassing photo upload."""
    from reports.models import Report

    defaults = {
        "title": "Broken street lamp",
        "description": "The lamp at the corner has been off for a week.",
        "category": "Public Lighting",
        "latitude": INSIDE_LAT,
        "longitude": INSIDE_LON,
    }
    defaults.update(fields)
    return Report.objects.create(reporter=reporter, **defaults)
