"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``in_memory_storage`` (autouse) keeping report photos off disk.
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``catalog`` fixture seeding departments, roles and mappings.
  - ``create_user`` factory fixture for users holding DepartmentRoles.
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def in_memory_storage(settings):
    """Route ``default_storage`` to Django's in-memory backend."""
    from tests.helpers import STORAGE_OVERRIDE

    settings.STORAGES = STORAGE_OVERRIDE


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def catalog(db):
    """Seed the catalog through the real ``seed_catalog`` command."""
    from tests.helpers import seed_catalog

    seed_catalog()


@pytest.fixture()
def create_user(catalog):
    """
    Factory fixture that creates a user holding DepartmentRoles.

    Usage::

        def test_something(create_user):
            citizen = create_user("alice", ("Organization", "Citizen"))
            tech = create_user(
                "bob",
                ("Public Lighting Department", "Electrical staff member"),
            )
    """
    from tests.helpers import make_user

    _counter = 0

    def _factory(username: str | None = None, *pairs: tuple[str, str], **kwargs):
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        return make_user(username, *pairs, **kwargs)

    return _factory
