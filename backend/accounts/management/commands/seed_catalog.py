"""
Management command: seed_catalog
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds the database with the municipality **Departments**, their
**Roles**, the **DepartmentRole** pairs and the **CategoryRoleMapping**
row for every report category.

The command is **idempotent**: safe to run multiple times.  Existing
rows are kept; role descriptions and category mappings are updated to
match the tables below.

Usage::

    python manage.py seed_catalog
    python manage.py seed_catalog --with-admin

Prerequisites::

    python manage.py migrate
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from accounts.models import Department, DepartmentRole, Role, UserRole
from core.constants import ORGANIZATION_DEPARTMENT, ReportCategory
from core.domain.access import RoleName
from reports.models import CategoryRoleMapping

User = get_user_model()

_DIRECTOR = RoleName.DEPARTMENT_DIRECTOR.value

# ────────────────────────────────────────────────────────────────────
# Department → roles
# ────────────────────────────────────────────────────────────────────
# Value: list of (role_name, description)

DEPARTMENT_ROLES: dict[str, list[tuple[str, str]]] = {
    ORGANIZATION_DEPARTMENT: [
        (RoleName.CITIZEN.value, "Registered citizen who submits reports."),
        (RoleName.ADMINISTRATOR.value, "Manages municipality users, roles and companies."),
        (RoleName.PUBLIC_RELATIONS_OFFICER.value, "Reviews incoming reports and approves or rejects them."),
    ],
    "Water and Sewer Services": [
        (_DIRECTOR, "Head of a municipal department."),
        ("Water Network staff member", "Maintains the drinking water network."),
        ("Sewer System staff member", "Maintains the sewer system."),
    ],
    "Public Infrastructure": [
        (_DIRECTOR, "Head of a municipal department."),
        ("Road Maintenance staff member", "Maintains roads and urban furnishings."),
        ("Accessibility staff member", "Removes architectural barriers."),
        ("General Services staff member", "Handles reports outside the other categories."),
    ],
    "Public Lighting Department": [
        (_DIRECTOR, "Head of a municipal department."),
        ("Electrical staff member", "Maintains public lighting."),
    ],
    "Waste Management Department": [
        (_DIRECTOR, "Head of a municipal department."),
        ("Recycling Program staff member", "Handles waste collection and recycling."),
    ],
    "Parks and Green Areas": [
        (_DIRECTOR, "Head of a municipal department."),
        ("Parks Maintenance staff member", "Maintains parks, green areas and playgrounds."),
    ],
    "Mobility and Traffic Management": [
        (_DIRECTOR, "Head of a municipal department."),
        ("Traffic Signals staff member", "Maintains road signs and traffic lights."),
    ],
    "External Service Providers": [
        (RoleName.EXTERNAL_MAINTAINER.value, "Employee of a contracted maintenance company."),
    ],
}

# ────────────────────────────────────────────────────────────────────
# Category → (department, role) responsible for it
# ────────────────────────────────────────────────────────────────────

CATEGORY_ROLES: dict[str, tuple[str, str]] = {
    ReportCategory.WATER_SUPPLY: ("Water and Sewer Services", "Water Network staff member"),
    ReportCategory.SEWER_SYSTEM: ("Water and Sewer Services", "Sewer System staff member"),
    ReportCategory.ARCHITECTURAL_BARRIERS: ("Public Infrastructure", "Accessibility staff member"),
    ReportCategory.ROADS_AND_URBAN_FURNISHINGS: ("Public Infrastructure", "Road Maintenance staff member"),
    ReportCategory.OTHER: ("Public Infrastructure", "General Services staff member"),
    ReportCategory.PUBLIC_LIGHTING: ("Public Lighting Department", "Electrical staff member"),
    ReportCategory.WASTE: ("Waste Management Department", "Recycling Program staff member"),
    ReportCategory.PUBLIC_GREEN_AREAS_AND_PLAYGROUNDS: ("Parks and Green Areas", "Parks Maintenance staff member"),
    ReportCategory.ROAD_SIGNS_AND_TRAFFIC_LIGHTS: ("Mobility and Traffic Management", "Traffic Signals staff member"),
}

DEFAULT_ADMIN = {
    "username": "admin",
    "email": "admin@municipality.local",
    "password": "admin12345",
    "first_name": "System",
    "last_name": "Administrator",
}


class Command(BaseCommand):
    help = (
        "Seeds departments, roles, department roles and category mappings.  "
        "Safe to run multiple times (idempotent)."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--with-admin",
            action="store_true",
            help=f"Also create the default Administrator account ({DEFAULT_ADMIN['username']}).",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n══════════════════════════════════════════"
            "\n  Catalog Setup — Departments, Roles & Mappings"
            "\n══════════════════════════════════════════\n"
        ))

        created_pairs = 0
        department_roles: dict[tuple[str, str], DepartmentRole] = {}

        for department_name, roles in DEPARTMENT_ROLES.items():
            department, _ = Department.objects.get_or_create(name=department_name)

            for role_name, description in roles:
                # ── 1. Idempotent role creation / update ────────────
                role, created = Role.objects.get_or_create(
                    name=role_name,
                    defaults={"description": description},
                )
                if not created and role.description != description:
                    role.description = description
                    role.save(update_fields=["description"])

                # ── 2. Department/role pair ─────────────────────────
                department_role, created = DepartmentRole.objects.get_or_create(
                    department=department,
                    role=role,
                )
                department_roles[(department_name, role_name)] = department_role
                if created:
                    created_pairs += 1

            self.stdout.write(self.style.SUCCESS(
                f"  ✔  {department_name:<34s} roles={len(roles)}"
            ))

        # ── 3. Category mappings ─────────────────────────────────────
        for category, key in CATEGORY_ROLES.items():
            CategoryRoleMapping.objects.update_or_create(
                category=category,
                defaults={"department_role": department_roles[key]},
            )

        missing = set(ReportCategory.values) - set(CATEGORY_ROLES)
        for category in sorted(missing):
            self.stdout.write(self.style.WARNING(
                f"  ⚠  No department role mapped for category '{category}'."
            ))

        # ── 4. Optional administrator ────────────────────────────────
        if options.get("with_admin"):
            self._create_admin(department_roles[(ORGANIZATION_DEPARTMENT, RoleName.ADMINISTRATOR.value)])

        # ── Summary ─────────────────────────────────────────────────
        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n──────────────────────────────────────────"
        ))
        self.stdout.write(self.style.SUCCESS(
            f"  Done!  {created_pairs} department role(s) created, "
            f"{len(CATEGORY_ROLES)} category mapping(s) in place."
        ))

    def _create_admin(self, admin_role: DepartmentRole) -> None:
        data = dict(DEFAULT_ADMIN)
        password = data.pop("password")
        user, created = User.objects.get_or_create(
            username=data.pop("username"),
            defaults=data,
        )
        if created:
            user.set_password(password)
            user.save(update_fields=["password"])
        UserRole.objects.get_or_create(user=user, department_role=admin_role)

        status = "Created" if created else "Kept existing"
        self.stdout.write(self.style.SUCCESS(
            f"  ✔  {status} administrator: {user.username}"
        ))
