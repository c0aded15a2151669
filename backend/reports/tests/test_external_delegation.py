"""
Integration tests — delegating an assigned report to an External
Maintainer.

Endpoints under test:
  POST /api/reports/{id}/assign-external/   {"external_maintainer_id": ...}
  GET  /api/reports/assigned/               (as the External Maintainer)
  PATCH /api/reports/{id}/status/           (as the External Maintainer)
"""

from __future__ import annotations

from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import Company
from core.models import Notification
from reports.models import Report, ReportStatus
from tests.helpers import STORAGE_OVERRIDE, login, make_citizen, make_report, make_user, seed_catalog

_ELECTRICAL = ("Public Lighting Department", "Electrical staff member")
_EXTERNAL = ("External Service Providers", "External Maintainer")


@override_settings(STORAGES=STORAGE_OVERRIDE)
class TestExternalDelegation(TestCase):
    @classmethod
    def setUpTestData(cls):
        seed_catalog()
        cls.reporter = make_citizen("reporter")
        cls.electrician = make_user("electrician", _ELECTRICAL)
        make_user("other_electrician", _ELECTRICAL)
        lighting = Company.objects.create(name="Lumina", category="Public Lighting")
        waste = Company.objects.create(name="CleanCo", category="Waste")
        cls.ext_light = make_user("ext_light", _EXTERNAL, company=lighting)
        cls.ext_light_2 = make_user("ext_light_2", _EXTERNAL, company=lighting)
        cls.ext_waste = make_user("ext_waste", _EXTERNAL, company=waste)

    def setUp(self):
        self.report = make_report(
            self.reporter,
            status=ReportStatus.ASSIGNED,
            assignee=self.electrician,
        )
        self.url = reverse("report-assign-external", kwargs={"pk": self.report.pk})

    def _post(self, username, maintainer_id):
        client = APIClient()
        login(client, username)
        return client.post(self.url, {"external_maintainer_id": maintainer_id}, format="json")

    def test_assignee_delegates_to_matching_maintainer(self):
        resp = self._post("electrician", self.ext_light.pk)
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["status"], ReportStatus.ASSIGNED)
        self.assertEqual(resp.data["external_assignee"]["username"], "ext_light")
        self.assertEqual(resp.data["assignee"]["username"], "electrician")
        self.assertEqual(
            Notification.objects.get(recipient=self.ext_light).content,
            'Report "Broken street lamp" has been assigned to you by electrician.',
        )

    def test_redelegation_replaces_previous_maintainer(self):
        self._post("electrician", self.ext_light.pk)
        resp = self._post("electrician", self.ext_light_2.pk)
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.report.refresh_from_db()
        self.assertEqual(self.report.external_assignee, self.ext_light_2)

    def test_category_mismatch(self):
        resp = self._post("electrician", self.ext_waste.pk)
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            resp.data["detail"],
            'Company category "Waste" does not match report category "Public Lighting"',
        )

    def test_target_must_be_external_maintainer(self):
        resp = self._post("electrician", self.electrician.pk)
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "The selected user is not an External Maintainer")

    def test_unknown_maintainer(self):
        resp = self._post("electrician", 999999)
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["detail"], "External maintainer not found")

    def test_only_assigned_technician_may_delegate(self):
        resp = self._post("other_electrician", self.ext_light.pk)
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.data["detail"], "Only the assigned technician can delegate this report")

    def test_citizen_cannot_delegate(self):
        resp = self._post("reporter", self.ext_light.pk)
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(
            resp.data["detail"],
            "Only technical staff can assign reports to external maintainers",
        )

    def test_report_must_be_assigned(self):
        Report.objects.filter(pk=self.report.pk).update(status=ReportStatus.IN_PROGRESS)
        resp = self._post("electrician", self.ext_light.pk)
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            resp.data["detail"],
            "Report must be in Assigned status to be delegated (current status: In Progress)",
        )

    def test_maintainer_sees_and_advances_delegated_report(self):
        self._post("electrician", self.ext_light.pk)

        client = APIClient()
        login(client, "ext_light")
        resp = client.get(reverse("report-assigned"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([r["id"] for r in resp.data], [self.report.pk])

        resp = client.patch(
            reverse("report-update-status", kwargs={"pk": self.report.pk}),
            {"new_status": "In Progress"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["status"], ReportStatus.IN_PROGRESS)

    def test_other_maintainer_cannot_advance(self):
        self._post("electrician", self.ext_light.pk)
        client = APIClient()
        login(client, "ext_light_2")
        resp = client.patch(
            reverse("report-update-status", kwargs={"pk": self.report.pk}),
            {"new_status": "In Progress"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
