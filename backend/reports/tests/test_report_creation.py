"""
Integration tests — citizen report submission and report visibility.

Endpoints under test:
  POST /api/reports/
  GET  /api/reports/{id}/
"""

from __future__ import annotations

from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from reports.models import Report, ReportPhoto, ReportStatus
from tests.helpers import (
    OUTSIDE_LAT,
    OUTSIDE_LON,
    PNG_DATA_URI,
    STORAGE_OVERRIDE,
    login,
    make_citizen,
    make_user,
    report_payload,
    seed_catalog,
)


@override_settings(STORAGES=STORAGE_OVERRIDE)
class TestReportCreation(TestCase):
    @classmethod
    def setUpTestData(cls):
        seed_catalog()
        cls.citizen = make_citizen("citizen")
        make_user("electrician", ("Public Lighting Department", "Electrical staff member"))

    def setUp(self):
        self.client = APIClient()
        login(self.client, "citizen")
        self.url = reverse("report-list")

    def test_citizen_creates_pending_report(self):
        resp = self.client.post(self.url, report_payload(), format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["status"], ReportStatus.PENDING_APPROVAL)
        self.assertEqual(resp.data["reporter"]["username"], "citizen")
        self.assertIsNone(resp.data["assignee"])
        self.assertEqual(len(resp.data["photos"]), 1)
        self.assertTrue(resp.data["photos"][0].startswith("reports/"))

    def test_three_photos_are_stored_in_order(self):
        resp = self.client.post(self.url, report_payload(photos=[PNG_DATA_URI] * 3), format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        positions = list(
            ReportPhoto.objects.filter(report_id=resp.data["id"]).values_list("position", flat=True)
        )
        self.assertEqual(positions, [0, 1, 2])

    def test_staff_cannot_create_reports(self):
        client = APIClient()
        login(client, "electrician")
        resp = client.post(self.url, report_payload(), format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.data["detail"], "Only citizens can create reports")

    def test_anonymous_caller_is_unauthorized(self):
        resp = APIClient().post(self.url, report_payload(), format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_location_outside_municipality(self):
        resp = self.client.post(
            self.url,
            report_payload(latitude=OUTSIDE_LAT, longitude=OUTSIDE_LON),
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "The selected location is outside the municipality boundaries")
        self.assertFalse(Report.objects.exists())

    def test_no_photos(self):
        resp = self.client.post(self.url, report_payload(photos=[]), format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "At least one photo is required")

    def test_too_many_photos(self):
        resp = self.client.post(self.url, report_payload(photos=[PNG_DATA_URI] * 4), format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "A report can have at most 3 photos")

    def test_malformed_photo_creates_nothing(self):
        resp = self.client.post(
            self.url,
            report_payload(photos=[PNG_DATA_URI, "not-a-data-uri"]),
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            resp.data["detail"],
            "Each photo must be a base64 data URI of a JPEG, PNG or WebP image",
        )
        self.assertFalse(Report.objects.exists())
        self.assertFalse(ReportPhoto.objects.exists())

    def test_unknown_category_is_rejected_by_serializer(self):
        resp = self.client.post(self.url, report_payload(category="Potholes"), format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("category", resp.data)

    def test_short_title_is_rejected(self):
        resp = self.client.post(self.url, report_payload(title="Lamp"), format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("title", resp.data)


@override_settings(STORAGES=STORAGE_OVERRIDE)
class TestReportVisibility(TestCase):
    @classmethod
    def setUpTestData(cls):
        seed_catalog()
        cls.reporter = make_citizen("reporter")
        make_citizen("neighbour")
        make_user("pro", ("Organization", "Municipal Public Relations Officer"))

    def setUp(self):
        self.client = APIClient()
        login(self.client, "reporter")
        resp = self.client.post(
            reverse("report-list"),
            report_payload(is_anonymous=True),
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.report_id = resp.data["id"]
        self.detail_url = reverse("report-detail", kwargs={"pk": self.report_id})

    def test_reporter_sees_own_anonymous_report(self):
        resp = self.client.get(self.detail_url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["reporter"]["username"], "reporter")

    def test_pro_sees_anonymous_report_without_reporter(self):
        client = APIClient()
        login(client, "pro")
        resp = client.get(self.detail_url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["is_anonymous"])
        self.assertIsNone(resp.data["reporter"])

    def test_pending_report_is_hidden_from_other_citizens(self):
        client = APIClient()
        login(client, "neighbour")
        resp = client.get(self.detail_url)
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["detail"], "Report not found")

    def test_unknown_report(self):
        resp = self.client.get(reverse("report-detail", kwargs={"pk": 999999}))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
