"""
Integration tests — the report map and the per-maintainer listing of
delegated reports.

Endpoints under test:
  GET /api/reports/map/?zoom=&min_lat=&max_lat=&min_lng=&max_lng=&category=
  GET /api/reports/assigned/external/{maintainer_id}/?status=&category=
"""

from __future__ import annotations

from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import Company
from reports.geo import cluster_points, grid_cell_size
from reports.models import ReportStatus
from tests.helpers import (
    INSIDE_LAT,
    INSIDE_LON,
    STORAGE_OVERRIDE,
    login,
    make_citizen,
    make_report,
    make_user,
    seed_catalog,
)

_ELECTRICAL = ("Public Lighting Department", "Electrical staff member")
_EXTERNAL = ("External Service Providers", "External Maintainer")
_PRO = ("Organization", "Municipal Public Relations Officer")


class TestClusterPoints(SimpleTestCase):
    def test_cell_size_doubles_per_zoom_level_out(self):
        self.assertAlmostEqual(grid_cell_size(12), 0.01)
        self.assertAlmostEqual(grid_cell_size(11), 0.02)
        self.assertAlmostEqual(grid_cell_size(10), 0.04)

    def test_nearby_points_share_a_cluster(self):
        clusters = cluster_points(
            [(3, 45.071, 7.687), (1, 45.072, 7.688), (2, 45.031, 7.600)],
            zoom=10,
        )
        self.assertEqual([c["report_ids"] for c in clusters], [[1, 3], [2]])
        self.assertEqual(clusters[0]["report_count"], 2)
        self.assertEqual(clusters[0]["location"], {"latitude": 45.0715, "longitude": 7.6875})

    def test_no_points_no_clusters(self):
        self.assertEqual(cluster_points([], zoom=5), [])


@override_settings(STORAGES=STORAGE_OVERRIDE)
class TestReportMap(TestCase):
    @classmethod
    def setUpTestData(cls):
        seed_catalog()
        reporter = make_citizen("reporter")
        make_citizen("viewer")

        cls.pending = make_report(reporter, title="Pending lamp")
        cls.rejected = make_report(
            reporter,
            title="Rejected lamp",
            status=ReportStatus.REJECTED,
            rejection_reason="Duplicate",
        )
        cls.assigned = make_report(reporter, title="Assigned lamp", status=ReportStatus.ASSIGNED)
        cls.anonymous = make_report(
            reporter,
            title="Anonymous lamp",
            status=ReportStatus.IN_PROGRESS,
            latitude=INSIDE_LAT + 0.001,
            longitude=INSIDE_LON + 0.001,
            is_anonymous=True,
        )
        cls.far_waste = make_report(
            reporter,
            title="Overflowing bins",
            category="Waste",
            status=ReportStatus.RESOLVED,
            latitude=45.031,
            longitude=7.600,
        )

    def setUp(self):
        self.url = reverse("report-map")
        self.client = APIClient()
        login(self.client, "viewer")

    def test_requires_authentication(self):
        resp = APIClient().get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_pending_and_rejected_reports_are_left_out(self):
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(
            sorted(r["id"] for r in resp.data),
            sorted([self.assigned.pk, self.anonymous.pk, self.far_waste.pk]),
        )

    def test_close_zoom_returns_individual_reports(self):
        resp = self.client.get(self.url, {"zoom": 15})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        by_id = {r["id"]: r for r in resp.data}
        self.assertEqual(by_id[self.anonymous.pk]["reporter_name"], "Anonymous")
        self.assertEqual(by_id[self.assigned.pk]["reporter_name"], "Reporter Test")
        self.assertEqual(
            by_id[self.assigned.pk]["location"],
            {"latitude": INSIDE_LAT, "longitude": INSIDE_LON},
        )

    def test_wide_zoom_returns_clusters(self):
        resp = self.client.get(self.url, {"zoom": 10})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [(c["report_count"], c["report_ids"]) for c in resp.data],
            [
                (2, sorted([self.assigned.pk, self.anonymous.pk])),
                (1, [self.far_waste.pk]),
            ],
        )
        self.assertTrue(resp.data[0]["cluster_id"].startswith("cluster_"))

    def test_category_filter(self):
        resp = self.client.get(self.url, {"category": "Waste"})
        self.assertEqual([r["id"] for r in resp.data], [self.far_waste.pk])

    def test_bounding_box_limits_the_area(self):
        resp = self.client.get(
            self.url,
            {"min_lat": 45.06, "max_lat": 45.08, "min_lng": 7.68, "max_lng": 7.70},
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(
            sorted(r["id"] for r in resp.data),
            sorted([self.assigned.pk, self.anonymous.pk]),
        )

    def test_partial_bounding_box_is_rejected(self):
        resp = self.client.get(self.url, {"min_lat": 45.06, "max_lat": 45.08})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            resp.data["detail"],
            "Bounding box requires all parameters: min_lat, max_lat, min_lng, max_lng",
        )

    def test_inverted_bounding_box_is_rejected(self):
        resp = self.client.get(
            self.url,
            {"min_lat": 45.08, "max_lat": 45.06, "min_lng": 7.68, "max_lng": 7.70},
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "min_lat must be less than max_lat")

    def test_bounding_box_outside_the_globe_is_rejected(self):
        resp = self.client.get(
            self.url,
            {"min_lat": -95, "max_lat": 45.08, "min_lng": 7.68, "max_lng": 7.70},
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(resp.data["detail"].startswith("Invalid bounding box"))

    def test_zoom_out_of_range_is_rejected(self):
        resp = self.client.get(self.url, {"zoom": 25})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "Zoom level must be between 1 and 20")


@override_settings(STORAGES=STORAGE_OVERRIDE)
class TestExternalAssignmentsListing(TestCase):
    @classmethod
    def setUpTestData(cls):
        seed_catalog()
        reporter = make_citizen("reporter")
        electrician = make_user("electrician", _ELECTRICAL)
        cls.pro = make_user("pro", _PRO)
        lighting = Company.objects.create(name="Lumina", category="Public Lighting")
        cls.maintainer = make_user("ext_light", _EXTERNAL, company=lighting)
        cls.other_maintainer = make_user("ext_light_2", _EXTERNAL, company=lighting)

        cls.older = make_report(
            reporter,
            title="Older lamp",
            status=ReportStatus.IN_PROGRESS,
            assignee=electrician,
            external_assignee=cls.maintainer,
        )
        cls.newer = make_report(
            reporter,
            title="Newer lamp",
            status=ReportStatus.ASSIGNED,
            assignee=electrician,
            external_assignee=cls.maintainer,
        )
        make_report(
            reporter,
            title="Someone else's lamp",
            status=ReportStatus.ASSIGNED,
            assignee=electrician,
            external_assignee=cls.other_maintainer,
        )
        make_report(reporter, title="Internal lamp", status=ReportStatus.ASSIGNED, assignee=electrician)

    def _get(self, username, maintainer_id, params=None):
        client = APIClient()
        login(client, username)
        url = reverse("report-assigned-external", kwargs={"maintainer_id": maintainer_id})
        return client.get(url, params or {})

    def test_staff_sees_the_maintainers_reports_newest_first(self):
        resp = self._get("electrician", self.maintainer.pk)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([r["id"] for r in resp.data], [self.newer.pk, self.older.pk])

    def test_pro_filters_by_status(self):
        resp = self._get("pro", self.maintainer.pk, {"status": "In Progress"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([r["id"] for r in resp.data], [self.older.pk])

    def test_citizen_is_denied(self):
        resp = self._get("reporter", self.maintainer.pk)
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_maintainer(self):
        resp = self._get("pro", 999_999)
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["detail"], "External maintainer not found")

    def test_user_without_the_external_role(self):
        resp = self._get("pro", self.pro.pk)
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "The selected user is not an External Maintainer")
