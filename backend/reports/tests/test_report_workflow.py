"""
Integration tests — the report status workflow.

Endpoint under test:
  PATCH /api/reports/{id}/status/   {"new_status": ..., "rejection_reason": ...}

Lifecycle:
  Pending Approval → Assigned (PRO approves) → In Progress → Resolved
  Pending Approval → Rejected (PRO rejects with a reason)
"""

from __future__ import annotations

from unittest import mock

from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from core.domain.exceptions import InvalidTransition
from core.domain.transactions import compare_and_set
from core.models import Notification
from reports.models import Report, ReportStatus
from reports.services import CategoryRoleResolver, ReportWorkflowService
from tests.helpers import (
    STORAGE_OVERRIDE,
    department_role,
    login,
    make_citizen,
    make_report,
    make_user,
    seed_catalog,
)

_PRO = ("Organization", "Municipal Public Relations Officer")
_ELECTRICAL = ("Public Lighting Department", "Electrical staff member")
_LIGHTING_DIRECTOR = ("Public Lighting Department", "Department Director")
_WATER_DIRECTOR = ("Water and Sewer Services", "Department Director")


@override_settings(STORAGES=STORAGE_OVERRIDE)
class WorkflowTestBase(TestCase):
    @classmethod
    def setUpTestData(cls):
        seed_catalog()
        cls.reporter = make_citizen("reporter")
        cls.pro = make_user("pro", _PRO)
        cls.electrician = make_user("electrician", _ELECTRICAL)

    def setUp(self):
        self.report = make_report(self.reporter)

    def _client(self, username):
        client = APIClient()
        login(client, username)
        return client

    def _status_url(self, report=None):
        return reverse("report-update-status", kwargs={"pk": (report or self.report).pk})

    def _patch(self, username, body, report=None):
        return self._client(username).patch(self._status_url(report), body, format="json")


class TestApproveAndReject(WorkflowTestBase):
    def test_pro_approves_and_report_is_assigned(self):
        resp = self._patch("pro", {"new_status": "Assigned"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["status"], ReportStatus.ASSIGNED)
        self.assertEqual(resp.data["assignee"]["username"], "electrician")

    def test_approval_notifies_reporter_and_assignee(self):
        self._patch("pro", {"new_status": "Assigned"})
        reporter_note = Notification.objects.get(recipient=self.reporter)
        self.assertEqual(
            reporter_note.content,
            'Your report "Broken street lamp" has been approved and assigned to Public Lighting Department.',
        )
        self.assertEqual(reporter_note.report_id, self.report.pk)
        assignee_note = Notification.objects.get(recipient=self.electrician)
        self.assertEqual(assignee_note.content, 'Report "Broken street lamp" has been assigned to you.')

    def test_only_pro_can_approve(self):
        resp = self._patch("electrician", {"new_status": "Assigned"})
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(
            resp.data["detail"],
            "Only Municipal Public Relations Officers can approve or reject reports",
        )
        self.report.refresh_from_db()
        self.assertEqual(self.report.status, ReportStatus.PENDING_APPROVAL)

    def test_cannot_approve_twice(self):
        self._patch("pro", {"new_status": "Assigned"})
        resp = self._patch("pro", {"new_status": "Assigned"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "Cannot approve report with status Assigned")

    def test_reject_requires_reason(self):
        resp = self._patch("pro", {"new_status": "Rejected", "rejection_reason": "   "})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "Rejection reason is required")

    def test_reject_with_reason(self):
        resp = self._patch("pro", {"new_status": "Rejected", "rejection_reason": "Duplicate report"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["status"], ReportStatus.REJECTED)
        self.assertEqual(resp.data["rejection_reason"], "Duplicate report")
        self.assertEqual(
            Notification.objects.get(recipient=self.reporter).content,
            'Your report "Broken street lamp" has been rejected. Reason: Duplicate report',
        )

    def test_rejected_report_cannot_be_approved(self):
        self._patch("pro", {"new_status": "Rejected", "rejection_reason": "Duplicate report"})
        resp = self._patch("pro", {"new_status": "Assigned"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "Cannot approve report with status Rejected")

    def test_missing_new_status(self):
        resp = self._patch("pro", {})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "newStatus is required")

    def test_unknown_status(self):
        resp = self._patch("pro", {"new_status": "Closed"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "Invalid status: Closed")

    def test_unknown_report(self):
        resp = self._client("pro").patch(
            reverse("report-update-status", kwargs={"pk": 999999}),
            {"new_status": "Assigned"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["detail"], "Report not found")

    def test_category_without_staff_is_a_configuration_error(self):
        report = make_report(self.reporter, category="Waste")
        resp = self._patch("pro", {"new_status": "Assigned"}, report=report)
        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertTrue(resp.data["detail"].startswith("No staff member available for"))
        report.refresh_from_db()
        self.assertEqual(report.status, ReportStatus.PENDING_APPROVAL)
        self.assertIsNone(report.assignee)


class TestAdvance(WorkflowTestBase):
    def setUp(self):
        super().setUp()
        Report.objects.filter(pk=self.report.pk).update(
            status=ReportStatus.ASSIGNED,
            assignee=self.electrician,
        )

    def test_assignee_moves_report_to_resolved(self):
        resp = self._patch("electrician", {"new_status": "In Progress"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["status"], ReportStatus.IN_PROGRESS)

        resp = self._patch("electrician", {"new_status": "Resolved"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["status"], ReportStatus.RESOLVED)

        contents = list(
            Notification.objects.filter(recipient=self.reporter)
            .order_by("id")
            .values_list("content", flat=True)
        )
        self.assertEqual(
            contents,
            [
                'The status of your report "Broken street lamp" changed to In Progress.',
                'The status of your report "Broken street lamp" changed to Resolved.',
            ],
        )

    def test_skipping_in_progress_is_an_invalid_transition(self):
        resp = self._patch("electrician", {"new_status": "Resolved"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            resp.data["detail"],
            "Invalid status transition from 'Assigned' to 'Resolved'.",
        )

    def test_resolved_is_terminal(self):
        Report.objects.filter(pk=self.report.pk).update(status=ReportStatus.RESOLVED)
        resp = self._patch("electrician", {"new_status": "In Progress"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_staff_member_is_denied(self):
        make_user("other_electrician", _ELECTRICAL)
        resp = self._patch("other_electrician", {"new_status": "In Progress"})
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.data["detail"], "You are not assigned to this report")

    def test_pro_cannot_advance(self):
        resp = self._patch("pro", {"new_status": "In Progress"})
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(
            resp.data["detail"],
            "Only technical staff and external maintainers can update report progress",
        )

    def test_citizen_cannot_advance(self):
        resp = self._patch("reporter", {"new_status": "In Progress"})
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_director_of_responsible_department_may_advance(self):
        make_user("lighting_director", _LIGHTING_DIRECTOR)
        resp = self._patch("lighting_director", {"new_status": "In Progress"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)

    def test_director_of_other_department_is_denied(self):
        make_user("water_director", _WATER_DIRECTOR)
        resp = self._patch("water_director", {"new_status": "In Progress"})
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    @override_settings(REPORTS_DIRECTOR_CAN_ADVANCE=False)
    def test_director_override_can_be_disabled(self):
        make_user("lighting_director", _LIGHTING_DIRECTOR)
        resp = self._patch("lighting_director", {"new_status": "In Progress"})
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.data["detail"], "You are not assigned to this report")


class TestAssigneeSelection(WorkflowTestBase):
    """Least-loaded holder of the mapped DepartmentRole, ties to the lowest id."""

    @classmethod
    def setUpTestData(cls):
        super().setUpTestData()
        cls.second_electrician = make_user("second_electrician", _ELECTRICAL)

    def test_resolver_maps_category_to_department_role(self):
        self.assertEqual(
            CategoryRoleResolver.resolve_department_role_for_category("Public Lighting"),
            department_role(*_ELECTRICAL),
        )
        self.assertEqual(
            CategoryRoleResolver.resolve_department_role_for_category("Other"),
            department_role("Public Infrastructure", "General Services staff member"),
        )

    def test_approvals_balance_open_workload(self):
        reports = [self.report, make_report(self.reporter), make_report(self.reporter)]
        assignees = []
        for report in reports:
            resp = self._patch("pro", {"new_status": "Assigned"}, report=report)
            self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
            assignees.append(resp.data["assignee"]["username"])
        self.assertEqual(assignees, ["electrician", "second_electrician", "electrician"])

    def test_resolved_reports_do_not_count_as_workload(self):
        make_report(self.reporter, status=ReportStatus.RESOLVED, assignee=self.electrician)
        make_report(self.reporter, status=ReportStatus.IN_PROGRESS, assignee=self.second_electrician)
        selected = CategoryRoleResolver.select_assignee(department_role(*_ELECTRICAL))
        self.assertEqual(selected, self.electrician)

    def test_inactive_holders_are_skipped(self):
        self.electrician.is_active = False
        self.electrician.save(update_fields=["is_active"])
        selected = CategoryRoleResolver.select_assignee(department_role(*_ELECTRICAL))
        self.assertEqual(selected, self.second_electrician)


class TestConcurrentApproval(WorkflowTestBase):
    """Two approvals racing on one report: only the first write lands."""

    def test_stale_instance_cannot_overwrite_a_concurrent_approval(self):
        second = make_user("second_electrician", _ELECTRICAL)
        stale = Report.objects.get(pk=self.report.pk)
        Report.objects.filter(pk=self.report.pk).update(
            status=ReportStatus.ASSIGNED, assignee=self.electrician,
        )

        with self.assertRaises(InvalidTransition):
            compare_and_set(
                stale,
                expected={"status": ReportStatus.PENDING_APPROVAL},
                changes={"status": ReportStatus.ASSIGNED, "assignee": second},
            )

        self.report.refresh_from_db()
        self.assertEqual(self.report.assignee, self.electrician)
        self.assertIsNone(stale.assignee_id)

    def test_approval_that_loses_the_race_emits_nothing(self):
        select_assignee = CategoryRoleResolver.select_assignee

        def approved_meanwhile(department_role):
            Report.objects.filter(pk=self.report.pk).update(
                status=ReportStatus.ASSIGNED, assignee=self.electrician,
            )
            return select_assignee(department_role)

        with mock.patch.object(CategoryRoleResolver, "select_assignee", side_effect=approved_meanwhile):
            with self.assertRaises(InvalidTransition):
                ReportWorkflowService.approve(self.report.pk, self.pro)

        self.assertFalse(Notification.objects.exists())
