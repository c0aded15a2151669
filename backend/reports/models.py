"""
Reports app models.

Covers the citizen report lifecycle (pending approval → assigned →
in progress → resolved, or rejected), the photos attached at creation
time, the citizen↔assignee message thread, staff-only internal comments,
and the static category → DepartmentRole mapping used on approval.
"""

from django.conf import settings
from django.db import models

from core.constants import ReportCategory
from core.models import TimeStampedModel


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class ReportStatus(models.TextChoices):
    """
    Closed set of lifecycle states.  Values are the wire labels.
    """

    PENDING_APPROVAL = "Pending Approval", "Pending Approval"
    ASSIGNED = "Assigned", "Assigned"
    IN_PROGRESS = "In Progress", "In Progress"
    RESOLVED = "Resolved", "Resolved"
    REJECTED = "Rejected", "Rejected"


#: States in which a report still counts towards its assignee's workload.
OPEN_STATUSES: tuple[str, ...] = (ReportStatus.ASSIGNED, ReportStatus.IN_PROGRESS)


# ────────────────────────────────────────────────────────────────────
# Models
# ────────────────────────────────────────────────────────────────────

class Report(TimeStampedModel):
    """
    An issue filed by a citizen at a location inside the municipality.

    ``assignee`` is set only by approval; ``external_assignee`` only by
    delegation to an External Maintainer.  Reports are never deleted by
    the service layer.
    """

    reporter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reports",
        verbose_name="Reporter",
    )
    title = models.CharField(max_length=200, verbose_name="Title")
    description = models.TextField(verbose_name="Description")
    category = models.CharField(
        max_length=64,
        choices=ReportCategory.choices,
        verbose_name="Category",
    )
    latitude = models.FloatField(verbose_name="Latitude")
    longitude = models.FloatField(verbose_name="Longitude")
    status = models.CharField(
        max_length=32,
        choices=ReportStatus.choices,
        default=ReportStatus.PENDING_APPROVAL,
        db_index=True,
        verbose_name="Status",
    )
    assignee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_reports",
        verbose_name="Assignee",
    )
    external_assignee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="externally_assigned_reports",
        verbose_name="External Assignee",
    )
    rejection_reason = models.TextField(
        blank=True,
        default="",
        verbose_name="Rejection Reason",
    )
    is_anonymous = models.BooleanField(default=False, verbose_name="Anonymous")

    class Meta:
        verbose_name = "Report"
        verbose_name_plural = "Reports"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["assignee", "status"], name="report_assignee_status_idx"),
            models.Index(fields=["external_assignee", "status"], name="report_external_status_idx"),
            models.Index(fields=["category"], name="report_category_idx"),
        ]

    def __str__(self):
        return f"Report #{self.pk}: {self.title} [{self.status}]"

    def is_participant(self, user) -> bool:
        """Reporter or current assignee: the two ends of the message thread."""
        return user.pk is not None and user.pk in (self.reporter_id, self.assignee_id)


class ReportPhoto(models.Model):
    """Reference to a photo stored by ``reports.storage.PhotoStorage``."""

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="photos",
        verbose_name="Report",
    )
    reference = models.CharField(max_length=500, verbose_name="Storage Reference")
    position = models.PositiveSmallIntegerField(default=0, verbose_name="Position")

    class Meta:
        verbose_name = "Report Photo"
        verbose_name_plural = "Report Photos"
        ordering = ["position", "id"]

    def __str__(self):
        return self.reference


class Message(TimeStampedModel):
    """A message between the reporter and the assignee of a report."""

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="messages",
        verbose_name="Report",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
        verbose_name="Sender",
    )
    content = models.TextField(verbose_name="Content")

    class Meta:
        verbose_name = "Message"
        verbose_name_plural = "Messages"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"Message #{self.pk} on report #{self.report_id}"


class InternalComment(TimeStampedModel):
    """A staff-only annotation on a report.  Never shown to citizens."""

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="internal_comments",
        verbose_name="Report",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="internal_comments",
        verbose_name="Author",
    )
    content = models.TextField(verbose_name="Content")

    class Meta:
        verbose_name = "Internal Comment"
        verbose_name_plural = "Internal Comments"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"Comment #{self.pk} by {self.author_id} on report #{self.report_id}"


class CategoryRoleMapping(models.Model):
    """
    Static configuration: which ``DepartmentRole`` handles a category.
    """

    category = models.CharField(
        max_length=64,
        choices=ReportCategory.choices,
        unique=True,
        verbose_name="Category",
    )
    department_role = models.ForeignKey(
        "accounts.DepartmentRole",
        on_delete=models.PROTECT,
        related_name="category_mappings",
        verbose_name="Responsible Department Role",
    )

    class Meta:
        verbose_name = "Category Role Mapping"
        verbose_name_plural = "Category Role Mappings"
        ordering = ["category"]

    def __str__(self):
        return f"{self.category} → {self.department_role}"
