"""
Reports app Service Layer.

This module is the **single source of truth** for all business logic
in the ``reports`` app.  Views must remain thin: validate input via
serializers, call a service method, and return the result wrapped in
a DRF ``Response``.

Architecture
------------
- ``CategoryRoleResolver``        — category → DepartmentRole → assignee.
- ``ReportQueryService``          — role-aware listings, detail look-up and the map.
- ``ReportCreationService``       — citizen report submission.
- ``ReportWorkflowService``       — the status state machine.
- ``ExternalDelegationService``   — hand-off to an External Maintainer.
- ``MessageService``              — reporter ↔ assignee thread.
- ``InternalCommentService``      — staff-only comments.

Workflow State-Machine Overview
--------------------------------

  PENDING_APPROVAL
    → ASSIGNED      (PRO approves; assignee picked by the resolver)
    → REJECTED      (PRO rejects with a reason)          [terminal]
  ASSIGNED
    → IN_PROGRESS   (assignee / external assignee / director)
  IN_PROGRESS
    → RESOLVED      (assignee / external assignee / director)  [terminal]

Every mutating method runs inside ``transaction.atomic``: the row is
locked, the source status re-checked, and the write is a compare-and-set
on that status, so concurrent approvals cannot double-assign.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q, QuerySet

from accounts.models import Department, DepartmentRole
from core.constants import MAX_TEXT_LENGTH, ReportCategory
from core.domain.access import Operation, RoleName, principal_roles, require_operation
from core.domain.exceptions import (
    ConfigurationError,
    DomainError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)
from core.domain.notifications import NotificationService
from core.domain.transactions import compare_and_set, lock_for_update

from .geo import (
    CLUSTER_MAX_ZOOM,
    MAX_ZOOM,
    MIN_ZOOM,
    cluster_points,
    is_valid_coordinate,
    is_within_municipality,
)
from .models import (
    OPEN_STATUSES,
    CategoryRoleMapping,
    InternalComment,
    Message,
    Report,
    ReportPhoto,
    ReportStatus,
)
from .storage import PhotoStorage, decode_data_uri

User = get_user_model()
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MapReports:
    """Map payload: report rows, or cluster dicts when ``clustered``."""

    clustered: bool
    items: Any


# ═══════════════════════════════════════════════════════════════════
#  Valid transition map
# ═══════════════════════════════════════════════════════════════════

_WORKERS = frozenset({
    RoleName.TECHNICAL_STAFF,
    RoleName.DEPARTMENT_DIRECTOR,
    RoleName.EXTERNAL_MAINTAINER,
})

#: Maps (from_status, to_status) → role kinds that may perform it.
#: Transitions not present here are illegal.
ALLOWED_TRANSITIONS: dict[tuple[str, str], frozenset[RoleName]] = {
    (ReportStatus.PENDING_APPROVAL, ReportStatus.ASSIGNED): frozenset({RoleName.PUBLIC_RELATIONS_OFFICER}),
    (ReportStatus.PENDING_APPROVAL, ReportStatus.REJECTED): frozenset({RoleName.PUBLIC_RELATIONS_OFFICER}),
    (ReportStatus.ASSIGNED, ReportStatus.IN_PROGRESS): _WORKERS,
    (ReportStatus.IN_PROGRESS, ReportStatus.RESOLVED): _WORKERS,
}

#: Targets reachable through ``ReportWorkflowService.advance``.
PROGRESS_STATUSES: frozenset[str] = frozenset({ReportStatus.IN_PROGRESS, ReportStatus.RESOLVED})


def _get_report(report_id: Any) -> Report:
    try:
        return Report.objects.select_related("reporter", "assignee", "external_assignee").get(pk=report_id)
    except (Report.DoesNotExist, ValueError, TypeError):
        raise NotFound("Report not found")


def _clean_text(content: Any, *, label: str) -> str:
    """Trim ``content`` and enforce the non-empty / length rules."""
    text = content.strip() if isinstance(content, str) else ""
    if not text:
        raise DomainError(f"{label} content is required")
    if len(text) > MAX_TEXT_LENGTH:
        raise DomainError(f"{label} content cannot exceed {MAX_TEXT_LENGTH} characters")
    return text


def _validate_filters(status: str | None, category: str | None) -> None:
    if status and status not in ReportStatus.values:
        raise DomainError(f"Invalid status: {status}")
    if category and category not in ReportCategory.values:
        raise DomainError(f"Invalid category: {category}")


def _is_pro(user: Any) -> bool:
    roles = principal_roles(user) or frozenset()
    return RoleName.PUBLIC_RELATIONS_OFFICER in roles


# ═══════════════════════════════════════════════════════════════════
#  Category → Role Resolver
# ═══════════════════════════════════════════════════════════════════


class CategoryRoleResolver:
    """
    Resolves the DepartmentRole responsible for a category and picks a
    concrete staff member holding it.

    Selection policy: least-loaded.  Among current holders of the
    DepartmentRole, the one with the fewest open (Assigned or In
    Progress) reports wins; ties go to the lowest user id.
    """

    @staticmethod
    def resolve_department_role_for_category(category: str) -> DepartmentRole:
        """
        Look up the static mapping for ``category``.

        Raises
        ------
        ConfigurationError
            If no mapping row exists for the category.
        """
        mapping = (
            CategoryRoleMapping.objects
            .select_related("department_role__department", "department_role__role")
            .filter(category=category)
            .first()
        )
        if mapping is None:
            logger.error("No DepartmentRole mapped to category %r", category)
            raise ConfigurationError(f'No department role is configured for category "{category}"')
        return mapping.department_role

    @staticmethod
    def responsible_department(category: str) -> Department | None:
        mapping = (
            CategoryRoleMapping.objects
            .select_related("department_role__department")
            .filter(category=category)
            .first()
        )
        return mapping.department_role.department if mapping else None

    @staticmethod
    def select_assignee(department_role: DepartmentRole) -> User:
        """
        Choose the least-loaded active holder of ``department_role``.

        Raises
        ------
        ConfigurationError
            If nobody currently holds the DepartmentRole.
        """
        candidate = (
            User.objects
            .filter(is_active=True, user_roles__department_role=department_role)
            .annotate(
                open_reports=Count(
                    "assigned_reports",
                    filter=Q(assigned_reports__status__in=OPEN_STATUSES),
                    distinct=True,
                )
            )
            .order_by("open_reports", "id")
            .first()
        )
        if candidate is None:
            logger.error("No active user holds %s", department_role)
            raise ConfigurationError(f"No staff member available for {department_role}")
        return candidate


# ═══════════════════════════════════════════════════════════════════
#  Report Query Service
# ═══════════════════════════════════════════════════════════════════


class ReportQueryService:
    """
    Role-aware report listings.
    """

    @staticmethod
    def get_all_reports(
        requesting_user: Any,
        *,
        status: str | None = None,
        category: str | None = None,
    ) -> QuerySet[Report]:
        """
        List reports visible to ``requesting_user``, newest first.

        Parameters
        ----------
        requesting_user : User
            Any authenticated user.
        status : str, optional
            ``ReportStatus`` value to filter on.
        category : str, optional
            ``ReportCategory`` value to filter on.

        Raises
        ------
        DomainError
            Unknown status or category value.
        PermissionDenied
            A non-PRO asked explicitly for pending reports.
        """
        _validate_filters(status, category)
        if status == ReportStatus.PENDING_APPROVAL:
            require_operation(requesting_user, Operation.VIEW_PENDING_REPORTS)

        qs = Report.objects.select_related("reporter", "assignee", "external_assignee").prefetch_related("photos")
        if not _is_pro(requesting_user):
            qs = qs.exclude(status=ReportStatus.PENDING_APPROVAL)
        if status:
            qs = qs.filter(status=status)
        if category:
            qs = qs.filter(category=category)
        return qs.order_by("-created_at", "-id")

    @staticmethod
    def get_my_assigned_reports(
        requesting_user: Any,
        *,
        status: str | None = None,
        category: str | None = None,
    ) -> QuerySet[Report]:
        """
        Reports assigned to the caller, newest first.

        External Maintainers see the reports delegated to them.
        """
        require_operation(requesting_user, Operation.VIEW_ASSIGNED_REPORTS)
        _validate_filters(status, category)

        condition = Q(assignee=requesting_user)
        if RoleName.EXTERNAL_MAINTAINER in principal_roles(requesting_user):
            condition |= Q(external_assignee=requesting_user)

        qs = (
            Report.objects
            .filter(condition)
            .select_related("reporter", "assignee", "external_assignee")
            .prefetch_related("photos")
        )
        if status:
            qs = qs.filter(status=status)
        if category:
            qs = qs.filter(category=category)
        return qs.order_by("-created_at", "-id")

    @staticmethod
    def get_report(requesting_user: Any, report_id: Any) -> Report:
        """Single report; a pending report is visible only to PROs and its reporter."""
        report = _get_report(report_id)
        if (
            report.status == ReportStatus.PENDING_APPROVAL
            and report.reporter_id != requesting_user.pk
            and not _is_pro(requesting_user)
        ):
            raise NotFound("Report not found")
        return report

    @staticmethod
    def get_external_maintainer_reports(
        requesting_user: Any,
        maintainer_id: Any,
        *,
        status: str | None = None,
        category: str | None = None,
    ) -> QuerySet[Report]:
        """
        Reports currently delegated to one External Maintainer, newest
        first.  Used by staff and the PRO to follow up on delegations.

        Raises
        ------
        PermissionDenied
            Caller is not technical staff, a director or a PRO.
        NotFound
            Unknown maintainer.
        DomainError
            The user is not an External Maintainer, or a bad filter.
        """
        require_operation(requesting_user, Operation.VIEW_EXTERNAL_ASSIGNMENTS)
        _validate_filters(status, category)

        try:
            maintainer = User.objects.get(pk=maintainer_id)
        except (User.DoesNotExist, ValueError, TypeError):
            raise NotFound("External maintainer not found")
        if not maintainer.is_external_maintainer:
            raise DomainError("The selected user is not an External Maintainer")

        qs = (
            Report.objects
            .filter(external_assignee=maintainer)
            .select_related("reporter", "assignee", "external_assignee")
            .prefetch_related("photos")
        )
        if status:
            qs = qs.filter(status=status)
        if category:
            qs = qs.filter(category=category)
        return qs.order_by("-created_at", "-id")

    @staticmethod
    def get_map_reports(
        *,
        zoom: float | None = None,
        min_lat: float | None = None,
        max_lat: float | None = None,
        min_lng: float | None = None,
        max_lng: float | None = None,
        category: str | None = None,
    ) -> MapReports:
        """
        Reports for the public map.

        Pending and rejected reports never appear.  Above
        ``CLUSTER_MAX_ZOOM`` (or without a zoom) the individual reports
        are returned; at or below it they are grouped into grid clusters.

        Parameters
        ----------
        zoom : float, optional
            Map zoom level, 1 to 20.
        min_lat, max_lat, min_lng, max_lng : float, optional
            Bounding box of the visible area; all four or none.
        category : str, optional
            ``ReportCategory`` value.

        Raises
        ------
        DomainError
            Zoom out of range, partial or inverted bounding box,
            coordinates out of range, unknown category.
        """
        _validate_filters(None, category)
        if zoom is not None and not MIN_ZOOM <= zoom <= MAX_ZOOM:
            raise DomainError(f"Zoom level must be between {MIN_ZOOM} and {MAX_ZOOM}")

        qs = (
            Report.objects
            .exclude(status__in=[ReportStatus.PENDING_APPROVAL, ReportStatus.REJECTED])
            .select_related("reporter")
        )

        bounds = (min_lat, max_lat, min_lng, max_lng)
        if any(value is not None for value in bounds):
            if any(value is None for value in bounds):
                raise DomainError(
                    "Bounding box requires all parameters: min_lat, max_lat, min_lng, max_lng"
                )
            if not is_valid_coordinate(min_lat, min_lng) or not is_valid_coordinate(max_lat, max_lng):
                raise DomainError(
                    "Invalid bounding box: latitude must be between -90 and 90, "
                    "longitude must be between -180 and 180"
                )
            if min_lat >= max_lat:
                raise DomainError("min_lat must be less than max_lat")
            if min_lng >= max_lng:
                raise DomainError("min_lng must be less than max_lng")
            qs = qs.filter(
                latitude__gte=min_lat,
                latitude__lte=max_lat,
                longitude__gte=min_lng,
                longitude__lte=max_lng,
            )

        if category:
            qs = qs.filter(category=category)
        qs = qs.order_by("-created_at", "-id")

        if zoom is not None and zoom <= CLUSTER_MAX_ZOOM:
            points = qs.values_list("id", "latitude", "longitude")
            return MapReports(clustered=True, items=cluster_points(points, zoom))
        return MapReports(clustered=False, items=qs)


# ═══════════════════════════════════════════════════════════════════
#  Report Creation Service
# ═══════════════════════════════════════════════════════════════════


class ReportCreationService:
    """
    Citizen report submission.
    """

    @staticmethod
    @transaction.atomic
    def create_report(reporter: Any, validated_data: dict[str, Any]) -> Report:
        """
        Create a report in ``PENDING_APPROVAL``.

        Parameters
        ----------
        reporter : User
            Must be a citizen.
        validated_data : dict
            ``title``, ``description``, ``category``, ``latitude``,
            ``longitude``, ``is_anonymous`` and ``photos`` (list of data
            URIs).

        Returns
        -------
        Report
            The persisted report with its photo references.

        Raises
        ------
        PermissionDenied
            The reporter is not a citizen.
        DomainError
            Unknown category, location outside the municipality, or a
            wrong number of photos / malformed photo.
        """
        require_operation(reporter, Operation.CREATE_REPORT)

        category = validated_data.get("category")
        if category not in ReportCategory.values:
            raise DomainError(f"Invalid category: {category}")

        latitude = validated_data.get("latitude")
        longitude = validated_data.get("longitude")
        if not is_valid_coordinate(latitude, longitude):
            raise DomainError("Invalid coordinates")
        if not is_within_municipality(latitude, longitude):
            raise DomainError("The selected location is outside the municipality boundaries")

        photos = validated_data.get("photos") or []
        if len(photos) < settings.REPORTS_MIN_PHOTOS:
            raise DomainError("At least one photo is required")
        if len(photos) > settings.REPORTS_MAX_PHOTOS:
            raise DomainError(f"A report can have at most {settings.REPORTS_MAX_PHOTOS} photos")
        decoded = [decode_data_uri(photo) for photo in photos]

        report = Report.objects.create(
            reporter=reporter,
            title=validated_data["title"].strip(),
            description=validated_data["description"].strip(),
            category=category,
            latitude=float(latitude),
            longitude=float(longitude),
            is_anonymous=bool(validated_data.get("is_anonymous", False)),
            status=ReportStatus.PENDING_APPROVAL,
        )

        try:
            for position, (content, extension) in enumerate(decoded):
                ReportPhoto.objects.create(
                    report=report,
                    reference=PhotoStorage.upload_photo(content, extension),
                    position=position,
                )
        except Exception:
            PhotoStorage.delete_photos(report.pk)
            raise

        logger.info("Report #%s created by %s [%s]", report.pk, reporter, category)
        return report


# ═══════════════════════════════════════════════════════════════════
#  Report Workflow Service
# ═══════════════════════════════════════════════════════════════════


class ReportWorkflowService:
    """
    Manages **all** status transitions in the report lifecycle.

    ``update_status`` is the single entry point used by the API; it
    dispatches to ``approve``, ``reject`` or ``advance``.
    """

    @staticmethod
    def update_status(
        report_id: Any,
        new_status: str | None,
        acting_user: Any,
        *,
        rejection_reason: str | None = None,
    ) -> Report:
        """
        Move a report to ``new_status``.

        Raises
        ------
        DomainError
            Missing or unknown target status.
        """
        if not new_status:
            raise DomainError("newStatus is required")
        if new_status == ReportStatus.ASSIGNED:
            return ReportWorkflowService.approve(report_id, acting_user)
        if new_status == ReportStatus.REJECTED:
            return ReportWorkflowService.reject(report_id, rejection_reason, acting_user)
        if new_status in PROGRESS_STATUSES:
            return ReportWorkflowService.advance(report_id, new_status, acting_user)
        raise DomainError(f"Invalid status: {new_status}")

    @staticmethod
    @transaction.atomic
    def approve(report_id: Any, acting_user: Any) -> Report:
        """
        **PRO approves a pending report.**

        Transitions: ``PENDING_APPROVAL`` → ``ASSIGNED``.

        Resolves the DepartmentRole responsible for the report's
        category, selects a holder of it as assignee, and notifies both
        the reporter and the assignee.

        Raises
        ------
        PermissionDenied
            The actor is not a PRO.
        NotFound
            Unknown report.
        DomainError
            The report is not pending.
        ConfigurationError
            No mapping for the category, or nobody holds the role.
        """
        require_operation(acting_user, Operation.REVIEW_REPORT)

        report = lock_for_update(Report, report_id, label="Report")
        if report.status != ReportStatus.PENDING_APPROVAL:
            raise DomainError(f"Cannot approve report with status {report.status}")

        department_role = CategoryRoleResolver.resolve_department_role_for_category(report.category)
        assignee = CategoryRoleResolver.select_assignee(department_role)

        compare_and_set(
            report,
            expected={"status": ReportStatus.PENDING_APPROVAL},
            changes={"status": ReportStatus.ASSIGNED, "assignee": assignee},
        )

        payload = {"report_title": report.title, "department": department_role.department.name}
        NotificationService.create(
            actor=acting_user,
            recipients=report.reporter,
            event_type="report_approved",
            payload=payload,
            report=report,
        )
        NotificationService.create(
            actor=acting_user,
            recipients=assignee,
            event_type="report_assigned",
            payload=payload,
            report=report,
        )

        logger.info(
            "Report #%s approved by %s and assigned to %s (%s)",
            report.pk, acting_user, assignee, department_role,
        )
        return report

    @staticmethod
    @transaction.atomic
    def reject(report_id: Any, reason: str | None, acting_user: Any) -> Report:
        """
        **PRO rejects a pending report.**

        Transitions: ``PENDING_APPROVAL`` → ``REJECTED``.

        Raises
        ------
        PermissionDenied
            The actor is not a PRO.
        DomainError
            Blank reason, or the report is not pending.
        NotFound
            Unknown report.
        """
        require_operation(acting_user, Operation.REVIEW_REPORT)

        reason = reason.strip() if isinstance(reason, str) else ""
        if not reason:
            raise DomainError("Rejection reason is required")

        report = lock_for_update(Report, report_id, label="Report")
        if report.status != ReportStatus.PENDING_APPROVAL:
            raise DomainError(f"Cannot reject report with status {report.status}")

        compare_and_set(
            report,
            expected={"status": ReportStatus.PENDING_APPROVAL},
            changes={"status": ReportStatus.REJECTED, "rejection_reason": reason},
        )

        NotificationService.create(
            actor=acting_user,
            recipients=report.reporter,
            event_type="report_rejected",
            payload={"report_title": report.title, "reason": reason},
            report=report,
        )

        logger.info("Report #%s rejected by %s", report.pk, acting_user)
        return report

    @staticmethod
    def _may_work_on(report: Report, user: Any, roles: frozenset[RoleName]) -> bool:
        """Assignee, external assignee, or (if enabled) the responsible director."""
        if report.assignee_id == user.pk:
            return True
        if RoleName.EXTERNAL_MAINTAINER in roles and report.external_assignee_id == user.pk:
            return True
        if settings.REPORTS_DIRECTOR_CAN_ADVANCE and RoleName.DEPARTMENT_DIRECTOR in roles:
            department = CategoryRoleResolver.responsible_department(report.category)
            return department is not None and user.user_roles.filter(
                department_role__department=department,
                department_role__role__name=RoleName.DEPARTMENT_DIRECTOR.value,
            ).exists()
        return False

    @staticmethod
    @transaction.atomic
    def advance(report_id: Any, new_status: str, acting_user: Any) -> Report:
        """
        **Move an assigned report forward.**

        Transitions: ``ASSIGNED`` → ``IN_PROGRESS``, ``IN_PROGRESS`` →
        ``RESOLVED``.

        Raises
        ------
        PermissionDenied
            The actor's roles do not allow progress updates, or the actor
            is neither the assignee, the external assignee, nor the
            responsible Department Director.
        DomainError
            ``new_status`` is not a progress status.
        InvalidTransition
            The edge does not exist from the current status.
        NotFound
            Unknown report.
        """
        require_operation(acting_user, Operation.ADVANCE_REPORT)
        if new_status not in PROGRESS_STATUSES:
            raise DomainError(f"Invalid status: {new_status}")

        report = lock_for_update(Report, report_id, label="Report")
        edge = (report.status, new_status)
        if edge not in ALLOWED_TRANSITIONS:
            raise InvalidTransition(current=report.status, target=new_status)

        roles = principal_roles(acting_user) or frozenset()
        if not ALLOWED_TRANSITIONS[edge].intersection(roles):
            raise PermissionDenied(f"You cannot set status to {new_status}")
        if not ReportWorkflowService._may_work_on(report, acting_user, roles):
            raise PermissionDenied("You are not assigned to this report")

        previous = report.status
        compare_and_set(
            report,
            expected={"status": previous},
            changes={"status": new_status},
        )

        NotificationService.create(
            actor=acting_user,
            recipients=report.reporter,
            event_type="report_status_changed",
            payload={"report_title": report.title, "status": new_status},
            report=report,
        )

        logger.info("Report #%s moved %s → %s by %s", report.pk, previous, new_status, acting_user)
        return report


# ═══════════════════════════════════════════════════════════════════
#  External Delegation Service
# ═══════════════════════════════════════════════════════════════════


class ExternalDelegationService:

    @staticmethod
    @transaction.atomic
    def assign_to_external_maintainer(report_id: Any, maintainer_id: Any, acting_user: Any) -> Report:
        """
        Hand an assigned report to an External Maintainer.

        The report stays ``ASSIGNED``; only ``external_assignee`` (and
        ``updated_at``) change.  Re-delegation overwrites the previous
        external assignee.

        Parameters
        ----------
        report_id : int
            Report in ``ASSIGNED`` status.
        maintainer_id : int
            User holding "External Maintainer" whose company's category
            matches the report's category.
        acting_user : User
            The current assignee (or the responsible Department Director
            when ``REPORTS_DIRECTOR_CAN_ADVANCE`` is set).

        Raises
        ------
        PermissionDenied
            The actor may not delegate this report.
        DomainError
            Report not ``ASSIGNED``; target lacks the External Maintainer
            role; company category mismatch.
        NotFound
            Unknown report or maintainer.
        """
        require_operation(acting_user, Operation.DELEGATE_REPORT)

        report = lock_for_update(Report, report_id, label="Report")
        roles = principal_roles(acting_user) or frozenset()
        if not ReportWorkflowService._may_work_on(report, acting_user, roles):
            raise PermissionDenied("Only the assigned technician can delegate this report")
        if report.status != ReportStatus.ASSIGNED:
            raise DomainError(
                f"Report must be in Assigned status to be delegated (current status: {report.status})"
            )

        try:
            maintainer = User.objects.select_related("company").get(pk=maintainer_id)
        except (User.DoesNotExist, ValueError, TypeError):
            raise NotFound("External maintainer not found")
        if not maintainer.is_external_maintainer:
            raise DomainError("The selected user is not an External Maintainer")
        if maintainer.company is None or maintainer.company.category != report.category:
            company_category = maintainer.company.category if maintainer.company else "none"
            raise DomainError(
                f'Company category "{company_category}" does not match '
                f'report category "{report.category}"'
            )

        compare_and_set(
            report,
            expected={"status": ReportStatus.ASSIGNED},
            changes={"external_assignee": maintainer},
        )

        NotificationService.create(
            actor=acting_user,
            recipients=maintainer,
            event_type="report_delegated",
            payload={"report_title": report.title},
            report=report,
        )

        logger.info(
            "Report #%s delegated to %s (%s) by %s",
            report.pk, maintainer, maintainer.company.name, acting_user,
        )
        return report


# ═══════════════════════════════════════════════════════════════════
#  Message Service
# ═══════════════════════════════════════════════════════════════════


class MessageService:
    """
    The reporter ↔ assignee thread of a report.
    """

    @staticmethod
    @transaction.atomic
    def send_message(report_id: Any, sender: Any, content: Any) -> Message:
        """
        Post a message and notify the other participant.

        Raises
        ------
        DomainError
            Empty content (after trimming) or more than 2000 characters.
        NotFound
            Unknown report.
        PermissionDenied
            The sender is neither the reporter nor the assignee.
        """
        text = _clean_text(content, label="Message")
        report = _get_report(report_id)
        if not report.is_participant(sender):
            require_operation(
                sender,
                Operation.MUTATE_OWNED_RESOURCE,
                is_owner=False,
                message="You can only send messages on reports you reported or are assigned to",
            )

        message = Message.objects.create(report=report, sender=sender, content=text)

        counterpart = report.assignee if sender.pk == report.reporter_id else report.reporter
        NotificationService.create(
            actor=sender,
            recipients=counterpart,
            event_type="message_received",
            payload={"report_title": report.title},
            report=report,
        )
        return message

    @staticmethod
    def get_messages(report_id: Any, requester: Any) -> QuerySet[Message]:
        """Oldest-first thread; only the reporter and the assignee may read it."""
        report = _get_report(report_id)
        if not report.is_participant(requester):
            require_operation(
                requester,
                Operation.MUTATE_OWNED_RESOURCE,
                is_owner=False,
                message="You can only view messages of reports you reported or are assigned to",
            )
        return report.messages.select_related("sender").order_by("created_at", "id")


# ═══════════════════════════════════════════════════════════════════
#  Internal Comment Service
# ═══════════════════════════════════════════════════════════════════


class InternalCommentService:
    """
    Staff-only comments.  Citizens are refused by the guard.
    """

    @staticmethod
    def list_comments(report_id: Any, requester: Any) -> QuerySet[InternalComment]:
        require_operation(requester, Operation.INTERNAL_COMMENTS)
        report = _get_report(report_id)
        return report.internal_comments.select_related("author").order_by("created_at", "id")

    @staticmethod
    @transaction.atomic
    def add_comment(report_id: Any, author: Any, content: Any) -> InternalComment:
        require_operation(author, Operation.INTERNAL_COMMENTS)
        text = _clean_text(content, label="Comment")
        report = _get_report(report_id)
        comment = InternalComment.objects.create(report=report, author=author, content=text)
        logger.info("Internal comment #%s added to report #%s by %s", comment.pk, report.pk, author)
        return comment

    @staticmethod
    @transaction.atomic
    def delete_comment(report_id: Any, comment_id: Any, requester: Any) -> None:
        """
        Delete a comment.  Only its author may do so.

        Raises
        ------
        NotFound
            Unknown report, or no such comment on that report.
        PermissionDenied
            The requester is not the author.
        """
        require_operation(requester, Operation.INTERNAL_COMMENTS)
        report = _get_report(report_id)
        try:
            comment = report.internal_comments.get(pk=comment_id)
        except (InternalComment.DoesNotExist, ValueError, TypeError):
            raise NotFound("Comment not found")

        require_operation(
            requester,
            Operation.MUTATE_OWNED_RESOURCE,
            is_owner=comment.author_id == requester.pk,
            message="You can only delete your own comments",
        )
        comment.delete()
        logger.info("Internal comment #%s deleted by %s", comment_id, requester)
