"""
Core app services — **Service Layer**.

Views delegate all business logic to the service classes defined here,
keeping views thin and ensuring testability.

Cross-app import rule: models and choice classes of other apps are
imported **inside** the method that needs them, never at module level,
so that ``core`` stays importable regardless of app registration order.
"""

from __future__ import annotations

import logging
from typing import Any

from django.apps import apps
from django.db import transaction

from core.constants import ReportCategory
from core.domain.access import Operation, require_operation
from core.domain.exceptions import NotFound

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  System Constants Service
# ═══════════════════════════════════════════════════════════════════


class SystemConstantsService:
    """
    Gathers the closed vocabularies (categories, statuses, role names)
    into a single dict for the frontend.

    This service is **stateless**: it does not depend on the requesting
    user.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        """Return all system constants as a dict."""
        from reports.models import ReportStatus

        Role = apps.get_model("accounts", "Role")

        to_list = SystemConstantsService._choices_to_list

        return {
            "report_categories": to_list(ReportCategory),
            "report_statuses": to_list(ReportStatus),
            "roles": list(Role.objects.order_by("name").values_list("name", flat=True)),
        }

    @staticmethod
    def _choices_to_list(
        choices_class: type,
    ) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` class to a list of
        ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]


# ═══════════════════════════════════════════════════════════════════
#  Notification Service
# ═══════════════════════════════════════════════════════════════════


class NotificationService:
    """
    Handles listing and marking notifications as read for a given user.

    Notifications are *created* by ``core.domain.notifications``; this
    class only serves the recipient's inbox.
    """

    def __init__(self, user: Any) -> None:
        self.user = user

    def list_notifications(self) -> Any:
        """Return all notifications for ``self.user``, ordered most recent first."""
        from core.models import Notification

        return (
            Notification.objects
            .filter(recipient=self.user)
            .select_related("report")
            .order_by("-created_at", "-id")
        )

    @transaction.atomic
    def mark_as_read(self, notification_id: Any, is_read: bool = True) -> Any:
        """
        Set the read flag of a single notification.

        Idempotent: marking an already-read notification as read is a
        no-op that still returns the notification.

        Raises
        ------
        NotFound
            Unknown notification id.
        PermissionDenied
            The notification belongs to another user.
        """
        from core.models import Notification

        try:
            notification = Notification.objects.select_for_update().get(pk=notification_id)
        except (Notification.DoesNotExist, ValueError, TypeError):
            raise NotFound("Notification not found")

        require_operation(
            self.user,
            Operation.MUTATE_OWNED_RESOURCE,
            is_owner=notification.recipient_id == self.user.pk,
            message="You can only mark your own notifications as read",
        )

        if notification.is_read != is_read:
            notification.is_read = is_read
            notification.save(update_fields=["is_read", "updated_at"])
        return notification

    def mark_all_as_read(self) -> int:
        """Mark every unread notification of ``self.user`` as read; return the count."""
        from core.models import Notification

        updated = (
            Notification.objects
            .filter(recipient=self.user, is_read=False)
            .update(is_read=True)
        )
        logger.info("Marked %d notifications as read for %s", updated, self.user)
        return updated
