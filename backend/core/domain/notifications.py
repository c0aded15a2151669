"""
core.domain.notifications — Synchronous notification creation helper.

Centralises notification creation so every app uses one consistent
entry-point rather than directly constructing ``Notification`` objects.

Design decisions
----------------
* **Synchronous, inside the caller's transaction** — if the surrounding
  state change rolls back, so do its notifications.
* **Supports multiple recipients** — pass a single ``User`` or an
  iterable of ``User`` instances.  ``None`` entries are skipped so that
  callers can pass optional counterparts directly.
* **Templated content** — ``event_type`` selects a template that is
  formatted with ``payload``.

Usage::

    from core.domain.notifications import NotificationService

    NotificationService.create(
        actor=request.user,
        recipients=report.reporter,
        event_type="report_approved",
        payload={"report_title": report.title},
        report=report,
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from django.db import models

if TYPE_CHECKING:
    from accounts.models import User
    from core.models import Notification
    from reports.models import Report

logger = logging.getLogger(__name__)

# ── Event-type → content templates ──────────────────────────────────
_EVENT_TEMPLATES: dict[str, str] = {
    "report_approved":      'Your report "{report_title}" has been approved and assigned to {department}.',
    "report_assigned":      'Report "{report_title}" has been assigned to you.',
    "report_rejected":      'Your report "{report_title}" has been rejected. Reason: {reason}',
    "report_status_changed": 'The status of your report "{report_title}" changed to {status}.',
    "report_delegated":     'Report "{report_title}" has been assigned to you by {actor}.',
    "message_received":     'New message from {actor} on report "{report_title}".',
}


class NotificationService:
    """
    Stateless helper for creating ``Notification`` records.

    All methods are classmethods — no instance state is needed.
    """

    @classmethod
    def render(cls, event_type: str, payload: dict[str, Any] | None = None) -> str:
        """Format the template for ``event_type``; unknown keys fall back to the raw name."""
        template = _EVENT_TEMPLATES.get(event_type)
        if template is None:
            return event_type.replace("_", " ").capitalize()
        return template.format(**(payload or {}))

    @classmethod
    def create(
        cls,
        *,
        actor: User | None,
        recipients: User | Iterable[User | None] | None,
        event_type: str,
        payload: dict[str, Any] | None = None,
        report: Report | None = None,
    ) -> list[Notification]:
        """
        Create one ``Notification`` per recipient.

        Args:
            actor:       The user who performed the action (used for
                         logging and the ``{actor}`` placeholder).
            recipients:  A single ``User`` or iterable of ``User``
                         instances.
            event_type:  Key into ``_EVENT_TEMPLATES``.
            payload:     Values interpolated into the template.
            report:      Optional report the notification refers to.

        Returns:
            List of created ``Notification`` instances.
        """
        from core.models import Notification  # lazy import

        if recipients is None:
            recipients = []
        elif isinstance(recipients, models.Model):
            recipients = [recipients]
        recipients = [r for r in recipients if r is not None]

        if not recipients:
            logger.warning(
                "NotificationService.create called with empty recipients "
                "for event_type=%s by actor=%s",
                event_type,
                actor,
            )
            return []

        context = {"actor": getattr(actor, "username", "system")}
        context.update(payload or {})
        content = cls.render(event_type, context)

        notifications = [
            Notification.objects.create(
                recipient=recipient,
                content=content,
                report=report,
            )
            for recipient in recipients
        ]

        logger.info(
            "Created %d notification(s) [%s] by actor=%s",
            len(notifications),
            event_type,
            actor,
        )
        return notifications
