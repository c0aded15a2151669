"""
Core app serializers.

Serializers for the system constants and notification endpoints.
They work with plain dicts produced by the service layer or with
``core.models.Notification`` instances, never with models of other
apps.
"""

from __future__ import annotations

from rest_framework import serializers


# ════════════════════════════════════════════════════════════════════
#  System Constants
# ════════════════════════════════════════════════════════════════════

class ChoiceItemSerializer(serializers.Serializer):
    """
    A single ``{"value": ..., "label": ...}`` choice item.

    Example::

        {"value": "Public Lighting", "label": "Public Lighting"}
    """

    value = serializers.CharField(help_text="Stored value.")
    label = serializers.CharField(help_text="Human-readable label.")


class SystemConstantsSerializer(serializers.Serializer):
    """
    Top-level response serializer for ``GET /api/core/constants/``.

    Response shape::

        {
            "report_categories": [{"value": "Waste", "label": "Waste"}, ...],
            "report_statuses": [...],
            "roles": ["Administrator", "Citizen", ...]
        }
    """

    report_categories = ChoiceItemSerializer(
        many=True,
        help_text="Closed list of report categories.",
    )
    report_statuses = ChoiceItemSerializer(
        many=True,
        help_text="Report lifecycle statuses.",
    )
    roles = serializers.ListField(
        child=serializers.CharField(),
        help_text="Every role name in the catalog.",
    )


# ════════════════════════════════════════════════════════════════════
#  Notifications
# ════════════════════════════════════════════════════════════════════

class NotificationSerializer(serializers.Serializer):
    """
    Read-only serializer for ``Notification`` instances.
    """

    id = serializers.IntegerField(read_only=True, help_text="Notification PK.")
    content = serializers.CharField(
        read_only=True,
        help_text="Rendered notification text.",
    )
    report_id = serializers.IntegerField(
        read_only=True,
        allow_null=True,
        help_text="PK of the related report (if any).",
    )
    is_read = serializers.BooleanField(
        read_only=True,
        help_text="Whether the recipient has marked this notification as read.",
    )
    created_at = serializers.DateTimeField(
        read_only=True,
        help_text="When the notification was created.",
    )


class NotificationReadSerializer(serializers.Serializer):
    """Request body for ``PATCH /api/core/notifications/{id}/read/``."""

    is_read = serializers.BooleanField(required=False, default=True)


class NotificationReadAllSerializer(serializers.Serializer):
    """Response body for ``POST /api/core/notifications/read-all/``."""

    updated = serializers.IntegerField(help_text="Number of notifications marked as read.")
