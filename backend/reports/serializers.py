"""
Reports app serializers.

Contains all Request and Response serializers for the Reports API.
Serializers handle field definitions and field-level validation only.
**No workflow transitions, boundary checks or assignment logic live
here**: those belong in ``services.py``.

Structure
---------
1. Filter / query-param serializers
2. Report read serializers
3. Report write serializers
4. Workflow action serializers
5. Sub-resource serializers (messages, internal comments)
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from core.constants import MAX_TEXT_LENGTH, ReportCategory

from .models import InternalComment, Message, Report, ReportStatus


# ═══════════════════════════════════════════════════════════════════
#  1. Filter / Query-Parameter Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportFilterSerializer(serializers.Serializer):
    """
    Validates query-parameter filters for ``GET /api/reports/`` and
    ``GET /api/reports/assigned/``.
    """

    status = serializers.ChoiceField(
        choices=ReportStatus.choices,
        required=False,
        help_text="Filter by status. Options: " + ", ".join(ReportStatus.values) + ".",
    )
    category = serializers.ChoiceField(
        choices=ReportCategory.choices,
        required=False,
        help_text="Filter by category.",
    )


class MapQuerySerializer(serializers.Serializer):
    """
    Query parameters of ``GET /api/reports/map/``.

    Only parsing happens here; ranges and the all-or-none bounding box
    rule are checked by ``ReportQueryService.get_map_reports``.
    """

    zoom = serializers.FloatField(required=False, help_text="Map zoom level, 1 to 20.")
    min_lat = serializers.FloatField(required=False)
    max_lat = serializers.FloatField(required=False)
    min_lng = serializers.FloatField(required=False)
    max_lng = serializers.FloatField(required=False)
    category = serializers.ChoiceField(choices=ReportCategory.choices, required=False)


# ═══════════════════════════════════════════════════════════════════
#  2. Report Read Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportSerializer(serializers.ModelSerializer):
    """
    Full report representation.

    ``reporter`` is ``null`` for anonymous reports unless the viewer is
    the reporter themself.
    """

    reporter = serializers.SerializerMethodField()
    assignee = UserSummarySerializer(read_only=True)
    external_assignee = UserSummarySerializer(read_only=True)
    photos = serializers.SerializerMethodField()

    class Meta:
        model = Report
        fields = [
            "id",
            "title",
            "description",
            "category",
            "latitude",
            "longitude",
            "status",
            "is_anonymous",
            "rejection_reason",
            "reporter",
            "assignee",
            "external_assignee",
            "photos",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_reporter(self, obj: Report) -> dict[str, Any] | None:
        request = self.context.get("request")
        viewer_id = getattr(getattr(request, "user", None), "pk", None)
        if obj.is_anonymous and obj.reporter_id != viewer_id:
            return None
        return UserSummarySerializer(obj.reporter).data

    def get_photos(self, obj: Report) -> list[str]:
        return [photo.reference for photo in obj.photos.all()]


class LocationSerializer(serializers.Serializer):
    latitude = serializers.FloatField()
    longitude = serializers.FloatField()


class MapReportSerializer(serializers.ModelSerializer):
    """
    Lightweight report for the zoomed-in map.  ``reporter_name`` is
    ``"Anonymous"`` for anonymous reports.
    """

    location = serializers.SerializerMethodField()
    reporter_name = serializers.SerializerMethodField()

    class Meta:
        model = Report
        fields = [
            "id",
            "title",
            "category",
            "location",
            "status",
            "reporter_name",
            "is_anonymous",
            "created_at",
        ]
        read_only_fields = fields

    def get_location(self, obj: Report) -> dict[str, float]:
        return {"latitude": obj.latitude, "longitude": obj.longitude}

    def get_reporter_name(self, obj: Report) -> str:
        if obj.is_anonymous:
            return "Anonymous"
        return obj.reporter.get_full_name() or obj.reporter.username


class MapClusterSerializer(serializers.Serializer):
    """A grid cell of reports for the zoomed-out map."""

    cluster_id = serializers.CharField()
    location = LocationSerializer()
    report_count = serializers.IntegerField()
    report_ids = serializers.ListField(child=serializers.IntegerField())


# ═══════════════════════════════════════════════════════════════════
#  3. Report Write Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportCreateSerializer(serializers.Serializer):
    """
    Request body for ``POST /api/reports/``.

    Photo count, photo format and the municipality boundary are checked
    by ``ReportCreationService``.
    """

    title = serializers.CharField(min_length=5, max_length=200)
    description = serializers.CharField(min_length=10, max_length=MAX_TEXT_LENGTH)
    category = serializers.ChoiceField(choices=ReportCategory.choices)
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    is_anonymous = serializers.BooleanField(required=False, default=False)
    photos = serializers.ListField(
        child=serializers.CharField(trim_whitespace=False),
        allow_empty=True,
        help_text="Base64 data URIs (data:image/jpeg|png|webp;base64,...). 1 to 3 items.",
    )


# ═══════════════════════════════════════════════════════════════════
#  4. Workflow Action Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportStatusUpdateSerializer(serializers.Serializer):
    """Request body for ``PATCH /api/reports/{id}/status/``."""

    new_status = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    rejection_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class AssignExternalSerializer(serializers.Serializer):
    """Request body for ``POST /api/reports/{id}/assign-external/``."""

    external_maintainer_id = serializers.IntegerField(min_value=1)


# ═══════════════════════════════════════════════════════════════════
#  5. Sub-resource Serializers
# ═══════════════════════════════════════════════════════════════════


class ContentSerializer(serializers.Serializer):
    """
    Request body for posting a message or internal comment.

    Emptiness and length are enforced by the service so that the error
    body carries a ``detail`` message.
    """

    content = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)


class MessageSerializer(serializers.ModelSerializer):
    sender = UserSummarySerializer(read_only=True)

    class Meta:
        model = Message
        fields = ["id", "report", "sender", "content", "created_at"]
        read_only_fields = fields


class InternalCommentSerializer(serializers.ModelSerializer):
    author = UserSummarySerializer(read_only=True)

    class Meta:
        model = InternalComment
        fields = ["id", "report", "author", "content", "created_at"]
        read_only_fields = fields
