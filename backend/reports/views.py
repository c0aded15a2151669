"""
Reports app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

ViewSets
--------
- ``ReportViewSet``               — reports; custom @action methods handle
                                    the workflow and delegation.
- ``ReportMessageViewSet``        — nested message thread.
- ``ReportInternalCommentViewSet`` — nested staff-only comments.
"""

from __future__ import annotations

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from .serializers import (
    AssignExternalSerializer,
    ContentSerializer,
    InternalCommentSerializer,
    MapClusterSerializer,
    MapQuerySerializer,
    MapReportSerializer,
    MessageSerializer,
    ReportCreateSerializer,
    ReportFilterSerializer,
    ReportSerializer,
    ReportStatusUpdateSerializer,
)
from .services import (
    ExternalDelegationService,
    InternalCommentService,
    MessageService,
    ReportCreationService,
    ReportQueryService,
    ReportWorkflowService,
)

_FILTER_PARAMETERS = [
    OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY, description="Filter by report status."),
    OpenApiParameter(name="category", type=str, location=OpenApiParameter.QUERY, description="Filter by report category."),
]


class ReportViewSet(viewsets.ViewSet):
    """
    Report lifecycle API.

    Endpoints
    ---------
    GET    /api/reports/                                 → list
    POST   /api/reports/                                 → create (citizens)
    GET    /api/reports/{id}/                            → retrieve
    GET    /api/reports/assigned/                        → assigned
    GET    /api/reports/assigned/external/{mid}/         → assigned_external
    GET    /api/reports/map/                             → map_reports
    PATCH  /api/reports/{id}/status/                     → update_status
    POST   /api/reports/{id}/assign-external/            → assign_external
    """

    permission_classes = [IsAuthenticated]

    def _filters(self, request: Request) -> dict:
        serializer = ReportFilterSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    # ── Standard CRUD ────────────────────────────────────────────────
    @extend_schema(
        summary="List reports",
        description=(
            "List reports newest first. Pending reports are only listed for "
            "Municipal Public Relations Officers."
        ),
        parameters=_FILTER_PARAMETERS,
        responses={
            200: OpenApiResponse(response=ReportSerializer(many=True), description="Reports."),
            403: OpenApiResponse(description="Pending reports requested by a non-PRO."),
        },
        tags=["Reports"],
    )
    def list(self, request: Request) -> Response:
        """
        GET /api/reports/
        """
        filters = self._filters(request)
        qs = ReportQueryService.get_all_reports(
            request.user,
            status=filters.get("status"),
            category=filters.get("category"),
        )
        serializer = ReportSerializer(qs, many=True, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Submit a report",
        description="Citizen submits a new report. It starts in Pending Approval.",
        request=ReportCreateSerializer,
        responses={
            201: OpenApiResponse(response=ReportSerializer, description="Report created."),
            400: OpenApiResponse(description="Validation error, invalid location or photos."),
            403: OpenApiResponse(description="Only citizens can create reports."),
        },
        tags=["Reports"],
    )
    def create(self, request: Request) -> Response:
        """
        POST /api/reports/

        Steps
        -----
        1. Validate ``request.data`` with ``ReportCreateSerializer``.
        2. Delegate to ``ReportCreationService.create_report``.
        3. Return HTTP 201 with ``ReportSerializer``.
        """
        serializer = ReportCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportCreationService.create_report(request.user, serializer.validated_data)
        out = ReportSerializer(report, context={"request": request})
        return Response(out.data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve report",
        responses={
            200: OpenApiResponse(response=ReportSerializer, description="Report detail."),
            404: OpenApiResponse(description="Report not found."),
        },
        tags=["Reports"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        """
        GET /api/reports/{id}/
        """
        report = ReportQueryService.get_report(request.user, pk)
        serializer = ReportSerializer(report, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="assigned")
    @extend_schema(
        summary="My assigned reports",
        description="Reports assigned to the caller, or delegated to the caller for External Maintainers.",
        parameters=_FILTER_PARAMETERS,
        responses={
            200: OpenApiResponse(response=ReportSerializer(many=True), description="Assigned reports."),
            403: OpenApiResponse(description="Citizens have no assigned reports."),
        },
        tags=["Reports"],
    )
    def assigned(self, request: Request) -> Response:
        """
        GET /api/reports/assigned/
        """
        filters = self._filters(request)
        qs = ReportQueryService.get_my_assigned_reports(
            request.user,
            status=filters.get("status"),
            category=filters.get("category"),
        )
        serializer = ReportSerializer(qs, many=True, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"assigned/external/(?P<maintainer_id>\d+)",
        url_name="assigned-external",
    )
    @extend_schema(
        summary="Reports delegated to an External Maintainer",
        parameters=_FILTER_PARAMETERS,
        responses={
            200: OpenApiResponse(response=ReportSerializer(many=True), description="Delegated reports."),
            400: OpenApiResponse(description="The user is not an External Maintainer."),
            403: OpenApiResponse(description="Caller is not municipality staff."),
            404: OpenApiResponse(description="Maintainer not found."),
        },
        tags=["Reports"],
    )
    def assigned_external(self, request: Request, maintainer_id: str = None) -> Response:
        """
        GET /api/reports/assigned/external/{maintainer_id}/
        """
        filters = self._filters(request)
        qs = ReportQueryService.get_external_maintainer_reports(
            request.user,
            int(maintainer_id),
            status=filters.get("status"),
            category=filters.get("category"),
        )
        serializer = ReportSerializer(qs, many=True, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="map", url_name="map")
    @extend_schema(
        summary="Reports for the map",
        description=(
            "Approved reports (never Pending Approval or Rejected). With zoom above 12, "
            "or no zoom, individual reports are returned; at zoom 12 or below they are "
            "grouped into clusters. The bounding box needs all four coordinates."
        ),
        parameters=[
            OpenApiParameter(name="zoom", type=float, location=OpenApiParameter.QUERY, description="1 to 20."),
            OpenApiParameter(name="min_lat", type=float, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="max_lat", type=float, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="min_lng", type=float, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="max_lng", type=float, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="category", type=str, location=OpenApiParameter.QUERY),
        ],
        responses={
            200: OpenApiResponse(
                response=MapReportSerializer(many=True),
                description="Individual reports; a list of MapCluster objects at zoom 12 or below.",
            ),
            400: OpenApiResponse(description="Invalid zoom, bounding box or category."),
        },
        tags=["Reports"],
    )
    def map_reports(self, request: Request) -> Response:
        """
        GET /api/reports/map/
        """
        query = MapQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = ReportQueryService.get_map_reports(**query.validated_data)
        if result.clustered:
            data = MapClusterSerializer(result.items, many=True).data
        else:
            data = MapReportSerializer(result.items, many=True).data
        return Response(data, status=status.HTTP_200_OK)

    # ── Workflow ─────────────────────────────────────────────────────
    @action(detail=True, methods=["patch"], url_path="status")
    @extend_schema(
        summary="Update report status",
        description=(
            "Assigned approves (PRO), Rejected rejects with a reason (PRO), "
            "In Progress / Resolved advance the work (assignee, external "
            "assignee or responsible director)."
        ),
        request=ReportStatusUpdateSerializer,
        responses={
            200: OpenApiResponse(response=ReportSerializer, description="Report updated."),
            400: OpenApiResponse(description="Missing status, missing reason or illegal transition."),
            403: OpenApiResponse(description="Permission denied."),
            404: OpenApiResponse(description="Report not found."),
            500: OpenApiResponse(description="No department role mapped or no staff available."),
        },
        tags=["Reports – Workflow"],
    )
    def update_status(self, request: Request, pk: int = None) -> Response:
        """
        PATCH /api/reports/{id}/status/

        Steps
        -----
        1. Validate ``request.data`` with ``ReportStatusUpdateSerializer``.
        2. Delegate to ``ReportWorkflowService.update_status``.
        3. Return HTTP 200 with ``ReportSerializer``.
        """
        serializer = ReportStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportWorkflowService.update_status(
            pk,
            serializer.validated_data.get("new_status"),
            request.user,
            rejection_reason=serializer.validated_data.get("rejection_reason"),
        )
        out = ReportSerializer(report, context={"request": request})
        return Response(out.data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="assign-external")
    @extend_schema(
        summary="Delegate to an External Maintainer",
        description="The assigned technician hands the report to an External Maintainer of a matching company.",
        request=AssignExternalSerializer,
        responses={
            200: OpenApiResponse(response=ReportSerializer, description="Report delegated."),
            400: OpenApiResponse(description="Report not Assigned, not a maintainer or category mismatch."),
            403: OpenApiResponse(description="Not the assigned technician."),
            404: OpenApiResponse(description="Report or maintainer not found."),
        },
        tags=["Reports – Workflow"],
    )
    def assign_external(self, request: Request, pk: int = None) -> Response:
        """
        POST /api/reports/{id}/assign-external/
        """
        serializer = AssignExternalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ExternalDelegationService.assign_to_external_maintainer(
            pk,
            serializer.validated_data["external_maintainer_id"],
            request.user,
        )
        out = ReportSerializer(report, context={"request": request})
        return Response(out.data, status=status.HTTP_200_OK)


class ReportMessageViewSet(viewsets.ViewSet):
    """
    The reporter ↔ assignee thread, nested under a report.

    GET  /api/reports/{report_pk}/messages/
    POST /api/reports/{report_pk}/messages/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List report messages",
        description="Messages of the report, oldest first. Reporter and assignee only.",
        responses={
            200: OpenApiResponse(response=MessageSerializer(many=True), description="Messages."),
            403: OpenApiResponse(description="Not a participant of the report."),
            404: OpenApiResponse(description="Report not found."),
        },
        tags=["Reports – Messages"],
    )
    def list(self, request: Request, report_pk: int = None) -> Response:
        qs = MessageService.get_messages(report_pk, request.user)
        return Response(MessageSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Send a message",
        description="Post a message; the other participant is notified.",
        request=ContentSerializer,
        responses={
            201: OpenApiResponse(response=MessageSerializer, description="Message sent."),
            400: OpenApiResponse(description="Empty or too long content."),
            403: OpenApiResponse(description="Not a participant of the report."),
            404: OpenApiResponse(description="Report not found."),
        },
        tags=["Reports – Messages"],
    )
    def create(self, request: Request, report_pk: int = None) -> Response:
        serializer = ContentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = MessageService.send_message(report_pk, request.user, serializer.validated_data.get("content"))
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)


class ReportInternalCommentViewSet(viewsets.ViewSet):
    """
    Staff-only comments, nested under a report.

    GET    /api/reports/{report_pk}/internal-comments/
    POST   /api/reports/{report_pk}/internal-comments/
    DELETE /api/reports/{report_pk}/internal-comments/{id}/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List internal comments",
        responses={
            200: OpenApiResponse(response=InternalCommentSerializer(many=True), description="Comments, oldest first."),
            403: OpenApiResponse(description="Citizens cannot access internal comments."),
            404: OpenApiResponse(description="Report not found."),
        },
        tags=["Reports – Internal Comments"],
    )
    def list(self, request: Request, report_pk: int = None) -> Response:
        qs = InternalCommentService.list_comments(report_pk, request.user)
        return Response(InternalCommentSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Add internal comment",
        request=ContentSerializer,
        responses={
            201: OpenApiResponse(response=InternalCommentSerializer, description="Comment added."),
            400: OpenApiResponse(description="Empty or too long content."),
            403: OpenApiResponse(description="Citizens cannot access internal comments."),
            404: OpenApiResponse(description="Report not found."),
        },
        tags=["Reports – Internal Comments"],
    )
    def create(self, request: Request, report_pk: int = None) -> Response:
        serializer = ContentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = InternalCommentService.add_comment(report_pk, request.user, serializer.validated_data.get("content"))
        return Response(InternalCommentSerializer(comment).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Delete internal comment",
        description="Only the author may delete a comment.",
        responses={
            204: OpenApiResponse(description="Comment deleted."),
            403: OpenApiResponse(description="Not the author."),
            404: OpenApiResponse(description="Report or comment not found."),
        },
        tags=["Reports – Internal Comments"],
    )
    def destroy(self, request: Request, report_pk: int = None, pk: int = None) -> Response:
        InternalCommentService.delete_comment(report_pk, pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
