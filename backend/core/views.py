"""
Core app views — **Thin Views**.

Each view delegates all business logic to the corresponding service in
``core.services``.  Views are responsible only for:

1. Validating the request body, where there is one.
2. Calling the service with the authenticated user and parameters.
3. Serialising the result and returning an HTTP ``Response``.
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.utils import OpenApiResponse, extend_schema

from .serializers import (
    NotificationReadAllSerializer,
    NotificationReadSerializer,
    NotificationSerializer,
    SystemConstantsSerializer,
)
from .services import NotificationService, SystemConstantsService


class SystemConstantsView(APIView):
    """
    **GET /api/core/constants/**

    Return the report categories, report statuses and role names so
    the frontend can build dropdowns and filters without hardcoding
    values.

    **Authentication**: Not required (``AllowAny``).
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="System constants",
        description="Return report categories, report statuses and role names.",
        responses={200: OpenApiResponse(response=SystemConstantsSerializer, description="System constants.")},
        tags=["System"],
    )
    def get(self, request: Request) -> Response:
        data = SystemConstantsService.get_constants()
        serializer = SystemConstantsSerializer(data)
        return Response(serializer.data, status=status.HTTP_200_OK)


class NotificationViewSet(viewsets.ViewSet):
    """
    **Notification API** — inbox of the authenticated user.

    Endpoints
    ---------
    GET   /api/core/notifications/              → list all notifications
    PATCH /api/core/notifications/{id}/read/    → set the read flag
    POST  /api/core/notifications/read-all/     → mark every notification as read

    **Authentication**: Required (``IsAuthenticated``).
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List notifications",
        description="Return all notifications for the authenticated user, newest first.",
        responses={200: OpenApiResponse(response=NotificationSerializer(many=True), description="Notification list.")},
        tags=["Notifications"],
    )
    def list(self, request: Request) -> Response:
        service = NotificationService(user=request.user)
        notifications = service.list_notifications()
        serializer = NotificationSerializer(notifications, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["patch"], url_path="read")
    @extend_schema(
        summary="Mark notification as read",
        description="Set the read flag of one of the caller's notifications (defaults to true).",
        request=NotificationReadSerializer,
        responses={
            200: OpenApiResponse(response=NotificationSerializer, description="Updated notification."),
            403: OpenApiResponse(description="Notification belongs to another user."),
            404: OpenApiResponse(description="Notification not found."),
        },
        tags=["Notifications"],
    )
    def mark_as_read(self, request: Request, pk: int = None) -> Response:
        """
        **PATCH /api/core/notifications/{id}/read/**

        Delegates to ``NotificationService.mark_as_read()``.
        """
        body = NotificationReadSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        service = NotificationService(user=request.user)
        notification = service.mark_as_read(
            notification_id=pk,
            is_read=body.validated_data["is_read"],
        )
        serializer = NotificationSerializer(notification)
        return Response(serializer.data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["post"], url_path="read-all")
    @extend_schema(
        summary="Mark all notifications as read",
        request=None,
        responses={200: OpenApiResponse(response=NotificationReadAllSerializer, description="Count updated.")},
        tags=["Notifications"],
    )
    def mark_all_as_read(self, request: Request) -> Response:
        service = NotificationService(user=request.user)
        updated = service.mark_all_as_read()
        return Response({"updated": updated}, status=status.HTTP_200_OK)
