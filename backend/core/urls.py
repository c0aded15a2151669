"""
Core app URL configuration.

Provides system-wide constants for the frontend and the notification
inbox.

URL prefix (registered in ``backend/urls.py``)::

    path('api/core/', include('core.urls'))

Endpoint summary
----------------
GET   /api/core/constants/                  — Report categories, statuses and role names.
GET   /api/core/notifications/              — List notifications for the authenticated user.
PATCH /api/core/notifications/{id}/read/    — Set the read flag of a notification.
POST  /api/core/notifications/read-all/     — Mark all notifications as read.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = "core"

# ── Router for ViewSet-based endpoints ───────────────────────────────
router = DefaultRouter()
router.register(
    prefix=r"notifications",
    viewset=views.NotificationViewSet,
    basename="notification",
)

urlpatterns = [
    # ── System Constants / Enums ─────────────────────────────────────
    path(
        "constants/",
        views.SystemConstantsView.as_view(),
        name="system-constants",
    ),

    # ── Notifications (router-generated URLs) ────────────────────────
    path("", include(router.urls)),
]
