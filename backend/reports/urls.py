"""
Reports app URL configuration.

Included in the project-level ``urls.py`` as::

    path('api/', include('reports.urls'))

Endpoint summary
----------------
  GET    /api/reports/
  POST   /api/reports/
  GET    /api/reports/{id}/
  GET    /api/reports/assigned/

  ── Workflow @actions ───────────────────────────────────────────
  PATCH  /api/reports/{id}/status/
  POST   /api/reports/{id}/assign-external/

  ── Nested sub-resources ────────────────────────────────────────
  GET    /api/reports/{report_pk}/messages/
  POST   /api/reports/{report_pk}/messages/
  GET    /api/reports/{report_pk}/internal-comments/
  POST   /api/reports/{report_pk}/internal-comments/
  DELETE /api/reports/{report_pk}/internal-comments/{id}/

The ``{report_pk}`` prefix is generated by ``drf-nested-routers``.
"""

from rest_framework.routers import DefaultRouter
from rest_framework_nested import routers as nested_routers

from .views import ReportInternalCommentViewSet, ReportMessageViewSet, ReportViewSet

router = DefaultRouter()
router.register(
    prefix=r"reports",
    viewset=ReportViewSet,
    basename="report",
)

# Parent lookup kwarg → report_pk
messages_router = nested_routers.NestedDefaultRouter(
    parent_router=router,
    parent_prefix=r"reports",
    lookup="report",
)
messages_router.register(
    prefix=r"messages",
    viewset=ReportMessageViewSet,
    basename="report-message",
)

comments_router = nested_routers.NestedDefaultRouter(
    parent_router=router,
    parent_prefix=r"reports",
    lookup="report",
)
comments_router.register(
    prefix=r"internal-comments",
    viewset=ReportInternalCommentViewSet,
    basename="report-internal-comment",
)

urlpatterns = [
    *router.urls,
    *messages_router.urls,
    *comments_router.urls,
]
