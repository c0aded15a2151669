from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("recipient", "content", "report", "is_read", "created_at")
    list_filter = ("is_read",)
    raw_id_fields = ("recipient", "report")
