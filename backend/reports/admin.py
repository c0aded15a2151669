from django.contrib import admin

from .models import CategoryRoleMapping, InternalComment, Message, Report, ReportPhoto


class ReportPhotoInline(admin.TabularInline):
    model = ReportPhoto
    extra = 0


class MessageInline(admin.TabularInline):
    model = Message
    extra = 0
    readonly_fields = ("sender", "content", "created_at")


class InternalCommentInline(admin.TabularInline):
    model = InternalComment
    extra = 0
    readonly_fields = ("author", "content", "created_at")


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "category", "status",
                    "assignee", "external_assignee", "created_at")
    list_filter = ("status", "category", "is_anonymous")
    search_fields = ("title", "description")
    raw_id_fields = ("reporter", "assignee", "external_assignee")
    inlines = [ReportPhotoInline, MessageInline, InternalCommentInline]


@admin.register(CategoryRoleMapping)
class CategoryRoleMappingAdmin(admin.ModelAdmin):
    list_display = ("category", "department_role")
    list_select_related = ("department_role__department", "department_role__role")
