from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Company, Department, DepartmentRole, Role, User, UserRole


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "description")
    search_fields = ("name",)


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("name",)
    search_fields = ("name",)


@admin.register(DepartmentRole)
class DepartmentRoleAdmin(admin.ModelAdmin):
    list_display = ("department", "role")
    list_filter = ("department",)
    list_select_related = ("department", "role")


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ("name", "category")
    list_filter = ("category",)
    search_fields = ("name",)


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 0
    readonly_fields = ("granted_at",)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "first_name", "last_name",
                    "company", "is_active")
    search_fields = ("username", "email")
    list_filter = ("is_active", "is_staff", "company")
    filter_horizontal = ("groups", "user_permissions")
    inlines = [UserRoleInline]
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Municipality", {"fields": ("company",)}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Municipality", {"fields": ("email", "first_name", "last_name")}),
    )
