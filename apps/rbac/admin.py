"""
Django admin configuration for RBAC app.
"""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import (
    User,
    UserCompany,
    Permission,
    Role,
    RolePermission,
    UserCompanyRole,
    UserCompanyPermission,
    AuditLog,
)


@admin.register(User)
class CustomUserAdmin(BaseUserAdmin):
    """
    Custom admin for our User model.

    Adapted to work with email-based identity (no username field).
    """
    list_display = ['email', 'display_name', 'is_active', 'is_superuser', 'created_at']
    list_filter = ['is_active', 'is_superuser', 'created_at']
    search_fields = ['email', 'display_name']
    ordering = ['email']

    fieldsets = (
        (None, {
            'fields': ('email', 'display_name', 'azure_oid')
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_superuser')
        }),
        ('Audit', {
            'fields': ('created_by', 'updated_by', 'created_at', 'updated_at')
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'is_active', 'is_superuser'),
        }),
    )

    readonly_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']
    filter_horizontal = ()


class RolePermissionInline(admin.TabularInline):
    model = RolePermission
    extra = 0
    autocomplete_fields = ['permission']


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_system', 'is_active', 'updated_at']
    list_filter = ['is_system', 'is_active']
    search_fields = ['name']
    inlines = [RolePermissionInline]


@admin.register(Permission)
class PermissionAdmin(admin.ModelAdmin):
    list_display = ['key', 'name', 'module', 'is_active']
    list_filter = ['is_active']
    search_fields = ['key', 'name']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'company', 'user', 'action', 'target_type', 'target_id']
    list_filter = ['action', 'target_type']
    search_fields = ['action', 'request_id', 'user__email']
    readonly_fields = [field.name for field in AuditLog._meta.fields]


# Register other models with default admin
admin.site.register(UserCompany)
admin.site.register(UserCompanyRole)
admin.site.register(UserCompanyPermission)
