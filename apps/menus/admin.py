"""
Django admin configuration for menus.
"""
from django.contrib import admin
from .models import Menu


@admin.register(Menu)
class MenuAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'parent_id', 'order', 'url', 'permission_key', 'is_active']
    list_filter = ['is_active', 'parent_id']
    search_fields = ['name', 'url', 'permission_key']
    ordering = ['parent_id', 'order', 'id']
    readonly_fields = ['created_at', 'updated_at', 'created_by', 'updated_by']
