"""
RBAC API URLs.

Provides endpoints for:
- Authorization summaries and effective permissions of users per company
- Role assignments and direct permission overrides
- Role administration and the permission catalog
- Audit log viewing
"""
from django.urls import path
from apps.rbac.views import (
    UserAuthorizationSummaryView,
    UserCompanyRolesView,
    UserCompanyRoleRemoveView,
    UserCompanyPermissionsView,
    UserCompanyPermissionRemoveView,
    UserEffectivePermissionsView,
    UserCompaniesView,
    MyPermissionsView,
    RoleListView,
    RoleDetailView,
    RolePermissionsView,
    RoleAvailableUsersView,
    PermissionListView,
    AuditLogListView,
)

app_name = 'rbac'

urlpatterns = [
    # User-in-company endpoints
    path('users/<int:user_id>/companies', UserCompaniesView.as_view(), name='user-companies'),
    path('users/<int:user_id>/companies/<int:company_id>/auth', UserAuthorizationSummaryView.as_view(), name='user-auth-summary'),
    path('users/<int:user_id>/companies/<int:company_id>/roles', UserCompanyRolesView.as_view(), name='user-company-roles'),
    path('users/<int:user_id>/companies/<int:company_id>/roles/<int:role_id>', UserCompanyRoleRemoveView.as_view(), name='user-company-role-remove'),
    path('users/<int:user_id>/companies/<int:company_id>/permissions', UserCompanyPermissionsView.as_view(), name='user-company-permissions'),
    path('users/<int:user_id>/companies/<int:company_id>/permissions/<int:permission_id>', UserCompanyPermissionRemoveView.as_view(), name='user-company-permission-remove'),
    path('users/<int:user_id>/companies/<int:company_id>/effective-permissions', UserEffectivePermissionsView.as_view(), name='user-effective-permissions'),

    # Current identity
    path('me/permissions', MyPermissionsView.as_view(), name='my-permissions'),

    # Role endpoints
    path('roles', RoleListView.as_view(), name='role-list'),
    path('roles/<int:role_id>', RoleDetailView.as_view(), name='role-detail'),
    path('roles/<int:role_id>/permissions', RolePermissionsView.as_view(), name='role-permissions'),
    path('roles/<int:role_id>/available-users/<int:company_id>', RoleAvailableUsersView.as_view(), name='role-available-users'),

    # Permission catalog
    path('permissions', PermissionListView.as_view(), name='permission-list'),

    # Audit log endpoint
    path('audit-logs', AuditLogListView.as_view(), name='audit-log-list'),
]
