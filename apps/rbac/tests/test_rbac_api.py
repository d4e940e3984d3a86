"""
Tests for RBAC REST API endpoints.

Requests are built with APIRequestFactory; request.company and
request.permissions are set the way CompanyContextMiddleware sets them.
"""
import pytest
from rest_framework import status
from rest_framework.test import force_authenticate

from apps.rbac.models import (
    AuditLog, Role, RolePermission, UserCompany, UserCompanyPermission, UserCompanyRole,
)
from apps.rbac.services import RBACService
from apps.rbac.views import (
    AuditLogListView, MyPermissionsView, PermissionListView, RoleAvailableUsersView,
    RoleDetailView, RoleListView, RolePermissionsView, UserAuthorizationSummaryView,
    UserCompaniesView, UserCompanyPermissionRemoveView, UserCompanyPermissionsView,
    UserCompanyRoleRemoveView, UserCompanyRolesView, UserEffectivePermissionsView,
)

ADMIN_PERMISSIONS = {
    'security.users.view', 'security.users.manage',
    'security.roles.view', 'security.roles.manage',
    'security.permissions.view', 'security.audit.view',
}


@pytest.fixture
def inventory_perms(make_permission):
    return {
        'view': make_permission('inventory.view', 'View Inventory'),
        'delete': make_permission('inventory.delete', 'Delete Inventory'),
    }


@pytest.fixture
def manager_role(make_role, inventory_perms):
    return make_role('Manager', permissions=[inventory_perms['view'], inventory_perms['delete']])


@pytest.fixture
def make_request(api_factory, admin_user, company):
    """Build an authenticated request in the company context."""

    def _make(method, path, data=None, permissions=ADMIN_PERMISSIONS, request_company=company):
        if method == 'get':
            request = api_factory.get(path)
        else:
            request = getattr(api_factory, method)(path, data, format='json')
        force_authenticate(request, user=admin_user)
        request.company = request_company
        request.permissions = set(permissions)
        request.request_id = 'test-request'
        return request

    return _make


@pytest.mark.django_db
class TestAuthorizationSummaryAPI:

    def test_summary_with_provenance(self, make_request, user, company, membership,
                                     manager_role, inventory_perms):
        RBACService.assign_role(user, company, manager_role)
        RBACService.deny_permission(user, company, inventory_perms['delete'])

        request = make_request('get', f'/v1/users/{user.pk}/companies/{company.pk}/auth')
        response = UserAuthorizationSummaryView.as_view()(request, user_id=user.pk, company_id=company.pk)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['user_id'] == user.pk
        assert response.data['roles'] == [{'id': manager_role.pk, 'name': 'Manager', 'assigned': True}]
        assert [(p['key'], p['provenance']) for p in response.data['permissions']] == [
            ('inventory.view', 'Role'),
        ]

    def test_include_denied(self, make_request, user, company, membership, inventory_perms):
        RBACService.deny_permission(user, company, inventory_perms['delete'])

        request = make_request('get', f'/v1/users/{user.pk}/companies/{company.pk}/auth?include_denied=true')
        response = UserAuthorizationSummaryView.as_view()(request, user_id=user.pk, company_id=company.pk)

        assert response.data['permissions'] == [{
            'key': 'inventory.delete',
            'name': 'Delete Inventory',
            'module': 'inventory',
            'provenance': 'DirectDeny',
            'allowed': False,
        }]

    def test_requires_users_view(self, make_request, user, company, membership):
        request = make_request('get', '/auth', permissions={'inventory.view'})
        response = UserAuthorizationSummaryView.as_view()(request, user_id=user.pk, company_id=company.pk)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_company_is_404(self, make_request, user):
        request = make_request('get', '/auth')
        response = UserAuthorizationSummaryView.as_view()(request, user_id=user.pk, company_id=9999)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'COMPANY_NOT_FOUND'

    def test_company_mismatch_is_403(self, make_request, user, other_company):
        request = make_request('get', '/auth')
        response = UserAuthorizationSummaryView.as_view()(request, user_id=user.pk, company_id=other_company.pk)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'FORBIDDEN'

    def test_unknown_user_is_404(self, make_request, company):
        request = make_request('get', '/auth')
        response = UserAuthorizationSummaryView.as_view()(request, user_id=9999, company_id=company.pk)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'USER_NOT_FOUND'

    def test_non_member_is_404(self, make_request, user, company):
        request = make_request('get', '/auth')
        response = UserAuthorizationSummaryView.as_view()(request, user_id=user.pk, company_id=company.pk)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'MEMBERSHIP_NOT_FOUND'

    def test_effective_permissions(self, make_request, user, company, membership,
                                   manager_role, inventory_perms):
        RBACService.assign_role(user, company, manager_role)
        RBACService.deny_permission(user, company, inventory_perms['delete'])

        request = make_request('get', '/effective-permissions')
        response = UserEffectivePermissionsView.as_view()(request, user_id=user.pk, company_id=company.pk)

        assert response.data == {
            'roles': ['Manager'],
            'allowed': [],
            'denied': ['inventory.delete'],
            'effective': ['inventory.view'],
        }


@pytest.mark.django_db
class TestUserRolesAPI:

    def test_assign_role_returns_201_then_200(self, make_request, user, company, membership, manager_role):
        view = UserCompanyRolesView.as_view()

        first = view(make_request('post', '/roles', {'role_id': manager_role.pk}),
                     user_id=user.pk, company_id=company.pk)
        second = view(make_request('post', '/roles', {'role_id': manager_role.pk}),
                      user_id=user.pk, company_id=company.pk)

        assert first.status_code == status.HTTP_201_CREATED
        assert second.status_code == status.HTTP_200_OK
        assert [r['name'] for r in second.data] == ['Manager']
        assert UserCompanyRole.objects.filter(user=user, company=company).count() == 1

    def test_assign_records_acting_user(self, make_request, admin_user, user, company,
                                        membership, manager_role):
        UserCompanyRolesView.as_view()(
            make_request('post', '/roles', {'role_id': manager_role.pk}),
            user_id=user.pk, company_id=company.pk
        )

        log = AuditLog.objects.by_action('role_assigned').get()
        assert log.user == admin_user
        assert log.request_id == 'test-request'

    def test_assign_inactive_role_is_400(self, make_request, user, company, membership, make_role):
        role = make_role('Retired', is_active=False)

        response = UserCompanyRolesView.as_view()(
            make_request('post', '/roles', {'role_id': role.pk}),
            user_id=user.pk, company_id=company.pk
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_view_only_cannot_assign(self, make_request, user, company, membership, manager_role):
        request = make_request('post', '/roles', {'role_id': manager_role.pk},
                               permissions={'security.users.view'})
        response = UserCompanyRolesView.as_view()(request, user_id=user.pk, company_id=company.pk)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not UserCompanyRole.objects.exists()

    def test_list_roles(self, make_request, user, company, membership, manager_role):
        RBACService.assign_role(user, company, manager_role)

        request = make_request('get', '/roles', permissions={'security.users.view'})
        response = UserCompanyRolesView.as_view()(request, user_id=user.pk, company_id=company.pk)

        assert response.status_code == status.HTTP_200_OK
        assert response.data[0]['name'] == 'Manager'
        assert response.data[0]['is_active'] is True

    def test_remove_role(self, make_request, user, company, membership, manager_role):
        RBACService.assign_role(user, company, manager_role)
        view = UserCompanyRoleRemoveView.as_view()

        response = view(make_request('delete', '/roles/x'),
                        user_id=user.pk, company_id=company.pk, role_id=manager_role.pk)
        again = view(make_request('delete', '/roles/x'),
                     user_id=user.pk, company_id=company.pk, role_id=manager_role.pk)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert again.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestUserPermissionsAPI:

    def test_deny_override(self, make_request, user, company, membership, manager_role):
        RBACService.assign_role(user, company, manager_role)

        response = UserCompanyPermissionsView.as_view()(
            make_request('post', '/permissions', {'permission_key': 'inventory.delete', 'is_allowed': False}),
            user_id=user.pk, company_id=company.pk
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['key'] == 'inventory.delete'
        assert response.data['is_allowed'] is False
        assert RBACService.resolve_permissions(user.pk, company.pk) == {'inventory.view'}

    def test_unknown_permission_is_400(self, make_request, user, company, membership):
        response = UserCompanyPermissionsView.as_view()(
            make_request('post', '/permissions', {'permission_key': 'nope.view', 'is_allowed': True}),
            user_id=user.pk, company_id=company.pk
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'permission_key' in response.data

    def test_list_overrides(self, make_request, user, company, membership, inventory_perms):
        RBACService.grant_permission(user, company, inventory_perms['view'])

        response = UserCompanyPermissionsView.as_view()(
            make_request('get', '/permissions'), user_id=user.pk, company_id=company.pk
        )

        assert [(p['key'], p['is_allowed']) for p in response.data] == [('inventory.view', True)]

    def test_remove_override(self, make_request, user, company, membership, inventory_perms):
        RBACService.deny_permission(user, company, inventory_perms['view'])

        response = UserCompanyPermissionRemoveView.as_view()(
            make_request('delete', '/permissions/x'),
            user_id=user.pk, company_id=company.pk, permission_id=inventory_perms['view'].pk
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not UserCompanyPermission.objects.exists()

    def test_user_companies(self, make_request, user, company, membership):
        response = UserCompaniesView.as_view()(make_request('get', '/companies'), user_id=user.pk)

        assert response.status_code == status.HTTP_200_OK
        assert [m['company_code'] for m in response.data] == ['TEST']


@pytest.mark.django_db
class TestMyPermissionsAPI:

    def test_returns_request_permissions_sorted(self, make_request, admin_user, company):
        request = make_request('get', '/v1/me/permissions', permissions={'reports.view', 'inventory.view'})
        response = MyPermissionsView.as_view()(request)

        assert response.data == {
            'user_id': admin_user.pk,
            'company_id': company.pk,
            'permissions': ['inventory.view', 'reports.view'],
        }

    def test_no_company_context(self, make_request):
        request = make_request('get', '/v1/me/permissions', permissions=set(), request_company=None)
        response = MyPermissionsView.as_view()(request)

        assert response.data['company_id'] is None
        assert response.data['permissions'] == []

    def test_anonymous_rejected(self, api_factory):
        request = api_factory.get('/v1/me/permissions')
        response = MyPermissionsView.as_view()(request)

        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


@pytest.mark.django_db
class TestCatalogAPI:

    def test_role_list_hides_inactive(self, make_request, manager_role, make_role):
        make_role('Retired', is_active=False)

        response = RoleListView.as_view()(make_request('get', '/v1/roles'))
        everything = RoleListView.as_view()(make_request('get', '/v1/roles?include_inactive=true'))

        assert [r['name'] for r in response.data['results']] == ['Manager']
        assert response.data['results'][0]['permission_count'] == 2
        assert everything.data['count'] == 2

    def test_role_permissions_get_and_set(self, make_request, manager_role, make_permission):
        make_permission('reports.view')
        view = RolePermissionsView.as_view()

        created = view(make_request('post', '/roles/x/permissions', {'permission_key': 'reports.view'}),
                       role_id=manager_role.pk)
        listing = view(make_request('get', '/roles/x/permissions'), role_id=manager_role.pk)

        assert created.status_code == status.HTTP_201_CREATED
        assert [p['key'] for p in listing.data] == ['inventory.delete', 'inventory.view', 'reports.view']

    def test_role_permissions_manage_required(self, make_request, manager_role, make_permission):
        make_permission('reports.view')

        response = RolePermissionsView.as_view()(
            make_request('post', '/roles/x/permissions', {'permission_key': 'reports.view'},
                         permissions={'security.roles.view'}),
            role_id=manager_role.pk
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_permission_list_module_filter(self, make_request, inventory_perms, make_permission):
        make_permission('reports.view')

        response = PermissionListView.as_view()(make_request('get', '/v1/permissions?module=inventory'))

        assert [p['key'] for p in response.data['results']] == ['inventory.delete', 'inventory.view']
        assert response.data['results'][0]['module'] == 'inventory'

    def test_audit_logs_scoped_to_company(self, make_request, user, company, other_company,
                                          membership, manager_role):
        from apps.rbac.models import UserCompany
        UserCompany.objects.create(user=user, company=other_company)
        RBACService.assign_role(user, company, manager_role)
        RBACService.assign_role(user, other_company, manager_role)

        response = AuditLogListView.as_view()(make_request('get', '/v1/audit-logs?action=role_assigned'))

        assert response.data['count'] == 1
        assert response.data['results'][0]['company_code'] == 'TEST'


@pytest.mark.django_db
class TestRoleAdministrationAPI:

    def test_create_role(self, make_request, admin_user):
        response = RoleListView.as_view()(
            make_request('post', '/v1/roles', {'name': 'Warehouse Clerk', 'description': 'Stock'})
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['name'] == 'Warehouse Clerk'
        assert response.data['is_system'] is False
        assert response.data['user_count'] == 0
        assert Role.objects.get(name='Warehouse Clerk').created_by == admin_user.email

    def test_create_duplicate_name_is_400(self, make_request, manager_role):
        response = RoleListView.as_view()(make_request('post', '/v1/roles', {'name': 'manager'}))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'name' in response.data
        assert Role.objects.count() == 1

    def test_create_without_name_is_400(self, make_request):
        response = RoleListView.as_view()(make_request('post', '/v1/roles', {'description': 'Nameless'}))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'name' in response.data

    def test_create_requires_manage(self, make_request):
        response = RoleListView.as_view()(
            make_request('post', '/v1/roles', {'name': 'Clerk'}, permissions={'security.roles.view'})
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not Role.objects.exists()

    def test_role_details(self, make_request, user, company, membership, manager_role):
        RBACService.assign_role(user, company, manager_role)

        response = RoleDetailView.as_view()(make_request('get', '/v1/roles/x'), role_id=manager_role.pk)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['name'] == 'Manager'
        assert [p['key'] for p in response.data['permissions']] == ['inventory.delete', 'inventory.view']
        assert [u['email'] for u in response.data['users']] == ['user@example.com']

    def test_unknown_role_is_404(self, make_request):
        response = RoleDetailView.as_view()(make_request('get', '/v1/roles/x'), role_id=9999)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_update_role(self, make_request, manager_role):
        response = RoleDetailView.as_view()(
            make_request('put', '/v1/roles/x', {'name': 'Store Manager'}), role_id=manager_role.pk
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['name'] == 'Store Manager'
        assert response.data['description'] == ''

    def test_update_to_existing_name_is_400(self, make_request, manager_role, make_role):
        make_role('Viewer')

        response = RoleDetailView.as_view()(
            make_request('put', '/v1/roles/x', {'name': 'VIEWER'}), role_id=manager_role.pk
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_update_system_role_is_400(self, make_request, make_role):
        administrator = make_role('Administrator', is_system=True)

        response = RoleDetailView.as_view()(
            make_request('put', '/v1/roles/x', {'description': 'Changed'}), role_id=administrator.pk
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'ROLE_NOT_MODIFIABLE'

    def test_delete_role(self, make_request, manager_role):
        response = RoleDetailView.as_view()(make_request('delete', '/v1/roles/x'), role_id=manager_role.pk)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        manager_role.refresh_from_db()
        assert manager_role.is_active is False

    def test_delete_role_in_use_is_400(self, make_request, user, company, membership, manager_role):
        RBACService.assign_role(user, company, manager_role)

        response = RoleDetailView.as_view()(make_request('delete', '/v1/roles/x'), role_id=manager_role.pk)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'ROLE_IN_USE'

    def test_delete_system_role_is_400(self, make_request, make_role):
        administrator = make_role('Administrator', is_system=True)

        response = RoleDetailView.as_view()(make_request('delete', '/v1/roles/x'), role_id=administrator.pk)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'ROLE_NOT_MODIFIABLE'

    def test_replace_role_permissions(self, make_request, manager_role, inventory_perms, make_permission):
        reports = make_permission('reports.view')

        response = RolePermissionsView.as_view()(
            make_request('put', '/v1/roles/x/permissions',
                         {'permission_ids': [inventory_perms['view'].pk, reports.pk]}),
            role_id=manager_role.pk
        )

        assert response.status_code == status.HTTP_200_OK
        assert [p['key'] for p in response.data] == ['inventory.view', 'reports.view']

    def test_replace_with_unknown_permission_is_400(self, make_request, manager_role):
        response = RolePermissionsView.as_view()(
            make_request('put', '/v1/roles/x/permissions', {'permission_ids': [9999]}),
            role_id=manager_role.pk
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert RolePermission.objects.filter(role=manager_role).count() == 2

    def test_system_role_permissions_are_read_only(self, make_request, make_role, make_permission):
        reports = make_permission('reports.view')
        administrator = make_role('Administrator', is_system=True)
        view = RolePermissionsView.as_view()

        added = view(make_request('post', '/v1/roles/x/permissions', {'permission_key': 'reports.view'}),
                     role_id=administrator.pk)
        replaced = view(make_request('put', '/v1/roles/x/permissions', {'permission_ids': [reports.pk]}),
                        role_id=administrator.pk)

        assert added.status_code == status.HTTP_400_BAD_REQUEST
        assert replaced.status_code == status.HTTP_400_BAD_REQUEST
        assert not RolePermission.objects.filter(role=administrator).exists()

    def test_available_users(self, make_request, user, admin_user, company,
                             membership, admin_membership, manager_role):
        RBACService.assign_role(admin_user, company, manager_role)

        response = RoleAvailableUsersView.as_view()(
            make_request('get', '/v1/roles/x/available-users/y'),
            role_id=manager_role.pk, company_id=company.pk
        )

        assert response.status_code == status.HTTP_200_OK
        assert [u['id'] for u in response.data] == [user.pk]

    def test_available_users_other_company_is_403(self, make_request, user, other_company, manager_role):
        UserCompany.objects.create(user=user, company=other_company)

        response = RoleAvailableUsersView.as_view()(
            make_request('get', '/v1/roles/x/available-users/y'),
            role_id=manager_role.pk, company_id=other_company.pk
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
