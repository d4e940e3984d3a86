"""
End-to-end tests through the full middleware stack.

The session user set by AuthenticationMiddleware and the X-COMPANY-ID
header drive company resolution and permission checks.
"""
import pytest
from rest_framework.test import APIClient

from apps.rbac.models import UserCompanyRole
from apps.rbac.services import RBACService


@pytest.fixture
def security_admin(admin_user, company, admin_membership, make_permission, make_role):
    perms = [
        make_permission('security.users.view'),
        make_permission('security.users.manage'),
    ]
    role = make_role('Security Manager', permissions=perms)
    UserCompanyRole.objects.create(user=admin_user, company=company, role=role)
    return admin_user


@pytest.fixture
def client_for():
    def _client(user):
        client = APIClient()
        client.force_login(user)
        return client
    return _client


@pytest.mark.django_db
class TestCompanyScopedFlow:

    def test_admin_denies_permission_and_menu_follows(self, client_for, security_admin, user,
                                                      company, membership, make_permission, make_role):
        from apps.menus.models import Menu
        view = make_permission('inventory.view')
        delete = make_permission('inventory.delete')
        RBACService.assign_role(user, company, make_role('Manager', permissions=[view, delete]))
        Menu.objects.create(name='Inventory', url='/inventory', order=1, permission_key='inventory.view')
        Menu.objects.create(name='Delete', url='/inventory/delete', order=2, permission_key='inventory.delete')

        response = client_for(security_admin).post(
            f'/v1/users/{user.pk}/companies/{company.pk}/permissions',
            {'permission_key': 'inventory.delete', 'is_allowed': False},
            format='json',
            HTTP_X_COMPANY_ID=str(company.pk),
        )
        assert response.status_code == 201

        menu = client_for(user).get('/v1/menu', HTTP_X_COMPANY_ID=str(company.pk))
        mine = client_for(user).get('/v1/me/permissions', HTTP_X_COMPANY_ID=str(company.pk))

        assert [entry['name'] for entry in menu.data['data']] == ['Inventory']
        assert mine.data['permissions'] == ['inventory.view']

    def test_permissions_from_other_company_do_not_apply(self, client_for, security_admin, user,
                                                         company, other_company):
        from apps.rbac.models import UserCompany
        UserCompany.objects.create(user=security_admin, company=other_company)
        UserCompany.objects.create(user=user, company=other_company)

        response = client_for(security_admin).get(
            f'/v1/users/{user.pk}/companies/{other_company.pk}/auth',
            HTTP_X_COMPANY_ID=str(other_company.pk),
        )

        assert response.status_code == 403

    def test_addressed_company_must_match_header(self, client_for, security_admin, user,
                                                 company, other_company):
        response = client_for(security_admin).get(
            f'/v1/users/{user.pk}/companies/{other_company.pk}/auth',
            HTTP_X_COMPANY_ID=str(company.pk),
        )

        assert response.status_code == 403
        assert response.data['code'] == 'FORBIDDEN'

    def test_non_member_rejected_by_middleware(self, client_for, user, company):
        response = client_for(user).get('/v1/me/permissions', HTTP_X_COMPANY_ID=str(company.pk))

        assert response.status_code == 403
        assert response.json()['error']['code'] == 'FORBIDDEN'

    def test_anonymous_request_rejected(self, company):
        response = APIClient().get('/v1/me/permissions', HTTP_X_COMPANY_ID=str(company.pk))

        assert response.status_code in (401, 403)
