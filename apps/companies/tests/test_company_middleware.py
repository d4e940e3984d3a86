"""
Tests for CompanyContextMiddleware and RequestIDMiddleware.
"""
import json
from unittest.mock import patch

import pytest
from django.contrib.auth.models import AnonymousUser
from django.http import HttpResponse

from apps.companies.middleware import CompanyContextMiddleware, RequestIDMiddleware
from apps.rbac.models import UserCompanyRole


@pytest.fixture
def middleware():
    return CompanyContextMiddleware(lambda request: HttpResponse())


def error_code(response):
    return json.loads(response.content)['error']['code']


@pytest.mark.django_db
class TestCompanyContextMiddleware:

    def test_member_gets_effective_permissions(self, middleware, rf, user, company, membership,
                                               make_permission, make_role):
        view = make_permission('inventory.view')
        role = make_role('Viewer', permissions=[view])
        UserCompanyRole.objects.create(user=user, company=company, role=role)

        request = rf.get('/v1/menu', HTTP_X_COMPANY_ID=str(company.pk))
        request.user = user

        assert middleware.process_request(request) is None
        assert request.company == company
        assert request.membership == membership
        assert request.permissions == {'inventory.view'}

    def test_no_header_means_no_company(self, middleware, rf, user):
        request = rf.get('/v1/menu')
        request.user = user

        assert middleware.process_request(request) is None
        assert request.company is None
        assert request.permissions == set()

    def test_invalid_header_is_400(self, middleware, rf, user):
        request = rf.get('/v1/menu', HTTP_X_COMPANY_ID='acme')
        request.user = user

        response = middleware.process_request(request)

        assert response.status_code == 400
        assert error_code(response) == 'INVALID_COMPANY'

    def test_unknown_company_is_404(self, middleware, rf, user):
        request = rf.get('/v1/menu', HTTP_X_COMPANY_ID='9999')
        request.user = user

        response = middleware.process_request(request)

        assert response.status_code == 404
        assert error_code(response) == 'COMPANY_NOT_FOUND'

    def test_inactive_company_is_403(self, middleware, rf, user, company, membership):
        company.is_active = False
        company.save()
        request = rf.get('/v1/menu', HTTP_X_COMPANY_ID=str(company.pk))
        request.user = user

        response = middleware.process_request(request)

        assert response.status_code == 403
        assert error_code(response) == 'COMPANY_INACTIVE'

    def test_non_member_is_403(self, middleware, rf, user, company):
        request = rf.get('/v1/menu', HTTP_X_COMPANY_ID=str(company.pk))
        request.user = user

        with patch('apps.companies.middleware.SecurityLogger.log_cross_company_access') as log_access:
            response = middleware.process_request(request)

        assert response.status_code == 403
        assert error_code(response) == 'FORBIDDEN'
        log_access.assert_called_once()

    def test_anonymous_caller_gets_company_without_permissions(self, middleware, rf, company):
        request = rf.get('/v1/menu', HTTP_X_COMPANY_ID=str(company.pk))
        request.user = AnonymousUser()

        assert middleware.process_request(request) is None
        assert request.company == company
        assert request.permissions == set()

    def test_public_paths_skip_resolution(self, middleware, rf, user):
        request = rf.get('/v1/health', HTTP_X_COMPANY_ID='not-a-number')
        request.user = user

        assert middleware.process_request(request) is None
        assert request.company is None

    def test_resolution_errors_propagate(self, middleware, rf, user, company, membership):
        request = rf.get('/v1/menu', HTTP_X_COMPANY_ID=str(company.pk))
        request.user = user

        with patch('apps.rbac.services.RBACService.resolve_permissions',
                   side_effect=RuntimeError('database unavailable')):
            with pytest.raises(RuntimeError):
                middleware.process_request(request)


class TestRequestIDMiddleware:

    def test_incoming_request_id_is_kept(self, rf):
        middleware = RequestIDMiddleware(lambda request: HttpResponse())
        request = rf.get('/v1/menu', HTTP_X_REQUEST_ID='abc-123')

        response = middleware(request)

        assert request.request_id == 'abc-123'
        assert response['X-Request-ID'] == 'abc-123'

    def test_request_id_generated(self, rf):
        middleware = RequestIDMiddleware(lambda request: HttpResponse())
        request = rf.get('/v1/menu')

        response = middleware(request)

        assert len(request.request_id) == 36
        assert response['X-Request-ID'] == request.request_id
