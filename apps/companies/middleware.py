"""
Company context middleware for multi-tenant isolation.

Extracts the active company from request headers and attaches the
caller's effective permission set for that company to the request.
"""
import logging
import uuid
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

from apps.core.logging import SecurityLogger
from .models import Company

logger = logging.getLogger(__name__)


class CompanyContextMiddleware(MiddlewareMixin):
    """
    Extract and validate company context from request headers.

    This middleware:
    1. Extracts the X-COMPANY-ID header
    2. Validates the company exists and is active
    3. Validates the authenticated user's membership in that company
    4. Resolves the user's effective permissions in that company
    5. Attaches request.company, request.membership, request.permissions

    Requests without the header carry no company and an empty permission
    set. Public endpoints (health checks, schema, admin) bypass it.
    """

    HEADER = 'X-COMPANY-ID'

    PUBLIC_PATHS = [
        '/v1/health',
        '/schema',
        '/admin/',
    ]

    def process_request(self, request):
        if not hasattr(request, 'request_id'):
            request.request_id = request.headers.get('X-Request-ID', str(uuid.uuid4()))
        request_id = request.request_id

        request.company = None
        request.membership = None
        request.permissions = set()

        if self._is_public_path(request.path):
            return None

        raw_company_id = request.headers.get(self.HEADER)
        if not raw_company_id:
            return None

        try:
            company_id = int(raw_company_id)
        except (TypeError, ValueError):
            return self._error_response(
                'INVALID_COMPANY',
                f'{self.HEADER} must be an integer company id',
                status=400
            )

        company = Company.objects.filter(pk=company_id).first()
        if company is None:
            logger.warning(
                f"Unknown company id: {company_id}",
                extra={'request_id': request_id}
            )
            return self._error_response(
                'COMPANY_NOT_FOUND',
                'Company not found',
                status=404
            )

        if not company.is_active:
            logger.info(
                f"Inactive company attempted access: {company.code}",
                extra={'request_id': request_id, 'company_id': company.pk}
            )
            return self._error_response(
                'COMPANY_INACTIVE',
                'This company is inactive',
                status=403
            )

        request.company = company

        user = getattr(request, 'user', None)
        if user is None or not user.is_authenticated:
            return None

        # Import here to avoid circular dependency
        from apps.rbac.models import UserCompany
        from apps.rbac.services import RBACService

        membership = UserCompany.objects.get_membership(user, company)
        if membership is None:
            logger.warning(
                f"User {user.pk} attempted access to company {company.code} without membership",
                extra={'request_id': request_id, 'company_id': company.pk}
            )
            SecurityLogger.log_cross_company_access(
                user,
                company.pk,
                ip_address=request.META.get('REMOTE_ADDR')
            )
            return self._error_response(
                'FORBIDDEN',
                'You do not have access to this company',
                status=403
            )

        # Resolution errors propagate; a request never runs on a partial set
        request.membership = membership
        request.permissions = RBACService.resolve_permissions(user.pk, company.pk)

        logger.debug(
            f"Company context set: user {user.pk} @ {company.code} with {len(request.permissions)} permissions",
            extra={'request_id': request_id, 'company_id': company.pk, 'user_id': user.pk}
        )
        return None

    def _is_public_path(self, path):
        """Check if path is public and doesn't require company context."""
        return any(path.startswith(public_path) for public_path in self.PUBLIC_PATHS)

    def _error_response(self, code, message, status=400, details=None):
        """Generate standardized error response."""
        error_data = {
            'error': {
                'code': code,
                'message': message,
            }
        }

        if details:
            error_data['error']['details'] = details

        return JsonResponse(error_data, status=status)


class RequestIDMiddleware(MiddlewareMixin):
    """
    Inject unique request ID for tracing.

    Generates a unique ID for each request to enable request tracing
    across logs and error tracking.
    """

    def process_request(self, request):
        """Generate and inject request ID if not already set."""
        if not hasattr(request, 'request_id'):
            request.request_id = request.headers.get('X-Request-ID', str(uuid.uuid4()))

        return None

    def process_response(self, request, response):
        """Add request ID to response headers."""
        if hasattr(request, 'request_id'):
            response['X-Request-ID'] = request.request_id
        return response
