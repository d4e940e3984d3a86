"""
Custom exception handlers for DRF.
"""
import logging
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Custom exception handler that logs errors and returns consistent format.
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None) if request else None

    # Domain errors carry their own HTTP status
    if isinstance(exc, CMSException) and exc.status_code:
        logger.warning(
            f"Domain error: {exc.__class__.__name__}: {exc.message}",
            extra={
                'request_id': request_id,
                'path': request.path if request else None,
                'method': request.method if request else None,
                'details': exc.details,
            }
        )
        body = {
            'error': exc.message,
            'code': exc.code,
            'request_id': request_id,
        }
        if exc.details:
            body['details'] = exc.details
        return Response(body, status=exc.status_code)

    # Call DRF's default exception handler first
    response = exception_handler(exc, context)

    logger.error(
        f"API Exception: {exc.__class__.__name__}",
        extra={
            'exception': str(exc),
            'request_id': request_id,
            'path': request.path if request else None,
            'method': request.method if request else None,
        },
        exc_info=True
    )

    # If DRF didn't handle it, return a generic 500 error
    if response is None:
        return Response(
            {
                'error': 'Internal server error',
                'detail': 'An unexpected error occurred',
                'request_id': request_id,
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    # Add request_id to all error responses
    if request_id and isinstance(response.data, dict):
        response.data['request_id'] = request_id

    return response


class CMSException(Exception):
    """Base exception for CMS-specific errors."""

    status_code = None
    code = 'CMS_ERROR'

    def __init__(self, message, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class CompanyNotFound(CMSException):
    """Raised when a company cannot be resolved."""
    status_code = 404
    code = 'COMPANY_NOT_FOUND'


class UserNotFound(CMSException):
    """Raised when a user cannot be resolved."""
    status_code = 404
    code = 'USER_NOT_FOUND'


class MembershipNotFound(CMSException):
    """Raised when a user has no membership in the requested company."""
    status_code = 404
    code = 'MEMBERSHIP_NOT_FOUND'


class PermissionDeniedError(CMSException):
    """Raised when user lacks required permissions."""
    status_code = 403
    code = 'FORBIDDEN'


class RoleNotModifiable(CMSException):
    """Raised when a system role would be changed or deleted."""
    status_code = 400
    code = 'ROLE_NOT_MODIFIABLE'


class RoleInUse(CMSException):
    """Raised when a role with active assignments would be deleted."""
    status_code = 400
    code = 'ROLE_IN_USE'
