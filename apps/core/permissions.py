"""
DRF permission classes and decorators for company-scoped permission enforcement.

This module provides:
- HasCompanyPermissions: DRF permission class that enforces permission keys
- @requires_permissions: Decorator to declare required permission keys on views
"""
import logging
from rest_framework.permissions import BasePermission

from apps.core.logging import SecurityLogger

logger = logging.getLogger(__name__)


def get_client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


class HasCompanyPermissions(BasePermission):
    """
    DRF permission class that enforces permission keys on API endpoints.

    This permission class:
    1. Checks if view has a required_permissions attribute
    2. Verifies all required keys are present in request.permissions
    3. Returns 403 if any required key is missing
    4. Implements has_object_permission to verify object belongs to request.company
    5. Logs permission denials with missing keys for debugging

    Usage in views:
        class MyView(APIView):
            permission_classes = [HasCompanyPermissions]
            required_permissions = ['security.roles.view']

    Or use with decorator:
        @requires_permissions('security.roles.view')
        class MyView(APIView):
            ...
    """

    def has_permission(self, request, view):
        """
        Check if request has all required permission keys for the view.

        Args:
            request: DRF request object with permissions attribute
            view: DRF view instance with optional required_permissions attribute

        Returns:
            bool: True if all required keys are present, False otherwise
        """
        required = getattr(view, 'required_permissions', None)

        if not required:
            return True

        if isinstance(required, str):
            required = {required}
        else:
            required = set(required)

        # Set by CompanyContextMiddleware
        granted = getattr(request, 'permissions', None) or set()

        missing = required - granted

        if missing:
            user = getattr(request, 'user', None)
            company = getattr(request, 'company', None)

            logger.warning(
                f"Permission denied: missing {sorted(missing)}",
                extra={
                    'user_id': getattr(user, 'pk', None),
                    'company_id': getattr(company, 'pk', None),
                    'required_permissions': sorted(required),
                    'missing_permissions': sorted(missing),
                    'view': view.__class__.__name__,
                    'method': request.method,
                    'path': request.path,
                    'request_id': getattr(request, 'request_id', None),
                }
            )
            SecurityLogger.log_permission_denied(
                user if getattr(user, 'is_authenticated', False) else None,
                company,
                missing,
                ip_address=get_client_ip(request),
            )
            return False

        logger.debug(
            f"Permission granted: {sorted(required)}",
            extra={
                'required_permissions': sorted(required),
                'view': view.__class__.__name__,
            }
        )

        return True

    def has_object_permission(self, request, view, obj):
        """
        Verify that the object belongs to the request's company.

        Objects without a company attribute are global (roles, permissions)
        and pass once has_permission() passed.
        """
        if not hasattr(obj, 'company_id'):
            return True

        request_company = getattr(request, 'company', None)
        if request_company is None:
            logger.warning(
                "Object permission check failed: No company in request",
                extra={
                    'view': view.__class__.__name__,
                    'object_type': obj.__class__.__name__,
                    'object_id': getattr(obj, 'pk', None),
                }
            )
            return False

        if obj.company_id != request_company.pk:
            logger.warning(
                "Object permission denied: Object belongs to different company",
                extra={
                    'request_company_id': request_company.pk,
                    'object_company_id': obj.company_id,
                    'object_type': obj.__class__.__name__,
                    'object_id': getattr(obj, 'pk', None),
                    'view': view.__class__.__name__,
                    'request_id': getattr(request, 'request_id', None),
                }
            )
            return False

        return True


def requires_permissions(*keys):
    """
    Decorator to declare required permission keys on view classes or methods.

    This decorator sets the required_permissions attribute on the view,
    which is then checked by the HasCompanyPermissions permission class.

    Usage:
        @requires_permissions('security.roles.view')
        class RoleListView(APIView):
            permission_classes = [HasCompanyPermissions]

    Or on individual methods:
        class RolePermissionsView(APIView):
            permission_classes = [HasCompanyPermissions]

            @requires_permissions('security.roles.view')
            def get(self, request, role_id):
                pass

            @requires_permissions('security.roles.manage')
            def post(self, request, role_id):
                pass

    Method-level keys are checked before the handler runs, because DRF
    evaluates permission classes ahead of method dispatch.
    """
    def decorator(view_or_method):
        # Classes are read by HasCompanyPermissions directly, handlers
        # through MethodPermissionsMixin
        view_or_method.required_permissions = set(keys)
        return view_or_method

    return decorator


class MethodPermissionsMixin:
    """
    Resolve required_permissions from the handler for the request method.

    Lets @requires_permissions decorate individual get/post/delete handlers.
    """

    def get_permissions(self):
        handler = getattr(self, self.request.method.lower(), None)
        method_keys = getattr(handler, 'required_permissions', None)
        if method_keys is not None:
            self.required_permissions = method_keys
        return super().get_permissions()
