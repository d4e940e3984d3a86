"""
Menu REST API views.

Serves the navigation of the current caller, filtered by the effective
permissions resolved by CompanyContextMiddleware.
"""
import logging
from django.conf import settings
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, extend_schema_view
from drf_spectacular.types import OpenApiTypes

from apps.core.logging import SecurityLogger
from apps.core.permissions import get_client_ip
from apps.menus.serializers import MenuNodeSerializer, MenuTreeNodeSerializer
from apps.menus.services import UNRESTRICTED, MenuService

logger = logging.getLogger(__name__)


class MenuPermissionsMixin:
    """Pick the permission set the menu is filtered with."""

    def get_effective_permissions(self, request):
        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            return getattr(request, 'permissions', None) or set()

        if getattr(settings, 'MENU_PERMISSIVE_IF_ANONYMOUS', False):
            logger.warning(
                "Serving unfiltered menu to anonymous caller",
                extra={'request_id': getattr(request, 'request_id', None)}
            )
            SecurityLogger.log_unfiltered_menu(request.path, ip_address=get_client_ip(request))
            return UNRESTRICTED

        return set()


@extend_schema_view(
    get=extend_schema(
        tags=['Menus'],
        summary='Get navigation menu',
        description='''
Active menu entries visible to the caller, ordered by parent, order and id.
Entries without a permission key are visible to everyone.

Anonymous callers only receive public entries unless
`MENU_PERMISSIVE_IF_ANONYMOUS` is enabled.
        ''',
        responses={
            200: OpenApiTypes.OBJECT,
        }
    )
)
class MenuView(MenuPermissionsMixin, APIView):
    """
    GET /v1/menu
    """

    permission_classes = [AllowAny]

    def get(self, request):
        nodes = MenuService.get_menu(self.get_effective_permissions(request))
        return Response({
            'success': True,
            'count': len(nodes),
            'data': MenuNodeSerializer(nodes, many=True).data,
        })


@extend_schema_view(
    get=extend_schema(
        tags=['Menus'],
        summary='Get navigation tree',
        description='''
Visible menu entries nested under their parents. Entries whose parent is
hidden are placed according to `MENU_ORPHAN_POLICY` (promote or drop).
        ''',
        responses={
            200: OpenApiTypes.OBJECT,
        }
    )
)
class MenuTreeView(MenuPermissionsMixin, APIView):
    """
    GET /v1/menu/tree
    """

    permission_classes = [AllowAny]

    def get(self, request):
        tree = MenuService.get_menu_tree(self.get_effective_permissions(request))
        return Response({
            'success': True,
            'count': len(tree),
            'data': MenuTreeNodeSerializer(tree, many=True).data,
        })
