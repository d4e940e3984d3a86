"""
RBAC REST API views.

Implements endpoints for:
- Authorization summaries and effective permissions of a user in a company
- Role assignments and direct permission overrides
- Role administration and the permission catalog
- Audit log viewing
"""
import logging
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.companies.models import Company
from apps.core.exceptions import (
    CompanyNotFound, MembershipNotFound, PermissionDeniedError, UserNotFound
)
from apps.core.permissions import HasCompanyPermissions, MethodPermissionsMixin, requires_permissions
from apps.rbac.models import (
    User, UserCompany, Permission, Role, RolePermission,
    UserCompanyPermission, AuditLog
)
from apps.rbac.services import RBACService
from apps.rbac.serializers import (
    AssignRoleSerializer, AuditLogSerializer, AuthorizationSummarySerializer,
    EffectivePermissionsSerializer, PermissionSerializer, RolePermissionSerializer,
    RoleDetailSerializer, RolePermissionSetSerializer, RolePermissionsReplaceSerializer,
    RoleSerializer, RoleWriteSerializer, UserCompanyMembershipSerializer,
    UserCompanyPermissionCreateSerializer, UserCompanyPermissionSerializer,
    UserCompanyRoleSerializer, UserSerializer,
)

logger = logging.getLogger(__name__)

TRUE_VALUES = {'1', 'true', 'yes', 'on'}


class StandardResultsSetPagination(PageNumberPagination):
    """Standard pagination for list endpoints."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 100


class UserCompanyMixin:
    """
    Resolve the (user, company) pair addressed by a URL.

    The addressed company must be the company of the request context;
    permissions resolved for one company never authorize changes in another.
    """

    def get_company(self, request, company_id):
        company = Company.objects.filter(pk=company_id).first()
        if company is None:
            raise CompanyNotFound(f"Company {company_id} not found")

        request_company = getattr(request, 'company', None)
        if request_company is None or request_company.pk != company.pk:
            logger.warning(
                f"Company mismatch: request context {getattr(request_company, 'pk', None)}, "
                f"addressed {company.pk}",
                extra={'request_id': getattr(request, 'request_id', None)}
            )
            raise PermissionDeniedError(
                'Requested company does not match the X-COMPANY-ID context'
            )

        return company

    def get_user_company(self, request, user_id, company_id):
        company = self.get_company(request, company_id)

        user = User.objects.filter(pk=user_id).first()
        if user is None:
            raise UserNotFound(f"User {user_id} not found")

        membership = UserCompany.objects.get_membership(user, company)
        if membership is None:
            raise MembershipNotFound(
                f"User {user_id} is not a member of company {company.code}"
            )

        return user, company, membership


@extend_schema_view(
    get=extend_schema(
        tags=['RBAC - Users'],
        summary='Get authorization summary',
        description='''
Roles (assigned or not) and effective permissions of a user in a company,
with the provenance of every permission (Role, DirectGrant, DirectDeny).

**Required permission:** `security.users.view`
        ''',
        parameters=[
            OpenApiParameter('include_denied', OpenApiTypes.BOOL, description='Include directly denied permissions'),
        ],
        responses={
            200: AuthorizationSummarySerializer,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    )
)
@requires_permissions('security.users.view')
class UserAuthorizationSummaryView(UserCompanyMixin, APIView):
    """
    GET /v1/users/{user_id}/companies/{company_id}/auth

    Authorization summary of a user in a company.

    Required permission: security.users.view
    """

    permission_classes = [IsAuthenticated, HasCompanyPermissions]

    def get(self, request, user_id, company_id):
        user, company, _ = self.get_user_company(request, user_id, company_id)
        include_denied = request.query_params.get('include_denied', '').lower() in TRUE_VALUES

        summary = RBACService.build_authorization_summary(
            user.pk, company.pk, include_denied=include_denied
        )
        return Response(AuthorizationSummarySerializer(summary).data)


@extend_schema_view(
    get=extend_schema(
        tags=['RBAC - Users'],
        summary='List user roles in company',
        description='''
Roles assigned to a user in a company, including inactive assignments.

**Required permission:** `security.users.view`
        ''',
        responses={
            200: UserCompanyRoleSerializer(many=True),
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    ),
    post=extend_schema(
        tags=['RBAC - Users'],
        summary='Assign role to user',
        description='''
Assign a role to a user in a company. Assigning a role the user already
holds returns 200; a new assignment returns 201.

**Required permission:** `security.users.manage`
        ''',
        request=AssignRoleSerializer,
        responses={
            200: UserCompanyRoleSerializer(many=True),
            201: UserCompanyRoleSerializer(many=True),
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    )
)
class UserCompanyRolesView(MethodPermissionsMixin, UserCompanyMixin, APIView):
    """
    GET/POST /v1/users/{user_id}/companies/{company_id}/roles
    """

    permission_classes = [IsAuthenticated, HasCompanyPermissions]

    @requires_permissions('security.users.view')
    def get(self, request, user_id, company_id):
        user, company, _ = self.get_user_company(request, user_id, company_id)
        roles = RBACService.get_user_roles_in_company(user.pk, company.pk)
        return Response(UserCompanyRoleSerializer(roles, many=True).data)

    @requires_permissions('security.users.manage')
    def post(self, request, user_id, company_id):
        user, company, _ = self.get_user_company(request, user_id, company_id)

        serializer = AssignRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        role = serializer.validated_data['role_id']

        _, created = RBACService.assign_role(
            user, company, role, assigned_by=request.user, request=request
        )

        roles = RBACService.get_user_roles_in_company(user.pk, company.pk)
        return Response(
            UserCompanyRoleSerializer(roles, many=True).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


@extend_schema_view(
    delete=extend_schema(
        tags=['RBAC - Users'],
        summary='Remove role from user',
        description='''
Remove a role from a user in a company.

**Required permission:** `security.users.manage`
        ''',
        responses={
            204: None,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    )
)
@requires_permissions('security.users.manage')
class UserCompanyRoleRemoveView(UserCompanyMixin, APIView):
    """
    DELETE /v1/users/{user_id}/companies/{company_id}/roles/{role_id}
    """

    permission_classes = [IsAuthenticated, HasCompanyPermissions]

    def delete(self, request, user_id, company_id, role_id):
        user, company, _ = self.get_user_company(request, user_id, company_id)
        role = get_object_or_404(Role, pk=role_id)

        removed = RBACService.remove_role(
            user, company, role, removed_by=request.user, request=request
        )
        if not removed:
            return Response(
                {'error': 'User does not have this role'},
                status=status.HTTP_404_NOT_FOUND
            )

        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema_view(
    get=extend_schema(
        tags=['RBAC - Users'],
        summary='List direct permission overrides',
        description='''
Direct grants and denies of a user in a company. A deny always wins over
role-derived permissions.

**Required permission:** `security.users.view`
        ''',
        responses={
            200: UserCompanyPermissionSerializer(many=True),
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    ),
    post=extend_schema(
        tags=['RBAC - Users'],
        summary='Grant or deny a permission',
        description='''
Create or replace a direct permission override for a user in a company.

**Required permission:** `security.users.manage`

**Example body:**
```json
{"permission_key": "inventory.delete", "is_allowed": false}
```
        ''',
        request=UserCompanyPermissionCreateSerializer,
        responses={
            200: UserCompanyPermissionSerializer,
            201: UserCompanyPermissionSerializer,
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    )
)
class UserCompanyPermissionsView(MethodPermissionsMixin, UserCompanyMixin, APIView):
    """
    GET/POST /v1/users/{user_id}/companies/{company_id}/permissions
    """

    permission_classes = [IsAuthenticated, HasCompanyPermissions]

    @requires_permissions('security.users.view')
    def get(self, request, user_id, company_id):
        user, company, _ = self.get_user_company(request, user_id, company_id)
        overrides = UserCompanyPermission.objects.filter(
            user=user, company=company
        ).select_related('permission').order_by('permission__key')
        return Response(UserCompanyPermissionSerializer(overrides, many=True).data)

    @requires_permissions('security.users.manage')
    def post(self, request, user_id, company_id):
        user, company, _ = self.get_user_company(request, user_id, company_id)

        serializer = UserCompanyPermissionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        row, created = RBACService.set_direct_permission(
            user,
            company,
            serializer.validated_data['permission_key'],
            serializer.validated_data['is_allowed'],
            granted_by=request.user,
            request=request,
        )
        return Response(
            UserCompanyPermissionSerializer(row).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


@extend_schema_view(
    delete=extend_schema(
        tags=['RBAC - Users'],
        summary='Remove direct permission override',
        description='''
Remove a direct override; the user falls back to role-derived permissions.

**Required permission:** `security.users.manage`
        ''',
        responses={
            204: None,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    )
)
@requires_permissions('security.users.manage')
class UserCompanyPermissionRemoveView(UserCompanyMixin, APIView):
    """
    DELETE /v1/users/{user_id}/companies/{company_id}/permissions/{permission_id}
    """

    permission_classes = [IsAuthenticated, HasCompanyPermissions]

    def delete(self, request, user_id, company_id, permission_id):
        user, company, _ = self.get_user_company(request, user_id, company_id)
        permission = get_object_or_404(Permission, pk=permission_id)

        removed = RBACService.remove_direct_permission(
            user, company, permission, removed_by=request.user, request=request
        )
        if not removed:
            return Response(
                {'error': 'User has no override for this permission'},
                status=status.HTTP_404_NOT_FOUND
            )

        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema_view(
    get=extend_schema(
        tags=['RBAC - Users'],
        summary='Get effective permissions',
        description='''
Role names, direct grants, direct denies and the resulting effective
permission set of a user in a company.

**Required permission:** `security.users.view`
        ''',
        responses={
            200: EffectivePermissionsSerializer,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    )
)
@requires_permissions('security.users.view')
class UserEffectivePermissionsView(UserCompanyMixin, APIView):
    """
    GET /v1/users/{user_id}/companies/{company_id}/effective-permissions
    """

    permission_classes = [IsAuthenticated, HasCompanyPermissions]

    def get(self, request, user_id, company_id):
        user, company, _ = self.get_user_company(request, user_id, company_id)
        effective = RBACService.get_effective_permissions(user.pk, company.pk)
        return Response(EffectivePermissionsSerializer(effective).data)


@extend_schema_view(
    get=extend_schema(
        tags=['RBAC - Users'],
        summary='List user companies',
        description='''
Active company memberships of a user.

**Required permission:** `security.users.view`
        ''',
        responses={
            200: UserCompanyMembershipSerializer(many=True),
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    )
)
@requires_permissions('security.users.view')
class UserCompaniesView(APIView):
    """
    GET /v1/users/{user_id}/companies
    """

    permission_classes = [IsAuthenticated, HasCompanyPermissions]

    def get(self, request, user_id):
        user = User.objects.filter(pk=user_id).first()
        if user is None:
            raise UserNotFound(f"User {user_id} not found")

        memberships = UserCompany.objects.for_user(user).select_related('company').order_by('company__name')
        return Response(UserCompanyMembershipSerializer(memberships, many=True).data)


@extend_schema_view(
    get=extend_schema(
        tags=['RBAC - Users'],
        summary='Get my permissions',
        description='''
Effective permissions of the authenticated user in the company selected by
the `X-COMPANY-ID` header. Without the header the list is empty.

**No permission required.**
        ''',
        responses={
            200: OpenApiTypes.OBJECT,
        }
    )
)
class MyPermissionsView(APIView):
    """
    GET /v1/me/permissions
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        company = getattr(request, 'company', None)
        permissions = getattr(request, 'permissions', None) or set()
        return Response({
            'user_id': request.user.pk,
            'company_id': company.pk if company else None,
            'permissions': sorted(permissions),
        })


@extend_schema_view(
    get=extend_schema(
        tags=['RBAC - Roles'],
        summary='List roles',
        description='''
List roles. Inactive roles are only listed with `include_inactive=true`.

**Required permission:** `security.roles.view`
        ''',
        parameters=[
            OpenApiParameter('include_inactive', OpenApiTypes.BOOL, description='Include inactive roles'),
        ],
        responses={
            200: RoleSerializer(many=True),
            403: OpenApiTypes.OBJECT,
        }
    ),
    post=extend_schema(
        tags=['RBAC - Roles'],
        summary='Create role',
        description='''
Create a custom role. Names are unique regardless of case; roles created
through the API are never system roles.

**Required permission:** `security.roles.manage`

**Example body:**
```json
{"name": "Warehouse Clerk", "description": "Stock movements"}
```
        ''',
        request=RoleWriteSerializer,
        responses={
            201: RoleSerializer,
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
        }
    )
)
class RoleListView(MethodPermissionsMixin, APIView):
    """
    GET/POST /v1/roles
    """

    permission_classes = [IsAuthenticated, HasCompanyPermissions]
    pagination_class = StandardResultsSetPagination

    @requires_permissions('security.roles.view')
    def get(self, request):
        roles = Role.objects.all().order_by('name')
        if request.query_params.get('include_inactive', '').lower() not in TRUE_VALUES:
            roles = roles.filter(is_active=True)

        paginator = self.pagination_class()
        page = paginator.paginate_queryset(roles, request)

        serializer = RoleSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @requires_permissions('security.roles.manage')
    def post(self, request):
        serializer = RoleWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        role = RBACService.create_role(
            serializer.validated_data['name'],
            serializer.validated_data.get('description', ''),
            created_by=request.user,
            request=request,
        )
        return Response(RoleSerializer(role).data, status=status.HTTP_201_CREATED)


@extend_schema_view(
    get=extend_schema(
        tags=['RBAC - Roles'],
        summary='Get role details',
        description='''
A role with its active permissions and the active users holding it in
any company.

**Required permission:** `security.roles.view`
        ''',
        responses={
            200: RoleDetailSerializer,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    ),
    put=extend_schema(
        tags=['RBAC - Roles'],
        summary='Update role',
        description='''
Update name, description or `is_active` of a custom role. System roles
cannot be modified (400).

**Required permission:** `security.roles.manage`
        ''',
        request=RoleWriteSerializer,
        responses={
            200: RoleSerializer,
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    ),
    delete=extend_schema(
        tags=['RBAC - Roles'],
        summary='Delete role',
        description='''
Deactivate a custom role. System roles and roles with active assignments
are refused (400).

**Required permission:** `security.roles.manage`
        ''',
        responses={
            204: None,
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    )
)
class RoleDetailView(MethodPermissionsMixin, APIView):
    """
    GET/PUT/DELETE /v1/roles/{role_id}
    """

    permission_classes = [IsAuthenticated, HasCompanyPermissions]

    @requires_permissions('security.roles.view')
    def get(self, request, role_id):
        role = get_object_or_404(Role, pk=role_id)
        details = RBACService.get_role_details(role)
        return Response(RoleDetailSerializer(details).data)

    @requires_permissions('security.roles.manage')
    def put(self, request, role_id):
        role = get_object_or_404(Role, pk=role_id)

        serializer = RoleWriteSerializer(data=request.data, context={'role': role})
        serializer.is_valid(raise_exception=True)

        role = RBACService.update_role(
            role,
            name=serializer.validated_data.get('name'),
            description=serializer.validated_data.get('description'),
            is_active=serializer.validated_data.get('is_active'),
            changed_by=request.user,
            request=request,
        )
        return Response(RoleSerializer(role).data)

    @requires_permissions('security.roles.manage')
    def delete(self, request, role_id):
        role = get_object_or_404(Role, pk=role_id)
        RBACService.delete_role(role, deleted_by=request.user, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema_view(
    get=extend_schema(
        tags=['RBAC - Roles'],
        summary='List role permissions',
        description='''
Permissions carried by a role, with their is_allowed flag.

**Required permission:** `security.roles.view`
        ''',
        responses={
            200: RolePermissionSerializer(many=True),
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    ),
    post=extend_schema(
        tags=['RBAC - Roles'],
        summary='Set role permission',
        description='''
Add a permission to a custom role or update its is_allowed flag.
System roles cannot be modified (400).

**Required permission:** `security.roles.manage`
        ''',
        request=RolePermissionSetSerializer,
        responses={
            200: RolePermissionSerializer,
            201: RolePermissionSerializer,
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    ),
    put=extend_schema(
        tags=['RBAC - Roles'],
        summary='Replace role permissions',
        description='''
Replace the whole permission set of a custom role. Every listed permission
is granted; everything else is removed. System roles cannot be modified (400).

**Required permission:** `security.roles.manage`

**Example body:**
```json
{"permission_ids": [3, 7, 12]}
```
        ''',
        request=RolePermissionsReplaceSerializer,
        responses={
            200: RolePermissionSerializer(many=True),
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    )
)
class RolePermissionsView(MethodPermissionsMixin, APIView):
    """
    GET/POST/PUT /v1/roles/{role_id}/permissions
    """

    permission_classes = [IsAuthenticated, HasCompanyPermissions]

    def _list(self, role):
        rows = RolePermission.objects.filter(role=role).select_related('permission').order_by('permission__key')
        return RolePermissionSerializer(rows, many=True).data

    @requires_permissions('security.roles.view')
    def get(self, request, role_id):
        role = get_object_or_404(Role, pk=role_id)
        return Response(self._list(role))

    @requires_permissions('security.roles.manage')
    def post(self, request, role_id):
        role = get_object_or_404(Role, pk=role_id)

        serializer = RolePermissionSetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        row, created = RBACService.set_role_permission(
            role,
            serializer.validated_data['permission_key'],
            is_allowed=serializer.validated_data['is_allowed'],
            changed_by=request.user,
            request=request,
        )
        return Response(
            RolePermissionSerializer(row).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    @requires_permissions('security.roles.manage')
    def put(self, request, role_id):
        role = get_object_or_404(Role, pk=role_id)

        serializer = RolePermissionsReplaceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        RBACService.replace_role_permissions(
            role,
            serializer.validated_data['permission_ids'],
            changed_by=request.user,
            request=request,
        )
        return Response(self._list(role))


@extend_schema_view(
    get=extend_schema(
        tags=['RBAC - Roles'],
        summary='List users available for a role',
        description='''
Active members of the company who do not hold the role there yet. The
company must be the one selected by `X-COMPANY-ID`.

**Required permission:** `security.roles.view`
        ''',
        responses={
            200: UserSerializer(many=True),
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    )
)
@requires_permissions('security.roles.view')
class RoleAvailableUsersView(UserCompanyMixin, APIView):
    """
    GET /v1/roles/{role_id}/available-users/{company_id}
    """

    permission_classes = [IsAuthenticated, HasCompanyPermissions]

    def get(self, request, role_id, company_id):
        company = self.get_company(request, company_id)
        role = get_object_or_404(Role, pk=role_id)

        users = RBACService.get_available_users(role, company)
        return Response(UserSerializer(users, many=True).data)


@extend_schema_view(
    get=extend_schema(
        tags=['RBAC - Permissions'],
        summary='List permissions',
        description='''
List the active permission catalog. Filter by module with `module`
(the key prefix before the first dot).

**Required permission:** `security.permissions.view`
        ''',
        parameters=[
            OpenApiParameter('module', OpenApiTypes.STR, description='Filter by module'),
        ],
        responses={
            200: PermissionSerializer(many=True),
            403: OpenApiTypes.OBJECT,
        }
    )
)
@requires_permissions('security.permissions.view')
class PermissionListView(APIView):
    """
    GET /v1/permissions
    """

    permission_classes = [IsAuthenticated, HasCompanyPermissions]
    pagination_class = StandardResultsSetPagination

    def get(self, request):
        permissions = Permission.objects.active().order_by('key')

        module = request.query_params.get('module')
        if module:
            permissions = [perm for perm in permissions if perm.module == module]

        paginator = self.pagination_class()
        page = paginator.paginate_queryset(permissions, request)

        serializer = PermissionSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)


@extend_schema_view(
    get=extend_schema(
        tags=['RBAC - Audit'],
        summary='List audit logs',
        description='''
List audit logs of the current company. Supports filtering by action,
target_type, user and date range.

**Required permission:** `security.audit.view`
        ''',
        parameters=[
            OpenApiParameter('action', OpenApiTypes.STR, description='Filter by action type'),
            OpenApiParameter('target_type', OpenApiTypes.STR, description='Filter by target type'),
            OpenApiParameter('user_id', OpenApiTypes.INT, description='Filter by acting user ID'),
            OpenApiParameter('from_date', OpenApiTypes.DATETIME, description='Filter from date'),
            OpenApiParameter('to_date', OpenApiTypes.DATETIME, description='Filter to date'),
        ],
        responses={
            200: AuditLogSerializer(many=True),
            403: OpenApiTypes.OBJECT,
        }
    )
)
@requires_permissions('security.audit.view')
class AuditLogListView(APIView):
    """
    GET /v1/audit-logs
    """

    permission_classes = [IsAuthenticated, HasCompanyPermissions]
    pagination_class = StandardResultsSetPagination

    def get(self, request):
        logs = AuditLog.objects.for_company(request.company).select_related('user', 'company')

        action = request.query_params.get('action')
        if action:
            logs = logs.filter(action=action)

        target_type = request.query_params.get('target_type')
        if target_type:
            logs = logs.filter(target_type=target_type)

        user_id = request.query_params.get('user_id')
        if user_id:
            logs = logs.filter(user_id=user_id)

        from_date = request.query_params.get('from_date')
        if from_date:
            logs = logs.filter(created_at__gte=from_date)

        to_date = request.query_params.get('to_date')
        if to_date:
            logs = logs.filter(created_at__lte=to_date)

        paginator = self.pagination_class()
        page = paginator.paginate_queryset(logs, request)

        serializer = AuditLogSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)
