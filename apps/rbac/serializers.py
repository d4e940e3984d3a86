"""
RBAC serializers for REST API endpoints.

Provides serialization for:
- Users and company memberships
- Roles and role assignments
- Permissions and direct permission overrides
- Authorization summaries and effective permissions
- Audit logs
"""
from rest_framework import serializers
from apps.rbac.models import (
    User, UserCompany, Permission, Role, RolePermission,
    UserCompanyRole, UserCompanyPermission, AuditLog
)


class UserSerializer(serializers.ModelSerializer):
    """Basic serializer for User model."""

    full_name = serializers.CharField(source='get_full_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'display_name', 'full_name', 'is_active']
        read_only_fields = fields


class PermissionSerializer(serializers.ModelSerializer):
    """Serializer for Permission model."""

    module = serializers.CharField(read_only=True)

    class Meta:
        model = Permission
        fields = ['id', 'key', 'name', 'description', 'module', 'is_active']
        read_only_fields = fields


class RoleSerializer(serializers.ModelSerializer):
    """Serializer for Role model."""

    permission_count = serializers.SerializerMethodField()
    user_count = serializers.SerializerMethodField()

    class Meta:
        model = Role
        fields = [
            'id', 'name', 'description', 'is_system', 'is_active',
            'permission_count', 'user_count', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_permission_count(self, obj):
        """Count permissions the role grants."""
        return obj.role_permissions.filter(is_allowed=True).count()

    def get_user_count(self, obj):
        """Count active assignments of the role."""
        return obj.user_company_roles.filter(is_active=True).count()


class RolePermissionSerializer(serializers.ModelSerializer):
    """Serializer for a permission carried by a role."""

    key = serializers.CharField(source='permission.key', read_only=True)
    name = serializers.CharField(source='permission.name', read_only=True)
    permission_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = RolePermission
        fields = ['permission_id', 'key', 'name', 'is_allowed']
        read_only_fields = fields


class RoleWriteSerializer(serializers.Serializer):
    """
    Serializer for creating and updating custom roles.

    Pass the role being updated as context['role']; names are unique
    regardless of case.
    """

    name = serializers.CharField(max_length=100, required=False)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Role name is required')

        existing = Role.objects.filter(name__iexact=value)
        role = self.context.get('role')
        if role is not None:
            existing = existing.exclude(pk=role.pk)
        if existing.exists():
            raise serializers.ValidationError(f"A role named '{value}' already exists")
        return value

    def validate(self, attrs):
        if self.context.get('role') is None and not attrs.get('name'):
            raise serializers.ValidationError({'name': 'Role name is required'})
        return attrs


class RoleDetailSerializer(serializers.Serializer):
    """Serializer for a role with its permissions and active users."""

    id = serializers.IntegerField(source='role.pk')
    name = serializers.CharField(source='role.name')
    description = serializers.CharField(source='role.description')
    is_system = serializers.BooleanField(source='role.is_system')
    is_active = serializers.BooleanField(source='role.is_active')
    permissions = RolePermissionSerializer(many=True)
    users = UserSerializer(many=True)


class RolePermissionsReplaceSerializer(serializers.Serializer):
    """Serializer for replacing the whole permission set of a role."""

    permission_ids = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=True,
    )

    def validate_permission_ids(self, value):
        """Resolve ids to active permissions; unknown ids are rejected."""
        ids = set(value)
        permissions = list(Permission.objects.active().filter(pk__in=ids))
        missing = ids - {permission.pk for permission in permissions}
        if missing:
            raise serializers.ValidationError(
                f"Unknown or inactive permissions: {sorted(missing)}"
            )
        return permissions



class RolePermissionSetSerializer(serializers.Serializer):
    """Serializer for adding a permission to a role."""

    permission_key = serializers.CharField(required=True)
    is_allowed = serializers.BooleanField(default=True)

    def validate_permission_key(self, value):
        """Resolve the key to an active permission."""
        permission = Permission.objects.active().filter(key=value).first()
        if permission is None:
            raise serializers.ValidationError(f"Permission '{value}' does not exist")
        return permission


class UserCompanyRoleSerializer(serializers.Serializer):
    """Serializer for a role held by a user in a company."""

    id = serializers.IntegerField()
    name = serializers.CharField()
    description = serializers.CharField()
    is_active = serializers.BooleanField()
    assigned_at = serializers.DateTimeField()


class AssignRoleSerializer(serializers.Serializer):
    """Serializer for assigning a role to a user in a company."""

    role_id = serializers.IntegerField(required=True)

    def validate_role_id(self, value):
        """Resolve the id to an active role."""
        role = Role.objects.active().filter(pk=value).first()
        if role is None:
            raise serializers.ValidationError(f"Role {value} does not exist or is inactive")
        return role


class UserCompanyPermissionSerializer(serializers.ModelSerializer):
    """Serializer for a direct permission override."""

    permission_id = serializers.IntegerField(read_only=True)
    key = serializers.CharField(source='permission.key', read_only=True)
    name = serializers.CharField(source='permission.name', read_only=True)

    class Meta:
        model = UserCompanyPermission
        fields = ['id', 'permission_id', 'key', 'name', 'is_allowed', 'updated_by', 'updated_at']
        read_only_fields = fields


class UserCompanyPermissionCreateSerializer(serializers.Serializer):
    """Serializer for creating direct permission overrides."""

    permission_key = serializers.CharField(required=True)
    is_allowed = serializers.BooleanField(required=True)

    def validate_permission_key(self, value):
        """Resolve the key to an active permission."""
        permission = Permission.objects.active().filter(key=value).first()
        if permission is None:
            raise serializers.ValidationError(f"Permission '{value}' does not exist")
        return permission


class UserCompanyMembershipSerializer(serializers.ModelSerializer):
    """Serializer for UserCompany memberships."""

    company_id = serializers.IntegerField(read_only=True)
    company_code = serializers.CharField(source='company.code', read_only=True)
    company_name = serializers.CharField(source='company.name', read_only=True)

    class Meta:
        model = UserCompany
        fields = ['company_id', 'company_code', 'company_name', 'is_active', 'created_at']
        read_only_fields = fields


class RoleSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    assigned = serializers.BooleanField()


class PermissionSummarySerializer(serializers.Serializer):
    key = serializers.CharField()
    name = serializers.CharField()
    module = serializers.CharField()
    provenance = serializers.CharField()
    allowed = serializers.BooleanField()


class AuthorizationSummarySerializer(serializers.Serializer):
    """Serializer for AuthorizationSummary records."""

    user_id = serializers.IntegerField()
    company_id = serializers.IntegerField()
    roles = RoleSummarySerializer(many=True)
    permissions = PermissionSummarySerializer(many=True)


class EffectivePermissionsSerializer(serializers.Serializer):
    """Serializer for EffectivePermissions records."""

    roles = serializers.ListField(child=serializers.CharField())
    allowed = serializers.ListField(child=serializers.CharField())
    denied = serializers.ListField(child=serializers.CharField())
    effective = serializers.ListField(child=serializers.CharField())


class AuditLogSerializer(serializers.ModelSerializer):
    """Serializer for AuditLog model."""

    user_email = serializers.EmailField(source='user.email', read_only=True, default=None)
    company_code = serializers.CharField(source='company.code', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = [
            'id', 'company_code', 'user_email', 'action',
            'target_type', 'target_id', 'diff', 'metadata',
            'ip_address', 'user_agent', 'request_id',
            'created_at'
        ]
        read_only_fields = fields
