"""
RBAC models for multi-company admin access control.

Implements:
- Global User identity (can work across multiple companies)
- UserCompany membership
- Permission (global canonical permissions, keyed by dotted string)
- Role (global role definitions)
- RolePermission (maps permissions to roles, allow or deny)
- UserCompanyRole (roles held by a user inside one company)
- UserCompanyPermission (per-user-per-company grant/deny overrides)
- AuditLog (audit trail of administrative changes)
"""
import logging
from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.db import models, transaction
from apps.core.models import BaseModel
from apps.rbac.resolver import permission_module

logger = logging.getLogger(__name__)


class UserManager(BaseUserManager):
    """
    Manager for User queries.

    Compatible with Django's authentication system and admin interface.
    """

    def active(self):
        """Return only active users."""
        return self.filter(is_active=True)

    def by_email(self, email):
        """Find user by email."""
        return self.filter(email=email).first()

    def by_azure_oid(self, oid):
        """Find the active user linked to an identity-provider object id."""
        return self.filter(azure_oid=oid, is_active=True).first()

    def create_user(self, email, password=None, **extra_fields):
        """Create a new user. Passwords are optional; sign-in is external."""
        if not email:
            raise ValueError('Email address is required')

        email = self.normalize_email(email)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('is_superuser', False)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """
        Create a superuser with Django admin access.

        This method is required for Django's createsuperuser command.
        """
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)

        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True')

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, BaseModel):
    """
    Global user identity - can belong to multiple companies.

    Authentication happens at the identity provider, authorization at the
    (user, company) level through roles and direct permissions.

    This is the AUTH_USER_MODEL for the entire application, including Django admin.
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        help_text="User email address (unique globally)"
    )
    display_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Name shown in the UI"
    )
    azure_oid = models.UUIDField(
        unique=True,
        null=True,
        blank=True,
        help_text="Object id of the user in the identity provider"
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether user account is active"
    )
    is_superuser = models.BooleanField(
        default=False,
        help_text="Platform administrator (Django admin access only)"
    )

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        db_table = 'users'
        ordering = ['email']

    def __str__(self):
        return self.email

    def get_full_name(self):
        """Return display name or email if name not set."""
        return self.display_name or self.email

    def get_short_name(self):
        return self.get_full_name()

    @property
    def is_staff(self):
        """
        Return True if user is a superuser.
        This is required for Django admin access.
        """
        return self.is_superuser

    def has_perm(self, perm, obj=None):
        """
        Django admin permission hook.
        Company permissions are handled by the resolver, not by Django.
        """
        return self.is_active and self.is_superuser

    def has_perms(self, perm_list, obj=None):
        return self.is_active and self.is_superuser

    def has_module_perms(self, app_label):
        return self.is_active and self.is_superuser


class UserCompanyManager(models.Manager):
    """Manager for UserCompany queries."""

    def for_company(self, company):
        """Get all active memberships of a company."""
        return self.filter(company=company, is_active=True)

    def for_user(self, user):
        """Get all active memberships of a user."""
        return self.filter(user=user, is_active=True)

    def get_membership(self, user, company):
        """Get the active user-company membership, or None."""
        return self.filter(user=user, company=company, is_active=True).first()


class UserCompany(BaseModel):
    """
    Membership of a User in a Company.

    The membership itself grants nothing; it only makes the company
    selectable for the user. Permissions come from roles and direct rows.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='company_memberships',
        help_text="User who is a member"
    )
    company = models.ForeignKey(
        'companies.Company',
        on_delete=models.CASCADE,
        related_name='memberships',
        help_text="Company the membership belongs to"
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether membership is active"
    )

    objects = UserCompanyManager()

    class Meta:
        db_table = 'user_companies'
        ordering = ['user', 'company']
        constraints = [
            models.UniqueConstraint(fields=['user', 'company'], name='uq_user_company'),
        ]

    def __str__(self):
        return f"{self.user.email} @ {self.company.code}"


class PermissionManager(models.Manager):
    """Manager for Permission queries."""

    def active(self):
        return self.filter(is_active=True)

    def by_key(self, key):
        """Find permission by key."""
        return self.filter(key=key).first()

    def get_or_create_permission(self, key, name, description=''):
        """Get or create permission (idempotent)."""
        return self.get_or_create(
            key=key,
            defaults={
                'name': name,
                'description': description,
            }
        )


class Permission(BaseModel):
    """
    Global permission definitions - shared across all companies.

    Canonical permissions are seeded during deployment (seed_permissions)
    and define all available access controls in the system.
    """

    key = models.CharField(
        max_length=150,
        unique=True,
        db_index=True,
        help_text="Unique permission key (e.g., 'inventory.items.edit')"
    )
    name = models.CharField(
        max_length=150,
        help_text="Human-readable name (e.g., 'Edit Items')"
    )
    description = models.TextField(
        blank=True,
        help_text="Detailed description of what this permission grants"
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Inactive permissions are never granted"
    )

    objects = PermissionManager()

    class Meta:
        db_table = 'permissions'
        ordering = ['key']

    def __str__(self):
        return f"{self.key} - {self.name}"

    @property
    def module(self):
        return permission_module(self.key)


class RoleManager(models.Manager):
    """Manager for Role queries."""

    def active(self):
        return self.filter(is_active=True)

    def by_name(self, name):
        """Find role by name."""
        return self.filter(name=name).first()

    def get_or_create_role(self, name, description='', is_system=False):
        """Get or create role (idempotent)."""
        return self.get_or_create(
            name=name,
            defaults={
                'description': description,
                'is_system': is_system,
            }
        )


class Role(BaseModel):
    """
    Named bundle of permissions.

    Roles are defined once for the whole platform and handed out per
    company through UserCompanyRole rows.
    """

    name = models.CharField(
        max_length=100,
        unique=True,
        help_text="Role name (e.g., 'Administrator', 'Warehouse Clerk')"
    )
    description = models.CharField(
        max_length=255,
        blank=True,
        help_text="Role description"
    )
    is_system = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether this is a system-seeded role"
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Inactive roles grant nothing, even when assigned"
    )

    objects = RoleManager()

    class Meta:
        db_table = 'roles'
        ordering = ['name']

    def __str__(self):
        return self.name


class RolePermission(BaseModel):
    """
    Maps permissions to roles.

    Only rows with is_allowed=True grant the permission. A row with
    is_allowed=False is kept for administration but grants nothing.
    """

    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE,
        related_name='role_permissions',
        help_text="Role that carries this permission"
    )
    permission = models.ForeignKey(
        Permission,
        on_delete=models.CASCADE,
        related_name='role_permissions',
        help_text="Permission being granted"
    )
    is_allowed = models.BooleanField(
        default=True,
        help_text="False keeps the row without granting the permission"
    )

    class Meta:
        db_table = 'role_permissions'
        ordering = ['role', 'permission']
        constraints = [
            models.UniqueConstraint(fields=['role', 'permission'], name='uq_role_permission'),
        ]

    def __str__(self):
        action = "ALLOW" if self.is_allowed else "DENY"
        return f"{self.role.name} -> {action} {self.permission.key}"


class UserCompanyRole(BaseModel):
    """
    A role held by a user inside one company.

    A user can hold different roles in different companies and several
    roles in the same company; permissions are aggregated.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='company_roles',
        help_text="User who has this role"
    )
    company = models.ForeignKey(
        'companies.Company',
        on_delete=models.CASCADE,
        related_name='user_roles',
        help_text="Company the role applies in"
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE,
        related_name='user_company_roles',
        help_text="Role assigned to the user"
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Inactive assignments are ignored by permission resolution"
    )

    class Meta:
        db_table = 'user_company_roles'
        ordering = ['user', 'company', 'role']
        constraints = [
            models.UniqueConstraint(fields=['user', 'company', 'role'], name='uq_user_company_role'),
        ]
        indexes = [
            models.Index(fields=['user', 'company', 'is_active']),
        ]

    def __str__(self):
        return f"{self.user.email} @ {self.company.code} -> {self.role.name}"


class UserCompanyPermission(BaseModel):
    """
    Per-user-per-company permission override (grant or deny).

    Direct rows bypass roles. A deny (is_allowed=False) always wins over
    role grants for the same key.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='company_permissions',
        help_text="User this override applies to"
    )
    company = models.ForeignKey(
        'companies.Company',
        on_delete=models.CASCADE,
        related_name='user_permissions',
        help_text="Company the override applies in"
    )
    permission = models.ForeignKey(
        Permission,
        on_delete=models.CASCADE,
        related_name='user_company_permissions',
        help_text="Permission being granted or denied"
    )
    is_allowed = models.BooleanField(
        default=True,
        help_text="True = grant, False = deny (deny wins over role grants)"
    )

    class Meta:
        db_table = 'user_company_permissions'
        ordering = ['user', 'company', 'permission']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'company', 'permission'],
                name='uq_user_company_permission'
            ),
        ]
        indexes = [
            models.Index(fields=['user', 'company', 'is_allowed']),
        ]

    def __str__(self):
        action = "GRANT" if self.is_allowed else "DENY"
        return f"{action} {self.permission.key} to {self.user.email} @ {self.company.code}"


class AuditLogManager(models.Manager):
    """Manager for AuditLog queries with company scoping."""

    def for_company(self, company):
        """Get audit logs for a specific company."""
        return self.filter(company=company)

    def for_user(self, user):
        """Get audit logs for a specific acting user."""
        return self.filter(user=user)

    def by_action(self, action):
        """Get audit logs for a specific action."""
        return self.filter(action=action)

    def by_target(self, target_type, target_id=None):
        """Get audit logs for a specific target type and optionally target ID."""
        qs = self.filter(target_type=target_type)
        if target_id is not None:
            qs = qs.filter(target_id=target_id)
        return qs


class AuditLog(BaseModel):
    """
    Audit trail for role and permission administration.

    Logs every role assignment and permission override change for compliance.
    """

    company = models.ForeignKey(
        'companies.Company',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='audit_logs',
        help_text="Company this action belongs to (null for platform-level)"
    )
    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
        help_text="User who performed the action (null for system actions)"
    )

    action = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Action performed (e.g., 'role_assigned', 'permission_denied')"
    )
    target_type = models.CharField(
        max_length=50,
        db_index=True,
        help_text="Type of target entity (e.g., 'UserCompanyRole')"
    )
    target_id = models.BigIntegerField(
        null=True,
        blank=True,
        db_index=True,
        help_text="ID of target entity"
    )

    diff = models.JSONField(
        default=dict,
        blank=True,
        help_text="Before/after changes in JSON format"
    )

    ip_address = models.GenericIPAddressField(
        null=True,
        blank=True,
        help_text="IP address of the request"
    )
    user_agent = models.TextField(
        blank=True,
        help_text="User agent string"
    )
    request_id = models.CharField(
        max_length=64,
        blank=True,
        db_index=True,
        help_text="Request ID for tracing"
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Additional context metadata"
    )

    objects = AuditLogManager()

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['company', 'created_at']),
            models.Index(fields=['action', 'created_at']),
            models.Index(fields=['target_type', 'target_id']),
        ]

    def __str__(self):
        user_str = self.user.email if self.user else 'System'
        company_str = self.company.code if self.company else 'Platform'
        return f"{company_str} - {user_str} - {self.action}"

    @classmethod
    def log_action(cls, action, user=None, company=None, target_type=None,
                   target_id=None, diff=None, metadata=None, request=None):
        """
        Convenience method to create audit log entry.

        Args:
            action: Action being performed
            user: User performing the action
            company: Company context
            target_type: Type of target entity
            target_id: ID of target entity
            diff: Before/after changes
            metadata: Additional context
            request: Django request object (for IP, user agent, request ID)

        Returns:
            AuditLog instance, or None when the entry could not be written
        """
        if user is not None and not user.is_authenticated:
            user = None

        log_data = {
            'action': action,
            'user': user,
            'company': company,
            'target_type': target_type or '',
            'target_id': target_id,
            'diff': diff or {},
            'metadata': metadata or {},
        }

        if request is not None:
            log_data['ip_address'] = cls._get_client_ip(request)
            log_data['user_agent'] = request.META.get('HTTP_USER_AGENT', '')
            log_data['request_id'] = getattr(request, 'request_id', None) or ''

        try:
            # Own savepoint, so a failed insert leaves the outer transaction usable
            with transaction.atomic():
                return cls.objects.create(**log_data)
        except Exception as e:
            # Audit logging must not break the administrative operation
            logger.error(
                f"Failed to create audit log: {str(e)}",
                extra={'action': action, 'company_id': company.pk if company else None},
                exc_info=True
            )
            return None

    @staticmethod
    def _get_client_ip(request):
        """Extract client IP from request."""
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')
