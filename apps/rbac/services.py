"""
RBAC services.

Implements:
- PermissionResolver: effective permission set of a user in a company
- AuthorizationSummaryBuilder: roles and permission provenance for admin display
- RBACService: permission checks, role assignment, overrides and role administration
"""
import logging
from typing import Iterable, List, Optional, Set, Tuple

from django.db import transaction

from apps.core.exceptions import RoleInUse, RoleNotModifiable
from apps.rbac.models import (
    AuditLog, Permission, Role, RolePermission, User, UserCompany,
    UserCompanyPermission, UserCompanyRole,
)
from apps.rbac.records import AuthorizationSummary, EffectivePermissions
from apps.rbac.repositories import DjangoPermissionRepository, PermissionRepository
from apps.rbac.resolver import build_summary, effective_breakdown, merge_permissions

logger = logging.getLogger(__name__)


class PermissionResolver:
    """
    Compute effective permission sets.

    Holds no state besides its repository, so one instance can be shared.
    Results are never cached; every call reads the current rows.
    """

    def __init__(self, repository: Optional[PermissionRepository] = None):
        self.repository = repository or DjangoPermissionRepository()

    def resolve(self, user_id: int, company_id: int) -> Set[str]:
        """
        Resolve the effective permission keys of a user in a company.

        A fetch error aborts the call; a partial set is never returned.
        """
        rows = self.repository.fetch_permission_rows(user_id, company_id)
        permissions = merge_permissions(rows)

        logger.debug(
            f"Resolved {len(permissions)} permissions for user {user_id} in company {company_id}",
            extra={'user_id': user_id, 'company_id': company_id}
        )
        return permissions

    def breakdown(self, user_id: int, company_id: int) -> EffectivePermissions:
        rows = self.repository.fetch_permission_rows(user_id, company_id)
        return effective_breakdown(rows, self.repository.active_roles())


class AuthorizationSummaryBuilder:
    """
    Build AuthorizationSummary records.

    Membership of the user in the company is the caller's check.
    """

    def __init__(self, repository: Optional[PermissionRepository] = None):
        self.repository = repository or DjangoPermissionRepository()

    def build(self, user_id: int, company_id: int, include_denied: bool = False) -> AuthorizationSummary:
        rows = self.repository.fetch_permission_rows(user_id, company_id)
        return build_summary(
            user_id,
            company_id,
            rows,
            self.repository.active_roles(),
            self.repository.active_permissions(),
            include_denied=include_denied,
        )


class RBACService:
    """
    Service for RBAC operations: permission resolution, checks and administration.
    """

    @classmethod
    def resolve_permissions(cls, user_id: int, company_id: int) -> Set[str]:
        """
        Resolve all permission keys of a user in a company.

        Aggregates permissions from:
        1. All active roles the user holds in the company
        2. Direct grants for the user in the company
        3. Direct denies (deny wins over everything)

        Args:
            user_id: User primary key
            company_id: Company primary key

        Returns:
            Set of permission keys (e.g., {'inventory.view', 'sales.orders.edit'})
        """
        return PermissionResolver().resolve(user_id, company_id)

    @classmethod
    def has_permission(cls, user_id: int, company_id: int, key: str) -> bool:
        """Check if the user holds a specific permission in the company."""
        return key in cls.resolve_permissions(user_id, company_id)

    @classmethod
    def has_any_permission(cls, user_id: int, company_id: int, keys: Iterable[str]) -> bool:
        """Check if the user holds any of the given permissions."""
        return bool(set(keys) & cls.resolve_permissions(user_id, company_id))

    @classmethod
    def has_all_permissions(cls, user_id: int, company_id: int, keys: Iterable[str]) -> bool:
        """Check if the user holds all of the given permissions."""
        return set(keys).issubset(cls.resolve_permissions(user_id, company_id))

    @classmethod
    def get_effective_permissions(cls, user_id: int, company_id: int) -> EffectivePermissions:
        """Return roles, direct grants, direct denies and the effective set."""
        return PermissionResolver().breakdown(user_id, company_id)

    @classmethod
    def build_authorization_summary(cls, user_id: int, company_id: int,
                                    include_denied: bool = False) -> AuthorizationSummary:
        """Return the authorization summary of a user in a company."""
        return AuthorizationSummaryBuilder().build(
            user_id, company_id, include_denied=include_denied
        )

    @classmethod
    def get_user_roles_in_company(cls, user_id: int, company_id: int) -> List[dict]:
        """
        List the roles assigned to a user in a company.

        Inactive assignments are included; `is_active` is only True when both
        the assignment and the role are active.
        """
        rows = UserCompanyRole.objects.filter(
            user_id=user_id,
            company_id=company_id,
        ).select_related('role').order_by('role__name')

        return [
            {
                'id': row.role_id,
                'name': row.role.name,
                'description': row.role.description,
                'is_active': row.is_active and row.role.is_active,
                'assigned_at': row.created_at,
            }
            for row in rows
        ]

    @classmethod
    def get_all_user_roles(cls, user_id: int) -> List[dict]:
        """List a user's roles in every company the user is an active member of."""
        memberships = UserCompany.objects.filter(
            user_id=user_id,
            is_active=True,
        ).select_related('company').order_by('company__name')

        return [
            {
                'company_id': membership.company_id,
                'company_code': membership.company.code,
                'company_name': membership.company.name,
                'roles': cls.get_user_roles_in_company(user_id, membership.company_id),
            }
            for membership in memberships
        ]

    @classmethod
    @transaction.atomic
    def assign_role(cls, user: User, company, role: Role,
                    assigned_by: Optional[User] = None, request=None) -> Tuple[UserCompanyRole, bool]:
        """
        Assign a role to a user in a company.

        Assigning a role the user already holds is not an error; an inactive
        assignment is reactivated.

        Returns:
            Tuple of (UserCompanyRole, created)
        """
        row, created = UserCompanyRole.objects.get_or_create(
            user=user,
            company=company,
            role=role,
        )

        reactivated = False
        if not created and not row.is_active:
            row.is_active = True
            row.touch(assigned_by)
            row.save(update_fields=['is_active', 'updated_by', 'updated_at'])
            reactivated = True
        elif created:
            row.touch(assigned_by)
            row.created_by = row.updated_by
            row.save(update_fields=['created_by', 'updated_by', 'updated_at'])

        if created or reactivated:
            AuditLog.log_action(
                action='role_assigned',
                user=assigned_by,
                company=company,
                target_type='UserCompanyRole',
                target_id=row.pk,
                diff={
                    'role': role.name,
                    'action': 'reactivated' if reactivated else 'assigned',
                },
                metadata={
                    'target_user_id': user.pk,
                    'role_id': role.pk,
                },
                request=request,
            )
            logger.info(
                f"Role {role.name} assigned to user {user.pk} in company {company.code}",
                extra={'company_id': company.pk, 'user_id': user.pk}
            )

        return row, created

    @classmethod
    @transaction.atomic
    def remove_role(cls, user: User, company, role: Role,
                    removed_by: Optional[User] = None, request=None) -> bool:
        """
        Remove a role from a user in a company.

        Returns:
            True if role was removed, False if it wasn't assigned
        """
        deleted_count, _ = UserCompanyRole.objects.filter(
            user=user,
            company=company,
            role=role,
        ).delete()

        if deleted_count == 0:
            return False

        AuditLog.log_action(
            action='role_removed',
            user=removed_by,
            company=company,
            target_type='UserCompanyRole',
            diff={
                'role': role.name,
                'action': 'removed',
            },
            metadata={
                'target_user_id': user.pk,
                'role_id': role.pk,
            },
            request=request,
        )
        logger.info(
            f"Role {role.name} removed from user {user.pk} in company {company.code}",
            extra={'company_id': company.pk, 'user_id': user.pk}
        )
        return True

    @classmethod
    @transaction.atomic
    def set_direct_permission(cls, user: User, company, permission: Permission, is_allowed: bool,
                              granted_by: Optional[User] = None,
                              request=None) -> Tuple[UserCompanyPermission, bool]:
        """
        Grant or deny a permission directly to a user in a company.

        An existing override for the same permission is replaced.

        Returns:
            Tuple of (UserCompanyPermission, created)
        """
        row, created = UserCompanyPermission.objects.update_or_create(
            user=user,
            company=company,
            permission=permission,
            defaults={'is_allowed': is_allowed},
        )
        row.touch(granted_by)
        if created:
            row.created_by = row.updated_by
        row.save(update_fields=['created_by', 'updated_by', 'updated_at'])

        AuditLog.log_action(
            action='permission_granted' if is_allowed else 'permission_revoked',
            user=granted_by,
            company=company,
            target_type='UserCompanyPermission',
            target_id=row.pk,
            diff={
                'permission': permission.key,
                'is_allowed': is_allowed,
            },
            metadata={
                'target_user_id': user.pk,
                'permission_key': permission.key,
            },
            request=request,
        )
        logger.info(
            f"Permission {permission.key} {'granted to' if is_allowed else 'denied for'} "
            f"user {user.pk} in company {company.code}",
            extra={'company_id': company.pk, 'user_id': user.pk}
        )
        return row, created

    @classmethod
    def grant_permission(cls, user, company, permission, granted_by=None, request=None):
        """Grant a permission directly (user-level override)."""
        return cls.set_direct_permission(
            user, company, permission, True, granted_by=granted_by, request=request
        )

    @classmethod
    def deny_permission(cls, user, company, permission, granted_by=None, request=None):
        """
        Deny a permission directly (user-level override).

        Deny overrides always win over role grants.
        """
        return cls.set_direct_permission(
            user, company, permission, False, granted_by=granted_by, request=request
        )

    @classmethod
    @transaction.atomic
    def remove_direct_permission(cls, user: User, company, permission: Permission,
                                 removed_by: Optional[User] = None, request=None) -> bool:
        """
        Remove a direct override, falling back to role-derived permissions.

        Returns:
            True if an override was removed
        """
        deleted_count, _ = UserCompanyPermission.objects.filter(
            user=user,
            company=company,
            permission=permission,
        ).delete()

        if deleted_count == 0:
            return False

        AuditLog.log_action(
            action='permission_override_removed',
            user=removed_by,
            company=company,
            target_type='UserCompanyPermission',
            diff={'permission': permission.key},
            metadata={
                'target_user_id': user.pk,
                'permission_key': permission.key,
            },
            request=request,
        )
        return True

    @classmethod
    @transaction.atomic
    def set_role_permission(cls, role: Role, permission: Permission, is_allowed: bool = True,
                            changed_by: Optional[User] = None,
                            request=None) -> Tuple[RolePermission, bool]:
        """
        Add a permission to a role, or update its is_allowed flag.

        Returns:
            Tuple of (RolePermission, created)
        """
        cls._ensure_modifiable(role)

        row, created = RolePermission.objects.update_or_create(
            role=role,
            permission=permission,
            defaults={'is_allowed': is_allowed},
        )

        AuditLog.log_action(
            action='role_permission_set',
            user=changed_by,
            target_type='RolePermission',
            target_id=row.pk,
            diff={
                'role': role.name,
                'permission': permission.key,
                'is_allowed': is_allowed,
            },
            request=request,
        )
        return row, created

    @classmethod
    @transaction.atomic
    def remove_role_permission(cls, role: Role, permission: Permission,
                               changed_by: Optional[User] = None, request=None) -> bool:
        """Remove a permission from a role. Returns True if it was present."""
        cls._ensure_modifiable(role)

        deleted_count, _ = RolePermission.objects.filter(role=role, permission=permission).delete()

        if deleted_count == 0:
            return False

        AuditLog.log_action(
            action='role_permission_removed',
            user=changed_by,
            target_type='RolePermission',
            diff={
                'role': role.name,
                'permission': permission.key,
            },
            request=request,
        )
        return True

    @staticmethod
    def _ensure_modifiable(role: Role):
        if role.is_system:
            raise RoleNotModifiable(
                f"System role {role.name} cannot be modified",
                details={'role_id': role.pk}
            )

    @classmethod
    @transaction.atomic
    def create_role(cls, name: str, description: str = '',
                    created_by: Optional[User] = None, request=None) -> Role:
        """
        Create a custom role. Roles created here are never system roles.

        Name uniqueness (case-insensitive) is checked by the caller.
        """
        role = Role(name=name.strip(), description=(description or '').strip(), is_system=False)
        role.touch(created_by)
        role.save()

        AuditLog.log_action(
            action='role_created',
            user=created_by,
            target_type='Role',
            target_id=role.pk,
            diff={'name': role.name, 'description': role.description},
            request=request,
        )
        logger.info(f"Role {role.name} created (id {role.pk})")
        return role

    @classmethod
    @transaction.atomic
    def update_role(cls, role: Role, name: Optional[str] = None, description: Optional[str] = None,
                    is_active: Optional[bool] = None, changed_by: Optional[User] = None,
                    request=None) -> Role:
        """
        Update name, description or active flag of a custom role.

        Fields left as None keep their value. System roles are read-only.
        """
        cls._ensure_modifiable(role)

        before = {'name': role.name, 'description': role.description, 'is_active': role.is_active}
        if name:
            role.name = name.strip()
        if description is not None:
            role.description = description.strip()
        if is_active is not None:
            role.is_active = is_active
        after = {'name': role.name, 'description': role.description, 'is_active': role.is_active}

        role.touch(changed_by)
        role.save(update_fields=['name', 'description', 'is_active', 'updated_by', 'updated_at'])

        AuditLog.log_action(
            action='role_updated',
            user=changed_by,
            target_type='Role',
            target_id=role.pk,
            diff={'before': before, 'after': after},
            request=request,
        )
        logger.info(f"Role {role.name} updated (id {role.pk})")
        return role

    @classmethod
    @transaction.atomic
    def delete_role(cls, role: Role, deleted_by: Optional[User] = None, request=None) -> Role:
        """
        Soft-delete a role by deactivating it.

        System roles and roles still held through an active assignment are
        refused; the row and its permissions are kept.
        """
        cls._ensure_modifiable(role)

        if UserCompanyRole.objects.filter(role=role, is_active=True).exists():
            raise RoleInUse(
                f"Role {role.name} still has active assignments",
                details={'role_id': role.pk}
            )

        role.is_active = False
        role.touch(deleted_by)
        role.save(update_fields=['is_active', 'updated_by', 'updated_at'])

        AuditLog.log_action(
            action='role_deleted',
            user=deleted_by,
            target_type='Role',
            target_id=role.pk,
            diff={'name': role.name},
            request=request,
        )
        logger.info(f"Role {role.name} deactivated (id {role.pk})")
        return role

    @classmethod
    @transaction.atomic
    def replace_role_permissions(cls, role: Role, permissions: Iterable[Permission],
                                 changed_by: Optional[User] = None, request=None) -> int:
        """
        Replace the whole permission set of a role with the given grants.

        Every existing row, allowed or not, is removed first. Returns the
        number of permissions the role carries afterwards.
        """
        cls._ensure_modifiable(role)

        permissions = {permission.pk: permission for permission in permissions}
        before = sorted(
            RolePermission.objects.filter(role=role).values_list('permission__key', flat=True)
        )
        RolePermission.objects.filter(role=role).delete()

        rows = []
        for permission in permissions.values():
            row = RolePermission(role=role, permission=permission, is_allowed=True)
            row.touch(changed_by)
            rows.append(row)
        RolePermission.objects.bulk_create(rows)

        AuditLog.log_action(
            action='role_permissions_replaced',
            user=changed_by,
            target_type='Role',
            target_id=role.pk,
            diff={
                'before': before,
                'after': sorted(permission.key for permission in permissions.values()),
            },
            request=request,
        )
        logger.info(f"Permissions of role {role.name} replaced: {len(rows)} permissions")
        return len(rows)

    @classmethod
    def get_role_details(cls, role: Role) -> dict:
        """
        Role with its active permissions and the active users holding it in
        any company.
        """
        permissions = RolePermission.objects.filter(
            role=role,
            permission__is_active=True,
        ).select_related('permission').order_by('permission__key')

        users = User.objects.filter(
            is_active=True,
            company_roles__role=role,
            company_roles__is_active=True,
        ).distinct().order_by('email')

        return {
            'role': role,
            'permissions': list(permissions),
            'users': list(users),
        }

    @classmethod
    def get_available_users(cls, role: Role, company) -> List[User]:
        """
        Active members of a company who do not hold the role there yet.

        An inactive assignment does not count as holding the role.
        """
        holders = UserCompanyRole.objects.filter(
            company=company, role=role, is_active=True
        ).values('user_id')

        users = User.objects.filter(
            is_active=True,
            company_memberships__company=company,
            company_memberships__is_active=True,
        ).exclude(pk__in=holders).order_by('display_name', 'email')
        return list(users)
