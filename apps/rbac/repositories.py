"""
Data access for permission resolution.

PermissionRepository is the narrow interface the resolver reads through.
DjangoPermissionRepository reads the relational tables; the in-memory
variant keeps rows in id-keyed dicts for isolated tests and tooling.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Set, Tuple

from apps.rbac.models import (
    Permission, Role, RolePermission, UserCompanyPermission, UserCompanyRole
)
from apps.rbac.records import PermissionRecord, PermissionRows, RoleRecord

logger = logging.getLogger(__name__)


class PermissionRepository(ABC):
    """Read-only access to roles, permissions and their assignments."""

    @abstractmethod
    def fetch_permission_rows(self, user_id: int, company_id: int) -> PermissionRows:
        """
        Fetch the raw permission data of a user in a company.

        Only active role assignments of active roles count, and only
        active permissions are returned. Errors propagate.
        """

    @abstractmethod
    def active_roles(self) -> List[RoleRecord]:
        """Return all active roles ordered by name."""

    @abstractmethod
    def active_permissions(self) -> List[PermissionRecord]:
        """Return all active permissions ordered by key."""


class DjangoPermissionRepository(PermissionRepository):
    """PermissionRepository over the Django ORM."""

    def fetch_permission_rows(self, user_id: int, company_id: int) -> PermissionRows:
        role_ids = frozenset(
            UserCompanyRole.objects.filter(
                user_id=user_id,
                company_id=company_id,
                is_active=True,
                role__is_active=True,
            ).values_list('role_id', flat=True)
        )

        role_derived = frozenset()
        if role_ids:
            role_derived = frozenset(
                RolePermission.objects.filter(
                    role_id__in=role_ids,
                    is_allowed=True,
                    permission__is_active=True,
                ).values_list('permission__key', flat=True)
            )

        direct_allow = set()
        direct_deny = set()
        direct_rows = UserCompanyPermission.objects.filter(
            user_id=user_id,
            company_id=company_id,
            permission__is_active=True,
        ).values_list('permission__key', 'is_allowed')
        for key, is_allowed in direct_rows:
            if is_allowed:
                direct_allow.add(key)
            else:
                direct_deny.add(key)

        logger.debug(
            f"Fetched permission rows for user {user_id} in company {company_id}: "
            f"{len(role_ids)} roles, {len(role_derived)} role keys, "
            f"{len(direct_allow)} grants, {len(direct_deny)} denies",
            extra={'user_id': user_id, 'company_id': company_id}
        )

        return PermissionRows(
            role_ids=role_ids,
            role_derived=role_derived,
            direct_allow=frozenset(direct_allow),
            direct_deny=frozenset(direct_deny),
        )

    def active_roles(self) -> List[RoleRecord]:
        return [
            RoleRecord(
                id=role.pk,
                name=role.name,
                description=role.description,
                is_system=role.is_system,
            )
            for role in Role.objects.active().order_by('name', 'id')
        ]

    def active_permissions(self) -> List[PermissionRecord]:
        return [
            PermissionRecord(
                id=perm.pk,
                key=perm.key,
                name=perm.name,
                description=perm.description,
            )
            for perm in Permission.objects.active().order_by('key')
        ]


class InMemoryPermissionRepository(PermissionRepository):
    """
    PermissionRepository over plain dicts.

    Roles and permissions live in id-keyed arenas; assignment rows reference
    them by id only. Rows pointing at unknown ids are skipped, matching the
    behaviour of the relational joins.
    """

    def __init__(self):
        self.roles: Dict[int, RoleRecord] = {}
        self.permissions: Dict[int, PermissionRecord] = {}
        self.inactive_role_ids: Set[int] = set()
        self.inactive_permission_ids: Set[int] = set()
        # role_id -> {permission_id: is_allowed}
        self.role_permissions: Dict[int, Dict[int, bool]] = {}
        # (user_id, company_id) -> {role_id: is_active}
        self.user_roles: Dict[Tuple[int, int], Dict[int, bool]] = {}
        # (user_id, company_id) -> {permission_id: is_allowed}
        self.user_permissions: Dict[Tuple[int, int], Dict[int, bool]] = {}

    def add_role(self, role_id, name, is_active=True, description='', is_system=False):
        self.roles[role_id] = RoleRecord(
            id=role_id, name=name, description=description, is_system=is_system
        )
        if not is_active:
            self.inactive_role_ids.add(role_id)
        return self.roles[role_id]

    def add_permission(self, permission_id, key, name=None, is_active=True, description=''):
        self.permissions[permission_id] = PermissionRecord(
            id=permission_id, key=key, name=name or key, description=description
        )
        if not is_active:
            self.inactive_permission_ids.add(permission_id)
        return self.permissions[permission_id]

    def add_role_permission(self, role_id, permission_id, is_allowed=True):
        self.role_permissions.setdefault(role_id, {})[permission_id] = is_allowed

    def assign_role(self, user_id, company_id, role_id, is_active=True):
        self.user_roles.setdefault((user_id, company_id), {})[role_id] = is_active

    def set_user_permission(self, user_id, company_id, permission_id, is_allowed):
        self.user_permissions.setdefault((user_id, company_id), {})[permission_id] = is_allowed

    def _active_permission_key(self, permission_id):
        if permission_id in self.inactive_permission_ids:
            return None
        perm = self.permissions.get(permission_id)
        return perm.key if perm else None

    def fetch_permission_rows(self, user_id: int, company_id: int) -> PermissionRows:
        pair = (user_id, company_id)

        role_ids = frozenset(
            role_id
            for role_id, is_active in self.user_roles.get(pair, {}).items()
            if is_active and role_id in self.roles and role_id not in self.inactive_role_ids
        )

        role_derived = set()
        for role_id in role_ids:
            for permission_id, is_allowed in self.role_permissions.get(role_id, {}).items():
                key = self._active_permission_key(permission_id)
                if is_allowed and key is not None:
                    role_derived.add(key)

        direct_allow = set()
        direct_deny = set()
        for permission_id, is_allowed in self.user_permissions.get(pair, {}).items():
            key = self._active_permission_key(permission_id)
            if key is None:
                continue
            if is_allowed:
                direct_allow.add(key)
            else:
                direct_deny.add(key)

        return PermissionRows(
            role_ids=role_ids,
            role_derived=frozenset(role_derived),
            direct_allow=frozenset(direct_allow),
            direct_deny=frozenset(direct_deny),
        )

    def active_roles(self) -> List[RoleRecord]:
        return sorted(
            (role for role_id, role in self.roles.items() if role_id not in self.inactive_role_ids),
            key=lambda role: (role.name, role.id)
        )

    def active_permissions(self) -> List[PermissionRecord]:
        return sorted(
            (
                perm for perm_id, perm in self.permissions.items()
                if perm_id not in self.inactive_permission_ids
            ),
            key=lambda perm: perm.key
        )
