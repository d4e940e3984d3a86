"""
Permission resolution and authorization summaries.

Pure functions over PermissionRows; no database access happens here.
The effective permission set of a user in a company is

    (role-derived ∪ direct-allow) − direct-deny

so a direct deny always wins, including over a direct allow for the same key.
"""
from enum import Enum
from typing import Dict, Iterable, List, Set

from apps.rbac.records import (
    AuthorizationSummary, EffectivePermissions, PermissionRecord, PermissionRows,
    PermissionSummaryEntry, RoleRecord, RoleSummaryEntry,
)

DEFAULT_MODULE = 'general'


class Provenance(str, Enum):
    """Where a permission in a summary comes from."""
    ROLE = 'Role'
    DIRECT_GRANT = 'DirectGrant'
    DIRECT_DENY = 'DirectDeny'


def permission_module(key: str) -> str:
    """
    Return the module bucket of a permission key.

    The module is the substring before the first '.', e.g. 'inventory' for
    'inventory.items.edit'. Keys without a dot fall into the default bucket.
    """
    if not key:
        return DEFAULT_MODULE
    head, sep, _ = key.partition('.')
    return head if sep and head else DEFAULT_MODULE


def merge_permissions(rows: PermissionRows) -> Set[str]:
    """Merge role-derived and direct rows into the effective key set."""
    return (set(rows.role_derived) | set(rows.direct_allow)) - set(rows.direct_deny)


def effective_breakdown(rows: PermissionRows, roles: Iterable[RoleRecord]) -> EffectivePermissions:
    """
    Break the effective set down for display.

    `roles` is the active role catalog; names of the roles in rows.role_ids
    are picked from it.
    """
    role_names = sorted(role.name for role in roles if role.id in rows.role_ids)
    return EffectivePermissions(
        roles=role_names,
        allowed=sorted(rows.direct_allow),
        denied=sorted(rows.direct_deny),
        effective=sorted(merge_permissions(rows)),
    )


def build_summary(
    user_id: int,
    company_id: int,
    rows: PermissionRows,
    roles: Iterable[RoleRecord],
    permissions: Iterable[PermissionRecord],
    include_denied: bool = False,
) -> AuthorizationSummary:
    """
    Build the authorization summary of a user in a company.

    Every active role is listed with an `assigned` flag. Permissions are
    seeded from role-derived keys tagged Role, then overlaid with direct
    grants and finally direct denies, so direct rows replace role rows and
    a deny replaces a grant. Denied entries are only listed when
    include_denied is set, with allowed=False.
    """
    names = {perm.key: perm.name for perm in permissions}

    role_entries = [
        RoleSummaryEntry(id=role.id, name=role.name, assigned=role.id in rows.role_ids)
        for role in roles
    ]

    provenance: Dict[str, Provenance] = {}
    for key in rows.role_derived:
        provenance[key] = Provenance.ROLE
    for key in rows.direct_allow:
        provenance[key] = Provenance.DIRECT_GRANT
    for key in rows.direct_deny:
        provenance[key] = Provenance.DIRECT_DENY

    entries: List[PermissionSummaryEntry] = []
    for key, source in provenance.items():
        allowed = source is not Provenance.DIRECT_DENY
        if not allowed and not include_denied:
            continue
        entries.append(PermissionSummaryEntry(
            key=key,
            name=names.get(key, key),
            module=permission_module(key),
            provenance=source.value,
            allowed=allowed,
        ))

    entries.sort(key=lambda entry: (entry.module, entry.key))

    return AuthorizationSummary(
        user_id=user_id,
        company_id=company_id,
        roles=role_entries,
        permissions=entries,
    )
