"""
Plain records exchanged between the data access layer and the resolver.

The resolver never touches ORM objects; repositories flatten rows into
these immutable records first.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, List


@dataclass(frozen=True)
class RoleRecord:
    """An active role."""

    id: int
    name: str
    description: str = ''
    is_system: bool = False


@dataclass(frozen=True)
class PermissionRecord:
    """An active permission from the catalog."""

    id: int
    key: str
    name: str
    description: str = ''


@dataclass(frozen=True)
class PermissionRows:
    """
    Raw permission data for one (user, company) pair.

    role_ids holds the active roles the user holds in the company,
    role_derived the keys those roles grant. direct_allow and direct_deny
    hold the keys of per-user overrides, partitioned by is_allowed.
    """

    role_ids: FrozenSet[int] = frozenset()
    role_derived: FrozenSet[str] = frozenset()
    direct_allow: FrozenSet[str] = frozenset()
    direct_deny: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class EffectivePermissions:
    """Breakdown of a user's permissions in a company."""

    roles: List[str]
    allowed: List[str]
    denied: List[str]
    effective: List[str]


@dataclass(frozen=True)
class RoleSummaryEntry:
    id: int
    name: str
    assigned: bool


@dataclass(frozen=True)
class PermissionSummaryEntry:
    key: str
    name: str
    module: str
    provenance: str
    allowed: bool = True


@dataclass(frozen=True)
class AuthorizationSummary:
    """Roles and permissions of a user in a company, for administrative display."""

    user_id: int
    company_id: int
    roles: List[RoleSummaryEntry] = field(default_factory=list)
    permissions: List[PermissionSummaryEntry] = field(default_factory=list)
