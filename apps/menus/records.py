"""
Plain menu records used by the filter and the tree builder.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from apps.menus.models import ROOT_PARENT_ID


@dataclass(frozen=True)
class MenuNode:
    """
    A single navigation entry, detached from the ORM.

    A parent_id of None is stored as ROOT_PARENT_ID; both mean top level.
    """

    id: int
    parent_id: Optional[int]
    name: str
    url: str
    order: int = 0
    icon: Optional[str] = None
    permission_key: Optional[str] = None

    def __post_init__(self):
        if self.parent_id is None:
            object.__setattr__(self, 'parent_id', ROOT_PARENT_ID)

    @property
    def sort_key(self):
        return (self.parent_id, self.order, self.id)


@dataclass
class MenuTreeNode:
    """A navigation entry with its visible children."""

    id: int
    parent_id: int
    name: str
    url: str
    order: int
    icon: Optional[str] = None
    permission_key: Optional[str] = None
    children: List['MenuTreeNode'] = field(default_factory=list)

    @classmethod
    def from_node(cls, node: MenuNode) -> 'MenuTreeNode':
        return cls(
            id=node.id,
            parent_id=node.parent_id,
            name=node.name,
            url=node.url,
            order=node.order,
            icon=node.icon,
            permission_key=node.permission_key,
        )
