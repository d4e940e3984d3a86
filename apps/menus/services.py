"""
Menu filtering and tree materialization.

filter_menu() keeps the entries a permission set can see, in stable
(parent_id, order, id) order. build_menu_tree() turns the flat result into
a hierarchy. Visibility is decided per entry: a visible child of a hidden
parent stays in the flat list, and the tree builder's orphan policy decides
where it goes.
"""
import logging
from enum import Enum
from typing import AbstractSet, Dict, Iterable, List, Optional, Union

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from apps.menus.models import ROOT_PARENT_ID
from apps.menus.records import MenuNode, MenuTreeNode
from apps.menus.repositories import DjangoMenuRepository, MenuRepository

logger = logging.getLogger(__name__)


class _Unrestricted:
    """Marker for "no permission filtering"; not a permission set."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'UNRESTRICTED'


# Returns every node. Meant for tooling and introspection, never for
# deciding what an end user may see.
UNRESTRICTED = _Unrestricted()


class OrphanPolicy(str, Enum):
    """What the tree builder does with a node whose parent is not visible."""
    PROMOTE = 'promote'
    DROP = 'drop'


def get_orphan_policy() -> OrphanPolicy:
    """Read MENU_ORPHAN_POLICY from settings."""
    raw = getattr(settings, 'MENU_ORPHAN_POLICY', OrphanPolicy.PROMOTE.value)
    try:
        return OrphanPolicy(str(raw).lower())
    except ValueError:
        raise ImproperlyConfigured(
            f"MENU_ORPHAN_POLICY must be one of "
            f"{[policy.value for policy in OrphanPolicy]}, got {raw!r}"
        )


def filter_menu(
    nodes: Optional[Iterable[MenuNode]],
    effective_permissions: Union[AbstractSet[str], _Unrestricted],
) -> List[MenuNode]:
    """
    Return the nodes visible with the given permission set.

    A node is visible when it has no permission_key or its key is in
    effective_permissions. UNRESTRICTED keeps every node. The result is
    ordered by (parent_id, order, id).

    Raises:
        ValueError: if nodes is None
    """
    if nodes is None:
        raise ValueError('Menu node list is required')

    if effective_permissions is UNRESTRICTED:
        visible = list(nodes)
    else:
        granted = effective_permissions or frozenset()
        visible = [
            node for node in nodes
            if not node.permission_key or node.permission_key in granted
        ]

    visible.sort(key=lambda node: node.sort_key)
    return visible


def build_menu_tree(nodes: Iterable[MenuNode],
                    orphan_policy: OrphanPolicy = OrphanPolicy.PROMOTE) -> List[MenuTreeNode]:
    """
    Attach nodes to their parents.

    Siblings keep their (order, id) order. A node is an orphan when its
    parent is not among the given nodes; PROMOTE lists orphans at the root,
    DROP removes them along with their subtree. Nodes caught in a parent
    cycle are orphans too.
    """
    ordered = sorted(nodes, key=lambda node: node.sort_key)

    tree_nodes: Dict[int, MenuTreeNode] = {}
    children: Dict[int, List[int]] = {}
    for node in ordered:
        if node.id in tree_nodes:
            continue
        tree_nodes[node.id] = MenuTreeNode.from_node(node)
        children.setdefault(node.parent_id, []).append(node.id)

    placed = set()

    def attach_subtree(root_id):
        stack = [root_id]
        placed.add(root_id)
        while stack:
            parent_id = stack.pop()
            for child_id in children.get(parent_id, []):
                if child_id in placed:
                    continue
                placed.add(child_id)
                tree_nodes[parent_id].children.append(tree_nodes[child_id])
                stack.append(child_id)

    roots: List[MenuTreeNode] = []
    for node_id in children.get(ROOT_PARENT_ID, []):
        if node_id in placed:
            continue
        attach_subtree(node_id)
        roots.append(tree_nodes[node_id])

    if orphan_policy is OrphanPolicy.PROMOTE and len(placed) < len(tree_nodes):
        # Missing parents first, so a promoted orphan keeps its own subtree;
        # whatever is still unplaced afterwards hangs off a parent cycle.
        missing_parent = [
            node_id for node_id, tree_node in tree_nodes.items()
            if tree_node.parent_id not in tree_nodes or tree_node.parent_id == node_id
        ]
        for node_id in missing_parent:
            if node_id not in placed:
                attach_subtree(node_id)
                roots.append(tree_nodes[node_id])

        for node_id in sorted(tree_nodes, key=lambda key: (tree_nodes[key].order, key)):
            if node_id in placed:
                continue
            seen = set()
            while node_id not in seen:
                seen.add(node_id)
                node_id = tree_nodes[node_id].parent_id
            attach_subtree(node_id)
            roots.append(tree_nodes[node_id])
        roots.sort(key=lambda node: (node.order, node.id))

    dropped = len(tree_nodes) - len(placed)
    if dropped:
        logger.debug(f"Dropped {dropped} orphaned menu nodes")

    return roots


class MenuService:
    """
    Service for serving navigation menus.
    """

    @classmethod
    def get_menu(cls, effective_permissions, repository: Optional[MenuRepository] = None) -> List[MenuNode]:
        """Load active menu entries and filter them by effective_permissions."""
        repository = repository or DjangoMenuRepository()
        nodes = repository.active_menus()
        visible = filter_menu(nodes, effective_permissions)

        logger.debug(f"Menu filtered: {len(visible)}/{len(nodes)} entries visible")
        return visible

    @classmethod
    def get_menu_tree(cls, effective_permissions, repository: Optional[MenuRepository] = None,
                      orphan_policy: Optional[OrphanPolicy] = None) -> List[MenuTreeNode]:
        """Load, filter and build the navigation tree."""
        visible = cls.get_menu(effective_permissions, repository=repository)
        return build_menu_tree(visible, orphan_policy or get_orphan_policy())
