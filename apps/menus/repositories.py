"""
Data access for navigation menus.
"""
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List

from apps.menus.models import Menu
from apps.menus.records import MenuNode


class MenuRepository(ABC):
    """Read-only access to menu entries."""

    @abstractmethod
    def active_menus(self) -> List[MenuNode]:
        """Return every active menu entry. Errors propagate."""


class DjangoMenuRepository(MenuRepository):
    """MenuRepository over the Django ORM."""

    def active_menus(self) -> List[MenuNode]:
        return [
            MenuNode(
                id=menu.pk,
                parent_id=menu.parent_id,
                name=menu.name,
                url=menu.url,
                order=menu.order,
                icon=menu.icon,
                permission_key=menu.permission_key,
            )
            for menu in Menu.objects.active()
        ]


class InMemoryMenuRepository(MenuRepository):
    """MenuRepository over an id-keyed dict."""

    def __init__(self, nodes: Iterable[MenuNode] = (), inactive_ids: Iterable[int] = ()):
        self.nodes: Dict[int, MenuNode] = {node.id: node for node in nodes}
        self.inactive_ids = set(inactive_ids)

    def add(self, node: MenuNode, is_active: bool = True):
        self.nodes[node.id] = node
        if is_active:
            self.inactive_ids.discard(node.id)
        else:
            self.inactive_ids.add(node.id)

    def active_menus(self) -> List[MenuNode]:
        return [node for node_id, node in self.nodes.items() if node_id not in self.inactive_ids]
