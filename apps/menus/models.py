"""
Navigation menu model.
"""
from django.db import models
from apps.core.models import BaseModel

ROOT_PARENT_ID = 0


class MenuManager(models.Manager):
    """Manager for Menu queries."""

    def active(self):
        """Return only active menu entries."""
        return self.filter(is_active=True)

    def roots(self):
        """Return active top-level entries."""
        return self.active().filter(parent_id=ROOT_PARENT_ID)


class Menu(BaseModel):
    """
    A navigation entry.

    parent_id is a plain integer (0 for top-level entries) rather than a
    foreign key, so entries whose parent was removed stay readable.
    Entries without permission_key are visible to everyone.
    """

    parent_id = models.IntegerField(
        default=ROOT_PARENT_ID,
        db_index=True,
        help_text="Id of the parent entry, 0 for top-level entries"
    )
    name = models.CharField(
        max_length=100,
        help_text="Label shown in the navigation"
    )
    url = models.CharField(
        max_length=200,
        help_text="Target route"
    )
    icon = models.CharField(
        max_length=50,
        blank=True,
        null=True,
        help_text="Icon name"
    )
    order = models.IntegerField(
        default=0,
        db_column='menu_order',
        help_text="Position among siblings"
    )
    permission_key = models.CharField(
        max_length=150,
        blank=True,
        null=True,
        db_index=True,
        help_text="Permission required to see the entry (empty = public)"
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Inactive entries are never served"
    )

    objects = MenuManager()

    class Meta:
        db_table = 'menus'
        ordering = ['parent_id', 'order', 'id']

    def __str__(self):
        return f"{self.name} ({self.url})"
