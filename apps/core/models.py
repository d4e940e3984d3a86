"""
Core models for the CMS admin API.
Provides BaseModel with integer primary keys, timestamps and audit user fields.
"""
from django.db import models


class BaseModel(models.Model):
    """
    Abstract base model with timestamps and audit columns.

    All models in the CMS should inherit from this base model to ensure
    consistent behavior across the platform. Rows are deactivated through
    their own ``is_active`` flags rather than soft-deleted.
    """
    id = models.BigAutoField(
        primary_key=True,
        help_text="Unique identifier"
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when the record was created"
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        db_index=True,
        help_text="Timestamp when the record was last updated"
    )

    created_by = models.CharField(
        max_length=30,
        default='SYSTEM',
        help_text="Identity that created the record"
    )

    updated_by = models.CharField(
        max_length=30,
        default='SYSTEM',
        help_text="Identity that last updated the record"
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def touch(self, actor):
        """Stamp the audit user fields with the acting identity."""
        actor_name = audit_name(actor)
        if not self.pk:
            self.created_by = actor_name
        self.updated_by = actor_name


def audit_name(actor):
    """
    Return the short identity string stored in audit columns.

    Accepts a user instance, a plain string or None (system actions).
    """
    if actor is None:
        return 'SYSTEM'
    if isinstance(actor, str):
        return actor[:30] or 'SYSTEM'
    if not getattr(actor, 'is_authenticated', False):
        return 'SYSTEM'
    return (getattr(actor, 'email', '') or str(actor.pk))[:30]
