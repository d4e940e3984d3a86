"""
Company (tenant) model.
"""
from django.db import models
from apps.core.models import BaseModel


class CompanyManager(models.Manager):
    """Manager for Company queries."""
    
    def active(self):
        """Return only active companies."""
        return self.filter(is_active=True)
    
    def by_code(self, code):
        """Find company by its unique code."""
        return self.filter(code=code).first()


class Company(BaseModel):
    """
    A tenant of the platform.
    
    Users join companies through rbac.UserCompany memberships and receive
    roles and direct permissions inside each company separately.
    """
    
    name = models.CharField(
        max_length=200,
        help_text="Display name of the company"
    )
    code = models.CharField(
        max_length=50,
        unique=True,
        db_index=True,
        help_text="Short unique code (e.g., 'ACME')"
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Inactive companies reject every request"
    )
    
    objects = CompanyManager()
    
    class Meta:
        db_table = 'companies'
        ordering = ['name']
    
    def __str__(self):
        return f"{self.code} - {self.name}"
