# Export permission classes and decorators for easy importing
from apps.core.permissions import HasCompanyPermissions, requires_permissions

__all__ = ['HasCompanyPermissions', 'requires_permissions']
