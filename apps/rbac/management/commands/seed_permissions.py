"""
Management command to seed canonical permissions and default roles.

Creates all global Permission records that define available access controls
across the system, plus the default roles and their permission mappings.
This command is idempotent and safe to re-run.
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from apps.rbac.models import Permission, Role, RolePermission


class Command(BaseCommand):
    help = 'Seed canonical permissions and default roles (idempotent)'

    # Canonical permissions; the module is the key prefix before the first dot
    CANONICAL_PERMISSIONS = [
        # Security administration
        {
            'key': 'security.users.view',
            'name': 'View User Access',
            'description': 'View roles, permissions and authorization summaries of users',
        },
        {
            'key': 'security.users.manage',
            'name': 'Manage User Access',
            'description': 'Assign roles and grant or deny permissions to users',
        },
        {
            'key': 'security.roles.view',
            'name': 'View Roles',
            'description': 'View roles and their permissions',
        },
        {
            'key': 'security.roles.manage',
            'name': 'Manage Roles',
            'description': 'Change the permissions carried by roles',
        },
        {
            'key': 'security.permissions.view',
            'name': 'View Permissions',
            'description': 'View the permission catalog',
        },
        {
            'key': 'security.audit.view',
            'name': 'View Audit Log',
            'description': 'View the audit trail of access changes',
        },

        # Inventory
        {
            'key': 'inventory.view',
            'name': 'View Inventory',
            'description': 'View items and stock levels',
        },
        {
            'key': 'inventory.edit',
            'name': 'Edit Inventory',
            'description': 'Create and update items',
        },
        {
            'key': 'inventory.delete',
            'name': 'Delete Inventory',
            'description': 'Delete items',
        },
        {
            'key': 'inventory.labels.print',
            'name': 'Print Labels',
            'description': 'Print item labels',
        },

        # Reports
        {
            'key': 'reports.view',
            'name': 'View Reports',
            'description': 'Open the report catalog',
        },
        {
            'key': 'reports.financial.view',
            'name': 'View Financial Reports',
            'description': 'Open financial reports',
        },

        # Settings
        {
            'key': 'settings.view',
            'name': 'View Settings',
            'description': 'View company settings',
        },
        {
            'key': 'settings.edit',
            'name': 'Edit Settings',
            'description': 'Change company settings',
        },
    ]

    # Default role definitions with their permission mappings
    DEFAULT_ROLES = {
        'Administrator': {
            'description': 'Full access to all company features and settings',
            'permissions': 'ALL',  # Special marker for all permissions
        },
        'Security Manager': {
            'description': 'Manages user access',
            'permissions': [
                'security.users.view', 'security.users.manage',
                'security.roles.view', 'security.permissions.view',
                'security.audit.view',
            ],
        },
        'Manager': {
            'description': 'Runs daily operations',
            'permissions': [
                'inventory.view', 'inventory.edit', 'inventory.delete',
                'inventory.labels.print', 'reports.view', 'settings.view',
            ],
        },
        'Viewer': {
            'description': 'Read-only access to operational data',
            'permissions': [
                'inventory.view', 'reports.view',
            ],
        },
    }

    def add_arguments(self, parser):
        parser.add_argument(
            '--skip-roles',
            action='store_true',
            help='Seed permissions only',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        """Create or update all canonical permissions, then default roles."""
        self.seed_permissions()
        if not options.get('skip_roles'):
            self.seed_roles()

        self.stdout.write(f'\nTotal permissions: {Permission.objects.count()}')
        self.stdout.write(f'Total roles: {Role.objects.count()}')

    def seed_permissions(self):
        created_count = 0
        updated_count = 0

        self.stdout.write('Seeding canonical permissions...\n')

        for perm_data in self.CANONICAL_PERMISSIONS:
            permission, created = Permission.objects.get_or_create_permission(
                key=perm_data['key'],
                name=perm_data['name'],
                description=perm_data['description'],
            )

            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f'✓ Created: {permission.key}'))
                continue

            if (permission.name, permission.description) != (perm_data['name'], perm_data['description']):
                permission.name = perm_data['name']
                permission.description = perm_data['description']
                permission.save(update_fields=['name', 'description', 'updated_at'])
                updated_count += 1
                self.stdout.write(self.style.WARNING(f'↻ Updated: {permission.key}'))

        self.stdout.write(
            self.style.SUCCESS(
                f'✓ Permissions: {created_count} created, {updated_count} updated, '
                f'{len(self.CANONICAL_PERMISSIONS) - created_count - updated_count} unchanged'
            )
        )

    def seed_roles(self):
        self.stdout.write('\nSeeding default roles...\n')

        for role_name, role_data in self.DEFAULT_ROLES.items():
            role, created = Role.objects.get_or_create_role(
                name=role_name,
                description=role_data['description'],
                is_system=True,
            )

            if role_data['permissions'] == 'ALL':
                permissions = Permission.objects.active()
            else:
                permissions = Permission.objects.filter(key__in=role_data['permissions'])

            added = 0
            for permission in permissions:
                _, perm_created = RolePermission.objects.get_or_create(
                    role=role,
                    permission=permission,
                    defaults={'is_allowed': True},
                )
                if perm_created:
                    added += 1

            status_label = 'Created' if created else 'Exists'
            self.stdout.write(
                self.style.SUCCESS(f'✓ {status_label}: {role.name} (+{added} permissions)')
            )
