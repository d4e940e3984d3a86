"""
Management command to seed the default navigation menu.

Entries are matched by url, so the command is idempotent and safe to re-run.
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from apps.menus.models import Menu, ROOT_PARENT_ID


class Command(BaseCommand):
    help = 'Seed default navigation menu (idempotent)'

    # (url, name, icon, order, permission_key, children)
    DEFAULT_MENU = [
        ('/dashboard', 'Dashboard', 'home', 1, None, []),
        ('/inventory', 'Inventory', 'box', 2, 'inventory.view', [
            ('/inventory/items', 'Items', 'list', 1, 'inventory.view'),
            ('/inventory/labels', 'Labels', 'tag', 2, 'inventory.labels.print'),
        ]),
        ('/reports', 'Reports', 'bar-chart', 3, 'reports.view', [
            ('/reports/catalog', 'Report Catalog', 'book', 1, 'reports.view'),
            ('/reports/financial', 'Financial', 'dollar-sign', 2, 'reports.financial.view'),
        ]),
        ('/security', 'Security', 'shield', 4, 'security.users.view', [
            ('/security/users', 'Users', 'users', 1, 'security.users.view'),
            ('/security/roles', 'Roles', 'key', 2, 'security.roles.view'),
            ('/security/permissions', 'Permissions', 'lock', 3, 'security.permissions.view'),
            ('/security/audit', 'Audit Log', 'clipboard', 4, 'security.audit.view'),
        ]),
        ('/settings', 'Settings', 'settings', 5, 'settings.view', []),
    ]

    @transaction.atomic
    def handle(self, *args, **options):
        created_count = 0

        self.stdout.write('Seeding navigation menu...\n')

        for url, name, icon, order, permission_key, children in self.DEFAULT_MENU:
            parent, created = self._upsert(ROOT_PARENT_ID, url, name, icon, order, permission_key)
            created_count += int(created)

            for child_url, child_name, child_icon, child_order, child_key in children:
                _, child_created = self._upsert(
                    parent.pk, child_url, child_name, child_icon, child_order, child_key
                )
                created_count += int(child_created)

        self.stdout.write(
            self.style.SUCCESS(
                f'✓ Seeding complete: {created_count} created, '
                f'{Menu.objects.count()} menu entries total'
            )
        )

    def _upsert(self, parent_id, url, name, icon, order, permission_key):
        menu, created = Menu.objects.update_or_create(
            url=url,
            defaults={
                'parent_id': parent_id,
                'name': name,
                'icon': icon,
                'order': order,
                'permission_key': permission_key,
            }
        )
        label = 'Created' if created else 'Exists'
        self.stdout.write(f'  {label}: {menu.url}')
        return menu, created
