"""
Tests for the seed_permissions management command.
"""
from io import StringIO

import pytest
from django.core.management import call_command

from apps.rbac.management.commands.seed_permissions import Command
from apps.rbac.models import Permission, Role, RolePermission


@pytest.mark.django_db
class TestSeedPermissions:

    def test_seeds_catalog_and_roles(self):
        call_command('seed_permissions', stdout=StringIO())

        assert Permission.objects.count() == len(Command.CANONICAL_PERMISSIONS)
        assert set(Role.objects.values_list('name', flat=True)) == set(Command.DEFAULT_ROLES)
        administrator = Role.objects.by_name('Administrator')
        assert administrator.is_system is True
        assert administrator.role_permissions.count() == len(Command.CANONICAL_PERMISSIONS)

    def test_is_idempotent(self):
        call_command('seed_permissions', stdout=StringIO())
        counts = (Permission.objects.count(), Role.objects.count(), RolePermission.objects.count())

        call_command('seed_permissions', stdout=StringIO())

        assert (Permission.objects.count(), Role.objects.count(), RolePermission.objects.count()) == counts

    def test_renamed_permission_is_updated(self):
        call_command('seed_permissions', '--skip-roles', stdout=StringIO())
        Permission.objects.filter(key='inventory.view').update(name='Old name')

        call_command('seed_permissions', '--skip-roles', stdout=StringIO())

        assert Permission.objects.by_key('inventory.view').name != 'Old name'

    def test_skip_roles(self):
        call_command('seed_permissions', '--skip-roles', stdout=StringIO())

        assert Permission.objects.exists()
        assert not Role.objects.exists()
