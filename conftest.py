"""
Pytest configuration and fixtures.
"""
import pytest
from django.conf import settings
import django
from django.core.management import call_command


def pytest_configure(config):
    """Configure Django settings for tests."""
    settings.DATABASES['default'] = {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        'ATOMIC_REQUESTS': False,
    }
    settings.SECURE_SSL_REDIRECT = False
    django.setup()


@pytest.fixture(scope='session')
def django_db_setup(django_db_setup, django_db_blocker):
    """Set up test database tables for apps without migrations."""
    with django_db_blocker.unblock():
        call_command('migrate', '--run-syncdb', verbosity=0)


@pytest.fixture
def api_factory():
    """Return DRF request factory."""
    from rest_framework.test import APIRequestFactory
    return APIRequestFactory()


@pytest.fixture
def company(db):
    """Create a test company."""
    from apps.companies.models import Company
    return Company.objects.create(name='Test Company', code='TEST')


@pytest.fixture
def other_company(db):
    """Create another test company for isolation tests."""
    from apps.companies.models import Company
    return Company.objects.create(name='Other Company', code='OTHER')


@pytest.fixture
def user(db):
    """Create a test user."""
    from apps.rbac.models import User
    return User.objects.create_user(email='user@example.com', display_name='Test User')


@pytest.fixture
def admin_user(db):
    """Create the acting administrator."""
    from apps.rbac.models import User
    return User.objects.create_user(email='admin@example.com', display_name='Admin User')


@pytest.fixture
def membership(db, user, company):
    """Make user a member of company."""
    from apps.rbac.models import UserCompany
    return UserCompany.objects.create(user=user, company=company)


@pytest.fixture
def admin_membership(db, admin_user, company):
    """Make admin_user a member of company."""
    from apps.rbac.models import UserCompany
    return UserCompany.objects.create(user=admin_user, company=company)


@pytest.fixture
def make_permission(db):
    """Factory for permissions."""
    from apps.rbac.models import Permission

    def _make(key, name=None, is_active=True):
        return Permission.objects.create(key=key, name=name or key, is_active=is_active)

    return _make


@pytest.fixture
def make_role(db):
    """Factory for roles carrying the given permissions."""
    from apps.rbac.models import Role, RolePermission

    def _make(name, permissions=(), is_active=True, is_system=False):
        role = Role.objects.create(name=name, is_active=is_active, is_system=is_system)
        for permission in permissions:
            RolePermission.objects.create(role=role, permission=permission)
        return role

    return _make
