from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import logging

logger = logging.getLogger(__name__)

WEAK_SECRET_MARKERS = ('change-me', 'insecure', 'dev-only')


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.core'
    verbose_name = 'Core'

    def ready(self):
        """
        Validate deployment settings when the server starts.

        Only runserver and gunicorn are checked, so that migrations, seeding
        and the test suite work with a partial configuration.
        """
        import sys
        if 'runserver' not in sys.argv and 'gunicorn' not in sys.argv[0]:
            return

        check_secret_key()
        warn_permissive_menu()

        logger.info("Startup validation passed")


def check_secret_key():
    """Refuse to serve production traffic with a missing or placeholder SECRET_KEY."""
    secret_key = getattr(settings, 'SECRET_KEY', None)
    if not secret_key:
        raise ImproperlyConfigured("SECRET_KEY must be set")

    if settings.DEBUG:
        return

    lowered = secret_key.lower()
    for marker in WEAK_SECRET_MARKERS:
        if marker in lowered:
            raise ImproperlyConfigured(
                f"SECRET_KEY looks like a placeholder (contains '{marker}'); "
                f"set a generated key before running with DEBUG=False"
            )


def warn_permissive_menu():
    """Anonymous callers get the unfiltered menu while this flag is on."""
    if getattr(settings, 'MENU_PERMISSIVE_IF_ANONYMOUS', False):
        logger.warning(
            "MENU_PERMISSIVE_IF_ANONYMOUS is enabled; anonymous requests to "
            "/v1/menu receive every active menu entry"
        )
