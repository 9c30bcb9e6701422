import os


os.environ.setdefault("DJANGO_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_PASSWORD", "test-admin-password")

from .settings import *  # noqa: E402,F401,F403


EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
BOOKING_EMAIL = "studio@example.com"
TIME_ZONE = "Europe/Berlin"
