# config/settings/test.py
from .base import *  # noqa

DEBUG = False
SECRET_KEY = "test-secret-key"
SIMPLE_JWT = {**SIMPLE_JWT, "SIGNING_KEY": SECRET_KEY}  # noqa: F405

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

ADMIN_NOTIFY_EMAILS = []
FRONTDESK_NOTIFY_EMAILS = []
MAIL_USE_OUTBOX = False
FRONTEND_URL = "http://frontend.test"

# let pytest caplog see application loggers
LOGGING = {
    **LOGGING,  # noqa: F405
    "loggers": {
        "django": {"level": "WARNING"},
        "clinic_core": {"level": "INFO", "propagate": True},
    },
}
