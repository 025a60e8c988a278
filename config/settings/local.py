# config/settings/local.py
from .base import *  # noqa

DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"  # noqa: F405

# Development
CORS_ALLOW_ALL_ORIGINS = True  # Only for development!

if os.getenv("SMTP_HOST") is None:  # noqa: F405
    EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"
