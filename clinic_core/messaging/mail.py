# clinic_core/messaging/mail.py
from __future__ import annotations

import logging
from typing import Iterable

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction

logger = logging.getLogger(__name__)


def _clean(recipients: Iterable[str | None]) -> list[str]:
    seen: list[str] = []
    for r in recipients or []:
        r = (r or "").strip()
        if r and r not in seen:
            seen.append(r)
    return seen


def deliver(recipients: list[str], subject: str, text: str, html: str | None = None) -> None:
    """Send now through the configured EMAIL_BACKEND. Raises on transport failure."""
    send_mail(
        subject,
        text,
        settings.DEFAULT_FROM_EMAIL,
        recipients,
        html_message=html or None,
        fail_silently=False,
    )


def send_safely(recipients: list[str], subject: str, text: str, html: str | None = None) -> bool:
    try:
        deliver(recipients, subject, text, html)
    except Exception:
        logger.warning("Email '%s' to %s failed", subject, recipients, exc_info=True)
        return False
    return True


def notify_by_email(recipients: Iterable[str | None], subject: str, text: str, html: str | None = None) -> None:
    """
    Best-effort notification tied to the caller's transaction.

    Default: sent after commit; failures are logged, never raised, so the
    mutation that triggered it is unaffected. With MAIL_USE_OUTBOX the message
    is persisted in the same transaction and dispatched later.
    """
    to = _clean(recipients)
    if not to:
        return

    if getattr(settings, "MAIL_USE_OUTBOX", False):
        from clinic_core.messaging.services import OutboxService

        try:
            with transaction.atomic():
                OutboxService.enqueue(recipients=to, subject=subject, body=text, html_body=html or "")
        except Exception:
            logger.warning("Could not queue email '%s' to %s", subject, to, exc_info=True)
        return

    transaction.on_commit(lambda: send_safely(to, subject, text, html))


def role_recipients(*roles: str, extra: Iterable[str] = ()) -> list[str]:
    """Emails of live, active users holding any of roles, plus configured extras."""
    from django.contrib.auth import get_user_model

    emails = get_user_model().objects.alive().filter(role__in=roles, is_active=True).values_list("email", flat=True)
    return _clean([*emails, *extra])


def admin_recipients() -> list[str]:
    return role_recipients("ADMIN", "SUPERADMIN", extra=getattr(settings, "ADMIN_NOTIFY_EMAILS", []))


def frontdesk_recipients() -> list[str]:
    return role_recipients("FRONTDESK", extra=getattr(settings, "FRONTDESK_NOTIFY_EMAILS", []))
