# clinic_core/messaging/services.py
from __future__ import annotations

import logging
from datetime import datetime

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from clinic_core.audit.services import AuditService
from clinic_core.common.context import Actor
from clinic_core.messaging import mail
from clinic_core.messaging.models import OutboxKind, OutboxMessage, OutboxStatus

logger = logging.getLogger(__name__)


def _max_attempts() -> int:
    return int(getattr(settings, "OUTBOX_MAX_ATTEMPTS", 5))


class OutboxService:
    @staticmethod
    def enqueue(
        *,
        recipients: list[str],
        subject: str,
        body: str = "",
        html_body: str = "",
        kind: str = OutboxKind.EMAIL,
        scheduled_at: datetime | None = None,
        created_by_id: int | None = None,
    ) -> OutboxMessage:
        return OutboxMessage.objects.create(
            kind=kind,
            recipients=list(recipients),
            subject=subject,
            body=body or "",
            html_body=html_body or "",
            scheduled_at=scheduled_at or timezone.now(),
            created_by_id=created_by_id,
        )

    @staticmethod
    def dispatch_due(*, limit: int = 100) -> dict[str, int]:
        """
        Deliver PENDING messages whose scheduled_at has passed.

        Each message is claimed and updated in its own transaction, so one bad
        message cannot hold back the batch. A failed send stays PENDING with
        last_error set until OUTBOX_MAX_ATTEMPTS is reached, then becomes FAILED.
        """
        now = timezone.now()
        due_ids = list(
            OutboxMessage.objects.filter(status=OutboxStatus.PENDING, scheduled_at__lte=now)
            .order_by("scheduled_at")
            .values_list("id", flat=True)[:limit]
        )

        stats = {"sent": 0, "retrying": 0, "failed": 0}
        for message_id in due_ids:
            outcome = OutboxService._dispatch_one(message_id)
            if outcome:
                stats[outcome] += 1
        return stats

    @staticmethod
    @transaction.atomic
    def _dispatch_one(message_id) -> str | None:
        message = (
            OutboxMessage.objects.select_for_update()
            .filter(id=message_id, status=OutboxStatus.PENDING)
            .first()
        )
        if message is None:
            # claimed by a concurrent dispatcher
            return None

        message.attempts += 1
        try:
            mail.deliver(message.recipients, message.subject, message.body, message.html_body or None)
        except Exception as exc:
            message.last_error = f"{type(exc).__name__}: {exc}"[:2000]
            if message.attempts >= _max_attempts():
                message.status = OutboxStatus.FAILED
                logger.error("Outbox message %s failed permanently: %s", message.id, message.last_error)
                outcome = "failed"
            else:
                logger.warning("Outbox message %s attempt %s failed", message.id, message.attempts)
                outcome = "retrying"
            message.save(update_fields=["attempts", "last_error", "status", "updated_at"])
            return outcome

        message.status = OutboxStatus.SENT
        message.sent_at = timezone.now()
        message.last_error = ""
        message.save(update_fields=["attempts", "last_error", "status", "sent_at", "updated_at"])
        return "sent"


class ReminderService:
    @staticmethod
    @transaction.atomic
    def create(
        *,
        actor: Actor,
        recipients: list[str],
        subject: str,
        message: str,
        send_at: datetime,
    ) -> OutboxMessage:
        if send_at <= timezone.now():
            raise ValidationError({"send_at": ["Reminder time must be in the future."]})

        to = mail._clean(recipients)
        if not to:
            raise ValidationError({"recipients": ["At least one recipient is required."]})

        reminder = OutboxService.enqueue(
            kind=OutboxKind.REMINDER,
            recipients=to,
            subject=subject,
            body=message,
            scheduled_at=send_at,
            created_by_id=actor.user_id,
        )

        AuditService.log(
            action="REMINDER_SCHEDULED",
            entity_type="Reminder",
            entity_id=reminder.id,
            actor=actor,
            after={"recipients": to, "subject": subject, "send_at": send_at.isoformat()},
        )
        return reminder
