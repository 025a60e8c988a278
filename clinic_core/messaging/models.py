# clinic_core/messaging/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

from clinic_core.common.models import UUIDModel


class OutboxStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    SENT = "SENT", "Sent"
    FAILED = "FAILED", "Failed"


class OutboxKind(models.TextChoices):
    EMAIL = "EMAIL", "Email"
    REMINDER = "REMINDER", "Reminder"


class OutboxMessage(UUIDModel):
    """
    Durable record of an outbound email. Written in the same transaction as
    the mutation that caused it and drained by `manage.py dispatch_outbox`.
    Reminders are the same thing with a future scheduled_at.
    """
    kind = models.CharField(max_length=16, choices=OutboxKind.choices, default=OutboxKind.EMAIL, db_index=True)
    recipients = models.JSONField(default=list)
    subject = models.CharField(max_length=255)
    body = models.TextField(blank=True, default="")
    html_body = models.TextField(blank=True, default="")

    status = models.CharField(
        max_length=16,
        choices=OutboxStatus.choices,
        default=OutboxStatus.PENDING,
        db_index=True,
    )
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, default="")

    scheduled_at = models.DateTimeField(default=timezone.now, db_index=True)
    sent_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        db_table = "messaging_outbox_message"
        indexes = [
            models.Index(fields=["status", "scheduled_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.kind} {self.subject} -> {', '.join(self.recipients)} [{self.status}]"
