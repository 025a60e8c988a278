# clinic_core/audit/models.py
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from clinic_core.common.models import UUIDModel


class AuditEventImmutable(Exception):
    pass


class AuditEvent(UUIDModel):
    """
    Append-only audit record: who did what to which entity and when.
    Existing rows can be neither updated nor deleted through the ORM.
    """
    action = models.CharField(max_length=128, db_index=True)  # e.g. "PATIENT_CREATED"
    entity_type = models.CharField(max_length=128, db_index=True)  # e.g. "Patient"
    entity_id = models.CharField(max_length=64, db_index=True)

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="audit_events",
        null=True,
        blank=True,
    )
    actor_role = models.CharField(max_length=16, blank=True, default="SYSTEM")

    description = models.TextField(blank=True, default="")
    before = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    after = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    details = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=255, blank=True, default="")

    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "audit_audit_event"
        indexes = [
            models.Index(fields=["entity_type", "entity_id"]),
            models.Index(fields=["actor", "occurred_at"]),
            models.Index(fields=["action", "occurred_at"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AuditEventImmutable("Audit events are append-only.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AuditEventImmutable("Audit events are append-only.")
