# clinic_core/notifications/services.py

from __future__ import annotations

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from clinic_core.audit.services import AuditService
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.roles import Role
from clinic_core.common.services import soft_delete
from clinic_core.notifications.models import Notification, NotificationType
from clinic_core.notifications.selectors import owns
from clinic_core.patients.models import Patient


class NotificationService:
    @staticmethod
    @transaction.atomic
    def create_notification(
        *,
        actor: Actor,
        patient_id,
        title: str,
        message: str,
        type: str = NotificationType.SYSTEM,
    ) -> Notification:
        patient = assert_exists(Patient, patient_id, label="Patient")

        notification = Notification.objects.create(
            patient=patient,
            title=title,
            message=message,
            type=type or NotificationType.SYSTEM,
            created_by_id=actor.user_id,
        )

        AuditService.log(
            action="NOTIFICATION_CREATED",
            entity_type="Notification",
            entity_id=notification.id,
            actor=actor,
            after={"patient_id": str(patient.id), "title": title, "type": notification.type},
        )
        return notification

    @staticmethod
    @transaction.atomic
    def mark_read(*, actor: Actor, user, notification_id) -> Notification:
        """
        Idempotent. A PATIENT may only mark notifications on their own record.
        """
        notification = assert_exists(
            Notification,
            notification_id,
            label="Notification",
            queryset=Notification.objects.alive().select_related("patient"),
            lock=True,
        )
        if user.role == Role.PATIENT and not owns(notification, user):
            raise PermissionDenied("You can only mark your own notifications as read.")

        if notification.is_read:
            return notification

        notification.is_read = True
        notification.read_at = timezone.now()
        notification.save(update_fields=["is_read", "read_at", "updated_at"])
        return notification

    @staticmethod
    @transaction.atomic
    def delete_notification(*, actor: Actor, notification_id) -> None:
        notification = soft_delete(Notification, notification_id, actor=actor, label="Notification")
        AuditService.log(
            action="NOTIFICATION_DELETED",
            entity_type="Notification",
            entity_id=notification.id,
            actor=actor,
            before={"patient_id": str(notification.patient_id), "title": notification.title},
        )
