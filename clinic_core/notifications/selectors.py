from __future__ import annotations

from django.db.models import QuerySet

from clinic_core.notifications.models import Notification


def list_notifications(
    *,
    type: str | None = None,
    is_read: bool | None = None,
    patient_id=None,
) -> QuerySet[Notification]:
    qs = Notification.objects.alive()
    if type:
        qs = qs.filter(type=type)
    if is_read is not None:
        qs = qs.filter(is_read=is_read)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return qs.order_by("-created_at")


def notifications_for_user(user, *, is_read: bool | None = None) -> QuerySet[Notification]:
    """Notifications on the patient record linked to this account."""
    qs = Notification.objects.alive().filter(patient__user_id=user.id, patient__deleted_at__isnull=True)
    if is_read is not None:
        qs = qs.filter(is_read=is_read)
    return qs.order_by("-created_at")


def owns(notification: Notification, user) -> bool:
    return notification.patient.user_id == user.id
