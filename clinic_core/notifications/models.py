# clinic_core/notifications/models.py
from django.conf import settings
from django.db import models

from clinic_core.common.models import SoftDeleteModel


class NotificationType(models.TextChoices):
    SYSTEM = "SYSTEM", "System"
    APPOINTMENT = "APPOINTMENT", "Appointment"
    BILLING = "BILLING", "Billing"
    TASK = "TASK", "Task"
    GENERAL = "GENERAL", "General"


class Notification(SoftDeleteModel):
    """In-app message addressed to a patient, read through the patient portal."""
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="notifications")
    title = models.CharField(max_length=255)
    message = models.TextField()
    type = models.CharField(
        max_length=16, choices=NotificationType.choices, default=NotificationType.SYSTEM, db_index=True
    )

    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    class Meta:
        db_table = "notifications_notification"
        indexes = [models.Index(fields=["patient", "is_read"])]

    def __str__(self) -> str:
        return f"{self.type}: {self.title}"
