# clinic_core/appointments/models.py
from django.conf import settings
from django.db import models

from clinic_core.common.models import SoftDeleteModel


class AppointmentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"


class Appointment(SoftDeleteModel):
    patient = models.ForeignKey("patients.Patient", on_delete=models.PROTECT, related_name="appointments")
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="appointments",
    )

    date = models.DateField(db_index=True)
    timeslot = models.CharField(max_length=32, blank=True)
    service = models.CharField(max_length=255)
    reason = models.TextField(blank=True)

    status = models.CharField(
        max_length=16,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.PENDING,
        db_index=True,
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    class Meta:
        db_table = "appointments_appointment"
        indexes = [
            models.Index(fields=["doctor", "date"]),
            models.Index(fields=["patient", "date"]),
        ]

    def __str__(self) -> str:
        return f"{self.patient_id} @ {self.date} {self.timeslot} [{self.status}]"
