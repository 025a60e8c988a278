# clinic_core/attendance/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

from clinic_core.common.models import UUIDModel


class ClockAction(models.TextChoices):
    IN = "IN", "Clock in"
    OUT = "OUT", "Clock out"


class ClientAttendanceStatus(models.TextChoices):
    ATTENDED = "ATTENDED", "Attended"
    NO_SHOW = "NO_SHOW", "No show"


class StaffAttendance(UUIDModel):
    """One row per staff member per working day; clock_out is filled on OUT."""
    staff = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="attendance")
    work_date = models.DateField(db_index=True)
    clock_in = models.DateTimeField()
    clock_out = models.DateTimeField(null=True, blank=True)

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    class Meta:
        db_table = "attendance_staff"
        constraints = [
            models.UniqueConstraint(fields=["staff", "work_date"], name="uq_staff_attendance_day"),
        ]

    def __str__(self) -> str:
        return f"{self.staff_id} {self.work_date} {self.clock_in:%H:%M}-{self.clock_out or ''}"


class ClientAttendance(UUIDModel):
    appointment = models.OneToOneField(
        "appointments.Appointment", on_delete=models.CASCADE, related_name="attendance"
    )
    status = models.CharField(max_length=16, choices=ClientAttendanceStatus.choices, db_index=True)
    marked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    marked_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "attendance_client"

    def __str__(self) -> str:
        return f"{self.appointment_id} {self.status}"
