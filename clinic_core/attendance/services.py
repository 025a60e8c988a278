# clinic_core/attendance/services.py
from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from clinic_core.appointments.models import Appointment
from clinic_core.attendance.models import ClientAttendance, ClockAction, StaffAttendance
from clinic_core.audit.services import AuditService
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.roles import STAFF

ALREADY_IN = "Staff already clocked in"
NO_CLOCK_IN = "No clock-in found for today"
ALREADY_OUT = "Already clocked out"


class AttendanceService:
    @staticmethod
    @transaction.atomic
    def clock(*, actor: Actor, staff_id: int, action: str) -> StaffAttendance:
        """
        IN creates today's row; OUT closes it. Two concurrent INs race on the
        (staff, work_date) unique constraint and the loser gets the same 400
        as a sequential repeat.
        """
        staff = assert_exists(get_user_model(), staff_id, label="Staff")
        if staff.role not in STAFF:
            raise ValidationError({"staff_id": ["User is not a staff member."]})

        now = timezone.now()
        today = timezone.localdate(now)

        if action == ClockAction.IN:
            if StaffAttendance.objects.filter(staff=staff, work_date=today).exists():
                raise ValidationError(ALREADY_IN)
            try:
                with transaction.atomic():
                    row = StaffAttendance.objects.create(
                        staff=staff,
                        work_date=today,
                        clock_in=now,
                        recorded_by_id=actor.user_id,
                    )
            except IntegrityError:
                raise ValidationError(ALREADY_IN)
        else:
            row = StaffAttendance.objects.select_for_update().filter(staff=staff, work_date=today).first()
            if row is None:
                raise ValidationError(NO_CLOCK_IN)
            if row.clock_out is not None:
                raise ValidationError(ALREADY_OUT)
            row.clock_out = now
            row.save(update_fields=["clock_out", "updated_at"])

        AuditService.log(
            action=f"STAFF_CLOCK_{action}",
            entity_type="StaffAttendance",
            entity_id=row.id,
            actor=actor,
            details={"staff_id": staff.id, "work_date": today, "at": now},
        )
        return row

    @staticmethod
    @transaction.atomic
    def mark_client(*, actor: Actor, appointment_id, status: str) -> ClientAttendance:
        appointment = assert_exists(Appointment, appointment_id, label="Appointment")

        row, created = ClientAttendance.objects.update_or_create(
            appointment=appointment,
            defaults={"status": status, "marked_by_id": actor.user_id, "marked_at": timezone.now()},
        )

        AuditService.log(
            action="CLIENT_ATTENDANCE_MARKED",
            entity_type="ClientAttendance",
            entity_id=row.id,
            actor=actor,
            after={"appointment_id": str(appointment.id), "status": status},
            details={"created": created},
        )
        return row
