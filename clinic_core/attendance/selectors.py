from __future__ import annotations

from django.db.models import QuerySet

from clinic_core.attendance.models import ClientAttendance, StaffAttendance


def list_staff_attendance(*, staff_id: int | None = None, date=None) -> QuerySet[StaffAttendance]:
    qs = StaffAttendance.objects.select_related("staff")
    if staff_id:
        qs = qs.filter(staff_id=staff_id)
    if date:
        qs = qs.filter(work_date=date)
    return qs.order_by("-work_date", "-clock_in")


def list_client_attendance(*, status: str | None = None, appointment_id=None) -> QuerySet[ClientAttendance]:
    qs = ClientAttendance.objects.select_related("appointment", "appointment__patient")
    if status:
        qs = qs.filter(status=status)
    if appointment_id:
        qs = qs.filter(appointment_id=appointment_id)
    return qs.order_by("-marked_at")
