# clinic_core/appointments/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from clinic_core.appointments.models import Appointment
from clinic_core.common.api.pagination import search_q


def _base() -> QuerySet[Appointment]:
    return Appointment.objects.alive().select_related("patient", "doctor")


def list_appointments(
    *,
    status: str | None = None,
    doctor_id: int | None = None,
    patient_id=None,
    date_from=None,
    date_to=None,
    q: str | None = None,
) -> QuerySet[Appointment]:
    qs = _base()
    if status:
        qs = qs.filter(status=status)
    if doctor_id:
        qs = qs.filter(doctor_id=doctor_id)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if date_from:
        qs = qs.filter(date__gte=date_from)
    if date_to:
        qs = qs.filter(date__lte=date_to)
    qs = search_q(qs, q, ["reason", "service"])
    return qs.order_by("-date", "-created_at")


def appointments_for_user(user) -> QuerySet[Appointment]:
    """Appointments of the patient record linked to a portal account."""
    return _base().filter(patient__user_id=user.id, patient__deleted_at__isnull=True).order_by("-date", "-created_at")
