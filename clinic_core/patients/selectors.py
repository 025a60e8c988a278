# clinic_core/patients/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from clinic_core.common.api.pagination import search_q
from clinic_core.patients.models import Patient

SEARCH_FIELDS = ["first_name", "last_name", "email", "phone", "patient_code"]


def search_patients(*, q: str | None = None, status: str | None = None) -> QuerySet[Patient]:
    qs = search_q(Patient.objects.alive(), q, SEARCH_FIELDS)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-created_at")


def patient_for_user(user) -> Patient | None:
    """The live patient record linked to a portal account, if any."""
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return Patient.objects.alive().filter(user_id=user.id).first()


def find_live_by_email(email: str) -> Patient | None:
    email = (email or "").strip()
    if not email:
        return None
    return Patient.objects.alive().filter(email__iexact=email).order_by("created_at").first()
