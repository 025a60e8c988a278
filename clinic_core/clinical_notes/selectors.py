from __future__ import annotations

from django.db.models import QuerySet

from clinic_core.clinical_notes.models import ClinicalNote, ClinicalSuggestion
from clinic_core.common.api.pagination import search_q


def list_notes(*, patient_id=None, q: str | None = None) -> QuerySet[ClinicalNote]:
    qs = ClinicalNote.objects.alive().select_related("author")
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    qs = search_q(qs, q, ["observations", "doctor_notes"])
    return qs.order_by("-created_at")


def list_suggestions(*, status: str | None = None, patient_id=None) -> QuerySet[ClinicalSuggestion]:
    qs = ClinicalSuggestion.objects.filter(patient__deleted_at__isnull=True)
    if status:
        qs = qs.filter(status=status)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return qs.order_by("-created_at")
