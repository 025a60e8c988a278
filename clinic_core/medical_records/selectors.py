from __future__ import annotations

from django.db.models import QuerySet

from clinic_core.medical_records.models import MedicalRecord


def records_for_patient(*, patient_id, type: str | None = None) -> QuerySet[MedicalRecord]:
    qs = MedicalRecord.objects.alive().filter(patient_id=patient_id)
    if type:
        qs = qs.filter(type=type)
    return qs.order_by("-created_at")
