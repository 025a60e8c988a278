# clinic_core/medical_records/models.py
from django.conf import settings
from django.db import models

from clinic_core.common.models import SoftDeleteModel


class RecordType(models.TextChoices):
    HISTORY = "HISTORY", "Medical history"
    ALLERGY = "ALLERGY", "Allergy"


class AllergySeverity(models.TextChoices):
    MILD = "MILD", "Mild"
    MODERATE = "MODERATE", "Moderate"
    SEVERE = "SEVERE", "Severe"


class MedicalRecord(SoftDeleteModel):
    """One history or allergy entry on a patient's chart."""
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="medical_records")
    type = models.CharField(max_length=16, choices=RecordType.choices)
    name = models.CharField(max_length=255)
    notes = models.TextField(blank=True)

    diagnosed_at = models.DateTimeField(null=True, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    severity = models.CharField(max_length=16, choices=AllergySeverity.choices, blank=True)

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    class Meta:
        db_table = "medical_records"
        indexes = [
            models.Index(fields=["patient", "type"]),
        ]

    def __str__(self) -> str:
        return f"{self.get_type_display()}: {self.name}"
