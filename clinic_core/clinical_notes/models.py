# clinic_core/clinical_notes/models.py
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from clinic_core.common.models import SoftDeleteModel, UUIDModel


class NoteStatus(models.TextChoices):
    APPROVED = "APPROVED", "Approved"


class SuggestionStatus(models.TextChoices):
    PENDING = "PENDING", "Pending review"
    APPROVED = "APPROVED", "Approved"


class ClinicalSuggestion(UUIDModel):
    """A nurse's proposed note, turned into a ClinicalNote once a doctor approves it."""
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="clinical_suggestions")
    suggested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    content = models.TextField()
    status = models.CharField(
        max_length=16, choices=SuggestionStatus.choices, default=SuggestionStatus.PENDING, db_index=True
    )

    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    approved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "clinical_suggestions"

    def __str__(self) -> str:
        return f"Suggestion {self.id} [{self.status}]"


class ClinicalNote(SoftDeleteModel):
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="clinical_notes")
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    observations = models.TextField(blank=True)
    doctor_notes = models.TextField(blank=True)
    treatment_plan = models.TextField(blank=True)
    extended_data = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    status = models.CharField(max_length=16, choices=NoteStatus.choices, default=NoteStatus.APPROVED)
    source_suggestion = models.OneToOneField(
        ClinicalSuggestion,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="note",
    )

    class Meta:
        db_table = "clinical_notes"
        indexes = [models.Index(fields=["patient", "created_at"])]

    def __str__(self) -> str:
        return f"Note {self.id} for {self.patient_id}"
