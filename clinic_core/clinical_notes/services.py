# clinic_core/clinical_notes/services.py

from __future__ import annotations

from typing import Any, Optional

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from clinic_core.audit.services import AuditService, diff
from clinic_core.clinical_notes.models import (
    ClinicalNote,
    ClinicalSuggestion,
    NoteStatus,
    SuggestionStatus,
)
from clinic_core.common.api.exceptions import ConflictError
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.roles import ADMINS, Role
from clinic_core.common.services import apply_changes, soft_delete
from clinic_core.messaging.mail import notify_by_email, role_recipients
from clinic_core.patients.models import Patient

TEXT_FIELDS = {"observations", "doctor_notes", "treatment_plan"}


def merge_extended(current: Optional[dict], incoming: Optional[dict]) -> dict:
    """Shallow merge: incoming keys win, keys it does not mention survive."""
    merged = dict(current or {})
    merged.update(incoming or {})
    return merged


def _snapshot(note: ClinicalNote) -> dict[str, Any]:
    return {
        "patient_id": str(note.patient_id),
        "observations": note.observations,
        "doctor_notes": note.doctor_notes,
        "treatment_plan": note.treatment_plan,
        "extended_data": note.extended_data,
    }


class ClinicalNoteService:
    @staticmethod
    @transaction.atomic
    def create_note(
        *,
        actor: Actor,
        patient_id,
        observations: str = "",
        doctor_notes: str = "",
        treatment_plan: str = "",
        extended_data: Optional[dict] = None,
    ) -> ClinicalNote:
        patient = assert_exists(Patient, patient_id, label="Patient")

        note = ClinicalNote.objects.create(
            patient=patient,
            author_id=actor.user_id,
            observations=observations or "",
            doctor_notes=doctor_notes or "",
            treatment_plan=treatment_plan or "",
            extended_data=merge_extended({}, extended_data),
            status=NoteStatus.APPROVED,
        )

        AuditService.log(
            action="CLINICAL_NOTE_CREATED",
            entity_type="ClinicalNote",
            entity_id=note.id,
            actor=actor,
            after=_snapshot(note),
        )
        return note

    @staticmethod
    @transaction.atomic
    def update_note(*, actor: Actor, note_id, data: dict) -> ClinicalNote:
        """Doctors edit their own notes; admins edit any. extended_data is merged."""
        note = assert_exists(ClinicalNote, note_id, label="Clinical note", lock=True)
        if actor.role not in ADMINS and note.author_id != actor.user_id:
            raise PermissionDenied("You can only update your own notes.")

        data = dict(data or {})
        if "extended_data" in data:
            data["extended_data"] = merge_extended(note.extended_data, data["extended_data"])

        changes = apply_changes(note, data, TEXT_FIELDS | {"extended_data"})
        if not changes:
            return note

        note.save()

        before, after = diff(changes)
        AuditService.log(
            action="CLINICAL_NOTE_UPDATED",
            entity_type="ClinicalNote",
            entity_id=note.id,
            actor=actor,
            before=before,
            after=after,
        )
        return note

    @staticmethod
    @transaction.atomic
    def delete_note(*, actor: Actor, note_id) -> None:
        note = soft_delete(ClinicalNote, note_id, actor=actor, label="Clinical note")
        AuditService.log(
            action="CLINICAL_NOTE_DELETED",
            entity_type="ClinicalNote",
            entity_id=note.id,
            actor=actor,
            before=_snapshot(note),
        )


class ClinicalSuggestionService:
    @staticmethod
    @transaction.atomic
    def create_suggestion(*, actor: Actor, patient_id, content: str) -> ClinicalSuggestion:
        patient = assert_exists(Patient, patient_id, label="Patient")

        suggestion = ClinicalSuggestion.objects.create(
            patient=patient,
            suggested_by_id=actor.user_id,
            content=content,
            status=SuggestionStatus.PENDING,
        )

        AuditService.log(
            action="CLINICAL_SUGGESTION_CREATED",
            entity_type="ClinicalSuggestion",
            entity_id=suggestion.id,
            actor=actor,
            after={"patient_id": str(patient.id), "status": suggestion.status},
        )
        notify_by_email(
            role_recipients(Role.DOCTOR),
            "New clinical suggestion",
            f"A clinical suggestion for {patient.full_name} ({patient.patient_code}) awaits review.\n\n{content}",
        )
        return suggestion

    @staticmethod
    @transaction.atomic
    def approve_suggestion(
        *,
        actor: Actor,
        suggestion_id,
        doctor_notes: str = "",
        treatment_plan: str = "",
        extended_data: Optional[dict] = None,
    ) -> ClinicalNote:
        """
        Approve and materialize as a note in one transaction: either both the
        status flip and the note exist afterwards, or neither does.
        """
        suggestion = assert_exists(
            ClinicalSuggestion,
            suggestion_id,
            label="Suggestion",
            queryset=ClinicalSuggestion.objects.filter(patient__deleted_at__isnull=True),
            lock=True,
        )
        if suggestion.status == SuggestionStatus.APPROVED:
            raise ConflictError("Suggestion is already approved.")

        suggestion.status = SuggestionStatus.APPROVED
        suggestion.approved_by_id = actor.user_id
        suggestion.approved_at = timezone.now()
        suggestion.save(update_fields=["status", "approved_by", "approved_at", "updated_at"])

        note = ClinicalNote.objects.create(
            patient_id=suggestion.patient_id,
            author_id=actor.user_id,
            observations=suggestion.content,
            doctor_notes=doctor_notes or "",
            treatment_plan=treatment_plan or "",
            extended_data=merge_extended({}, extended_data),
            status=NoteStatus.APPROVED,
            source_suggestion=suggestion,
        )

        AuditService.log(
            action="CLINICAL_SUGGESTION_APPROVED",
            entity_type="ClinicalSuggestion",
            entity_id=suggestion.id,
            actor=actor,
            before={"status": SuggestionStatus.PENDING},
            after={"status": SuggestionStatus.APPROVED},
            details={"note_id": str(note.id)},
        )
        return note
