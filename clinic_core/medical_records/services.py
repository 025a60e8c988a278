# clinic_core/medical_records/services.py

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from django.db import transaction
from rest_framework.exceptions import ValidationError

from clinic_core.audit.services import AuditService, diff
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.services import apply_changes, soft_delete
from clinic_core.medical_records.models import MedicalRecord
from clinic_core.patients.models import Patient

UPDATABLE_FIELDS = {"type", "name", "notes", "diagnosed_at", "resolved_at", "severity"}


def _check_dates(diagnosed_at: Optional[datetime], resolved_at: Optional[datetime]) -> None:
    if diagnosed_at and resolved_at and resolved_at < diagnosed_at:
        raise ValidationError({"resolved_at": ["Cannot be earlier than diagnosed_at."]})


def _snapshot(record: MedicalRecord) -> dict[str, Any]:
    return {
        "patient_id": str(record.patient_id),
        "type": record.type,
        "name": record.name,
        "severity": record.severity,
        "diagnosed_at": record.diagnosed_at,
        "resolved_at": record.resolved_at,
    }


class MedicalRecordService:
    @staticmethod
    @transaction.atomic
    def create_record(
        *,
        actor: Actor,
        patient_id,
        type: str,
        name: str,
        notes: str = "",
        diagnosed_at: Optional[datetime] = None,
        resolved_at: Optional[datetime] = None,
        severity: str = "",
    ) -> MedicalRecord:
        patient = assert_exists(Patient, patient_id, label="Patient")
        _check_dates(diagnosed_at, resolved_at)

        record = MedicalRecord.objects.create(
            patient=patient,
            type=type,
            name=name,
            notes=notes or "",
            diagnosed_at=diagnosed_at,
            resolved_at=resolved_at,
            severity=severity or "",
            recorded_by_id=actor.user_id,
        )

        AuditService.log(
            action="MEDICAL_RECORD_CREATED",
            entity_type="MedicalRecord",
            entity_id=record.id,
            actor=actor,
            after=_snapshot(record),
        )
        return record

    @staticmethod
    @transaction.atomic
    def update_record(*, actor: Actor, record_id, data: dict) -> MedicalRecord:
        record = assert_exists(MedicalRecord, record_id, label="Medical record", lock=True)
        data = dict(data or {})
        _check_dates(
            data.get("diagnosed_at", record.diagnosed_at),
            data.get("resolved_at", record.resolved_at),
        )

        changes = apply_changes(record, data, UPDATABLE_FIELDS)
        if not changes:
            return record

        record.save()

        before, after = diff(changes)
        AuditService.log(
            action="MEDICAL_RECORD_UPDATED",
            entity_type="MedicalRecord",
            entity_id=record.id,
            actor=actor,
            before=before,
            after=after,
        )
        return record

    @staticmethod
    @transaction.atomic
    def delete_record(*, actor: Actor, record_id) -> None:
        record = soft_delete(MedicalRecord, record_id, actor=actor, label="Medical record")
        AuditService.log(
            action="MEDICAL_RECORD_DELETED",
            entity_type="MedicalRecord",
            entity_id=record.id,
            actor=actor,
            before=_snapshot(record),
        )
