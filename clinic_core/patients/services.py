# clinic_core/patients/services.py
from __future__ import annotations

import logging
import secrets
from datetime import date

from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from clinic_core.audit.services import AuditService, diff
from clinic_core.common.api.exceptions import ConflictError
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.roles import Role
from clinic_core.common.services import apply_changes, soft_delete
from clinic_core.messaging.mail import admin_recipients, notify_by_email
from clinic_core.patients.models import Patient, PatientStatus, RegistrationType

logger = logging.getLogger(__name__)

CODE_ATTEMPTS = 10
EMAIL_TAKEN = "A patient with this email already exists."

UPDATABLE_FIELDS = {
    "first_name",
    "last_name",
    "email",
    "phone",
    "date_of_birth",
    "gender",
    "address",
    "allergies",
    "medical_conditions",
    "emergency_contact",
}

# what a patient may change on their own record
SELF_SERVICE_FIELDS = frozenset({"email", "phone", "address", "emergency_contact"})


def assert_can_access_patient(patient: Patient, user) -> None:
    """Patient accounts may only reach the record linked to them."""
    if getattr(user, "role", None) != Role.PATIENT:
        return
    if patient.user_id != user.id:
        raise PermissionDenied("You may only access your own patient record.")


def generate_patient_code(year: int | None = None) -> str:
    """PAT-<year>-<6 random digits>. Uniqueness is checked by the caller."""
    year = year or timezone.now().year
    return f"PAT-{year}-{secrets.randbelow(10**6):06d}"


def _email_taken(email: str, *, exclude_id=None) -> bool:
    if not email:
        return False
    qs = Patient.objects.alive().filter(email__iexact=email)
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    return qs.exists()


def _snapshot(patient: Patient) -> dict:
    return {
        "patient_code": patient.patient_code,
        "first_name": patient.first_name,
        "last_name": patient.last_name,
        "email": patient.email,
        "phone": patient.phone,
        "status": patient.status,
    }


def _insert_with_code(**fields) -> Patient:
    """
    Insert a patient under a fresh code, retrying on collisions. Each attempt
    runs in a savepoint so a unique violation does not poison the outer
    transaction.
    """
    for _ in range(CODE_ATTEMPTS):
        code = generate_patient_code()
        if Patient.objects.filter(patient_code=code).exists():
            continue
        try:
            with transaction.atomic():
                return Patient.objects.create(patient_code=code, **fields)
        except IntegrityError:
            logger.info("Patient code collision on %s, retrying", code)
    raise ConflictError("Could not allocate a unique patient code. Please retry.")


def _link_account(patient: Patient, user_id) -> dict[str, tuple]:
    """Attach (or detach with None) the PATIENT portal account."""
    from django.contrib.auth import get_user_model

    before = patient.user_id
    if user_id is None:
        patient.user = None
    else:
        user = assert_exists(get_user_model(), user_id, label="User")
        if user.role != Role.PATIENT:
            raise ValidationError({"user_id": ["Only a PATIENT account can be linked to a patient record."]})
        if Patient.objects.alive().filter(user_id=user.id).exclude(id=patient.id).exists():
            raise ConflictError("This account is already linked to another patient.")
        patient.user = user

    return {} if before == patient.user_id else {"user_id": (before, patient.user_id)}


class PatientService:
    @staticmethod
    @transaction.atomic
    def create_patient(
        *,
        actor: Actor,
        first_name: str,
        last_name: str,
        email: str = "",
        phone: str = "",
        date_of_birth: date | None = None,
        gender: str = "",
        address: str = "",
        allergies: list | None = None,
        medical_conditions: list | None = None,
        emergency_contact: dict | None = None,
    ) -> Patient:
        email = (email or "").strip().lower()
        if _email_taken(email):
            raise ConflictError(EMAIL_TAKEN)

        patient = _insert_with_code(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone or "",
            date_of_birth=date_of_birth,
            gender=gender or "",
            address=address or "",
            allergies=allergies or [],
            medical_conditions=medical_conditions or [],
            emergency_contact=emergency_contact or {},
            status=PatientStatus.APPROVED,
            registration_type=RegistrationType.STAFF,
            created_by_id=actor.user_id,
            approved_by_id=actor.user_id,
            approved_at=timezone.now(),
        )

        AuditService.log(
            action="PATIENT_CREATED",
            entity_type="Patient",
            entity_id=patient.id,
            actor=actor,
            after=_snapshot(patient),
        )
        return patient

    @staticmethod
    @transaction.atomic
    def self_register(
        *,
        actor: Actor,
        first_name: str,
        last_name: str,
        email: str,
        phone: str = "",
        date_of_birth: date | None = None,
        gender: str = "",
        address: str = "",
        notify: bool = True,
    ) -> Patient:
        email = (email or "").strip().lower()
        if _email_taken(email):
            raise ConflictError(EMAIL_TAKEN)

        patient = _insert_with_code(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone or "",
            date_of_birth=date_of_birth,
            gender=gender or "",
            address=address or "",
            status=PatientStatus.PENDING,
            registration_type=RegistrationType.SELF,
        )

        AuditService.log(
            action="PATIENT_SELF_REGISTERED",
            entity_type="Patient",
            entity_id=patient.id,
            actor=actor,
            after=_snapshot(patient),
        )

        if notify:
            notify_by_email(
                [patient.email],
                "Registration received",
                (
                    f"Hello {patient.first_name},\n\n"
                    f"We have received your registration (ID {patient.patient_code}). "
                    "Our front desk will review it shortly."
                ),
            )
            notify_by_email(
                admin_recipients(),
                "New patient self-registration",
                f"{patient.full_name} ({patient.email}) registered as {patient.patient_code} and awaits approval.",
            )
        return patient

    @staticmethod
    @transaction.atomic
    def approve_patient(*, actor: Actor, patient_id) -> Patient:
        patient = assert_exists(Patient, patient_id, label="Patient", lock=True)
        if patient.status == PatientStatus.APPROVED:
            return patient

        patient.status = PatientStatus.APPROVED
        patient.approved_by_id = actor.user_id
        patient.approved_at = timezone.now()
        patient.save(update_fields=["status", "approved_by", "approved_at", "updated_at"])

        AuditService.log(
            action="PATIENT_APPROVED",
            entity_type="Patient",
            entity_id=patient.id,
            actor=actor,
            before={"status": PatientStatus.PENDING},
            after={"status": PatientStatus.APPROVED},
        )
        notify_by_email(
            [patient.email],
            "Registration approved",
            f"Hello {patient.first_name},\n\nYour registration ({patient.patient_code}) has been approved.",
        )
        return patient

    @staticmethod
    @transaction.atomic
    def update_patient(*, actor: Actor, patient_id, data: dict) -> Patient:
        patient = assert_exists(Patient, patient_id, label="Patient", lock=True)
        data = dict(data or {})

        if actor.role == Role.PATIENT:
            if patient.user_id != actor.user_id:
                raise PermissionDenied("You may only access your own patient record.")
            locked = sorted(set(data) - SELF_SERVICE_FIELDS)
            if locked:
                raise PermissionDenied(f"Patients cannot change: {', '.join(locked)}.")

        if "email" in data:
            data["email"] = (data["email"] or "").strip().lower()
            if _email_taken(data["email"], exclude_id=patient.id):
                raise ConflictError(EMAIL_TAKEN)

        changes = apply_changes(patient, data, UPDATABLE_FIELDS)
        if "user_id" in data:
            changes.update(_link_account(patient, data["user_id"]))
        if not changes:
            return patient

        patient.save()

        before, after = diff(changes)
        AuditService.log(
            action="PATIENT_UPDATED",
            entity_type="Patient",
            entity_id=patient.id,
            actor=actor,
            before=before,
            after=after,
        )
        return patient

    @staticmethod
    @transaction.atomic
    def delete_patient(*, actor: Actor, patient_id) -> None:
        patient = soft_delete(Patient, patient_id, actor=actor, label="Patient")
        AuditService.log(
            action="PATIENT_DELETED",
            entity_type="Patient",
            entity_id=patient.id,
            actor=actor,
            before=_snapshot(patient),
        )
