# clinic_core/appointments/services.py

from __future__ import annotations

import datetime
import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework.exceptions import ValidationError

from clinic_core.appointments.models import Appointment, AppointmentStatus
from clinic_core.audit.services import AuditService, diff
from clinic_core.common.api.exceptions import ConflictError
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.roles import ASSIGNABLE_DOCTOR_ROLES
from clinic_core.common.services import apply_changes, soft_delete
from clinic_core.messaging.mail import frontdesk_recipients, notify_by_email
from clinic_core.patients.models import Patient, PatientStatus
from clinic_core.patients.selectors import find_live_by_email
from clinic_core.patients.services import PatientService

logger = logging.getLogger(__name__)

User = get_user_model()

S = AppointmentStatus

# target -> (allowed sources, no-op source)
TRANSITIONS: dict[str, tuple[frozenset, str]] = {
    S.CONFIRMED: (frozenset({S.PENDING}), S.CONFIRMED),
    S.CANCELLED: (frozenset({S.PENDING, S.CONFIRMED}), S.CANCELLED),
    S.COMPLETED: (frozenset({S.CONFIRMED}), S.COMPLETED),
}

TRANSITION_ACTIONS = {
    S.CONFIRMED: "APPOINTMENT_APPROVED",
    S.CANCELLED: "APPOINTMENT_CANCELLED",
    S.COMPLETED: "APPOINTMENT_COMPLETED",
}


def _resolve_doctor(doctor_id: Optional[int]):
    if doctor_id is None:
        return None
    doctor = assert_exists(User, doctor_id, label="Doctor")
    if doctor.role not in ASSIGNABLE_DOCTOR_ROLES or not doctor.is_active:
        raise ValidationError({"doctor_id": ["Selected user cannot be assigned appointments."]})
    return doctor


def _describe(appt: Appointment) -> str:
    slot = f" ({appt.timeslot})" if appt.timeslot else ""
    return f"{appt.service} on {appt.date:%Y-%m-%d}{slot}"


def _notify_created(appt: Appointment) -> None:
    patient = appt.patient
    notify_by_email(
        [patient.email],
        "Appointment request received",
        f"Hello {patient.first_name},\n\nYour appointment for {_describe(appt)} has been received and is pending confirmation.",
    )
    if appt.doctor is not None:
        notify_by_email(
            [appt.doctor.email],
            "New appointment assigned",
            f"{patient.full_name} has an appointment with you: {_describe(appt)}.",
        )
    notify_by_email(
        frontdesk_recipients(),
        "New appointment",
        f"New appointment for {patient.full_name} ({patient.patient_code}): {_describe(appt)}.",
    )


def _notify_status(appt: Appointment) -> None:
    patient = appt.patient
    notify_by_email(
        [patient.email],
        f"Appointment {appt.status.lower()}",
        f"Hello {patient.first_name},\n\nYour appointment for {_describe(appt)} is now {appt.status.lower()}.",
    )
    if appt.doctor is not None and appt.status in (S.CONFIRMED, S.CANCELLED):
        notify_by_email(
            [appt.doctor.email],
            f"Appointment {appt.status.lower()}",
            f"The appointment with {patient.full_name} for {_describe(appt)} is now {appt.status.lower()}.",
        )
    notify_by_email(
        frontdesk_recipients(),
        f"Appointment {appt.status.lower()}",
        f"Appointment for {patient.full_name}: {_describe(appt)} is now {appt.status}.",
    )


class AppointmentService:
    """
    Appointment lifecycle:
      PENDING -> CONFIRMED -> COMPLETED
      PENDING | CONFIRMED -> CANCELLED

    Repeating a transition that already happened is a silent no-op; any
    other illegal transition is a 409.
    """

    @staticmethod
    @transaction.atomic
    def create_appointment(
        *,
        actor: Actor,
        patient_id,
        date: datetime.date,
        service: str,
        doctor_id: Optional[int] = None,
        timeslot: str = "",
        reason: str = "",
    ) -> Appointment:
        patient = assert_exists(Patient, patient_id, label="Patient")
        if patient.status != PatientStatus.APPROVED:
            raise ValidationError("Patient is not approved yet.")
        doctor = _resolve_doctor(doctor_id)

        appt = Appointment.objects.create(
            patient=patient,
            doctor=doctor,
            date=date,
            timeslot=timeslot or "",
            service=service,
            reason=reason or "",
            status=S.PENDING,
            created_by_id=actor.user_id,
        )

        AuditService.log(
            action="APPOINTMENT_CREATED",
            entity_type="Appointment",
            entity_id=appt.id,
            actor=actor,
            after={"patient_id": str(patient.id), "doctor_id": doctor_id, "date": appt.date, "status": appt.status},
        )
        _notify_created(appt)
        return appt

    @staticmethod
    @transaction.atomic
    def book_public(
        *,
        actor: Actor,
        first_name: str,
        last_name: str,
        email: str,
        date: datetime.date,
        service: str,
        phone: str = "",
        doctor_id: Optional[int] = None,
        timeslot: str = "",
        reason: str = "",
    ) -> Appointment:
        """
        Unauthenticated booking. An existing live patient with this email is
        reused whatever their status; otherwise a PENDING patient is
        self-registered first.
        """
        doctor = _resolve_doctor(doctor_id)

        patient = find_live_by_email(email)
        if patient is None:
            patient = PatientService.self_register(
                actor=actor,
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone=phone,
            )

        appt = Appointment.objects.create(
            patient=patient,
            doctor=doctor,
            date=date,
            timeslot=timeslot or "",
            service=service,
            reason=reason or "",
            status=S.PENDING,
        )

        AuditService.log(
            action="APPOINTMENT_BOOKED",
            entity_type="Appointment",
            entity_id=appt.id,
            actor=actor,
            after={"patient_id": str(patient.id), "doctor_id": doctor_id, "date": appt.date, "status": appt.status},
            details={"public": True, "patient_status": patient.status},
        )
        _notify_created(appt)
        return appt

    @staticmethod
    @transaction.atomic
    def transition(*, actor: Actor, appointment_id, target: str) -> Appointment:
        appt = assert_exists(
            Appointment,
            appointment_id,
            label="Appointment",
            queryset=Appointment.objects.alive().select_related("patient", "doctor"),
            lock=True,
        )
        sources, noop = TRANSITIONS[target]

        if appt.status == noop:
            return appt
        if appt.status not in sources:
            raise ConflictError(f"Cannot change appointment from {appt.status} to {target}.")

        before = appt.status
        appt.status = target
        appt.save(update_fields=["status", "updated_at"])

        AuditService.log(
            action=TRANSITION_ACTIONS[target],
            entity_type="Appointment",
            entity_id=appt.id,
            actor=actor,
            before={"status": before},
            after={"status": target},
        )
        _notify_status(appt)
        return appt

    @staticmethod
    def approve(*, actor: Actor, appointment_id) -> Appointment:
        return AppointmentService.transition(actor=actor, appointment_id=appointment_id, target=S.CONFIRMED)

    @staticmethod
    def cancel(*, actor: Actor, appointment_id) -> Appointment:
        return AppointmentService.transition(actor=actor, appointment_id=appointment_id, target=S.CANCELLED)

    @staticmethod
    def complete(*, actor: Actor, appointment_id) -> Appointment:
        return AppointmentService.transition(actor=actor, appointment_id=appointment_id, target=S.COMPLETED)

    @staticmethod
    @transaction.atomic
    def update_appointment(*, actor: Actor, appointment_id, data: dict) -> Appointment:
        """
        Generic edit. `status` is applied as given, without the transition
        rules above; such overwrites are flagged in the audit trail.
        """
        appt = assert_exists(
            Appointment,
            appointment_id,
            label="Appointment",
            queryset=Appointment.objects.alive().select_related("patient", "doctor"),
            lock=True,
        )
        data = dict(data or {})

        reassigned = False
        if "doctor_id" in data:
            doctor = _resolve_doctor(data.pop("doctor_id"))
            new_id = doctor.id if doctor else None
            if new_id != appt.doctor_id:
                data["doctor"] = doctor
                reassigned = doctor is not None

        before_doctor = appt.doctor_id
        changes = apply_changes(appt, data, {"date", "timeslot", "service", "reason", "status", "doctor"})
        if not changes:
            return appt

        appt.save()

        if "doctor" in changes:
            changes["doctor_id"] = (before_doctor, appt.doctor_id)
            del changes["doctor"]

        status_overwrite = "status" in changes
        if status_overwrite:
            logger.warning(
                "Appointment %s status overwritten %s -> %s by user %s",
                appt.id,
                changes["status"][0],
                changes["status"][1],
                actor.user_id,
            )

        before, after = diff(changes)
        AuditService.log(
            action="APPOINTMENT_UPDATED",
            entity_type="Appointment",
            entity_id=appt.id,
            actor=actor,
            before=before,
            after=after,
            details={"status_overwrite": status_overwrite},
        )

        if reassigned:
            notify_by_email(
                [appt.doctor.email],
                "Appointment assigned to you",
                f"You have been assigned the appointment with {appt.patient.full_name}: {_describe(appt)}.",
            )
        return appt

    @staticmethod
    @transaction.atomic
    def delete_appointment(*, actor: Actor, appointment_id) -> None:
        appt = soft_delete(Appointment, appointment_id, actor=actor, label="Appointment")
        AuditService.log(
            action="APPOINTMENT_DELETED",
            entity_type="Appointment",
            entity_id=appt.id,
            actor=actor,
            before={"status": appt.status, "date": appt.date},
        )
