# clinic_core/common/roles.py
from __future__ import annotations

from django.db import models


class Role(models.TextChoices):
    SUPERADMIN = "SUPERADMIN", "Super Admin"
    ADMIN = "ADMIN", "Admin"
    DOCTOR = "DOCTOR", "Doctor"
    NURSE = "NURSE", "Nurse"
    FRONTDESK = "FRONTDESK", "Front Desk"
    PHARMACIST = "PHARMACIST", "Pharmacist"
    PATIENT = "PATIENT", "Patient"


ADMINS = frozenset({Role.SUPERADMIN, Role.ADMIN})
CLINICIANS = frozenset({Role.DOCTOR, Role.NURSE})
STAFF = frozenset(
    {
        Role.SUPERADMIN,
        Role.ADMIN,
        Role.DOCTOR,
        Role.NURSE,
        Role.FRONTDESK,
        Role.PHARMACIST,
    }
)

# Roles a user may hold to be assigned as an appointment's doctor.
ASSIGNABLE_DOCTOR_ROLES = frozenset({Role.DOCTOR, Role.NURSE, Role.ADMIN, Role.SUPERADMIN})


def role_of(user) -> str | None:
    if not user or not getattr(user, "is_authenticated", False):
        return None
    return getattr(user, "role", None)


def is_admin(user) -> bool:
    return role_of(user) in ADMINS
