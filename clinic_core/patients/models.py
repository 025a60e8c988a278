# clinic_core/patients/models.py
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from clinic_core.common.models import SoftDeleteModel


class PatientStatus(models.TextChoices):
    PENDING = "PENDING", "Pending approval"
    APPROVED = "APPROVED", "Approved"


class Gender(models.TextChoices):
    MALE = "MALE", "Male"
    FEMALE = "FEMALE", "Female"
    OTHER = "OTHER", "Other"


class RegistrationType(models.TextChoices):
    STAFF = "STAFF", "Registered by staff"
    SELF = "SELF", "Self-registered"


class Patient(SoftDeleteModel):
    """
    Patient record. Staff-created patients start APPROVED; self-registered
    ones wait in PENDING until front desk or an admin approves them.
    """
    patient_code = models.CharField(max_length=32, unique=True)

    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    email = models.EmailField(blank=True, db_index=True)
    phone = models.CharField(max_length=32, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=16, choices=Gender.choices, blank=True)
    address = models.TextField(blank=True)

    allergies = models.JSONField(default=list, blank=True)
    medical_conditions = models.JSONField(default=list, blank=True)
    emergency_contact = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    status = models.CharField(max_length=16, choices=PatientStatus.choices, default=PatientStatus.PENDING, db_index=True)
    registration_type = models.CharField(
        max_length=16, choices=RegistrationType.choices, default=RegistrationType.STAFF
    )

    # optional portal account (role PATIENT)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="patient_profile",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    approved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "patients_patient"
        indexes = [
            models.Index(fields=["last_name", "first_name"]),
            models.Index(fields=["phone"]),
        ]

    def __str__(self) -> str:
        return f"{self.full_name} ({self.patient_code})"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
