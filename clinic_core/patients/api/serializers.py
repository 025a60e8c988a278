# clinic_core/patients/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from clinic_core.common.api.serializers import AtLeastOneFieldMixin, StrictSerializer
from clinic_core.patients.models import Gender, Patient, PatientStatus


class EmergencyContactSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=32)
    relationship = serializers.CharField(max_length=64, required=False, allow_blank=True)


class PatientCreateSerializer(StrictSerializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False, allow_blank=True, default="")
    address = serializers.CharField(required=False, allow_blank=True, default="")
    allergies = serializers.ListField(child=serializers.CharField(max_length=255), required=False, default=list)
    medical_conditions = serializers.ListField(
        child=serializers.CharField(max_length=255), required=False, default=list
    )
    emergency_contact = EmergencyContactSerializer(required=False, allow_null=True)


class PatientSelfRegisterSerializer(StrictSerializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False, allow_blank=True, default="")
    address = serializers.CharField(required=False, allow_blank=True, default="")


class PatientUpdateSerializer(AtLeastOneFieldMixin, StrictSerializer):
    first_name = serializers.CharField(max_length=150, required=False)
    last_name = serializers.CharField(max_length=150, required=False)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    allergies = serializers.ListField(child=serializers.CharField(max_length=255), required=False)
    medical_conditions = serializers.ListField(child=serializers.CharField(max_length=255), required=False)
    emergency_contact = EmergencyContactSerializer(required=False, allow_null=True)
    user_id = serializers.IntegerField(required=False, allow_null=True)


class PatientQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=PatientStatus.choices, required=False)


class PatientSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Patient
        fields = [
            "id",
            "patient_code",
            "first_name",
            "last_name",
            "full_name",
            "email",
            "phone",
            "date_of_birth",
            "gender",
            "address",
            "allergies",
            "medical_conditions",
            "emergency_contact",
            "status",
            "registration_type",
            "user_id",
            "created_by_id",
            "approved_by_id",
            "approved_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PatientSummarySerializer(serializers.ModelSerializer):
    """Embedded in other resources (appointments, invoices, ...)."""

    class Meta:
        model = Patient
        fields = ["id", "patient_code", "first_name", "last_name", "email", "phone"]
        read_only_fields = fields
