from __future__ import annotations

from rest_framework import serializers

from clinic_core.appointments.models import Appointment, AppointmentStatus
from clinic_core.common.api.serializers import AtLeastOneFieldMixin, StrictSerializer
from clinic_core.patients.api.serializers import PatientSummarySerializer


class DoctorSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    email = serializers.EmailField(read_only=True)
    first_name = serializers.CharField(read_only=True)
    last_name = serializers.CharField(read_only=True)
    role = serializers.CharField(read_only=True)


class AppointmentSerializer(serializers.ModelSerializer):
    patient = PatientSummarySerializer(read_only=True)
    doctor = DoctorSummarySerializer(read_only=True, allow_null=True)

    class Meta:
        model = Appointment
        fields = [
            "id",
            "patient",
            "doctor",
            "date",
            "timeslot",
            "service",
            "reason",
            "status",
            "created_by_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AppointmentCreateSerializer(StrictSerializer):
    patient_id = serializers.UUIDField()
    doctor_id = serializers.IntegerField(required=False, allow_null=True)
    date = serializers.DateField()
    timeslot = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    service = serializers.CharField(max_length=255)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class AppointmentBookSerializer(StrictSerializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    doctor_id = serializers.IntegerField(required=False, allow_null=True)
    date = serializers.DateField()
    timeslot = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    service = serializers.CharField(max_length=255)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class AppointmentUpdateSerializer(AtLeastOneFieldMixin, StrictSerializer):
    doctor_id = serializers.IntegerField(required=False, allow_null=True)
    date = serializers.DateField(required=False)
    timeslot = serializers.CharField(max_length=32, required=False, allow_blank=True)
    service = serializers.CharField(max_length=255, required=False)
    reason = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=AppointmentStatus.choices, required=False)


class AppointmentQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=AppointmentStatus.choices, required=False)
    doctor_id = serializers.IntegerField(required=False)
    patient_id = serializers.UUIDField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    q = serializers.CharField(required=False, allow_blank=True)
