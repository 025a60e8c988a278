from __future__ import annotations

from rest_framework import serializers

from clinic_core.common.api.serializers import AtLeastOneFieldMixin, StrictSerializer
from clinic_core.medical_records.models import AllergySeverity, MedicalRecord, RecordType


class MedicalRecordSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    recorded_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = MedicalRecord
        fields = [
            "id",
            "patient_id",
            "type",
            "name",
            "notes",
            "diagnosed_at",
            "resolved_at",
            "severity",
            "recorded_by_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class MedicalRecordCreateSerializer(StrictSerializer):
    patient_id = serializers.UUIDField()
    type = serializers.ChoiceField(choices=RecordType.choices)
    name = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    diagnosed_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
    resolved_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
    severity = serializers.ChoiceField(choices=AllergySeverity.choices, required=False, allow_blank=True, default="")


class MedicalRecordUpdateSerializer(AtLeastOneFieldMixin, StrictSerializer):
    type = serializers.ChoiceField(choices=RecordType.choices, required=False)
    name = serializers.CharField(max_length=255, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    diagnosed_at = serializers.DateTimeField(required=False, allow_null=True)
    resolved_at = serializers.DateTimeField(required=False, allow_null=True)
    severity = serializers.ChoiceField(choices=AllergySeverity.choices, required=False, allow_blank=True)


class MedicalRecordQuerySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=RecordType.choices, required=False)
