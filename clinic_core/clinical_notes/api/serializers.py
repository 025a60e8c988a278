from __future__ import annotations

from rest_framework import serializers

from clinic_core.clinical_notes.models import ClinicalNote, ClinicalSuggestion, SuggestionStatus
from clinic_core.common.api.serializers import AtLeastOneFieldMixin, StrictSerializer


class ClinicalNoteSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    author_id = serializers.IntegerField(read_only=True, allow_null=True)
    source_suggestion_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = ClinicalNote
        fields = [
            "id",
            "patient_id",
            "author_id",
            "observations",
            "doctor_notes",
            "treatment_plan",
            "extended_data",
            "status",
            "source_suggestion_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ClinicalNoteCreateSerializer(StrictSerializer):
    patient_id = serializers.UUIDField()
    observations = serializers.CharField(required=False, allow_blank=True, default="")
    doctor_notes = serializers.CharField(required=False, allow_blank=True, default="")
    treatment_plan = serializers.CharField(required=False, allow_blank=True, default="")
    extended_data = serializers.DictField(required=False, default=dict)

    def validate(self, attrs):
        if not any(attrs.get(f) for f in ("observations", "doctor_notes", "treatment_plan", "extended_data")):
            raise serializers.ValidationError("A clinical note cannot be empty.")
        return attrs


class ClinicalNoteUpdateSerializer(AtLeastOneFieldMixin, StrictSerializer):
    observations = serializers.CharField(required=False, allow_blank=True)
    doctor_notes = serializers.CharField(required=False, allow_blank=True)
    treatment_plan = serializers.CharField(required=False, allow_blank=True)
    extended_data = serializers.DictField(required=False)


class ClinicalNoteQuerySerializer(serializers.Serializer):
    patient_id = serializers.UUIDField(required=False)
    q = serializers.CharField(required=False, allow_blank=True)


class ClinicalSuggestionSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    suggested_by_id = serializers.IntegerField(read_only=True, allow_null=True)
    approved_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = ClinicalSuggestion
        fields = [
            "id",
            "patient_id",
            "suggested_by_id",
            "content",
            "status",
            "approved_by_id",
            "approved_at",
            "created_at",
        ]
        read_only_fields = fields


class ClinicalSuggestionCreateSerializer(StrictSerializer):
    patient_id = serializers.UUIDField()
    content = serializers.CharField()


class SuggestionApproveSerializer(StrictSerializer):
    doctor_notes = serializers.CharField(required=False, allow_blank=True, default="")
    treatment_plan = serializers.CharField(required=False, allow_blank=True, default="")
    extended_data = serializers.DictField(required=False, default=dict)


class ClinicalSuggestionQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=SuggestionStatus.choices, required=False)
    patient_id = serializers.UUIDField(required=False)
