from __future__ import annotations

from rest_framework import serializers

from clinic_core.common.api.serializers import AtLeastOneFieldMixin, StrictSerializer
from clinic_core.tasks.models import Task, TaskPriority, TaskStatus


class TaskSerializer(serializers.ModelSerializer):
    assigned_to_id = serializers.IntegerField(read_only=True, allow_null=True)
    assigned_to_name = serializers.SerializerMethodField()
    patient_id = serializers.UUIDField(read_only=True, allow_null=True)
    appointment_id = serializers.UUIDField(read_only=True, allow_null=True)
    created_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Task
        fields = [
            "id",
            "title",
            "description",
            "priority",
            "status",
            "due_date",
            "assigned_to_id",
            "assigned_to_name",
            "patient_id",
            "appointment_id",
            "created_by_id",
            "completed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_assigned_to_name(self, obj) -> str | None:
        user = obj.assigned_to
        if user is None:
            return None
        return f"{user.first_name} {user.last_name}".strip() or user.email


class TaskCreateSerializer(StrictSerializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    priority = serializers.ChoiceField(choices=TaskPriority.choices, required=False, default=TaskPriority.MEDIUM)
    due_date = serializers.DateTimeField(required=False, allow_null=True)
    assigned_to_id = serializers.IntegerField(required=False, allow_null=True)
    patient_id = serializers.UUIDField(required=False, allow_null=True)
    appointment_id = serializers.UUIDField(required=False, allow_null=True)


class TaskUpdateSerializer(AtLeastOneFieldMixin, StrictSerializer):
    title = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    priority = serializers.ChoiceField(choices=TaskPriority.choices, required=False)
    status = serializers.ChoiceField(choices=TaskStatus.choices, required=False)
    due_date = serializers.DateTimeField(required=False, allow_null=True)
    assigned_to_id = serializers.IntegerField(required=False, allow_null=True)
    patient_id = serializers.UUIDField(required=False, allow_null=True)
    appointment_id = serializers.UUIDField(required=False, allow_null=True)


class TaskQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=TaskStatus.choices, required=False)
    priority = serializers.ChoiceField(choices=TaskPriority.choices, required=False)
    assigned_to_id = serializers.IntegerField(required=False)
    patient_id = serializers.UUIDField(required=False)
    q = serializers.CharField(required=False, allow_blank=True)
