from __future__ import annotations

from rest_framework import serializers

from clinic_core.common.api.serializers import StrictSerializer
from clinic_core.notifications.models import Notification, NotificationType


class NotificationSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    created_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Notification
        fields = [
            "id",
            "patient_id",
            "title",
            "message",
            "type",
            "is_read",
            "read_at",
            "created_by_id",
            "created_at",
        ]
        read_only_fields = fields


class NotificationCreateSerializer(StrictSerializer):
    patient_id = serializers.UUIDField()
    title = serializers.CharField(max_length=255)
    message = serializers.CharField()
    type = serializers.ChoiceField(choices=NotificationType.choices, required=False, default=NotificationType.SYSTEM)


class NotificationQuerySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=NotificationType.choices, required=False)
    is_read = serializers.BooleanField(required=False, allow_null=True, default=None)
    patient_id = serializers.UUIDField(required=False)
