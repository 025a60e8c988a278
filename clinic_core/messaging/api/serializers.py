from rest_framework import serializers

from clinic_core.common.api.serializers import StrictSerializer
from clinic_core.messaging.models import OutboxMessage, OutboxStatus


class ReminderSerializer(serializers.ModelSerializer):
    message = serializers.CharField(source="body", read_only=True)
    send_at = serializers.DateTimeField(source="scheduled_at", read_only=True)
    created_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = OutboxMessage
        fields = [
            "id",
            "recipients",
            "subject",
            "message",
            "send_at",
            "status",
            "attempts",
            "last_error",
            "sent_at",
            "created_by_id",
            "created_at",
        ]
        read_only_fields = fields


class ReminderCreateSerializer(StrictSerializer):
    recipients = serializers.ListField(child=serializers.EmailField(), allow_empty=False)
    subject = serializers.CharField(max_length=255)
    message = serializers.CharField()
    send_at = serializers.DateTimeField()


class ReminderQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OutboxStatus.choices, required=False)
    upcoming = serializers.BooleanField(required=False, allow_null=True, default=None)
