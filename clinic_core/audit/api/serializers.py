from rest_framework import serializers

from clinic_core.audit.models import AuditEvent
from clinic_core.common.api.serializers import StrictSerializer


class AuditEventSerializer(serializers.ModelSerializer):
    # Keep API field name "timestamp", but map it to the model field "occurred_at"
    timestamp = serializers.DateTimeField(source="occurred_at", read_only=True)
    actor_id = serializers.IntegerField(read_only=True, allow_null=True)
    actor_email = serializers.EmailField(source="actor.email", read_only=True, allow_null=True)

    class Meta:
        model = AuditEvent
        fields = [
            "id",
            "action",
            "entity_type",
            "entity_id",
            "actor_id",
            "actor_email",
            "actor_role",
            "description",
            "before",
            "after",
            "details",
            "ip_address",
            "user_agent",
            "timestamp",
        ]
        read_only_fields = fields


class AuditEventCreateSerializer(StrictSerializer):
    action = serializers.CharField(max_length=128)
    entity_type = serializers.CharField(max_length=128)
    entity_id = serializers.CharField(max_length=64)
    description = serializers.CharField(required=False, allow_blank=True)
    before = serializers.JSONField(required=False, allow_null=True)
    after = serializers.JSONField(required=False, allow_null=True)
    details = serializers.DictField(required=False, default=dict)


class AuditQuerySerializer(serializers.Serializer):
    actor_id = serializers.IntegerField(required=False)
    entity_type = serializers.CharField(required=False, allow_blank=True)
    action = serializers.CharField(required=False, allow_blank=True)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    search = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError({"end_date": "end_date must be on or after start_date."})
        return attrs
