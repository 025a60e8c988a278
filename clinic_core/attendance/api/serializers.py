from rest_framework import serializers

from clinic_core.attendance.models import ClientAttendance, ClientAttendanceStatus, ClockAction, StaffAttendance
from clinic_core.common.api.serializers import StrictSerializer


class StaffAttendanceSerializer(serializers.ModelSerializer):
    staff_id = serializers.IntegerField(read_only=True)
    staff_email = serializers.EmailField(source="staff.email", read_only=True)
    staff_name = serializers.CharField(source="staff.full_name", read_only=True)

    class Meta:
        model = StaffAttendance
        fields = ["id", "staff_id", "staff_email", "staff_name", "work_date", "clock_in", "clock_out"]
        read_only_fields = fields


class ClientAttendanceSerializer(serializers.ModelSerializer):
    appointment_id = serializers.UUIDField(read_only=True)
    patient_id = serializers.UUIDField(source="appointment.patient_id", read_only=True)
    marked_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = ClientAttendance
        fields = ["id", "appointment_id", "patient_id", "status", "marked_by_id", "marked_at"]
        read_only_fields = fields


class ClockSerializer(StrictSerializer):
    staff_id = serializers.IntegerField()
    action = serializers.ChoiceField(choices=ClockAction.choices)


class ClientMarkSerializer(StrictSerializer):
    appointment_id = serializers.UUIDField()
    status = serializers.ChoiceField(choices=ClientAttendanceStatus.choices)


class StaffAttendanceQuerySerializer(serializers.Serializer):
    staff_id = serializers.IntegerField(required=False)
    date = serializers.DateField(required=False)


class ClientAttendanceQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ClientAttendanceStatus.choices, required=False)
    appointment_id = serializers.UUIDField(required=False)
