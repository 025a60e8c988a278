# clinic_core/attendance/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action

from clinic_core.attendance.api.serializers import (
    ClientAttendanceQuerySerializer,
    ClientAttendanceSerializer,
    ClientMarkSerializer,
    ClockSerializer,
    StaffAttendanceQuerySerializer,
    StaffAttendanceSerializer,
)
from clinic_core.attendance.models import StaffAttendance
from clinic_core.attendance.selectors import list_client_attendance, list_staff_attendance
from clinic_core.attendance.services import AttendanceService
from clinic_core.common.api.pagination import PAGE_PARAMS, paginate
from clinic_core.common.api.responses import created, ok
from clinic_core.common.context import Actor
from clinic_core.common.permissions import PolicyPermission


class AttendanceViewSet(viewsets.GenericViewSet):
    """Staff clock in/out and client (appointment) attendance."""
    permission_classes = [PolicyPermission]
    policy_resource = "attendance"

    serializer_class = StaffAttendanceSerializer
    queryset = StaffAttendance.objects.none()

    @extend_schema(tags=["Attendance"], request=ClockSerializer, responses={200: StaffAttendanceSerializer})
    @action(detail=False, methods=["post"], url_path="staff/clock")
    def clock(self, request):
        ser = ClockSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        row = AttendanceService.clock(actor=Actor.from_request(request), **ser.validated_data)
        message = "Clocked in" if row.clock_out is None else "Clocked out"
        return ok(StaffAttendanceSerializer(row).data, message)

    @extend_schema(
        tags=["Attendance"],
        parameters=[
            OpenApiParameter(name="staff_id", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
        responses={200: StaffAttendanceSerializer(many=True)},
    )
    @action(detail=False, methods=["get"])
    def staff(self, request):
        q = StaffAttendanceQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(paginate(request, list_staff_attendance(**q.validated_data), StaffAttendanceSerializer))

    @extend_schema(
        tags=["Attendance"],
        methods=["GET"],
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="appointment_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
        responses={200: ClientAttendanceSerializer(many=True)},
    )
    @extend_schema(tags=["Attendance"], methods=["POST"], request=ClientMarkSerializer, responses={201: ClientAttendanceSerializer})
    @action(detail=False, methods=["get", "post"])
    def clients(self, request):
        if request.method == "GET":
            q = ClientAttendanceQuerySerializer(data=request.query_params)
            q.is_valid(raise_exception=True)
            return ok(paginate(request, list_client_attendance(**q.validated_data), ClientAttendanceSerializer))

        ser = ClientMarkSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        row = AttendanceService.mark_client(actor=Actor.from_request(request), **ser.validated_data)
        return created(ClientAttendanceSerializer(row).data, "Client attendance recorded")
