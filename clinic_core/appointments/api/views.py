# clinic_core/appointments/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action

from clinic_core.appointments.api.serializers import (
    AppointmentBookSerializer,
    AppointmentCreateSerializer,
    AppointmentQuerySerializer,
    AppointmentSerializer,
    AppointmentUpdateSerializer,
)
from clinic_core.appointments.models import Appointment
from clinic_core.appointments.selectors import appointments_for_user, list_appointments
from clinic_core.appointments.services import AppointmentService
from clinic_core.common.api.pagination import PAGE_PARAMS, paginate
from clinic_core.common.api.responses import created, ok
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.permissions import PUBLIC, PolicyPermission


class AppointmentViewSet(viewsets.ViewSet):
    permission_classes = [PolicyPermission]
    policy_resource = "appointments"

    serializer_class = AppointmentSerializer
    queryset = Appointment.objects.none()

    @extend_schema(
        tags=["Appointments"],
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="doctor_id", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="patient_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="date_from", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="date_to", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
    )
    def list(self, request):
        q = AppointmentQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(paginate(request, list_appointments(**q.validated_data), AppointmentSerializer))

    @extend_schema(tags=["Appointments"], request=AppointmentCreateSerializer, responses={201: AppointmentSerializer})
    def create(self, request):
        ser = AppointmentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        appt = AppointmentService.create_appointment(actor=Actor.from_request(request), **ser.validated_data)
        return created(AppointmentSerializer(appt).data, "Appointment created")

    @extend_schema(tags=["Appointments"], responses={200: AppointmentSerializer})
    def retrieve(self, request, pk=None):
        appt = assert_exists(
            Appointment,
            pk,
            label="Appointment",
            queryset=Appointment.objects.alive().select_related("patient", "doctor"),
        )
        return ok(AppointmentSerializer(appt).data)

    @extend_schema(tags=["Appointments"], request=AppointmentUpdateSerializer, responses={200: AppointmentSerializer})
    def partial_update(self, request, pk=None):
        ser = AppointmentUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        appt = AppointmentService.update_appointment(
            actor=Actor.from_request(request),
            appointment_id=pk,
            data=ser.validated_data,
        )
        return ok(AppointmentSerializer(appt).data, "Appointment updated")

    @extend_schema(tags=["Appointments"], responses={200: None})
    def destroy(self, request, pk=None):
        AppointmentService.delete_appointment(actor=Actor.from_request(request), appointment_id=pk)
        return ok(None, "Appointment deleted")

    @extend_schema(tags=["Appointments"], request=None, responses={200: AppointmentSerializer})
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        appt = AppointmentService.approve(actor=Actor.from_request(request), appointment_id=pk)
        return ok(AppointmentSerializer(appt).data, "Appointment approved")

    @extend_schema(tags=["Appointments"], request=None, responses={200: AppointmentSerializer})
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        appt = AppointmentService.cancel(actor=Actor.from_request(request), appointment_id=pk)
        return ok(AppointmentSerializer(appt).data, "Appointment cancelled")

    @extend_schema(tags=["Appointments"], request=None, responses={200: AppointmentSerializer})
    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        appt = AppointmentService.complete(actor=Actor.from_request(request), appointment_id=pk)
        return ok(AppointmentSerializer(appt).data, "Appointment completed")

    @extend_schema(tags=["Appointments"], parameters=PAGE_PARAMS)
    @action(detail=False, methods=["get"])
    def mine(self, request):
        return ok(paginate(request, appointments_for_user(request.user), AppointmentSerializer))

    @extend_schema(tags=["Appointments"], request=AppointmentBookSerializer, responses={201: AppointmentSerializer})
    @action(detail=False, methods=["post"], **PUBLIC)
    def book(self, request):
        ser = AppointmentBookSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        appt = AppointmentService.book_public(actor=Actor.from_request(request), **ser.validated_data)
        return created(AppointmentSerializer(appt).data, "Appointment booked. You will be contacted to confirm.")
