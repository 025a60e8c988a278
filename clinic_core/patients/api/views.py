# clinic_core/patients/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound

from clinic_core.appointments.api.serializers import AppointmentSerializer
from clinic_core.appointments.selectors import list_appointments
from clinic_core.common.api.pagination import PAGE_PARAMS, paginate
from clinic_core.common.api.responses import created, ok
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.permissions import PUBLIC, PolicyPermission
from clinic_core.patients.api.serializers import (
    PatientCreateSerializer,
    PatientQuerySerializer,
    PatientSelfRegisterSerializer,
    PatientSerializer,
    PatientUpdateSerializer,
)
from clinic_core.patients.models import Patient
from clinic_core.patients.selectors import search_patients
from clinic_core.patients.services import PatientService, assert_can_access_patient


class PatientViewSet(viewsets.ViewSet):
    permission_classes = [PolicyPermission]
    policy_resource = "patients"

    serializer_class = PatientSerializer
    queryset = Patient.objects.none()

    @extend_schema(
        tags=["Patients"],
        parameters=[
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
    )
    def list(self, request):
        q = PatientQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(paginate(request, search_patients(**q.validated_data), PatientSerializer))

    @extend_schema(tags=["Patients"], request=PatientCreateSerializer, responses={201: PatientSerializer})
    def create(self, request):
        ser = PatientCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        patient = PatientService.create_patient(actor=Actor.from_request(request), **ser.validated_data)
        return created(PatientSerializer(patient).data, "Patient created")

    @extend_schema(tags=["Patients"], responses={200: PatientSerializer})
    def retrieve(self, request, pk=None):
        patient = assert_exists(Patient, pk, label="Patient")
        assert_can_access_patient(patient, request.user)
        return ok(PatientSerializer(patient).data)

    @extend_schema(tags=["Patients"], request=PatientUpdateSerializer, responses={200: PatientSerializer})
    def partial_update(self, request, pk=None):
        ser = PatientUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        patient = PatientService.update_patient(
            actor=Actor.from_request(request),
            patient_id=pk,
            data=ser.validated_data,
        )
        return ok(PatientSerializer(patient).data, "Patient updated")

    @extend_schema(tags=["Patients"], responses={200: None})
    def destroy(self, request, pk=None):
        PatientService.delete_patient(actor=Actor.from_request(request), patient_id=pk)
        return ok(None, "Patient deleted")

    @extend_schema(tags=["Patients"], parameters=PAGE_PARAMS, responses={200: AppointmentSerializer(many=True)})
    @action(detail=True, methods=["get"])
    def appointments(self, request, pk=None):
        patient = assert_exists(Patient, pk, label="Patient")
        assert_can_access_patient(patient, request.user)
        return ok(paginate(request, list_appointments(patient_id=patient.id), AppointmentSerializer))

    @extend_schema(tags=["Patients"], request=None, responses={200: PatientSerializer})
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        patient = PatientService.approve_patient(actor=Actor.from_request(request), patient_id=pk)
        return ok(PatientSerializer(patient).data, "Patient approved")

    @extend_schema(tags=["Patients"], responses={200: PatientSerializer})
    @action(detail=False, methods=["get"], url_path=r"by-code/(?P<code>[^/]+)")
    def by_code(self, request, code=None):
        patient = Patient.objects.alive().filter(patient_code=code).first()
        if patient is None:
            raise NotFound("Patient not found")
        return ok(PatientSerializer(patient).data)

    @extend_schema(tags=["Patients"], request=PatientSelfRegisterSerializer, responses={201: PatientSerializer})
    @action(detail=False, methods=["post"], url_path="self-register", **PUBLIC)
    def self_register(self, request):
        ser = PatientSelfRegisterSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        patient = PatientService.self_register(actor=Actor.from_request(request), **ser.validated_data)
        return created(
            PatientSerializer(patient).data,
            "Registration received. You will be notified once approved.",
        )
