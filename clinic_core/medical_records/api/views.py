# clinic_core/medical_records/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action

from clinic_core.common.api.pagination import PAGE_PARAMS, paginate
from clinic_core.common.api.responses import created, ok
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.permissions import PolicyPermission
from clinic_core.medical_records.api.serializers import (
    MedicalRecordCreateSerializer,
    MedicalRecordQuerySerializer,
    MedicalRecordSerializer,
    MedicalRecordUpdateSerializer,
)
from clinic_core.medical_records.models import MedicalRecord
from clinic_core.medical_records.selectors import records_for_patient
from clinic_core.medical_records.services import MedicalRecordService
from clinic_core.patients.models import Patient


class MedicalRecordViewSet(viewsets.ViewSet):
    permission_classes = [PolicyPermission]
    policy_resource = "medical_records"

    serializer_class = MedicalRecordSerializer
    queryset = MedicalRecord.objects.none()

    @extend_schema(
        tags=["Medical records"],
        parameters=[
            OpenApiParameter(name="type", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
        responses={200: MedicalRecordSerializer(many=True)},
    )
    @action(detail=False, methods=["get"], url_path=r"patient/(?P<patient_id>[^/.]+)")
    def for_patient(self, request, patient_id=None):
        patient = assert_exists(Patient, patient_id, label="Patient")

        q = MedicalRecordQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        qs = records_for_patient(patient_id=patient.id, **q.validated_data)
        return ok(paginate(request, qs, MedicalRecordSerializer))

    @extend_schema(tags=["Medical records"], request=MedicalRecordCreateSerializer, responses={201: MedicalRecordSerializer})
    def create(self, request):
        ser = MedicalRecordCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        record = MedicalRecordService.create_record(actor=Actor.from_request(request), **ser.validated_data)
        return created(MedicalRecordSerializer(record).data, "Medical record entry created")

    @extend_schema(tags=["Medical records"], responses={200: MedicalRecordSerializer})
    def retrieve(self, request, pk=None):
        record = assert_exists(MedicalRecord, pk, label="Medical record")
        return ok(MedicalRecordSerializer(record).data)

    @extend_schema(tags=["Medical records"], request=MedicalRecordUpdateSerializer, responses={200: MedicalRecordSerializer})
    def partial_update(self, request, pk=None):
        ser = MedicalRecordUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        record = MedicalRecordService.update_record(
            actor=Actor.from_request(request), record_id=pk, data=ser.validated_data
        )
        return ok(MedicalRecordSerializer(record).data, "Medical record entry updated")

    @extend_schema(tags=["Medical records"], responses={200: None})
    def destroy(self, request, pk=None):
        MedicalRecordService.delete_record(actor=Actor.from_request(request), record_id=pk)
        return ok(None, "Medical record entry deleted")
