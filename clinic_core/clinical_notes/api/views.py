# clinic_core/clinical_notes/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action

from clinic_core.clinical_notes.api.serializers import (
    ClinicalNoteCreateSerializer,
    ClinicalNoteQuerySerializer,
    ClinicalNoteSerializer,
    ClinicalNoteUpdateSerializer,
    ClinicalSuggestionCreateSerializer,
    ClinicalSuggestionQuerySerializer,
    ClinicalSuggestionSerializer,
    SuggestionApproveSerializer,
)
from clinic_core.clinical_notes.models import ClinicalNote, ClinicalSuggestion
from clinic_core.clinical_notes.selectors import list_notes, list_suggestions
from clinic_core.clinical_notes.services import ClinicalNoteService, ClinicalSuggestionService
from clinic_core.common.api.pagination import PAGE_PARAMS, paginate
from clinic_core.common.api.responses import created, ok
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.permissions import PolicyPermission


class ClinicalNoteViewSet(viewsets.ViewSet):
    permission_classes = [PolicyPermission]
    policy_resource = "clinical_notes"

    serializer_class = ClinicalNoteSerializer
    queryset = ClinicalNote.objects.none()

    @extend_schema(
        tags=["Clinical notes"],
        parameters=[
            OpenApiParameter(name="patient_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
    )
    def list(self, request):
        q = ClinicalNoteQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(paginate(request, list_notes(**q.validated_data), ClinicalNoteSerializer))

    @extend_schema(tags=["Clinical notes"], request=ClinicalNoteCreateSerializer, responses={201: ClinicalNoteSerializer})
    def create(self, request):
        ser = ClinicalNoteCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        note = ClinicalNoteService.create_note(actor=Actor.from_request(request), **ser.validated_data)
        return created(ClinicalNoteSerializer(note).data, "Clinical note created")

    @extend_schema(tags=["Clinical notes"], responses={200: ClinicalNoteSerializer})
    def retrieve(self, request, pk=None):
        note = assert_exists(ClinicalNote, pk, label="Clinical note")
        return ok(ClinicalNoteSerializer(note).data)

    @extend_schema(tags=["Clinical notes"], request=ClinicalNoteUpdateSerializer, responses={200: ClinicalNoteSerializer})
    def partial_update(self, request, pk=None):
        ser = ClinicalNoteUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        note = ClinicalNoteService.update_note(actor=Actor.from_request(request), note_id=pk, data=ser.validated_data)
        return ok(ClinicalNoteSerializer(note).data, "Clinical note updated")

    @extend_schema(tags=["Clinical notes"], responses={200: None})
    def destroy(self, request, pk=None):
        ClinicalNoteService.delete_note(actor=Actor.from_request(request), note_id=pk)
        return ok(None, "Clinical note deleted")


class ClinicalSuggestionViewSet(viewsets.ViewSet):
    permission_classes = [PolicyPermission]
    policy_resource = "clinical_suggestions"

    serializer_class = ClinicalSuggestionSerializer
    queryset = ClinicalSuggestion.objects.none()

    @extend_schema(
        tags=["Clinical notes"],
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="patient_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
    )
    def list(self, request):
        q = ClinicalSuggestionQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(paginate(request, list_suggestions(**q.validated_data), ClinicalSuggestionSerializer))

    @extend_schema(
        tags=["Clinical notes"],
        request=ClinicalSuggestionCreateSerializer,
        responses={201: ClinicalSuggestionSerializer},
    )
    def create(self, request):
        ser = ClinicalSuggestionCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        suggestion = ClinicalSuggestionService.create_suggestion(actor=Actor.from_request(request), **ser.validated_data)
        return created(ClinicalSuggestionSerializer(suggestion).data, "Suggestion submitted")

    @extend_schema(tags=["Clinical notes"], responses={200: ClinicalSuggestionSerializer})
    def retrieve(self, request, pk=None):
        suggestion = assert_exists(ClinicalSuggestion, pk, label="Suggestion")
        return ok(ClinicalSuggestionSerializer(suggestion).data)

    @extend_schema(tags=["Clinical notes"], request=SuggestionApproveSerializer, responses={201: ClinicalNoteSerializer})
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        ser = SuggestionApproveSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        note = ClinicalSuggestionService.approve_suggestion(
            actor=Actor.from_request(request),
            suggestion_id=pk,
            **ser.validated_data,
        )
        return created(ClinicalNoteSerializer(note).data, "Suggestion approved")
