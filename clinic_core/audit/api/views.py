from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action

from clinic_core.audit.api.serializers import (
    AuditEventCreateSerializer,
    AuditEventSerializer,
    AuditQuerySerializer,
)
from clinic_core.audit.models import AuditEvent
from clinic_core.audit.selectors import audit_statistics, entity_history, list_audit_events
from clinic_core.audit.services import AuditService
from clinic_core.common.api.pagination import PAGE_PARAMS, paginate
from clinic_core.common.api.responses import created, ok
from clinic_core.common.context import Actor
from clinic_core.common.permissions import PolicyPermission


class AuditTrailViewSet(viewsets.GenericViewSet):
    """
    Read side of the audit trail, plus a strict (synchronous) write endpoint.
    """
    permission_classes = [PolicyPermission]
    policy_resource = "audit"

    serializer_class = AuditEventSerializer
    queryset = AuditEvent.objects.none()

    def _filtered(self, request):
        q = AuditQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return list_audit_events(**q.validated_data)

    @extend_schema(
        tags=["Audit"],
        parameters=[
            OpenApiParameter(name="actor_id", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="entity_type", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="action",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Case-insensitive substring of the action name.",
            ),
            OpenApiParameter(name="start_date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="end_date",
                type=OpenApiTypes.DATE,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Inclusive: covers the whole day.",
            ),
            OpenApiParameter(name="search", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
    )
    def list(self, request):
        return ok(paginate(request, self._filtered(request), AuditEventSerializer, default_limit=20))

    @extend_schema(tags=["Audit"], request=AuditEventCreateSerializer, responses={201: AuditEventSerializer})
    def create(self, request):
        ser = AuditEventCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        event = AuditService.log(actor=Actor.from_request(request), strict=True, **ser.validated_data)
        return created(AuditEventSerializer(event).data, "Audit entry recorded")

    @extend_schema(tags=["Audit"])
    @action(detail=False, methods=["get"])
    def statistics(self, request):
        return ok(audit_statistics(self._filtered(request)))

    @extend_schema(tags=["Audit"])
    @action(
        detail=False,
        methods=["get"],
        url_path=r"entity/(?P<entity_type>[^/.]+)/(?P<entity_id>[^/]+)",
    )
    def entity(self, request, entity_type=None, entity_id=None):
        qs = entity_history(entity_type=entity_type, entity_id=entity_id)
        return ok(paginate(request, qs, AuditEventSerializer, default_limit=20))
