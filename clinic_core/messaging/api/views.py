from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets

from clinic_core.common.api.pagination import PAGE_PARAMS, paginate
from clinic_core.common.api.responses import created, ok
from clinic_core.common.context import Actor
from clinic_core.common.permissions import PolicyPermission
from clinic_core.messaging.api.serializers import (
    ReminderCreateSerializer,
    ReminderQuerySerializer,
    ReminderSerializer,
)
from clinic_core.messaging.models import OutboxMessage
from clinic_core.messaging.selectors import list_reminders
from clinic_core.messaging.services import ReminderService


class ReminderViewSet(viewsets.GenericViewSet):
    """Scheduled email reminders, delivered by `manage.py dispatch_outbox`."""
    permission_classes = [PolicyPermission]
    policy_resource = "reminders"

    serializer_class = ReminderSerializer
    queryset = OutboxMessage.objects.none()

    @extend_schema(
        tags=["Reminders"],
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="upcoming", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
    )
    def list(self, request):
        q = ReminderQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(paginate(request, list_reminders(**q.validated_data), ReminderSerializer))

    @extend_schema(tags=["Reminders"], request=ReminderCreateSerializer, responses={201: ReminderSerializer})
    def create(self, request):
        ser = ReminderCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        reminder = ReminderService.create(actor=Actor.from_request(request), **ser.validated_data)
        return created(ReminderSerializer(reminder).data, "Reminder scheduled")
