# clinic_core/notifications/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied

from clinic_core.common.api.pagination import PAGE_PARAMS, paginate
from clinic_core.common.api.responses import created, ok
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.permissions import PolicyPermission
from clinic_core.common.roles import Role
from clinic_core.notifications.api.serializers import (
    NotificationCreateSerializer,
    NotificationQuerySerializer,
    NotificationSerializer,
)
from clinic_core.notifications.models import Notification
from clinic_core.notifications.selectors import list_notifications, notifications_for_user, owns
from clinic_core.notifications.services import NotificationService


class NotificationViewSet(viewsets.ViewSet):
    permission_classes = [PolicyPermission]
    policy_resource = "notifications"

    serializer_class = NotificationSerializer
    queryset = Notification.objects.none()

    @extend_schema(
        tags=["Notifications"],
        parameters=[
            OpenApiParameter(name="type", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="is_read", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="patient_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
    )
    def list(self, request):
        q = NotificationQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(paginate(request, list_notifications(**q.validated_data), NotificationSerializer))

    @extend_schema(tags=["Notifications"], request=NotificationCreateSerializer, responses={201: NotificationSerializer})
    def create(self, request):
        ser = NotificationCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        notification = NotificationService.create_notification(actor=Actor.from_request(request), **ser.validated_data)
        return created(NotificationSerializer(notification).data, "Notification created")

    @extend_schema(tags=["Notifications"], responses={200: NotificationSerializer})
    def retrieve(self, request, pk=None):
        notification = assert_exists(
            Notification,
            pk,
            label="Notification",
            queryset=Notification.objects.alive().select_related("patient"),
        )
        if request.user.role == Role.PATIENT and not owns(notification, request.user):
            raise PermissionDenied("You do not have access to this notification.")
        return ok(NotificationSerializer(notification).data)

    @extend_schema(
        tags=["Notifications"],
        parameters=[
            OpenApiParameter(name="is_read", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
        responses={200: NotificationSerializer(many=True)},
    )
    @action(detail=False, methods=["get"])
    def mine(self, request):
        q = NotificationQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        qs = notifications_for_user(request.user, is_read=q.validated_data.get("is_read"))
        return ok(paginate(request, qs, NotificationSerializer))

    @extend_schema(tags=["Notifications"], request=None, responses={200: NotificationSerializer})
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        notification = NotificationService.mark_read(
            actor=Actor.from_request(request),
            user=request.user,
            notification_id=pk,
        )
        return ok(NotificationSerializer(notification).data, "Notification marked as read")

    @extend_schema(tags=["Notifications"], responses={200: None})
    def destroy(self, request, pk=None):
        NotificationService.delete_notification(actor=Actor.from_request(request), notification_id=pk)
        return ok(None, "Notification deleted")
