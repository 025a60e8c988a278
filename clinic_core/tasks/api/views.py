# clinic_core/tasks/api/views.py
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
from clinic_core.tasks.api.serializers import (
    TaskCreateSerializer,
    TaskQuerySerializer,
    TaskSerializer,
    TaskUpdateSerializer,
)
from clinic_core.tasks.models import Task
from clinic_core.tasks.selectors import can_view, list_tasks
from clinic_core.tasks.services import TaskService


class TaskViewSet(viewsets.ViewSet):
    permission_classes = [PolicyPermission]
    policy_resource = "tasks"

    serializer_class = TaskSerializer
    queryset = Task.objects.none()

    @extend_schema(
        tags=["Tasks"],
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="priority", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="assigned_to_id", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="patient_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
    )
    def list(self, request):
        q = TaskQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(paginate(request, list_tasks(user=request.user, **q.validated_data), TaskSerializer))

    @extend_schema(tags=["Tasks"], request=TaskCreateSerializer, responses={201: TaskSerializer})
    def create(self, request):
        ser = TaskCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        task = TaskService.create_task(actor=Actor.from_request(request), **ser.validated_data)
        return created(TaskSerializer(task).data, "Task created")

    @extend_schema(tags=["Tasks"], responses={200: TaskSerializer})
    def retrieve(self, request, pk=None):
        task = assert_exists(
            Task,
            pk,
            label="Task",
            queryset=Task.objects.alive().select_related("assigned_to", "patient"),
        )
        if not can_view(task, request.user):
            raise PermissionDenied("You do not have access to this task.")
        return ok(TaskSerializer(task).data)

    @extend_schema(tags=["Tasks"], request=TaskUpdateSerializer, responses={200: TaskSerializer})
    def partial_update(self, request, pk=None):
        ser = TaskUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        task = TaskService.update_task(
            actor=Actor.from_request(request),
            user=request.user,
            task_id=pk,
            data=ser.validated_data,
        )
        return ok(TaskSerializer(task).data, "Task updated")

    @extend_schema(tags=["Tasks"], request=None, responses={200: TaskSerializer})
    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        task = TaskService.complete_task(actor=Actor.from_request(request), user=request.user, task_id=pk)
        return ok(TaskSerializer(task).data, "Task completed")

    @extend_schema(tags=["Tasks"], responses={200: None})
    def destroy(self, request, pk=None):
        TaskService.delete_task(actor=Actor.from_request(request), task_id=pk)
        return ok(None, "Task deleted")
