# clinic_core/tasks/services.py

from __future__ import annotations

import datetime
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from clinic_core.appointments.models import Appointment
from clinic_core.audit.services import AuditService, diff
from clinic_core.common.api.exceptions import ConflictError
from clinic_core.common.context import Actor
from clinic_core.common.events import publish
from clinic_core.common.lookups import assert_exists, assert_exists_optional
from clinic_core.common.services import apply_changes, soft_delete
from clinic_core.patients.models import Patient
from clinic_core.tasks.models import Task, TaskPriority, TaskStatus
from clinic_core.tasks.selectors import can_modify

User = get_user_model()

TASK_CREATED = "task.created"


def _locked(task_id) -> Task:
    return assert_exists(
        Task,
        task_id,
        label="Task",
        queryset=Task.objects.alive().select_related("patient"),
        lock=True,
    )


class TaskService:
    """
    Task write-model operations.

    Notes:
    - Workflow: PENDING -> COMPLETED, PENDING -> CANCELLED (via update).
    - Completing a COMPLETED task is a no-op; completing a CANCELLED one is a 409.
    - Only admins, the assignee and the creator may modify a task.
    """

    @staticmethod
    @transaction.atomic
    def create_task(
        *,
        actor: Actor,
        title: str,
        description: str = "",
        priority: str = TaskPriority.MEDIUM,
        due_date: Optional[datetime.datetime] = None,
        assigned_to_id: Optional[int] = None,
        patient_id=None,
        appointment_id=None,
    ) -> Task:
        assignee = assert_exists_optional(User, assigned_to_id, label="Assignee")
        patient = assert_exists_optional(Patient, patient_id, label="Patient")
        appointment = assert_exists_optional(Appointment, appointment_id, label="Appointment")

        task = Task.objects.create(
            title=title,
            description=description or "",
            priority=priority,
            due_date=due_date,
            status=TaskStatus.PENDING,
            assigned_to=assignee,
            patient=patient,
            appointment=appointment,
            created_by_id=actor.user_id,
        )

        AuditService.log(
            action="TASK_CREATED",
            entity_type="Task",
            entity_id=task.id,
            actor=actor,
            after={"title": task.title, "priority": task.priority, "assigned_to_id": task.assigned_to_id},
        )

        # keep payloads ID-based
        publish(
            TASK_CREATED,
            {
                "task_id": str(task.id),
                "assigned_to_id": task.assigned_to_id,
                "created_by_id": actor.user_id,
            },
        )
        return task

    @staticmethod
    @transaction.atomic
    def update_task(*, actor: Actor, user, task_id, data: dict) -> Task:
        task = _locked(task_id)
        if not can_modify(task, user):
            raise PermissionDenied("Only admins, the assignee or the creator can modify this task.")

        data = dict(data or {})
        if "assigned_to_id" in data:
            data["assigned_to"] = assert_exists_optional(User, data.pop("assigned_to_id"), label="Assignee")
        if "patient_id" in data:
            data["patient"] = assert_exists_optional(Patient, data.pop("patient_id"), label="Patient")
        if "appointment_id" in data:
            data["appointment"] = assert_exists_optional(Appointment, data.pop("appointment_id"), label="Appointment")

        before_ids = {f: getattr(task, f"{f}_id") for f in ("assigned_to", "patient", "appointment")}
        changes = apply_changes(
            task,
            data,
            {"title", "description", "priority", "status", "due_date", "assigned_to", "patient", "appointment"},
        )
        if not changes:
            return task

        for fk, before_id in before_ids.items():
            if fk in changes:
                del changes[fk]
                changes[f"{fk}_id"] = (before_id, getattr(task, f"{fk}_id"))

        if "status" in changes:
            task.completed_at = timezone.now() if task.status == TaskStatus.COMPLETED else None
        task.save()

        before, after = diff(changes)
        AuditService.log(
            action="TASK_UPDATED",
            entity_type="Task",
            entity_id=task.id,
            actor=actor,
            before=before,
            after=after,
        )

        if "assigned_to_id" in changes and task.assigned_to_id:
            publish(
                TASK_CREATED,
                {"task_id": str(task.id), "assigned_to_id": task.assigned_to_id, "created_by_id": actor.user_id},
            )
        return task

    @staticmethod
    @transaction.atomic
    def complete_task(*, actor: Actor, user, task_id) -> Task:
        task = _locked(task_id)
        if not can_modify(task, user):
            raise PermissionDenied("Only admins, the assignee or the creator can complete this task.")

        if task.status == TaskStatus.COMPLETED:
            return task
        if task.status == TaskStatus.CANCELLED:
            raise ConflictError("Cannot complete a cancelled task.")

        task.status = TaskStatus.COMPLETED
        task.completed_at = timezone.now()
        task.save(update_fields=["status", "completed_at", "updated_at"])

        AuditService.log(
            action="TASK_COMPLETED",
            entity_type="Task",
            entity_id=task.id,
            actor=actor,
            before={"status": TaskStatus.PENDING},
            after={"status": TaskStatus.COMPLETED},
        )
        return task

    @staticmethod
    @transaction.atomic
    def delete_task(*, actor: Actor, task_id) -> None:
        task = soft_delete(Task, task_id, actor=actor, label="Task")
        AuditService.log(
            action="TASK_DELETED",
            entity_type="Task",
            entity_id=task.id,
            actor=actor,
            before={"title": task.title, "status": task.status},
        )
