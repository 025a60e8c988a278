# clinic_core/tasks/selectors.py
from __future__ import annotations

from django.db.models import Q, QuerySet

from clinic_core.common.api.pagination import search_q
from clinic_core.common.roles import ADMINS, CLINICIANS, Role
from clinic_core.tasks.models import Task


def visible_tasks(user) -> QuerySet[Task]:
    """
    Row-level visibility:
    - PATIENT: tasks about their own patient record
    - DOCTOR / NURSE: tasks assigned to or created by them
    - everyone else allowed to list tasks: all tasks
    """
    qs = Task.objects.alive().select_related("assigned_to", "patient", "appointment")
    role = getattr(user, "role", None)

    if role == Role.PATIENT:
        return qs.filter(patient__user_id=user.id)
    if role in CLINICIANS:
        return qs.filter(Q(assigned_to_id=user.id) | Q(created_by_id=user.id))
    return qs


def list_tasks(
    *,
    user,
    status: str | None = None,
    assigned_to_id: int | None = None,
    priority: str | None = None,
    patient_id=None,
    q: str | None = None,
) -> QuerySet[Task]:
    qs = visible_tasks(user)
    if status:
        qs = qs.filter(status=status)
    if assigned_to_id:
        qs = qs.filter(assigned_to_id=assigned_to_id)
    if priority:
        qs = qs.filter(priority=priority)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    qs = search_q(qs, q, ["title", "description"])
    return qs.order_by("-created_at")


def can_view(task: Task, user) -> bool:
    role = getattr(user, "role", None)
    if role in ADMINS or role == Role.FRONTDESK:
        return True
    if role == Role.PATIENT:
        return task.patient is not None and task.patient.user_id == user.id
    return user.id in (task.assigned_to_id, task.created_by_id)


def can_modify(task: Task, user) -> bool:
    """Admins, the assignee and the creator."""
    if getattr(user, "role", None) in ADMINS:
        return True
    return user.id in (task.assigned_to_id, task.created_by_id)
