# clinic_core/tasks/subscribers.py
from django.contrib.auth import get_user_model

from clinic_core.common.events import subscribe
from clinic_core.messaging.mail import notify_by_email
from clinic_core.tasks.models import Task


@subscribe("task.created")
def email_assignee(payload: dict) -> None:
    assignee_id = payload.get("assigned_to_id")
    if not assignee_id or assignee_id == payload.get("created_by_id"):
        return

    assignee = get_user_model().objects.alive().filter(id=assignee_id, is_active=True).first()
    task = Task.objects.alive().filter(id=payload["task_id"]).first()
    if assignee is None or task is None:
        return

    due = f"\nDue: {task.due_date:%Y-%m-%d %H:%M}" if task.due_date else ""
    notify_by_email(
        [assignee.email],
        f"New task: {task.title}",
        f"Hello {assignee.first_name or assignee.email},\n\nYou have been assigned a {task.priority} priority task: {task.title}.{due}\n\n{task.description}",
    )
