from django.db.models import QuerySet

from clinic_core.messaging.models import OutboxKind, OutboxMessage


def list_reminders(*, status: str | None = None, upcoming: bool | None = None) -> QuerySet[OutboxMessage]:
    from django.utils import timezone

    qs = OutboxMessage.objects.filter(kind=OutboxKind.REMINDER).select_related("created_by")
    if status:
        qs = qs.filter(status=status)
    if upcoming is True:
        qs = qs.filter(scheduled_at__gt=timezone.now())
    return qs.order_by("scheduled_at")
