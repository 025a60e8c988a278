# clinic_core/audit/selectors.py
from __future__ import annotations

from datetime import date, datetime, time

from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from clinic_core.audit.models import AuditEvent
from clinic_core.common.db import consistent_snapshot


def _start_of(d: date) -> datetime:
    return timezone.make_aware(datetime.combine(d, time.min))


def _end_of(d: date) -> datetime:
    return timezone.make_aware(datetime.combine(d, time.max))


def list_audit_events(
    *,
    actor_id: int | None = None,
    entity_type: str | None = None,
    action: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    search: str | None = None,
) -> QuerySet[AuditEvent]:
    qs = AuditEvent.objects.select_related("actor")

    if actor_id is not None:
        qs = qs.filter(actor_id=actor_id)
    if entity_type:
        qs = qs.filter(entity_type=entity_type)
    if action:
        qs = qs.filter(action__icontains=action)
    if start_date:
        qs = qs.filter(occurred_at__gte=_start_of(start_date))
    if end_date:
        # inclusive of the whole end day
        qs = qs.filter(occurred_at__lte=_end_of(end_date))

    sv = (search or "").strip()
    if sv:
        qs = qs.filter(
            Q(description__icontains=sv)
            | Q(entity_id__icontains=sv)
            | Q(action__icontains=sv)
            | Q(entity_type__icontains=sv)
        )

    return qs.order_by("-occurred_at")


def entity_history(*, entity_type: str, entity_id: str) -> QuerySet[AuditEvent]:
    return (
        AuditEvent.objects.select_related("actor")
        .filter(entity_type=entity_type, entity_id=str(entity_id))
        .order_by("-occurred_at")
    )


def audit_statistics(qs: QuerySet[AuditEvent] | None = None) -> dict:
    qs = AuditEvent.objects.all() if qs is None else qs.order_by()

    def _grouped(field: str, key: str) -> list[dict]:
        rows = qs.values(field).annotate(count=Count("id")).order_by("-count", field)
        return [{key: r[field], "count": r["count"]} for r in rows]

    # total and the three breakdowns must agree with each other
    with consistent_snapshot():
        return {
            "total": qs.count(),
            "by_action": _grouped("action", "action"),
            "by_entity_type": _grouped("entity_type", "entity_type"),
            "by_actor": _grouped("actor_id", "actor_id"),
        }
