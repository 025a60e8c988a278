# clinic_core/common/services.py
from __future__ import annotations

from django.db import models, transaction
from django.utils import timezone

from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists


@transaction.atomic
def soft_delete(model: type[models.Model], pk, *, actor: Actor, label: str | None = None) -> models.Model:
    """
    Stamp deleted_at/deleted_by on a live row.
    Missing or already-deleted rows raise 404, so a repeated delete never re-stamps.
    """
    instance = assert_exists(model, pk, label=label, lock=True)

    instance.deleted_at = timezone.now()
    instance.deleted_by_id = actor.user_id
    instance.save(update_fields=["deleted_at", "deleted_by", "updated_at"])
    return instance


def apply_changes(instance: models.Model, data: dict, allowed: set[str]) -> dict[str, tuple]:
    """
    setattr() the allowed keys of data onto instance.
    Returns {field: (before, after)} for the values that actually changed.
    """
    changes: dict[str, tuple] = {}
    for field, value in (data or {}).items():
        if field not in allowed:
            continue
        before = getattr(instance, field)
        if before != value:
            setattr(instance, field, value)
            changes[field] = (before, value)
    return changes
