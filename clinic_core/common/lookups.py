# clinic_core/common/lookups.py
from __future__ import annotations

from typing import TypeVar

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models
from rest_framework.exceptions import NotFound

from clinic_core.common.models import SoftDeleteQuerySet

M = TypeVar("M", bound=models.Model)


def _label(model: type[models.Model]) -> str:
    return str(model._meta.verbose_name).capitalize()


def live_queryset(model: type[M]) -> models.QuerySet:
    qs = model._default_manager.all()
    if isinstance(qs, SoftDeleteQuerySet):
        qs = qs.alive()
    return qs


def assert_exists(
    model: type[M],
    pk,
    *,
    label: str | None = None,
    queryset: models.QuerySet | None = None,
    lock: bool = False,
) -> M:
    """
    Resolve a referenced id or raise 404 "<Label> not found".

    Soft-deleted rows count as missing. Malformed ids (e.g. a non-UUID for a
    UUID key) are reported the same way rather than as a 400/500.
    """
    qs = queryset if queryset is not None else live_queryset(model)
    if lock:
        qs = qs.select_for_update(of=("self",))

    try:
        return qs.get(pk=pk)
    except (model.DoesNotExist, ValueError, TypeError, DjangoValidationError):
        raise NotFound(f"{label or _label(model)} not found")


def assert_exists_optional(model: type[M], pk, **kwargs) -> M | None:
    if pk in (None, ""):
        return None
    return assert_exists(model, pk, **kwargs)
