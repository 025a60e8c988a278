from django.contrib.auth import get_user_model
from django.db.models import QuerySet

from clinic_core.common.api.pagination import search_q


def list_users(*, q: str | None = None, role: str | None = None, is_active: bool | None = None) -> QuerySet:
    qs = get_user_model().objects.alive()
    qs = search_q(qs, q, ["email", "first_name", "last_name"])
    if role:
        qs = qs.filter(role=role)
    if is_active is not None:
        qs = qs.filter(is_active=is_active)
    return qs.order_by("-created_at", "-id")
