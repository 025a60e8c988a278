# clinic_core/common/context.py
from __future__ import annotations

import contextvars
import logging
from dataclasses import dataclass

# set by RequestIdMiddleware for the lifetime of one request
current_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)


class RequestIdLogFilter(logging.Filter):
    """Stamps record.request_id ("-" outside a request) for the log format."""

    def filter(self, record):
        if not getattr(record, "request_id", None):
            record.request_id = current_request_id.get() or "-"
        return True


@dataclass(frozen=True)
class Actor:
    """
    Who is performing a service call. Built once per request by the API layer
    and passed down so services never touch the request object.
    """
    user_id: int | None
    role: str | None = None
    ip_address: str | None = None
    user_agent: str = ""

    @classmethod
    def system(cls) -> "Actor":
        return cls(user_id=None, role=None)

    @classmethod
    def from_request(cls, request) -> "Actor":
        user = getattr(request, "user", None)
        authenticated = bool(user and getattr(user, "is_authenticated", False))

        forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
        ip = forwarded.split(",")[0].strip() if forwarded else request.META.get("REMOTE_ADDR")

        return cls(
            user_id=user.id if authenticated else None,
            role=getattr(user, "role", None) if authenticated else None,
            ip_address=ip or None,
            user_agent=(request.META.get("HTTP_USER_AGENT") or "")[:255],
        )
