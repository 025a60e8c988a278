# clinic_core/common/api/exceptions.py
from __future__ import annotations

import logging
import uuid
from typing import Any

from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Internal server error."


def ensure_request_id(request) -> str:
    """
    Ensures request has a stable request_id attribute and returns it.
    Safe to call from middleware and the DRF exception handler.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid:
        rid = uuid.uuid4().hex
        if request is not None:
            setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, message: str, details: Any = None) -> dict[str, Any]:
    return {"success": False, "message": message, "data": details}


class ConflictError(APIException):
    """
    409 Conflict that still flows through the global exception handler.
    Raised for uniqueness violations and blocked state transitions.
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


def _first_message(data: Any) -> str | None:
    if isinstance(data, str):
        return data
    if isinstance(data, (list, tuple)):
        for item in data:
            msg = _first_message(item)
            if msg:
                return msg
    if isinstance(data, dict):
        for value in data.values():
            msg = _first_message(value)
            if msg:
                return msg
    return None


def _translate(exc: Exception) -> Exception:
    """Map Django/DB errors to the DRF exception carrying the right status."""
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
        return ValidationError(detail)
    if isinstance(exc, ObjectDoesNotExist):
        return NotFound()
    if isinstance(exc, IntegrityError):
        return ConflictError()
    return exc


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")
    rid = ensure_request_id(request)

    exc = _translate(exc)
    response = drf_exception_handler(exc, context)

    # Truly unhandled error: log everything, leak nothing
    if response is None:
        view = context.get("view")
        logger.exception(
            "Unhandled error in %s (request_id=%s)",
            view.__class__.__name__ if view is not None else "unknown view",
            rid,
        )
        return Response(
            build_error_envelope(message=SERVER_ERROR_MESSAGE),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    data = response.data

    # Message + details rules:
    # 1) {"detail": "..."} -> message=detail, details=None
    # 2) field errors      -> message=first error, details=field errors
    if isinstance(data, dict) and "detail" in data:
        message = str(data["detail"])
        details = {k: v for k, v in data.items() if k != "detail"} or None
    else:
        message = _first_message(data) or "Validation failed."
        details = data

    if isinstance(exc, Http404) or (isinstance(exc, NotFound) and message == str(NotFound.default_detail)):
        message = "Resource not found."

    if response.status_code >= 500:
        logger.error("Server error %s (request_id=%s): %s", response.status_code, rid, message)
        message, details = SERVER_ERROR_MESSAGE, None

    return Response(
        build_error_envelope(message=message, details=details),
        status=response.status_code,
        headers={k: v for k, v in response.items() if k in ("WWW-Authenticate", "Retry-After")},
    )
