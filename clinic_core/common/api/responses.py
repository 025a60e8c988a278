from __future__ import annotations

from typing import Any

from rest_framework import status as http
from rest_framework.renderers import JSONRenderer
from rest_framework.response import Response

DEFAULT_MESSAGE = "Request successful"


def envelope(data: Any = None, message: str = DEFAULT_MESSAGE) -> dict[str, Any]:
    return {"success": True, "message": message, "data": data}


def ok(data: Any = None, message: str = DEFAULT_MESSAGE, *, status: int = http.HTTP_200_OK) -> Response:
    return Response(envelope(data, message), status=status)


def created(data: Any = None, message: str = "Created successfully") -> Response:
    return ok(data, message, status=http.HTTP_201_CREATED)


def _is_enveloped(data: Any) -> bool:
    return isinstance(data, dict) and "success" in data and "data" in data


class EnvelopeJSONRenderer(JSONRenderer):
    """
    Last line of the response-shaping layer: anything a view returns that is
    not already an envelope (router root, third-party views) gets wrapped.
    """

    def render(self, data, accepted_media_type=None, renderer_context=None):
        response = (renderer_context or {}).get("response")
        if response is not None and response.status_code == http.HTTP_204_NO_CONTENT:
            return b""
        if not _is_enveloped(data):
            data = envelope(data)
        return super().render(data, accepted_media_type, renderer_context)
