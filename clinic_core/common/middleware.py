from __future__ import annotations

import logging
import re

from django.utils.deprecation import MiddlewareMixin

from clinic_core.common.api.exceptions import ensure_request_id
from clinic_core.common.context import current_request_id

logger = logging.getLogger("clinic_core.request")

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_RID = re.compile(r"^[A-Za-z0-9\-_.]{8,64}$")


class RequestIdMiddleware(MiddlewareMixin):
    """
    Attaches request.request_id (honouring a well-formed incoming X-Request-ID),
    echoes it on the response and writes one access log line per API call.
    """

    def process_request(self, request):
        incoming = request.META.get("HTTP_X_REQUEST_ID", "")
        if incoming and _VALID_RID.match(incoming):
            request.request_id = incoming
        request._request_id_token = current_request_id.set(ensure_request_id(request))
        return None

    def process_response(self, request, response):
        rid = ensure_request_id(request)
        response[REQUEST_ID_HEADER] = rid

        path = getattr(request, "path", "") or ""
        if path.startswith("/api/"):
            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            logger.log(level, "%s %s -> %s", request.method, path, response.status_code)

        token = getattr(request, "_request_id_token", None)
        if token is not None:
            current_request_id.reset(token)
        return response
