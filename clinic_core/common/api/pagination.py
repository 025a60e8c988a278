from __future__ import annotations

import math
from typing import Any, Iterable

from django.core.paginator import Paginator as DjangoPaginator
from django.db.models import Q, QuerySet
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from clinic_core.common.api.responses import envelope
from clinic_core.common.db import consistent_snapshot

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

PAGE_PARAMS = [
    OpenApiParameter(name="page", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="limit", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
]


class ClampedPaginator(DjangoPaginator):
    """
    page < 1 (or garbage) reads as page 1; a page past the end is an empty
    page rather than a 404.
    """

    def validate_number(self, number):
        try:
            number = int(number)
        except (TypeError, ValueError):
            return 1
        return max(number, 1)


def build_meta(*, total: int, page: int, limit: int) -> dict[str, int]:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if total else 0,
    }


class ClinicPagination(PageNumberPagination):
    """
    Shared list contract:
      { meta: { total, page, limit, pages }, data: [...] }

    `limit` outside 1..100 or unparsable falls back to page_size / is cut
    off at max_page_size by DRF's own parsing.
    """

    page_size = DEFAULT_LIMIT
    page_query_param = "page"
    page_size_query_param = "limit"
    max_page_size = MAX_LIMIT
    django_paginator_class = ClampedPaginator

    def paginate_queryset(self, queryset, request, view=None):
        # count + page rows from one snapshot
        with consistent_snapshot():
            return super().paginate_queryset(queryset, request, view=view)

    def get_paginated_data(self, data) -> dict[str, Any]:
        paginator = self.page.paginator
        return {
            "meta": build_meta(total=paginator.count, page=self.page.number, limit=paginator.per_page),
            "data": data,
        }

    def get_paginated_response(self, data):
        return Response(envelope(self.get_paginated_data(data)))

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                "meta": {
                    "type": "object",
                    "properties": {
                        "total": {"type": "integer"},
                        "page": {"type": "integer"},
                        "limit": {"type": "integer"},
                        "pages": {"type": "integer"},
                    },
                },
                "data": schema,
            },
        }


def paginate(request, queryset: QuerySet, serializer_class, *, default_limit: int = DEFAULT_LIMIT, context=None) -> dict:
    """
    Page a queryset for a ViewSet action and return the list contract as a
    plain dict, ready for ok().
    """
    paginator = ClinicPagination()
    paginator.page_size = default_limit
    rows = paginator.paginate_queryset(queryset, request)
    ctx = {"request": request, **(context or {})}
    return paginator.get_paginated_data(serializer_class(rows, many=True, context=ctx).data)


def search_q(queryset: QuerySet, q: str | None, fields: Iterable[str]) -> QuerySet:
    """Case-insensitive substring match of q across the given columns."""
    qv = (q or "").strip()
    if not qv:
        return queryset

    cond = Q()
    for f in fields:
        cond |= Q(**{f"{f}__icontains": qv})
    return queryset.filter(cond)
