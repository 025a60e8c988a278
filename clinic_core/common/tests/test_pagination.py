import math
from types import SimpleNamespace

import pytest
from rest_framework.request import Request
from rest_framework.test import APIRequestFactory

from clinic_core.common.api import pagination
from clinic_core.common.api.pagination import MAX_LIMIT, ClinicPagination, build_meta, paginate
from clinic_core.patients.api.serializers import PatientSerializer
from clinic_core.patients.models import Patient


def _request(query: str = ""):
    return Request(APIRequestFactory().get(f"/x/{query}"))


@pytest.mark.django_db
@pytest.mark.parametrize(
    "query, expected",
    [
        ("", (1, 10)),
        ("?page=3&limit=25", (3, 25)),
        ("?page=0&limit=0", (1, 10)),
        ("?page=-4&limit=1000", (1, MAX_LIMIT)),
        ("?page=abc&limit=xyz", (1, 10)),
    ],
)
def test_page_and_limit_are_clamped(query, expected):
    out = paginate(_request(query), Patient.objects.alive().order_by("created_at"), PatientSerializer)
    assert (out["meta"]["page"], out["meta"]["limit"]) == expected


def test_build_meta_pages_is_ceiling():
    assert build_meta(total=0, page=1, limit=10)["pages"] == 0
    assert build_meta(total=10, page=1, limit=10)["pages"] == 1
    assert build_meta(total=11, page=1, limit=10)["pages"] == 2


@pytest.mark.django_db
def test_paginate_returns_meta_and_slice(make_patient):
    for _ in range(7):
        make_patient()

    out = paginate(_request("?page=2&limit=3"), Patient.objects.alive().order_by("created_at"), PatientSerializer)

    assert out["meta"] == {"total": 7, "page": 2, "limit": 3, "pages": math.ceil(7 / 3)}
    assert len(out["data"]) == 3


@pytest.mark.django_db
def test_page_past_the_end_is_empty(make_patient):
    make_patient()
    out = paginate(_request("?page=5"), Patient.objects.alive().order_by("created_at"), PatientSerializer)
    assert out["data"] == []
    assert out["meta"]["total"] == 1
    assert out["meta"]["page"] == 5


@pytest.mark.django_db
def test_default_limit_is_per_view(make_patient):
    for _ in range(25):
        make_patient()
    out = paginate(_request(), Patient.objects.alive().order_by("created_at"), PatientSerializer, default_limit=20)
    assert out["meta"]["limit"] == 20
    assert len(out["data"]) == 20


@pytest.mark.django_db
def test_count_and_rows_read_inside_one_snapshot(make_patient, monkeypatch):
    from contextlib import contextmanager

    make_patient()
    seen = []

    @contextmanager
    def spy(using="default"):
        seen.append(using)
        yield

    monkeypatch.setattr(pagination, "consistent_snapshot", spy)
    out = paginate(_request(), Patient.objects.alive().order_by("created_at"), PatientSerializer)

    assert seen == ["default"]
    assert out["meta"]["total"] == 1


def test_paginated_response_is_enveloped():
    paginator = ClinicPagination()
    paginator.page = SimpleNamespace(number=1, paginator=SimpleNamespace(count=0, per_page=10))
    resp = paginator.get_paginated_response([])
    assert resp.data == {
        "success": True,
        "message": "Request successful",
        "data": {"meta": {"total": 0, "page": 1, "limit": 10, "pages": 0}, "data": []},
    }
