import pytest
from django.utils import timezone

from clinic_core.audit.models import AuditEvent, AuditEventImmutable
from clinic_core.audit.services import AuditService, default_description

pytestmark = pytest.mark.django_db


def test_default_description_humanizes_entity_type():
    assert default_description("ITEM_CREATED", "PharmacyItem", 7) == (
        "Action 'ITEM_CREATED' performed on Pharmacy Item (ID: 7)"
    )


def test_events_are_append_only(actor_for, admin_user):
    event = AuditService.log(action="X", entity_type="Patient", entity_id="1", actor=actor_for(admin_user))

    with pytest.raises(AuditEventImmutable):
        event.save()
    with pytest.raises(AuditEventImmutable):
        event.delete()


def test_non_strict_log_swallows_failures(monkeypatch):
    def boom(**kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(AuditEvent.objects, "create", boom)
    assert AuditService.log(action="X", entity_type="Patient", entity_id="1") is None

    with pytest.raises(RuntimeError):
        AuditService.log(action="X", entity_type="Patient", entity_id="1", strict=True)


def test_system_actor_when_none_given():
    event = AuditService.log(action="X", entity_type="Patient", entity_id="1")
    assert event.actor_id is None
    assert event.actor_role == "SYSTEM"


def test_list_filters_and_default_limit(client_for, admin_user, actor_for):
    for i in range(25):
        AuditService.log(action="PATIENT_CREATED", entity_type="Patient", entity_id=str(i), actor=actor_for(admin_user))
    AuditService.log(action="INVOICE_CREATED", entity_type="Invoice", entity_id="inv")

    c = client_for(admin_user)
    data = c.get("/api/v1/audit-trail/").json()["data"]
    assert data["meta"]["limit"] == 20
    assert data["meta"]["total"] == 26
    assert len(data["data"]) == 20

    only_invoices = c.get("/api/v1/audit-trail/", {"action": "invoice"}).json()["data"]
    assert only_invoices["meta"]["total"] == 1

    by_actor = c.get("/api/v1/audit-trail/", {"actor_id": admin_user.id}).json()["data"]
    assert by_actor["meta"]["total"] == 25


def test_end_date_includes_the_whole_day(client_for, admin_user):
    AuditService.log(action="X", entity_type="Patient", entity_id="1")
    today = timezone.localdate().isoformat()

    data = client_for(admin_user).get(
        "/api/v1/audit-trail/", {"start_date": today, "end_date": today}
    ).json()["data"]
    assert data["meta"]["total"] == 1


def test_statistics_and_entity_history(client_for, admin_user):
    AuditService.log(action="A", entity_type="Patient", entity_id="p1")
    AuditService.log(action="B", entity_type="Patient", entity_id="p1")
    AuditService.log(action="A", entity_type="Invoice", entity_id="i1")

    c = client_for(admin_user)
    stats = c.get("/api/v1/audit-trail/statistics/").json()["data"]
    assert stats["total"] == 3
    assert stats["by_action"][0] == {"action": "A", "count": 2}

    history = c.get("/api/v1/audit-trail/entity/Patient/p1/").json()["data"]
    assert history["meta"]["total"] == 2


def test_strict_create_is_admin_only(client_for, admin_user, doctor):
    payload = {"action": "MANUAL", "entity_type": "Patient", "entity_id": "p9"}

    assert client_for(doctor).post("/api/v1/audit-trail/", payload, format="json").status_code == 403

    resp = client_for(admin_user).post("/api/v1/audit-trail/", payload, format="json")
    assert resp.status_code == 201
    assert resp.json()["data"]["actor_id"] == admin_user.id


def test_statistics_read_inside_one_snapshot(monkeypatch):
    from contextlib import contextmanager

    from django.db import connection

    from clinic_core.audit import selectors

    AuditService.log(action="A", entity_type="Patient", entity_id="p1")
    state = {"inside": False}
    outside_queries = []

    @contextmanager
    def spy(using="default"):
        state["inside"] = True
        try:
            yield
        finally:
            state["inside"] = False

    def wrapper(execute, sql, params, many, context):
        if not state["inside"]:
            outside_queries.append(sql)
        return execute(sql, params, many, context)

    monkeypatch.setattr(selectors, "consistent_snapshot", spy)
    with connection.execute_wrapper(wrapper):
        stats = selectors.audit_statistics()

    assert stats["total"] == 1
    assert outside_queries == []
