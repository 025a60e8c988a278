import datetime

import pytest
from rest_framework.exceptions import ValidationError

from clinic_core.appointments.models import Appointment
from clinic_core.attendance.models import ClientAttendance, ClientAttendanceStatus, ClockAction, StaffAttendance
from clinic_core.attendance.services import ALREADY_IN, ALREADY_OUT, NO_CLOCK_IN, AttendanceService

pytestmark = pytest.mark.django_db


@pytest.fixture
def appointment(patient):
    return Appointment.objects.create(patient=patient, date=datetime.date(2026, 11, 2), service="Check-up")


def _messages(exc):
    return str(exc.value.detail)


def test_clock_in_then_out(nurse, admin_user, actor_for):
    actor = actor_for(admin_user)

    row = AttendanceService.clock(actor=actor, staff_id=nurse.id, action=ClockAction.IN)
    assert row.clock_out is None
    assert row.recorded_by_id == admin_user.id

    row = AttendanceService.clock(actor=actor, staff_id=nurse.id, action=ClockAction.OUT)
    assert row.clock_out is not None
    assert row.clock_out >= row.clock_in
    assert StaffAttendance.objects.filter(staff=nurse).count() == 1


def test_second_clock_in_same_day_is_rejected(nurse, actor_for):
    AttendanceService.clock(actor=actor_for(nurse), staff_id=nurse.id, action=ClockAction.IN)

    with pytest.raises(ValidationError) as exc:
        AttendanceService.clock(actor=actor_for(nurse), staff_id=nurse.id, action=ClockAction.IN)
    assert ALREADY_IN in _messages(exc)


def test_concurrent_clock_in_loses_on_unique_constraint(nurse, actor_for, monkeypatch):
    from django.db.models.query import QuerySet

    actor = actor_for(nurse)
    AttendanceService.clock(actor=actor, staff_id=nurse.id, action=ClockAction.IN)

    # the other request committed between our pre-check and our insert
    monkeypatch.setattr(QuerySet, "exists", lambda self: False)

    with pytest.raises(ValidationError) as exc:
        AttendanceService.clock(actor=actor, staff_id=nurse.id, action=ClockAction.IN)
    assert ALREADY_IN in _messages(exc)

    monkeypatch.undo()
    assert StaffAttendance.objects.filter(staff=nurse).count() == 1


def test_clock_out_without_clock_in(nurse, actor_for):
    with pytest.raises(ValidationError) as exc:
        AttendanceService.clock(actor=actor_for(nurse), staff_id=nurse.id, action=ClockAction.OUT)
    assert NO_CLOCK_IN in _messages(exc)


def test_double_clock_out(nurse, actor_for):
    actor = actor_for(nurse)
    AttendanceService.clock(actor=actor, staff_id=nurse.id, action=ClockAction.IN)
    AttendanceService.clock(actor=actor, staff_id=nurse.id, action=ClockAction.OUT)

    with pytest.raises(ValidationError) as exc:
        AttendanceService.clock(actor=actor, staff_id=nurse.id, action=ClockAction.OUT)
    assert ALREADY_OUT in _messages(exc)


def test_patients_cannot_clock_in(patient_user, admin_user, actor_for):
    with pytest.raises(ValidationError):
        AttendanceService.clock(actor=actor_for(admin_user), staff_id=patient_user.id, action=ClockAction.IN)
    assert not StaffAttendance.objects.exists()


def test_mark_client_upserts(appointment, doctor, actor_for):
    actor = actor_for(doctor)

    AttendanceService.mark_client(actor=actor, appointment_id=appointment.id, status=ClientAttendanceStatus.NO_SHOW)
    row = AttendanceService.mark_client(
        actor=actor, appointment_id=appointment.id, status=ClientAttendanceStatus.ATTENDED
    )

    assert ClientAttendance.objects.filter(appointment=appointment).count() == 1
    assert row.status == ClientAttendanceStatus.ATTENDED


def test_clock_api(client_for, doctor, nurse):
    client = client_for(doctor)

    resp = client.post("/api/v1/attendance/staff/clock/", {"staff_id": nurse.id, "action": "IN"}, format="json")
    assert resp.status_code == 200
    assert resp.data["message"] == "Clocked in"

    resp = client.post("/api/v1/attendance/staff/clock/", {"staff_id": nurse.id, "action": "IN"}, format="json")
    assert resp.status_code == 400
    assert resp.data["message"] == ALREADY_IN

    resp = client.get("/api/v1/attendance/staff/", {"staff_id": nurse.id})
    assert resp.status_code == 200
    assert resp.data["data"]["meta"]["total"] == 1


def test_clients_api(client_for, admin_user, appointment):
    client = client_for(admin_user)

    resp = client.post(
        "/api/v1/attendance/clients/",
        {"appointment_id": str(appointment.id), "status": "ATTENDED"},
        format="json",
    )
    assert resp.status_code == 201

    resp = client.get("/api/v1/attendance/clients/", {"status": "ATTENDED"})
    assert resp.data["data"]["meta"]["total"] == 1


def test_nurse_has_no_attendance_access(client_for, nurse):
    resp = client_for(nurse).post("/api/v1/attendance/staff/clock/", {"staff_id": nurse.id, "action": "IN"}, format="json")
    assert resp.status_code == 403
