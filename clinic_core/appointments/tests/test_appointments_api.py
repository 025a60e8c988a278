import uuid

import pytest

from clinic_core.appointments.models import Appointment, AppointmentStatus
from clinic_core.patients.models import Patient, PatientStatus

pytestmark = pytest.mark.django_db

URL = "/api/v1/appointments/"


def _payload(patient_id, **extra):
    return {"patient_id": str(patient_id), "date": "2026-11-02", "service": "Dental check", **extra}


def test_create_notifies_patient_doctor_and_frontdesk(
    client_for, frontdesk, doctor, patient, mailoutbox, django_capture_on_commit_callbacks
):
    with django_capture_on_commit_callbacks(execute=True):
        resp = client_for(frontdesk).post(URL, _payload(patient.id, doctor_id=doctor.id), format="json")

    assert resp.status_code == 201
    body = resp.json()["data"]
    assert body["status"] == AppointmentStatus.PENDING
    assert body["doctor"]["id"] == doctor.id
    recipients = {addr for m in mailoutbox for addr in m.to}
    assert recipients == {patient.email, doctor.email, frontdesk.email}


def test_unknown_patient_is_404_and_nothing_is_written(client_for, frontdesk):
    resp = client_for(frontdesk).post(URL, _payload(uuid.uuid4()), format="json")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Patient not found"
    assert Appointment.objects.count() == 0


def test_pending_patient_cannot_be_booked_by_staff(client_for, frontdesk, pending_patient):
    resp = client_for(frontdesk).post(URL, _payload(pending_patient.id), format="json")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Patient is not approved yet."


def test_pharmacist_cannot_be_assigned(client_for, frontdesk, pharmacist, patient):
    resp = client_for(frontdesk).post(URL, _payload(patient.id, doctor_id=pharmacist.id), format="json")
    assert resp.status_code == 400


def test_public_booking_creates_pending_patient(api_client):
    resp = api_client.post(
        f"{URL}book/",
        {
            "first_name": "Ada",
            "last_name": "Obi",
            "email": "ada@mail.test",
            "date": "2026-11-03",
            "service": "Consultation",
        },
        format="json",
    )

    assert resp.status_code == 201
    patient = Patient.objects.get(email="ada@mail.test")
    assert patient.status == PatientStatus.PENDING
    assert Appointment.objects.get().patient_id == patient.id


def test_public_booking_reuses_existing_patient(api_client, patient):
    resp = api_client.post(
        f"{URL}book/",
        {
            "first_name": "Someone",
            "last_name": "Else",
            "email": patient.email.upper(),
            "date": "2026-11-03",
            "service": "Consultation",
        },
        format="json",
    )
    assert resp.status_code == 201
    assert Patient.objects.count() == 1


def test_mine_returns_only_linked_appointments(client_for, make_patient, patient_user, make_appointment):
    own = make_patient(user=patient_user)
    mine = make_appointment(patient=own)
    make_appointment()

    data = client_for(patient_user).get(f"{URL}mine/").json()["data"]
    assert [a["id"] for a in data["data"]] == [str(mine.id)]


def test_list_filters(client_for, doctor, make_appointment):
    make_appointment(status=AppointmentStatus.CONFIRMED, doctor=doctor)
    make_appointment()

    data = client_for(doctor).get(URL, {"doctor_id": doctor.id}).json()["data"]
    assert data["meta"]["total"] == 1

    data = client_for(doctor).get(URL, {"status": AppointmentStatus.PENDING}).json()["data"]
    assert data["meta"]["total"] == 1


def test_approve_endpoint_and_noop(client_for, doctor, appointment):
    c = client_for(doctor)
    assert c.post(f"{URL}{appointment.id}/approve/").json()["data"]["status"] == AppointmentStatus.CONFIRMED
    assert c.post(f"{URL}{appointment.id}/approve/").status_code == 200
    assert c.post(f"{URL}{appointment.id}/complete/").json()["data"]["status"] == AppointmentStatus.COMPLETED
    assert c.post(f"{URL}{appointment.id}/cancel/").status_code == 409


def test_delete_is_frontdesk_or_admin(client_for, nurse, frontdesk, appointment):
    assert client_for(nurse).delete(f"{URL}{appointment.id}/").status_code == 403
    assert client_for(frontdesk).delete(f"{URL}{appointment.id}/").status_code == 200
    assert client_for(frontdesk).get(f"{URL}{appointment.id}/").status_code == 404


def test_approve_and_complete_are_doctor_or_admin(client_for, frontdesk, nurse, admin_user, appointment):
    for user in (frontdesk, nurse):
        assert client_for(user).post(f"{URL}{appointment.id}/approve/").status_code == 403
        assert client_for(user).post(f"{URL}{appointment.id}/complete/").status_code == 403

    assert client_for(admin_user).post(f"{URL}{appointment.id}/approve/").status_code == 200


def test_frontdesk_cannot_patch_but_can_cancel(client_for, frontdesk, nurse, appointment):
    resp = client_for(frontdesk).patch(f"{URL}{appointment.id}/", {"service": "Scaling"}, format="json")
    assert resp.status_code == 403

    resp = client_for(nurse).patch(f"{URL}{appointment.id}/", {"service": "Scaling"}, format="json")
    assert resp.status_code == 200

    resp = client_for(frontdesk).post(f"{URL}{appointment.id}/cancel/")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == AppointmentStatus.CANCELLED
