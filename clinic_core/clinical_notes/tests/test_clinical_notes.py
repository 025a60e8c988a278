import pytest
from rest_framework.exceptions import PermissionDenied

from clinic_core.clinical_notes.models import ClinicalNote, SuggestionStatus
from clinic_core.clinical_notes.services import ClinicalNoteService, ClinicalSuggestionService, merge_extended
from clinic_core.common.api.exceptions import ConflictError
from clinic_core.common.roles import Role

pytestmark = pytest.mark.django_db


@pytest.fixture
def note(patient, doctor, actor_for):
    return ClinicalNoteService.create_note(
        actor=actor_for(doctor),
        patient_id=patient.id,
        observations="Mild fever",
        extended_data={"vitals": {"temp": 38.1}, "source": "ward"},
    )


@pytest.fixture
def suggestion(patient, nurse, actor_for):
    return ClinicalSuggestionService.create_suggestion(
        actor=actor_for(nurse), patient_id=patient.id, content="Consider malaria RDT"
    )


def test_merge_extended_keeps_unmentioned_keys():
    assert merge_extended({"a": 1, "b": 2}, {"b": 3, "c": 4}) == {"a": 1, "b": 3, "c": 4}
    assert merge_extended(None, None) == {}


def test_update_merges_extended_data(note, doctor, actor_for):
    note = ClinicalNoteService.update_note(
        actor=actor_for(doctor), note_id=note.id, data={"extended_data": {"source": "clinic", "bmi": 22}}
    )
    assert note.extended_data == {"vitals": {"temp": 38.1}, "source": "clinic", "bmi": 22}


def test_only_author_or_admin_can_update(note, make_user, admin_user, actor_for):
    other_doctor = make_user(Role.DOCTOR)
    with pytest.raises(PermissionDenied):
        ClinicalNoteService.update_note(actor=actor_for(other_doctor), note_id=note.id, data={"doctor_notes": "x"})

    note = ClinicalNoteService.update_note(
        actor=actor_for(admin_user), note_id=note.id, data={"doctor_notes": "Reviewed"}
    )
    assert note.doctor_notes == "Reviewed"


def test_suggestion_emails_active_doctors(patient, nurse, doctor, make_user, actor_for, mailoutbox,
                                          django_capture_on_commit_callbacks):
    make_user(Role.DOCTOR, is_active=False)

    with django_capture_on_commit_callbacks(execute=True):
        ClinicalSuggestionService.create_suggestion(actor=actor_for(nurse), patient_id=patient.id, content="Check BP")

    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == [doctor.email]


def test_approve_creates_linked_note(suggestion, doctor, actor_for):
    note = ClinicalSuggestionService.approve_suggestion(
        actor=actor_for(doctor), suggestion_id=suggestion.id, treatment_plan="Artemether"
    )

    suggestion.refresh_from_db()
    assert suggestion.status == SuggestionStatus.APPROVED
    assert suggestion.approved_by_id == doctor.id
    assert note.source_suggestion_id == suggestion.id
    assert note.observations == "Consider malaria RDT"
    assert note.author_id == doctor.id


def test_second_approval_is_409(suggestion, doctor, actor_for):
    actor = actor_for(doctor)
    ClinicalSuggestionService.approve_suggestion(actor=actor, suggestion_id=suggestion.id)

    with pytest.raises(ConflictError, match="already approved"):
        ClinicalSuggestionService.approve_suggestion(actor=actor, suggestion_id=suggestion.id)
    assert ClinicalNote.objects.count() == 1


def test_api_note_crud(client_for, patient, doctor, admin_user):
    client = client_for(doctor)

    resp = client.post("/api/v1/clinical-notes/", {"patient_id": str(patient.id)}, format="json")
    assert resp.status_code == 400

    resp = client.post(
        "/api/v1/clinical-notes/", {"patient_id": str(patient.id), "observations": "Cough"}, format="json"
    )
    assert resp.status_code == 201
    note_id = resp.data["data"]["id"]

    resp = client.patch(f"/api/v1/clinical-notes/{note_id}/", {"treatment_plan": "Fluids"}, format="json")
    assert resp.status_code == 200
    assert resp.data["data"]["treatment_plan"] == "Fluids"

    assert client.delete(f"/api/v1/clinical-notes/{note_id}/").status_code == 403
    assert client_for(admin_user).delete(f"/api/v1/clinical-notes/{note_id}/").status_code == 200
    assert client.get(f"/api/v1/clinical-notes/{note_id}/").status_code == 404


def test_api_approve_flow(client_for, suggestion, doctor, nurse):
    assert client_for(nurse).post(f"/api/v1/clinical-suggestions/{suggestion.id}/approve/").status_code == 403

    resp = client_for(doctor).post(
        f"/api/v1/clinical-suggestions/{suggestion.id}/approve/", {"doctor_notes": "Agreed"}, format="json"
    )
    assert resp.status_code == 201
    assert resp.data["data"]["source_suggestion_id"] == str(suggestion.id)

    resp = client_for(doctor).post(f"/api/v1/clinical-suggestions/{suggestion.id}/approve/", {}, format="json")
    assert resp.status_code == 409


def test_api_suggestions_filter_by_status(client_for, suggestion, nurse):
    resp = client_for(nurse).get("/api/v1/clinical-suggestions/", {"status": "PENDING"})
    assert resp.status_code == 200
    assert resp.data["data"]["meta"]["total"] == 1
