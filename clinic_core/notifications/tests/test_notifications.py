import pytest
from rest_framework.exceptions import PermissionDenied

from clinic_core.audit.models import AuditEvent
from clinic_core.notifications.models import Notification, NotificationType
from clinic_core.notifications.selectors import notifications_for_user
from clinic_core.notifications.services import NotificationService

pytestmark = pytest.mark.django_db


@pytest.fixture
def own_record(make_patient, patient_user):
    return make_patient(user=patient_user)


@pytest.fixture
def notification(own_record, frontdesk, actor_for):
    return NotificationService.create_notification(
        actor=actor_for(frontdesk), patient_id=own_record.id, title="Results ready", message="Your lab results are in."
    )


def test_create_defaults_to_system_type(notification):
    assert notification.type == NotificationType.SYSTEM
    assert notification.is_read is False
    assert AuditEvent.objects.filter(action="NOTIFICATION_CREATED", entity_id=str(notification.id)).exists()


def test_mark_read_is_idempotent(notification, patient_user, actor_for):
    first = NotificationService.mark_read(
        actor=actor_for(patient_user), user=patient_user, notification_id=notification.id
    )
    again = NotificationService.mark_read(
        actor=actor_for(patient_user), user=patient_user, notification_id=notification.id
    )

    assert first.is_read and again.is_read
    assert again.read_at == first.read_at


def test_patient_cannot_mark_someone_elses(notification, make_user, actor_for):
    from clinic_core.common.roles import Role

    stranger = make_user(Role.PATIENT)
    with pytest.raises(PermissionDenied):
        NotificationService.mark_read(actor=actor_for(stranger), user=stranger, notification_id=notification.id)

    notification.refresh_from_db()
    assert notification.is_read is False


def test_feed_only_holds_own_record(notification, patient, patient_user, frontdesk, actor_for):
    NotificationService.create_notification(
        actor=actor_for(frontdesk), patient_id=patient.id, title="Someone else", message="..."
    )
    assert list(notifications_for_user(patient_user)) == [notification]


def test_deleted_notifications_leave_the_feed(notification, patient_user, admin_user, actor_for):
    NotificationService.delete_notification(actor=actor_for(admin_user), notification_id=notification.id)

    assert list(notifications_for_user(patient_user)) == []
    assert Notification.objects.filter(id=notification.id).exists()


def test_api_mine_and_read(client_for, notification, patient_user):
    client = client_for(patient_user)

    resp = client.get("/api/v1/notifications/mine/", {"is_read": "false"})
    assert resp.status_code == 200
    assert resp.data["data"]["meta"]["total"] == 1

    resp = client.post(f"/api/v1/notifications/{notification.id}/read/")
    assert resp.status_code == 200
    assert resp.data["data"]["is_read"] is True

    resp = client.get("/api/v1/notifications/mine/", {"is_read": "false"})
    assert resp.data["data"]["meta"]["total"] == 0


def test_api_patient_cannot_retrieve_foreign(client_for, notification, make_user):
    from clinic_core.common.roles import Role

    resp = client_for(make_user(Role.PATIENT)).get(f"/api/v1/notifications/{notification.id}/")
    assert resp.status_code == 403


def test_api_create_requires_clinical_desk(client_for, patient, frontdesk, pharmacist):
    payload = {"patient_id": str(patient.id), "title": "Reminder", "message": "Bring your card.", "type": "APPOINTMENT"}

    assert client_for(pharmacist).post("/api/v1/notifications/", payload, format="json").status_code == 403

    resp = client_for(frontdesk).post("/api/v1/notifications/", payload, format="json")
    assert resp.status_code == 201
    assert resp.data["data"]["type"] == "APPOINTMENT"
