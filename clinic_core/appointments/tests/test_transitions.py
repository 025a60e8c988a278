import pytest

from clinic_core.appointments.models import AppointmentStatus as S
from clinic_core.appointments.services import AppointmentService
from clinic_core.audit.models import AuditEvent
from clinic_core.common.api.exceptions import ConflictError

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize(
    "start, op, end",
    [
        (S.PENDING, "approve", S.CONFIRMED),
        (S.PENDING, "cancel", S.CANCELLED),
        (S.CONFIRMED, "cancel", S.CANCELLED),
        (S.CONFIRMED, "complete", S.COMPLETED),
    ],
)
def test_legal_transitions(make_appointment, frontdesk, actor_for, start, op, end):
    appt = make_appointment(status=start)
    result = getattr(AppointmentService, op)(actor=actor_for(frontdesk), appointment_id=appt.id)
    assert result.status == end


@pytest.mark.parametrize(
    "start, op",
    [
        (S.COMPLETED, "approve"),
        (S.CANCELLED, "approve"),
        (S.COMPLETED, "cancel"),
        (S.PENDING, "complete"),
        (S.CANCELLED, "complete"),
    ],
)
def test_illegal_transitions_conflict(make_appointment, frontdesk, actor_for, start, op):
    appt = make_appointment(status=start)
    with pytest.raises(ConflictError):
        getattr(AppointmentService, op)(actor=actor_for(frontdesk), appointment_id=appt.id)

    appt.refresh_from_db()
    assert appt.status == start


@pytest.mark.parametrize("status, op", [(S.CONFIRMED, "approve"), (S.CANCELLED, "cancel"), (S.COMPLETED, "complete")])
def test_repeating_a_transition_is_a_silent_noop(make_appointment, frontdesk, actor_for, status, op):
    appt = make_appointment(status=status)
    before = appt.updated_at

    result = getattr(AppointmentService, op)(actor=actor_for(frontdesk), appointment_id=appt.id)

    assert result.status == status
    assert result.updated_at == before
    assert not AuditEvent.objects.filter(entity_id=str(appt.id)).exists()


def test_status_overwrite_bypasses_the_machine_but_is_flagged(
    make_appointment, admin_user, actor_for, caplog
):
    appt = make_appointment(status=S.COMPLETED)

    AppointmentService.update_appointment(
        actor=actor_for(admin_user), appointment_id=appt.id, data={"status": S.PENDING}
    )

    appt.refresh_from_db()
    assert appt.status == S.PENDING
    event = AuditEvent.objects.get(action="APPOINTMENT_UPDATED", entity_id=str(appt.id))
    assert event.details["status_overwrite"] is True
    assert "status overwritten" in caplog.text
