from datetime import timedelta

import pytest
from django.core.management import call_command
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from clinic_core.messaging import mail
from clinic_core.messaging.models import OutboxKind, OutboxMessage, OutboxStatus
from clinic_core.messaging.services import OutboxService, ReminderService

pytestmark = pytest.mark.django_db


def test_dispatch_sends_due_and_leaves_future(mailoutbox):
    OutboxService.enqueue(recipients=["a@x.test"], subject="now", body="b")
    later = OutboxService.enqueue(
        recipients=["a@x.test"], subject="later", body="b", scheduled_at=timezone.now() + timedelta(hours=1)
    )

    stats = OutboxService.dispatch_due()

    assert stats == {"sent": 1, "retrying": 0, "failed": 0}
    assert [m.subject for m in mailoutbox] == ["now"]
    later.refresh_from_db()
    assert later.status == OutboxStatus.PENDING


def test_failed_send_retries_then_gives_up(monkeypatch, settings):
    settings.OUTBOX_MAX_ATTEMPTS = 2

    def boom(*args, **kwargs):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr(mail, "deliver", boom)
    msg = OutboxService.enqueue(recipients=["a@x.test"], subject="s", body="b")

    assert OutboxService.dispatch_due() == {"sent": 0, "retrying": 1, "failed": 0}
    msg.refresh_from_db()
    assert msg.status == OutboxStatus.PENDING
    assert msg.attempts == 1
    assert "smtp down" in msg.last_error

    assert OutboxService.dispatch_due() == {"sent": 0, "retrying": 0, "failed": 1}
    msg.refresh_from_db()
    assert msg.status == OutboxStatus.FAILED


def test_dispatch_outbox_command(mailoutbox, capsys):
    OutboxService.enqueue(recipients=["a@x.test"], subject="s", body="b")
    call_command("dispatch_outbox", "--limit", "10")

    assert len(mailoutbox) == 1
    assert "Sent: 1" in capsys.readouterr().out


def test_reminder_must_be_in_the_future(actor_for, frontdesk):
    with pytest.raises(ValidationError):
        ReminderService.create(
            actor=actor_for(frontdesk),
            recipients=["a@x.test"],
            subject="s",
            message="m",
            send_at=timezone.now() - timedelta(minutes=1),
        )


def test_reminder_api_roundtrip(client_for, frontdesk, pharmacist):
    send_at = (timezone.now() + timedelta(days=1)).isoformat()
    payload = {"recipients": ["pat@x.test"], "subject": "Follow-up", "message": "See you tomorrow", "send_at": send_at}

    assert client_for(pharmacist).post("/api/v1/reminders/", payload, format="json").status_code == 403

    c = client_for(frontdesk)
    resp = c.post("/api/v1/reminders/", payload, format="json")
    assert resp.status_code == 201
    assert resp.json()["data"]["status"] == OutboxStatus.PENDING

    reminder = OutboxMessage.objects.get()
    assert reminder.kind == OutboxKind.REMINDER
    assert reminder.created_by_id == frontdesk.id

    listed = c.get("/api/v1/reminders/", {"upcoming": "true"}).json()["data"]
    assert listed["meta"]["total"] == 1
