import pytest
from django.core import mail as django_mail

from clinic_core.common.roles import Role
from clinic_core.messaging import mail
from clinic_core.messaging.models import OutboxMessage

pytestmark = pytest.mark.django_db


def test_email_is_sent_only_after_commit(mailoutbox, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=False) as callbacks:
        mail.notify_by_email(["a@x.test"], "Hi", "Body")
        assert mailoutbox == []

    assert len(callbacks) == 1
    callbacks[0]()
    assert mailoutbox[0].to == ["a@x.test"]


def test_empty_and_duplicate_recipients_are_cleaned(mailoutbox, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        mail.notify_by_email([None, "", "  "], "Hi", "Body")
    assert callbacks == []

    with django_capture_on_commit_callbacks(execute=True):
        mail.notify_by_email(["a@x.test", " a@x.test", "b@x.test"], "Hi", "Body")
    assert mailoutbox[0].to == ["a@x.test", "b@x.test"]


def test_send_failure_is_logged_not_raised(monkeypatch, caplog, django_capture_on_commit_callbacks):
    def boom(*args, **kwargs):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr(mail, "send_mail", boom)
    with django_capture_on_commit_callbacks(execute=True):
        mail.notify_by_email(["a@x.test"], "Hi", "Body")

    assert "failed" in caplog.text


def test_outbox_mode_persists_instead_of_sending(settings, mailoutbox, django_capture_on_commit_callbacks):
    settings.MAIL_USE_OUTBOX = True

    with django_capture_on_commit_callbacks(execute=True):
        mail.notify_by_email(["a@x.test"], "Queued", "Body")

    assert mailoutbox == []
    queued = OutboxMessage.objects.get()
    assert queued.subject == "Queued"
    assert queued.recipients == ["a@x.test"]


def test_role_recipients_skip_inactive_and_deleted(make_user, settings):
    from django.utils import timezone

    settings.ADMIN_NOTIFY_EMAILS = ["ops@clinic.test"]
    active = make_user(Role.ADMIN)
    make_user(Role.ADMIN, is_active=False)
    make_user(Role.ADMIN, deleted_at=timezone.now())
    make_user(Role.DOCTOR)

    assert set(mail.admin_recipients()) == {active.email, "ops@clinic.test"}


def test_deliver_uses_default_from(settings):
    settings.DEFAULT_FROM_EMAIL = "clinic@x.test"
    mail.deliver(["a@x.test"], "S", "T")
    assert django_mail.outbox[-1].from_email == "clinic@x.test"
