import csv
import io
import re
import uuid
from decimal import Decimal

import pytest
from rest_framework.exceptions import PermissionDenied, ValidationError

from clinic_core.billing.models import Invoice, InvoiceStatus, Payment, PaymentMethod
from clinic_core.billing.services import (
    EXPORT_COLUMNS,
    InvoiceService,
    PaymentService,
    assert_can_read_invoice,
    generate_reference,
)
from clinic_core.common.api.exceptions import ConflictError

pytestmark = pytest.mark.django_db


@pytest.fixture
def invoice(patient, frontdesk, actor_for):
    return InvoiceService.create_invoice(actor=actor_for(frontdesk), patient_id=patient.id, amount=Decimal("100.00"))


def test_reference_format():
    assert re.fullmatch(r"INV-\d{8}-[0-9A-F]{8}", generate_reference())


def test_invoice_defaults(invoice):
    assert invoice.status == InvoiceStatus.UNPAID
    assert invoice.currency == "NGN"
    assert invoice.amount_paid == Decimal("0.00")
    assert invoice.reference.startswith("INV-")


def test_explicit_reference_must_be_unique(invoice, patient, frontdesk, actor_for):
    with pytest.raises(ConflictError):
        InvoiceService.create_invoice(
            actor=actor_for(frontdesk), patient_id=patient.id, amount=Decimal("5"), reference=invoice.reference
        )


def test_unknown_patient_writes_nothing(frontdesk, actor_for):
    from rest_framework.exceptions import NotFound

    with pytest.raises(NotFound):
        InvoiceService.create_invoice(actor=actor_for(frontdesk), patient_id=uuid.uuid4(), amount=Decimal("5"))
    assert Invoice.objects.count() == 0


def test_partial_then_full_payment(invoice, frontdesk, actor_for):
    actor = actor_for(frontdesk)

    PaymentService.record_payment(actor=actor, invoice_id=invoice.id, amount=Decimal("40"), method=PaymentMethod.CASH)
    invoice.refresh_from_db()
    assert invoice.status == InvoiceStatus.UNPAID
    assert invoice.balance_due == Decimal("60.00")

    PaymentService.record_payment(actor=actor, invoice_id=invoice.id, amount=Decimal("60"), method=PaymentMethod.CARD)
    invoice.refresh_from_db()
    assert invoice.status == InvoiceStatus.PAID
    assert invoice.paid_at is not None

    with pytest.raises(ConflictError, match="already paid"):
        PaymentService.record_payment(actor=actor, invoice_id=invoice.id, amount=Decimal("1"), method=PaymentMethod.CASH)


def test_duplicate_transaction_ref_is_rejected(invoice, frontdesk, actor_for):
    actor = actor_for(frontdesk)
    PaymentService.record_payment(
        actor=actor, invoice_id=invoice.id, amount=Decimal("10"), method=PaymentMethod.TRANSFER, transaction_ref="TX-1"
    )

    with pytest.raises(ConflictError, match="Duplicate transaction reference"):
        PaymentService.record_payment(
            actor=actor, invoice_id=invoice.id, amount=Decimal("10"), method=PaymentMethod.TRANSFER, transaction_ref="TX-1"
        )
    assert Payment.objects.count() == 1


def test_non_positive_amount_is_400(invoice, frontdesk, actor_for):
    with pytest.raises(ValidationError):
        PaymentService.record_payment(
            actor=actor_for(frontdesk), invoice_id=invoice.id, amount=Decimal("0"), method=PaymentMethod.CASH
        )


def test_patient_reads_only_own_invoices(invoice, patient, patient_user, make_user):
    from clinic_core.common.roles import Role

    with pytest.raises(PermissionDenied):
        assert_can_read_invoice(invoice, patient_user)

    patient.user = patient_user
    patient.save()
    invoice.refresh_from_db()
    assert_can_read_invoice(invoice, patient_user)

    assert_can_read_invoice(invoice, make_user(Role.FRONTDESK))


def test_payment_receipt_email(invoice, patient, frontdesk, actor_for, mailoutbox, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        PaymentService.record_payment(
            actor=actor_for(frontdesk), invoice_id=invoice.id, amount=Decimal("100"), method=PaymentMethod.POS
        )

    assert mailoutbox[0].to == [patient.email]
    assert "Balance due: 0.00 NGN" in mailoutbox[0].body


def test_api_payments_roundtrip(client_for, frontdesk, invoice):
    c = client_for(frontdesk)
    url = f"/api/v1/billing/invoices/{invoice.id}/payments/"

    resp = c.post(url, {"amount": "100.00", "method": "CASH"}, format="json")
    assert resp.status_code == 201

    listed = c.get(url).json()["data"]
    assert listed["meta"]["total"] == 1
    assert c.get(f"/api/v1/billing/invoices/{invoice.id}/").json()["data"]["status"] == InvoiceStatus.PAID

    assert c.get("/api/v1/billing/payments/", {"method": "CASH"}).json()["data"]["meta"]["total"] == 1


def test_export_csv_is_admin_only(client_for, admin_user, frontdesk, invoice):
    assert client_for(frontdesk).get("/api/v1/billing/invoices/export/").status_code == 403

    resp = client_for(admin_user).get("/api/v1/billing/invoices/export/")
    assert resp.status_code == 200
    assert resp["Content-Type"].startswith("text/csv")

    rows = list(csv.reader(io.StringIO(resp.content.decode())))
    assert rows[0] == EXPORT_COLUMNS
    assert rows[1][0] == invoice.reference


def test_doctor_cannot_see_invoices(client_for, doctor):
    assert client_for(doctor).get("/api/v1/billing/invoices/").status_code == 403
