# clinic_core/billing/services.py
from __future__ import annotations

import csv
import datetime
import logging
import secrets
from decimal import Decimal
from typing import Iterable, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from clinic_core.audit.services import AuditService
from clinic_core.billing.models import Invoice, InvoiceStatus, Payment, PaymentStatus
from clinic_core.common.api.exceptions import ConflictError
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.roles import Role
from clinic_core.messaging.mail import notify_by_email
from clinic_core.patients.models import Patient

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
REFERENCE_ATTEMPTS = 10

EXPORT_COLUMNS = [
    "reference",
    "patient_code",
    "patient_name",
    "patient_email",
    "amount",
    "amount_paid",
    "currency",
    "status",
    "due_date",
    "paid_at",
    "created_at",
]


def generate_reference(today: datetime.date | None = None) -> str:
    today = today or timezone.localdate()
    return f"INV-{today:%Y%m%d}-{secrets.token_hex(4).upper()}"


def _money(value) -> Decimal:
    amount = Decimal(str(value)).quantize(CENTS)
    if amount <= 0:
        raise ValidationError({"amount": ["Amount must be greater than zero."]})
    return amount


def assert_can_read_invoice(invoice: Invoice, user) -> None:
    """Patients may only see invoices of their own linked patient record."""
    if getattr(user, "role", None) != Role.PATIENT:
        return
    if invoice.patient.user_id != user.id:
        raise PermissionDenied("You may only view your own invoices.")


class InvoiceService:
    @staticmethod
    @transaction.atomic
    def create_invoice(
        *,
        actor: Actor,
        patient_id,
        amount: Decimal,
        currency: str = "NGN",
        description: str = "",
        due_date: Optional[datetime.date] = None,
        reference: Optional[str] = None,
    ) -> Invoice:
        patient = assert_exists(Patient, patient_id, label="Patient")
        amount = _money(amount)

        fields = dict(
            patient=patient,
            amount=amount,
            currency=(currency or "NGN").upper(),
            description=description or "",
            due_date=due_date,
            status=InvoiceStatus.UNPAID,
            created_by_id=actor.user_id,
        )

        if reference:
            if Invoice.objects.filter(reference=reference).exists():
                raise ConflictError("Invoice reference already exists.")
            try:
                with transaction.atomic():
                    invoice = Invoice.objects.create(reference=reference, **fields)
            except IntegrityError:
                raise ConflictError("Invoice reference already exists.")
        else:
            invoice = InvoiceService._create_with_generated_reference(**fields)

        AuditService.log(
            action="INVOICE_CREATED",
            entity_type="Invoice",
            entity_id=invoice.id,
            actor=actor,
            after={
                "reference": invoice.reference,
                "patient_id": str(patient.id),
                "amount": invoice.amount,
                "currency": invoice.currency,
            },
        )
        return invoice

    @staticmethod
    def _create_with_generated_reference(**fields) -> Invoice:
        for _ in range(REFERENCE_ATTEMPTS):
            reference = generate_reference()
            if Invoice.objects.filter(reference=reference).exists():
                continue
            try:
                with transaction.atomic():
                    return Invoice.objects.create(reference=reference, **fields)
            except IntegrityError:
                logger.info("Invoice reference collision on %s, retrying", reference)
        raise ConflictError("Could not allocate a unique invoice reference. Please retry.")

    @staticmethod
    def write_csv(invoices: Iterable[Invoice], out) -> None:
        writer = csv.writer(out)
        writer.writerow(EXPORT_COLUMNS)
        for inv in invoices:
            writer.writerow(
                [
                    inv.reference,
                    inv.patient.patient_code,
                    inv.patient.full_name,
                    inv.patient.email,
                    f"{inv.amount:.2f}",
                    f"{inv.amount_paid:.2f}",
                    inv.currency,
                    inv.status,
                    inv.due_date.isoformat() if inv.due_date else "",
                    inv.paid_at.isoformat() if inv.paid_at else "",
                    inv.created_at.isoformat(),
                ]
            )


class PaymentService:
    @staticmethod
    @transaction.atomic
    def record_payment(
        *,
        actor: Actor,
        invoice_id,
        amount: Decimal,
        method: str,
        transaction_ref: Optional[str] = None,
    ) -> Payment:
        """
        The invoice row is locked so concurrent payments serialize; the
        invoice flips to PAID once the running total covers its amount.
        """
        invoice = assert_exists(
            Invoice,
            invoice_id,
            label="Invoice",
            queryset=Invoice.objects.alive().select_related("patient"),
            lock=True,
        )
        amount = _money(amount)
        transaction_ref = (transaction_ref or "").strip() or None

        if invoice.status == InvoiceStatus.PAID:
            raise ConflictError("Invoice is already paid.")
        if transaction_ref and Payment.objects.filter(transaction_ref=transaction_ref).exists():
            raise ConflictError("Duplicate transaction reference.")

        try:
            with transaction.atomic():
                payment = Payment.objects.create(
                    invoice=invoice,
                    amount=amount,
                    method=method,
                    transaction_ref=transaction_ref,
                    status=PaymentStatus.SUCCESS,
                    received_by_id=actor.user_id,
                )
        except IntegrityError:
            raise ConflictError("Duplicate transaction reference.")

        before_status = invoice.status
        invoice.amount_paid = (invoice.amount_paid + amount).quantize(CENTS)
        if invoice.amount_paid >= invoice.amount:
            invoice.status = InvoiceStatus.PAID
            invoice.paid_at = timezone.now()
        invoice.save(update_fields=["amount_paid", "status", "paid_at", "updated_at"])

        AuditService.log(
            action="PAYMENT_RECORDED",
            entity_type="Invoice",
            entity_id=invoice.id,
            actor=actor,
            before={"status": before_status},
            after={"status": invoice.status, "amount_paid": invoice.amount_paid},
            details={
                "payment_id": str(payment.id),
                "amount": amount,
                "method": method,
                "transaction_ref": transaction_ref,
            },
        )

        notify_by_email(
            [invoice.patient.email],
            f"Payment received for {invoice.reference}",
            (
                f"Hello {invoice.patient.first_name},\n\n"
                f"We received {amount:.2f} {invoice.currency} ({method}) for invoice {invoice.reference}. "
                f"Balance due: {invoice.balance_due:.2f} {invoice.currency}."
            ),
        )
        return payment
