# clinic_core/billing/models.py
from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from clinic_core.common.models import SoftDeleteModel, UUIDModel


class InvoiceStatus(models.TextChoices):
    UNPAID = "UNPAID", "Unpaid"
    PAID = "PAID", "Paid"


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"
    TRANSFER = "TRANSFER", "Bank transfer"
    POS = "POS", "POS"
    ONLINE = "ONLINE", "Online"


class PaymentStatus(models.TextChoices):
    SUCCESS = "SUCCESS", "Success"


class Invoice(SoftDeleteModel):
    """
    A single-amount bill for a patient. Becomes PAID once recorded payments
    cover the amount (enforced in services, under a row lock).
    """
    patient = models.ForeignKey("patients.Patient", on_delete=models.PROTECT, related_name="invoices")
    reference = models.CharField(max_length=40, unique=True)

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=8, default="NGN")
    description = models.TextField(blank=True)
    due_date = models.DateField(null=True, blank=True)

    status = models.CharField(max_length=16, choices=InvoiceStatus.choices, default=InvoiceStatus.UNPAID, db_index=True)
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    paid_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    class Meta:
        db_table = "billing_invoice"
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="ck_invoice_amount_positive"),
            models.CheckConstraint(condition=Q(amount_paid__gte=0), name="ck_invoice_amount_paid_non_negative"),
        ]
        indexes = [
            models.Index(fields=["patient", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.reference} {self.amount} {self.currency} [{self.status}]"

    @property
    def balance_due(self) -> Decimal:
        return max(self.amount - (self.amount_paid or Decimal("0.00")), Decimal("0.00"))


class Payment(UUIDModel):
    invoice = models.ForeignKey(Invoice, on_delete=models.PROTECT, related_name="payments")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=16, choices=PaymentMethod.choices)
    # NULL (not "") when absent so the unique constraint only bites real references
    transaction_ref = models.CharField(max_length=128, null=True, blank=True, unique=True)
    status = models.CharField(max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.SUCCESS)

    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    paid_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "billing_payment"
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="ck_payment_amount_positive"),
        ]

    def __str__(self) -> str:
        return f"{self.amount} via {self.method} for {self.invoice_id}"
