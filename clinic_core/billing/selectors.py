# clinic_core/billing/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from clinic_core.billing.models import Invoice, Payment
from clinic_core.common.api.pagination import search_q

INVOICE_SEARCH_FIELDS = [
    "reference",
    "description",
    "patient__email",
    "patient__first_name",
    "patient__last_name",
]


def list_invoices(*, q: str | None = None, status: str | None = None, patient_id=None) -> QuerySet[Invoice]:
    qs = Invoice.objects.alive().select_related("patient")
    qs = search_q(qs, q, INVOICE_SEARCH_FIELDS)
    if status:
        qs = qs.filter(status=status)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return qs.order_by("-created_at")


def list_payments(*, invoice_id=None, method: str | None = None, q: str | None = None) -> QuerySet[Payment]:
    qs = Payment.objects.filter(invoice__deleted_at__isnull=True).select_related("invoice", "invoice__patient")
    if invoice_id:
        qs = qs.filter(invoice_id=invoice_id)
    if method:
        qs = qs.filter(method=method)
    qs = search_q(qs, q, ["transaction_ref", "invoice__reference"])
    return qs.order_by("-paid_at")
