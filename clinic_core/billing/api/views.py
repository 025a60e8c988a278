# clinic_core/billing/api/views.py
from __future__ import annotations

from django.http import HttpResponse
from django.utils import timezone
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action

from clinic_core.billing.api.serializers import (
    InvoiceCreateSerializer,
    InvoiceQuerySerializer,
    InvoiceSerializer,
    PaymentCreateSerializer,
    PaymentQuerySerializer,
    PaymentSerializer,
)
from clinic_core.billing.models import Invoice, Payment
from clinic_core.billing.selectors import list_invoices, list_payments
from clinic_core.billing.services import InvoiceService, PaymentService, assert_can_read_invoice
from clinic_core.common.api.pagination import PAGE_PARAMS, paginate
from clinic_core.common.api.responses import created, ok
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.permissions import PolicyPermission

INVOICE_FILTERS = [
    OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="patient_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
]


def _invoice(pk) -> Invoice:
    return assert_exists(
        Invoice,
        pk,
        label="Invoice",
        queryset=Invoice.objects.alive().select_related("patient"),
    )


class InvoiceViewSet(viewsets.ViewSet):
    permission_classes = [PolicyPermission]
    policy_resource = "invoices"

    serializer_class = InvoiceSerializer
    queryset = Invoice.objects.none()

    def _filtered(self, request):
        q = InvoiceQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return list_invoices(**q.validated_data)

    @extend_schema(tags=["Billing"], parameters=[*INVOICE_FILTERS, *PAGE_PARAMS])
    def list(self, request):
        return ok(paginate(request, self._filtered(request), InvoiceSerializer))

    @extend_schema(tags=["Billing"], request=InvoiceCreateSerializer, responses={201: InvoiceSerializer})
    def create(self, request):
        ser = InvoiceCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        invoice = InvoiceService.create_invoice(actor=Actor.from_request(request), **ser.validated_data)
        return created(InvoiceSerializer(invoice).data, "Invoice created")

    @extend_schema(tags=["Billing"], responses={200: InvoiceSerializer})
    def retrieve(self, request, pk=None):
        invoice = _invoice(pk)
        assert_can_read_invoice(invoice, request.user)
        return ok(InvoiceSerializer(invoice).data)

    @extend_schema(
        tags=["Billing"],
        methods=["GET"],
        parameters=PAGE_PARAMS,
        responses={200: PaymentSerializer(many=True)},
    )
    @extend_schema(tags=["Billing"], methods=["POST"], request=PaymentCreateSerializer, responses={201: PaymentSerializer})
    @action(detail=True, methods=["get", "post"])
    def payments(self, request, pk=None):
        if request.method == "GET":
            invoice = _invoice(pk)
            return ok(paginate(request, list_payments(invoice_id=invoice.id), PaymentSerializer))

        ser = PaymentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        payment = PaymentService.record_payment(
            actor=Actor.from_request(request),
            invoice_id=pk,
            **ser.validated_data,
        )
        return created(PaymentSerializer(payment).data, "Payment recorded")

    @extend_schema(tags=["Billing"], parameters=INVOICE_FILTERS, responses={(200, "text/csv"): OpenApiTypes.STR})
    @action(detail=False, methods=["get"])
    def export(self, request):
        qs = self._filtered(request)

        response = HttpResponse(content_type="text/csv; charset=utf-8")
        filename = f"invoices-{timezone.localdate():%Y%m%d}.csv"
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        InvoiceService.write_csv(qs.iterator(), response)
        return response


class PaymentViewSet(viewsets.GenericViewSet):
    permission_classes = [PolicyPermission]
    policy_resource = "payments"

    serializer_class = PaymentSerializer
    queryset = Payment.objects.none()

    @extend_schema(
        tags=["Billing"],
        parameters=[
            OpenApiParameter(name="invoice_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="method", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
    )
    def list(self, request):
        q = PaymentQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(paginate(request, list_payments(**q.validated_data), PaymentSerializer))
