from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from clinic_core.billing.models import Invoice, InvoiceStatus, Payment, PaymentMethod
from clinic_core.common.api.serializers import StrictSerializer
from clinic_core.patients.api.serializers import PatientSummarySerializer


class PaymentSerializer(serializers.ModelSerializer):
    invoice_id = serializers.UUIDField(read_only=True)
    invoice_reference = serializers.CharField(source="invoice.reference", read_only=True)
    received_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "invoice_id",
            "invoice_reference",
            "amount",
            "method",
            "transaction_ref",
            "status",
            "received_by_id",
            "paid_at",
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    patient = PatientSummarySerializer(read_only=True)
    balance_due = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "reference",
            "patient",
            "amount",
            "amount_paid",
            "balance_due",
            "currency",
            "description",
            "due_date",
            "status",
            "paid_at",
            "created_by_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class InvoiceCreateSerializer(StrictSerializer):
    patient_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    currency = serializers.CharField(max_length=8, required=False, default="NGN")
    description = serializers.CharField(required=False, allow_blank=True, default="")
    due_date = serializers.DateField(required=False, allow_null=True)
    reference = serializers.CharField(max_length=40, required=False, allow_blank=True)


class PaymentCreateSerializer(StrictSerializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    method = serializers.ChoiceField(choices=PaymentMethod.choices)
    transaction_ref = serializers.CharField(max_length=128, required=False, allow_blank=True, allow_null=True)


class InvoiceQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=InvoiceStatus.choices, required=False)
    patient_id = serializers.UUIDField(required=False)


class PaymentQuerySerializer(serializers.Serializer):
    invoice_id = serializers.UUIDField(required=False)
    method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False)
    q = serializers.CharField(required=False, allow_blank=True)
