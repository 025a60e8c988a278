from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from clinic_core.common.api.serializers import AtLeastOneFieldMixin, StrictSerializer
from clinic_core.pharmacy.models import PharmacyItem, PharmacySale


class PharmacyItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = PharmacyItem
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "unit_price",
            "stock",
            "created_by_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PharmacyItemCreateSerializer(StrictSerializer):
    sku = serializers.CharField(max_length=64)
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"))
    stock = serializers.IntegerField(min_value=0, required=False, default=0)


class PharmacyItemUpdateSerializer(AtLeastOneFieldMixin, StrictSerializer):
    sku = serializers.CharField(max_length=64, required=False)
    name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"), required=False)
    stock = serializers.IntegerField(min_value=0, required=False)


class PharmacyItemQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True)
    low_stock = serializers.IntegerField(min_value=0, required=False)


class SaleCreateSerializer(StrictSerializer):
    item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    patient_id = serializers.UUIDField(required=False, allow_null=True)


class SaleSerializer(serializers.ModelSerializer):
    item_id = serializers.UUIDField(read_only=True)
    item_name = serializers.CharField(source="item.name", read_only=True)
    patient_id = serializers.UUIDField(read_only=True, allow_null=True)
    created_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = PharmacySale
        fields = [
            "id",
            "item_id",
            "item_name",
            "quantity",
            "unit_price",
            "total_amount",
            "patient_id",
            "created_by_id",
            "created_at",
        ]
        read_only_fields = fields


class SalesWindowSerializer(serializers.Serializer):
    """`from` / `to` are reserved words in Python, hence the explicit sources."""
    item_id = serializers.UUIDField(required=False)
    patient_id = serializers.UUIDField(required=False)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["from"] = serializers.DateField(required=False, source="date_from")
        self.fields["to"] = serializers.DateField(required=False, source="date_to")

    def validate(self, attrs):
        start, end = attrs.get("date_from"), attrs.get("date_to")
        if start and end and start > end:
            raise serializers.ValidationError({"to": ["'to' must be on or after 'from'."]})
        return attrs


class SalesReportRowSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    item_name = serializers.CharField()
    item_sku = serializers.CharField()
    total_quantity = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
