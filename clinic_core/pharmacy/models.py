# clinic_core/pharmacy/models.py
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from clinic_core.common.models import SoftDeleteModel, UUIDModel


class PharmacyItem(SoftDeleteModel):
    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True)

    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    stock = models.PositiveIntegerField(default=0)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    class Meta:
        db_table = "pharmacy_item"
        constraints = [
            models.CheckConstraint(condition=Q(unit_price__gte=0), name="ck_pharmacy_item_price_non_negative"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.sku})"


class PharmacySale(UUIDModel):
    """Immutable sale line. unit_price is a snapshot of the item price at sale time."""
    item = models.ForeignKey(PharmacyItem, on_delete=models.PROTECT, related_name="sales")
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2)

    patient = models.ForeignKey(
        "patients.Patient", on_delete=models.SET_NULL, null=True, blank=True, related_name="pharmacy_sales"
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    class Meta:
        db_table = "pharmacy_sale"
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="ck_pharmacy_sale_quantity_positive"),
        ]
        indexes = [
            models.Index(fields=["item", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.quantity} x {self.item_id} = {self.total_amount}"
