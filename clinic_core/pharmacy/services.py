# clinic_core/pharmacy/services.py
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from django.db import IntegrityError, transaction
from django.db.models import F
from rest_framework.exceptions import ValidationError

from clinic_core.audit.services import AuditService, diff
from clinic_core.common.api.exceptions import ConflictError
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists, assert_exists_optional
from clinic_core.common.services import apply_changes, soft_delete
from clinic_core.patients.models import Patient
from clinic_core.pharmacy.models import PharmacyItem, PharmacySale

SKU_TAKEN = "An item with this SKU already exists."


def _sku_taken(sku: str, *, exclude_id=None) -> bool:
    qs = PharmacyItem.objects.filter(sku__iexact=sku)
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    return qs.exists()


class PharmacyService:
    @staticmethod
    @transaction.atomic
    def create_item(
        *,
        actor: Actor,
        sku: str,
        name: str,
        unit_price: Decimal,
        stock: int = 0,
        description: str = "",
    ) -> PharmacyItem:
        sku = sku.strip()
        if _sku_taken(sku):
            raise ConflictError(SKU_TAKEN)

        try:
            with transaction.atomic():
                item = PharmacyItem.objects.create(
                    sku=sku,
                    name=name,
                    description=description or "",
                    unit_price=unit_price,
                    stock=stock,
                    created_by_id=actor.user_id,
                )
        except IntegrityError:
            raise ConflictError(SKU_TAKEN)

        AuditService.log(
            action="PHARMACY_ITEM_CREATED",
            entity_type="PharmacyItem",
            entity_id=item.id,
            actor=actor,
            after={"sku": item.sku, "name": item.name, "unit_price": item.unit_price, "stock": item.stock},
        )
        return item

    @staticmethod
    @transaction.atomic
    def update_item(*, actor: Actor, item_id, data: dict) -> PharmacyItem:
        item = assert_exists(PharmacyItem, item_id, label="Item", lock=True)
        data = dict(data or {})

        if "sku" in data:
            data["sku"] = data["sku"].strip()
            if _sku_taken(data["sku"], exclude_id=item.id):
                raise ConflictError(SKU_TAKEN)

        changes = apply_changes(item, data, {"sku", "name", "description", "unit_price", "stock"})
        if not changes:
            return item

        item.save()

        before, after = diff(changes)
        AuditService.log(
            action="PHARMACY_ITEM_UPDATED",
            entity_type="PharmacyItem",
            entity_id=item.id,
            actor=actor,
            before=before,
            after=after,
        )
        return item

    @staticmethod
    @transaction.atomic
    def delete_item(*, actor: Actor, item_id) -> None:
        item = soft_delete(PharmacyItem, item_id, actor=actor, label="Item")
        AuditService.log(
            action="PHARMACY_ITEM_DELETED",
            entity_type="PharmacyItem",
            entity_id=item.id,
            actor=actor,
            before={"sku": item.sku, "name": item.name},
        )

    @staticmethod
    @transaction.atomic
    def record_sale(
        *,
        actor: Actor,
        item_id,
        quantity: int,
        patient_id=None,
    ) -> PharmacySale:
        """
        Stock check, sale insert and stock decrement happen under one row lock,
        so two concurrent sales can never oversell.
        """
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be greater than zero."]})

        item = assert_exists(PharmacyItem, item_id, label="Item", lock=True)
        patient: Optional[Patient] = assert_exists_optional(Patient, patient_id, label="Patient")

        if item.stock < quantity:
            raise ValidationError(f"Insufficient stock. Available: {item.stock}")

        sale = PharmacySale.objects.create(
            item=item,
            quantity=quantity,
            unit_price=item.unit_price,
            total_amount=(item.unit_price * quantity).quantize(Decimal("0.01")),
            patient=patient,
            created_by_id=actor.user_id,
        )

        PharmacyItem.objects.filter(id=item.id).update(stock=F("stock") - quantity)
        item.refresh_from_db(fields=["stock"])

        AuditService.log(
            action="PHARMACY_SALE_CREATED",
            entity_type="PharmacySale",
            entity_id=sale.id,
            actor=actor,
            details={
                "item_id": str(item.id),
                "quantity": quantity,
                "total_amount": sale.total_amount,
                "stock_after": item.stock,
            },
        )
        return sale
