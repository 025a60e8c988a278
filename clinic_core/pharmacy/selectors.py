# clinic_core/pharmacy/selectors.py
from __future__ import annotations

import datetime
from typing import Optional

from django.db.models import DecimalField, F, QuerySet, Sum, Value
from django.db.models.functions import Coalesce

from clinic_core.common.api.pagination import search_q
from clinic_core.pharmacy.models import PharmacyItem, PharmacySale


def list_items(*, q: str | None = None, low_stock: Optional[int] = None) -> QuerySet[PharmacyItem]:
    qs = search_q(PharmacyItem.objects.alive(), q, ["name", "sku"])
    if low_stock is not None:
        qs = qs.filter(stock__lte=low_stock)
    return qs.order_by("name", "sku")


def _in_window(qs: QuerySet, date_from: Optional[datetime.date], date_to: Optional[datetime.date]) -> QuerySet:
    # date bounds are inclusive whole days
    if date_from:
        qs = qs.filter(created_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(created_at__date__lte=date_to)
    return qs


def list_sales(
    *,
    item_id=None,
    patient_id=None,
    date_from: Optional[datetime.date] = None,
    date_to: Optional[datetime.date] = None,
) -> QuerySet[PharmacySale]:
    qs = PharmacySale.objects.select_related("item", "patient")
    if item_id:
        qs = qs.filter(item_id=item_id)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return _in_window(qs, date_from, date_to).order_by("-created_at")


def sales_report(
    *,
    date_from: Optional[datetime.date] = None,
    date_to: Optional[datetime.date] = None,
) -> list[dict]:
    """Per-item totals over the window, highest revenue first."""
    rows = (
        _in_window(PharmacySale.objects.all(), date_from, date_to)
        .values("item_id", item_name=F("item__name"), item_sku=F("item__sku"))
        .annotate(
            total_quantity=Sum("quantity"),
            total_revenue=Coalesce(
                Sum("total_amount"),
                Value(0),
                output_field=DecimalField(max_digits=14, decimal_places=2),
            ),
        )
        .order_by("-total_revenue", "item_name")
    )
    return [
        {
            "item_id": str(r["item_id"]),
            "item_name": r["item_name"],
            "item_sku": r["item_sku"],
            "total_quantity": r["total_quantity"] or 0,
            "total_revenue": f"{r['total_revenue']:.2f}",
        }
        for r in rows
    ]
