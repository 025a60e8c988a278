from decimal import Decimal

import pytest
from rest_framework.exceptions import ValidationError

from clinic_core.audit.models import AuditEvent
from clinic_core.common.api.exceptions import ConflictError
from clinic_core.pharmacy.models import PharmacySale
from clinic_core.pharmacy.selectors import sales_report
from clinic_core.pharmacy.services import PharmacyService

pytestmark = pytest.mark.django_db


@pytest.fixture
def item(pharmacist, actor_for):
    return PharmacyService.create_item(
        actor=actor_for(pharmacist), sku="PCM-500", name="Paracetamol 500mg", unit_price=Decimal("2.50"), stock=10
    )


def test_duplicate_sku_is_409(item, pharmacist, actor_for):
    with pytest.raises(ConflictError):
        PharmacyService.create_item(actor=actor_for(pharmacist), sku="pcm-500", name="Other", unit_price=Decimal("1"))


def test_sale_decrements_stock_and_prices_from_item(item, patient, pharmacist, actor_for):
    sale = PharmacyService.record_sale(actor=actor_for(pharmacist), item_id=item.id, quantity=4, patient_id=patient.id)

    item.refresh_from_db()
    assert item.stock == 6
    assert sale.unit_price == Decimal("2.50")
    assert sale.total_amount == Decimal("10.00")
    assert AuditEvent.objects.filter(action="PHARMACY_SALE_CREATED", entity_id=str(sale.id)).exists()


def test_insufficient_stock_writes_nothing(item, pharmacist, actor_for):
    with pytest.raises(ValidationError) as exc:
        PharmacyService.record_sale(actor=actor_for(pharmacist), item_id=item.id, quantity=11)

    assert "Insufficient stock. Available: 10" in str(exc.value.detail)
    item.refresh_from_db()
    assert item.stock == 10
    assert PharmacySale.objects.count() == 0


def test_selling_exact_stock_leaves_zero(item, pharmacist, actor_for):
    PharmacyService.record_sale(actor=actor_for(pharmacist), item_id=item.id, quantity=10)
    item.refresh_from_db()
    assert item.stock == 0


def test_sales_report_groups_per_item(item, pharmacist, actor_for):
    actor = actor_for(pharmacist)
    other = PharmacyService.create_item(actor=actor, sku="AMX-250", name="Amoxicillin", unit_price=Decimal("20"), stock=5)

    PharmacyService.record_sale(actor=actor, item_id=item.id, quantity=2)
    PharmacyService.record_sale(actor=actor, item_id=item.id, quantity=3)
    PharmacyService.record_sale(actor=actor, item_id=other.id, quantity=1)

    rows = sales_report()
    assert [r["item_sku"] for r in rows] == ["AMX-250", "PCM-500"]
    assert rows[1]["total_quantity"] == 5
    assert rows[1]["total_revenue"] == "12.50"


def test_api_sale_and_stock_error(client_for, pharmacist, item):
    client = client_for(pharmacist)

    resp = client.post("/api/v1/pharmacy-items/sale/", {"item_id": str(item.id), "quantity": 3}, format="json")
    assert resp.status_code == 201
    assert resp.data["data"]["total_amount"] == "7.50"

    resp = client.post("/api/v1/pharmacy-items/sale/", {"item_id": str(item.id), "quantity": 50}, format="json")
    assert resp.status_code == 400
    assert resp.data["message"] == "Insufficient stock. Available: 7"


def test_api_rejects_zero_quantity(client_for, pharmacist, item):
    resp = client_for(pharmacist).post(
        "/api/v1/pharmacy-items/sale/", {"item_id": str(item.id), "quantity": 0}, format="json"
    )
    assert resp.status_code == 400


def test_nurse_can_list_but_not_sell(client_for, nurse, item):
    client = client_for(nurse)
    assert client.get("/api/v1/pharmacy-items/").status_code == 200

    resp = client.post("/api/v1/pharmacy-items/sale/", {"item_id": str(item.id), "quantity": 1}, format="json")
    assert resp.status_code == 403


def test_sales_window_rejects_inverted_range(client_for, pharmacist):
    resp = client_for(pharmacist).get("/api/v1/pharmacy-items/sales/", {"from": "2026-10-10", "to": "2026-10-01"})
    assert resp.status_code == 400
