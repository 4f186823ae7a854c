# clinic_core/billing/tests/test_bill_api.py
import pytest

from clinic_core.billing.models import Bill
from clinic_core.inventory.models import Product

pytestmark = pytest.mark.django_db


def _create_bill(api_client, patient):
    r = api_client.post("/api/v1/billing/bills/", {"patient": str(patient.id)}, format="json")
    assert r.status_code == 201, r.data
    return r.data


def test_bill_requires_auth(anon_client):
    r = anon_client.get("/api/v1/billing/bills/")
    assert r.status_code == 401
    assert r.data["error"]["code"] == "not_authenticated"


def test_create_and_retrieve_bill(api_client, patient):
    created = _create_bill(api_client, patient)
    assert created["bill_number"].startswith("BILL-")
    assert created["total_cents"] == 0
    assert created["items"] == []

    r = api_client.get(f"/api/v1/billing/bills/{created['id']}/")
    assert r.status_code == 200
    assert r.data["id"] == created["id"]


def test_list_bills_filters_by_patient(api_client, patient, patient_email_only):
    mine = _create_bill(api_client, patient)
    _create_bill(api_client, patient_email_only)

    r = api_client.get("/api/v1/billing/bills/", {"patient": str(patient.id)})
    assert r.status_code == 200
    assert r.data["count"] == 1
    assert r.data["results"][0]["id"] == mine["id"]


def test_list_bills_rejects_bad_uuid_filter(api_client):
    r = api_client.get("/api/v1/billing/bills/", {"patient": "nope"})
    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"


def test_add_items_and_delete(api_client, patient):
    bill = _create_bill(api_client, patient)
    url = f"/api/v1/billing/bills/{bill['id']}/items/"

    a = api_client.post(url, {"description": "X-ray", "quantity": 1, "unit_price_cents": 2000}, format="json")
    b = api_client.post(url, {"description": "Consult", "quantity": 1, "unit_price_cents": 3000}, format="json")
    assert a.status_code == 201, a.data
    assert b.status_code == 201, b.data

    listed = api_client.get(url)
    assert [i["description"] for i in listed.data] == ["X-ray", "Consult"]

    d = api_client.delete(f"/api/v1/billing/items/{a.data['id']}/")
    assert d.status_code == 200, d.data
    assert d.data == {"subtotal_cents": 3000, "tax_cents": 300, "total_cents": 3300}


def test_add_item_without_price_or_product_is_400(api_client, patient):
    bill = _create_bill(api_client, patient)
    r = api_client.post(f"/api/v1/billing/bills/{bill['id']}/items/", {"description": "X"}, format="json")
    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"
    assert "unit_price_cents" in r.data["error"]["details"]


def test_insufficient_stock_is_409_with_available(api_client, patient):
    scarce = Product.objects.create(name="Splint", unit_price_cents=2500, stock_quantity=3)
    bill = _create_bill(api_client, patient)

    r = api_client.post(
        f"/api/v1/billing/bills/{bill['id']}/items/",
        {"product_id": str(scarce.id), "quantity": 5},
        format="json",
    )
    assert r.status_code == 409
    assert r.data["error"]["code"] == "insufficient_stock"
    assert r.data["error"]["details"]["available"] == 3
    assert r.data["error"]["details"]["requested"] == 5

    scarce.refresh_from_db()
    assert scarce.stock_quantity == 3


def test_batch_add_reports_summary(api_client, patient, product):
    bill = _create_bill(api_client, patient)

    r = api_client.post(
        f"/api/v1/billing/bills/{bill['id']}/items/batch/",
        {
            "items": [
                {"product_id": str(product.id), "quantity": 2},
                {"product_id": str(product.id), "quantity": 50},
            ]
        },
        format="json",
    )
    assert r.status_code == 200, r.data
    assert r.data["summary"] == "1 succeeded, 1 failed"
    assert len(r.data["created"]) == 1
    assert r.data["warnings"][0]["index"] == 1
    assert r.data["totals"]["total_cents"] == 1100


def test_batch_add_rejects_empty_list(api_client, patient):
    bill = _create_bill(api_client, patient)
    r = api_client.post(f"/api/v1/billing/bills/{bill['id']}/items/batch/", {"items": []}, format="json")
    assert r.status_code == 400


def test_bill_from_visit(api_client, visit):
    r = api_client.post("/api/v1/billing/bills/from_visit/", {"visit_id": str(visit.id)}, format="json")
    assert r.status_code == 201, r.data
    assert r.data["visit"] == visit.id
    assert len(r.data["items"]) == 1
    assert r.data["total_cents"] == 11000


def test_bill_from_unknown_visit_is_404(api_client):
    r = api_client.post(
        "/api/v1/billing/bills/from_visit/",
        {"visit_id": "00000000-0000-0000-0000-000000000999"},
        format="json",
    )
    assert r.status_code == 404
    assert r.data["error"]["code"] == "not_found"


def test_put_total_must_match_items(api_client, patient):
    bill = _create_bill(api_client, patient)
    api_client.post(
        f"/api/v1/billing/bills/{bill['id']}/items/",
        {"description": "Consult", "quantity": 2, "unit_price_cents": 5000},
        format="json",
    )

    ok = api_client.put(f"/api/v1/billing/bills/{bill['id']}/", {"total_amount": "110.00"}, format="json")
    assert ok.status_code == 200, ok.data
    assert ok.data["total_cents"] == 11000

    bad = api_client.put(f"/api/v1/billing/bills/{bill['id']}/", {"total_amount": "5.00"}, format="json")
    assert bad.status_code == 400
    assert Bill.objects.get(id=bill["id"]).total_cents == 11000


def test_recalculate_endpoint(api_client, patient):
    bill = _create_bill(api_client, patient)
    r = api_client.post(f"/api/v1/billing/bills/{bill['id']}/recalculate/")
    assert r.status_code == 200
    assert r.data == {"subtotal_cents": 0, "tax_cents": 0, "total_cents": 0}


def test_payment_endpoint(api_client, patient):
    bill = _create_bill(api_client, patient)
    r = api_client.post(
        f"/api/v1/billing/bills/{bill['id']}/payment/",
        {"payment_status": "paid", "payment_method": "card"},
        format="json",
    )
    assert r.status_code == 200, r.data
    assert r.data["payment_status"] == "paid"
    assert r.data["payment_method"] == "card"
    assert r.data["payment_date"] is not None


def test_delete_unknown_item_is_404(api_client):
    r = api_client.delete("/api/v1/billing/items/00000000-0000-0000-0000-000000000999/")
    assert r.status_code == 404
    assert r.data["error"]["code"] == "not_found"


def test_delete_bill_returns_stock(api_client, patient, product):
    bill = _create_bill(api_client, patient)
    api_client.post(
        f"/api/v1/billing/bills/{bill['id']}/items/",
        {"product_id": str(product.id), "quantity": 3},
        format="json",
    )

    r = api_client.delete(f"/api/v1/billing/bills/{bill['id']}/")
    assert r.status_code == 204

    product.refresh_from_db()
    assert product.stock_quantity == 10
    assert not Bill.objects.filter(id=bill["id"]).exists()


def test_unpaying_a_bill_clears_payment_date(api_client, patient):
    bill = _create_bill(api_client, patient)
    url = f"/api/v1/billing/bills/{bill['id']}/payment/"
    api_client.post(url, {"payment_status": "paid", "payment_method": "cash"}, format="json")

    r = api_client.post(url, {"payment_status": "overdue"}, format="json")
    assert r.status_code == 200, r.data
    assert r.data["payment_status"] == "overdue"
    assert r.data["payment_date"] is None
